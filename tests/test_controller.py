"""
Controller Tests
================

End-to-end behavior of the event-driven application controller, built
from test settings with the mock audio backend.
"""

import asyncio
import math
import time

import pytest

from silentmap.app import build_controller
from silentmap.app import panels as panel_policy
from silentmap.app.events import (
    ClosePanels,
    CommitRequested,
    DismissDetail,
    EventQueue,
    LoudnessTick,
    MapMoved,
    PlaySong,
    PositionError,
    PositionFix,
    PositionUnavailable,
    SelectArea,
    TakeSong,
    ToggleListening,
    ToggleSongsPanel,
    ToggleStatsPanel,
)
from silentmap.models.geo import Coordinate
from silentmap.models.notices import NoticeCode
from silentmap.models.state import GPS_NOT_AVAILABLE, PanelState, SessionState


METERS_PER_DEGREE_LAT = 6_371_000.0 * math.pi / 180.0


def codes(controller):
    return [n.code for n in controller.drain_notices()]


class TestEventQueue:
    """Tests for the bounded event queue."""

    def test_drops_oldest_when_full(self):
        """Verify a full queue drops its oldest event."""
        queue = EventQueue(maxsize=2)
        assert queue.put_nowait(ToggleSongsPanel())
        assert queue.put_nowait(ToggleStatsPanel())
        assert not queue.put_nowait(ClosePanels())

        assert queue.dropped_count == 1

        async def drain():
            return [await queue.get(timeout=0.01) for _ in range(3)]

        first, second, third = asyncio.run(drain())
        assert isinstance(first, ToggleStatsPanel)
        assert isinstance(second, ClosePanels)
        assert third is None
        assert queue.metrics()["total_put"] == 3

    def test_get_times_out(self):
        """Verify get() returns None on timeout."""
        queue = EventQueue(maxsize=1)
        assert asyncio.run(queue.get(timeout=0.01)) is None

    def test_rejects_zero_size(self):
        """Verify a zero-size queue is rejected."""
        with pytest.raises(ValueError):
            EventQueue(maxsize=0)


class TestPanelPolicy:
    """Mutual exclusion of the overlay panels."""

    def test_toggle_songs_closes_others(self):
        """Verify opening songs closes the other panels."""
        panels = PanelState(stats_open=True, detail_open=True, selected_area=0)
        result = panel_policy.toggle_songs(panels)
        assert result.songs_open and not result.stats_open and not result.detail_open

    def test_toggle_stats_twice(self):
        """Verify toggling stats twice restores the panels."""
        panels = panel_policy.toggle_stats(panel_policy.toggle_stats(PanelState()))
        assert panels == PanelState()

    def test_select_area_closes_side_panels(self):
        """Verify selecting an area closes the side panels."""
        panels = panel_policy.select_area(PanelState(songs_open=True), 2)
        assert panels.detail_open
        assert panels.selected_area == 2
        assert not panels.songs_open

    def test_close_detail_keeps_selection(self):
        """Verify closing the detail panel keeps the selected index."""
        panels = panel_policy.close_detail(panel_policy.select_area(PanelState(), 1))
        assert not panels.detail_open
        assert panels.selected_area == 1


class TestController:
    """Tests for ApplicationController."""

    def test_seed_areas_loaded(self, test_settings):
        """Verify the controller starts with the seed areas."""
        controller = build_controller(test_settings)
        assert len(controller.state.areas) == 2
        assert controller.state.session_state == SessionState.IDLE

    def test_unknown_event_type(self, test_settings):
        """Verify unknown events raise TypeError."""
        controller = build_controller(test_settings)
        with pytest.raises(TypeError):
            asyncio.run(controller.dispatch(object()))

    def test_listening_walk_of_two_kilometers(self, test_settings, florence):
        """Verify a 2 km walk builds the route and its statistics."""
        async def run():
            controller = build_controller(test_settings)
            await controller.dispatch(ToggleListening())
            assert controller.state.session_state == SessionState.LISTENING

            for km in range(3):
                fix = Coordinate(
                    latitude=florence.latitude + km * 1000 / METERS_PER_DEGREE_LAT,
                    longitude=florence.longitude,
                )
                await controller.dispatch(PositionFix(fix))

            state = controller.state
            assert len(state.route) == 3
            assert len(state.loudness_history) == 3
            assert state.distance_traveled_km == pytest.approx(2.0, abs=1e-3)
            assert state.area_visited_m2 == pytest.approx(0.0, abs=1e-3)
            assert state.position == state.route[-1]
            assert state.map_view.center == state.route[-1]

            await controller.dispatch(ToggleListening())
            assert state.session_state == SessionState.IDLE
            assert not controller.recorder.microphone.busy
            await controller.stop()

        asyncio.run(run())

    def test_fix_while_idle_only_updates_status(self, test_settings, florence):
        """Verify an idle fix updates the status line only."""
        async def run():
            controller = build_controller(test_settings)
            await controller.dispatch(PositionFix(florence))
            return controller.state

        state = asyncio.run(run())
        assert state.gps_status == "GPS active. Lat: 43.7696, Lon: 11.2558"
        assert state.route == []
        assert state.position is None

    def test_gps_errors_change_status_line(self, test_settings):
        """Verify GPS errors change the status line without notices."""
        async def run():
            controller = build_controller(test_settings)
            await controller.dispatch(PositionError("timeout"))
            first = controller.state.gps_status
            await controller.dispatch(PositionUnavailable())
            return first, controller.state.gps_status, controller.state.notices

        first, second, notices = asyncio.run(run())
        assert first == "GPS error: timeout"
        assert second == GPS_NOT_AVAILABLE
        assert notices == []

    def test_new_session_resets_route(self, test_settings, florence):
        """Verify starting a session clears the previous route."""
        async def run():
            controller = build_controller(test_settings)
            await controller.dispatch(ToggleListening())
            await controller.dispatch(PositionFix(florence))
            await controller.dispatch(ToggleListening())
            assert len(controller.state.route) == 1
            await controller.dispatch(ToggleListening())
            route = list(controller.state.route)
            await controller.stop()
            return route, controller.state

        route, state = asyncio.run(run())
        assert route == []
        assert state.distance_traveled_km == 0.0
        assert state.session_state == SessionState.IDLE

    def test_microphone_unavailable_notice(self, test_settings):
        """Verify a failed session start raises a blocking notice."""
        test_settings.audio.mock.fail_on_start = True

        async def run():
            controller = build_controller(test_settings)
            await controller.dispatch(ToggleListening())
            return controller

        controller = asyncio.run(run())
        notices = controller.drain_notices()
        assert [n.code for n in notices] == [NoticeCode.MICROPHONE_UNAVAILABLE]
        assert notices[0].blocking
        assert notices[0].message == "Unable to access microphone. Please check your permissions."
        assert controller.state.session_state == SessionState.IDLE

    def test_commit_at_map_center(self, test_settings):
        """Verify a commit records an area at the map center."""
        async def run():
            controller = build_controller(test_settings)
            await controller.dispatch(CommitRequested())
            assert controller.state.commit_in_progress
            result = await controller.wait_for_commit()
            return controller, result

        controller, result = asyncio.run(run())
        assert result.saved
        assert result.area.color == "blue"
        assert result.area.radius == 500.0
        assert result.area.center == Coordinate(latitude=43.7696, longitude=11.2558)
        assert len(controller.state.areas) == 3
        assert not controller.state.commit_in_progress
        assert codes(controller) == [NoticeCode.AREA_SAVED]

    def test_commit_snapshots_center_at_request(self, test_settings):
        """Verify the commit uses the center at request time."""
        moved_to = Coordinate(latitude=43.80, longitude=11.30)

        async def run():
            controller = build_controller(test_settings)
            await controller.dispatch(CommitRequested())
            await controller.dispatch(MapMoved(center=moved_to, zoom=15))
            result = await controller.wait_for_commit()
            return controller, result

        controller, result = asyncio.run(run())
        assert result.area.center == Coordinate(latitude=43.7696, longitude=11.2558)
        assert controller.state.map_view.center == moved_to
        assert controller.state.map_view.zoom == 15

    def test_overlapping_commit_rejected(self, test_settings):
        """Verify a second commit at the same center is rejected."""
        async def run():
            controller = build_controller(test_settings)
            await controller.dispatch(CommitRequested())
            await controller.wait_for_commit()
            await controller.dispatch(CommitRequested())
            await controller.wait_for_commit()
            return controller

        controller = asyncio.run(run())
        notices = controller.drain_notices()
        assert [n.code for n in notices] == [NoticeCode.AREA_SAVED, NoticeCode.AREA_OVERLAP]
        assert notices[1].message == "Cannot save area: It overlaps with an existing area."
        assert len(controller.state.areas) == 3

    def test_second_commit_while_recording(self, test_settings):
        """Verify a commit request while recording is rejected."""
        async def run():
            controller = build_controller(test_settings)
            await controller.dispatch(CommitRequested())
            await controller.dispatch(CommitRequested())
            await controller.wait_for_commit()
            return controller

        controller = asyncio.run(run())
        assert codes(controller) == [NoticeCode.COMMIT_IN_PROGRESS, NoticeCode.AREA_SAVED]

    def test_commit_while_listening_reports_busy(self, test_settings):
        """Verify a commit during a session reports a busy microphone."""
        async def run():
            controller = build_controller(test_settings)
            await controller.dispatch(ToggleListening())
            await controller.dispatch(CommitRequested())
            result = await controller.wait_for_commit()
            await controller.stop()
            return controller, result

        controller, result = asyncio.run(run())
        assert result.outcome == NoticeCode.MICROPHONE_BUSY
        assert NoticeCode.MICROPHONE_BUSY in codes(controller)
        assert len(controller.state.areas) == 2

    def test_unrelated_events_flow_while_listening_waits(self, test_settings):
        """Verify other events dispatch while listening waits for the microphone."""
        test_settings.area.sample_interval_seconds = 0.01
        test_settings.area.sample_window_seconds = 0.5
        test_settings.microphone.acquire_timeout_seconds = 2.0

        async def run():
            controller = build_controller(test_settings)
            await controller.dispatch(CommitRequested())
            await asyncio.sleep(0.05)
            assert controller.recorder.microphone.owner == "area-commit"

            toggle = asyncio.create_task(controller.dispatch(ToggleListening()))
            await asyncio.sleep(0.01)

            started = time.monotonic()
            await controller.dispatch(PositionError("timeout"))
            waited = time.monotonic() - started
            assert not toggle.done()

            await controller.wait_for_commit()
            await toggle
            session_state = controller.state.session_state
            await controller.stop()
            return controller, waited, session_state

        controller, waited, session_state = asyncio.run(run())
        assert waited < 0.2
        assert controller.state.gps_status == "GPS error: timeout"
        assert session_state == SessionState.LISTENING
        assert codes(controller) == [NoticeCode.AREA_SAVED]

    def test_unreadable_storage_still_reports_commit(self, test_settings):
        """Verify a storage failure still reports the commit outcome."""
        with open(test_settings.storage.path, "w") as f:
            f.write("[]")

        async def run():
            controller = build_controller(test_settings)
            await controller.dispatch(CommitRequested())
            result = await controller.wait_for_commit()
            return controller, result

        controller, result = asyncio.run(run())
        assert result.outcome == NoticeCode.POSITION_NOT_STORED
        assert len(controller.state.areas) == 3
        assert not controller.state.commit_in_progress
        assert codes(controller) == [NoticeCode.POSITION_NOT_STORED]

    def test_unexpected_commit_error_becomes_notice(self, test_settings):
        """Verify an unexpected commit error becomes a blocking notice."""
        async def broken_commit(center, areas):
            raise RuntimeError("disk on fire")

        async def run():
            controller = build_controller(test_settings)
            controller.recorder.commit = broken_commit
            await controller.dispatch(CommitRequested())
            result = await controller.wait_for_commit()
            return controller, result

        controller, result = asyncio.run(run())
        assert result.outcome == NoticeCode.COMMIT_FAILED
        assert not controller.state.commit_in_progress
        assert len(controller.state.areas) == 2
        notices = controller.drain_notices()
        assert [n.code for n in notices] == [NoticeCode.COMMIT_FAILED]
        assert notices[0].blocking

    def test_panels_and_detail_actions(self, test_settings):
        """Verify panel toggles and detail actions."""
        async def run():
            controller = build_controller(test_settings)
            state = controller.state

            await controller.dispatch(ToggleSongsPanel())
            assert state.panels.songs_open
            await controller.dispatch(ToggleStatsPanel())
            assert state.panels.stats_open and not state.panels.songs_open
            await controller.dispatch(ClosePanels())
            assert not state.panels.stats_open

            await controller.dispatch(PlaySong())
            await controller.dispatch(TakeSong())
            assert codes(controller) == [NoticeCode.NO_AREA_SELECTED] * 2

            await controller.dispatch(SelectArea(1))
            assert state.panels.detail_open
            assert state.selected_area.song == "Piazzale Michelangelo"

            await controller.dispatch(PlaySong())
            assert len(controller.tone_player.played) == 1

            await controller.dispatch(TakeSong())
            assert state.songs_obtained == 1
            assert not state.panels.detail_open

            await controller.dispatch(SelectArea(0))
            await controller.dispatch(DismissDetail())
            assert not state.panels.detail_open
            assert state.songs_obtained == 1

            with pytest.raises(IndexError):
                await controller.dispatch(SelectArea(5))

        asyncio.run(run())

    def test_stale_tick_ignored(self, test_settings):
        """Verify readings after the session ends are ignored."""
        async def run():
            controller = build_controller(test_settings)
            await controller.dispatch(LoudnessTick(level=12.0))
            return controller.state

        state = asyncio.run(run())
        assert state.current_loudness == 0.0
        assert state.loudness_history == []

    def test_run_loop_survives_handler_errors(self, test_settings):
        """Verify the run loop keeps going after a handler error."""
        async def run():
            controller = build_controller(test_settings)
            task = asyncio.create_task(controller.run())

            controller.post(ToggleSongsPanel())
            controller.post(SelectArea(42))
            controller.post(ToggleStatsPanel())
            controller.post(ToggleListening())
            await asyncio.sleep(0.1)

            await controller.stop()
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
            return controller

        controller = asyncio.run(run())
        assert controller.handler_errors == 1
        assert controller.state.panels.stats_open
        # timer ticks reached the state through the queue
        assert len(controller.state.loudness_history) >= 1
        assert controller.state.session_state == SessionState.IDLE
