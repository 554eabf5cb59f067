"""
Application Controller
======================

Single owner of the application state.

The controller consumes events from its EventQueue one at a time and is
the only component that mutates AppState. Long-running work (the commit
routine) runs as its own task so position fixes keep flowing while it
records; its outcome is written back on completion.

Pipeline:
    platform callback ──▶ EventQueue ──▶ dispatch() ──▶ AppState ──▶ views

Error Handling:
    - Microphone failures become blocking notices, the routine aborts
    - Overlap rejection becomes a notice, the candidate is discarded
    - GPS errors only change the status line
    - Unexpected commit errors become a COMMIT_FAILED notice
    - Unexpected handler errors are logged and the loop continues
"""

import asyncio
import logging
from typing import Callable, Dict, List, Optional

from silentmap.app import panels as panel_policy
from silentmap.app.events import (
    ClosePanels,
    CommitRequested,
    DismissDetail,
    Event,
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
from silentmap.areas.recorder import AreaRecorder, CommitResult
from silentmap.audio.capture import MicrophoneBusyError, MicrophoneUnavailableError
from silentmap.audio.tone import TonePlayer
from silentmap.models.notices import Notice, NoticeCode
from silentmap.models.state import AppState, MapViewState, SessionState
from silentmap.session.location import LocationTracker
from silentmap.session.stats import route_statistics
from silentmap.session.tracker import ListeningSession


logger = logging.getLogger(__name__)


class ApplicationController:
    """
    Event-driven owner of AppState.

    Attributes:
        state: The application state (read it, never write it from outside)
        queue: Incoming events
        recorder: Area commit routine
        session: Listening session state machine
        location: GPS status and last known position
        tone_player: Fixed-note playback
    """

    def __init__(
        self,
        state: AppState,
        recorder: AreaRecorder,
        session: ListeningSession,
        location: LocationTracker,
        tone_player: Optional[TonePlayer] = None,
        queue: Optional[EventQueue] = None,
    ) -> None:
        self.state = state
        self.recorder = recorder
        self.session = session
        self.location = location
        self.tone_player = tone_player
        self.queue = queue or EventQueue()

        self.session.on_tick = self._on_session_tick
        self._commit_task: Optional[asyncio.Task] = None
        self._dispatch_lock = asyncio.Lock()
        self._running = False
        self.events_processed = 0
        self.handler_errors = 0

        self._handlers: Dict[type, Callable] = {
            PositionFix: self._on_position_fix,
            PositionError: self._on_position_error,
            PositionUnavailable: self._on_position_unavailable,
            MapMoved: self._on_map_moved,
            LoudnessTick: self._on_loudness_tick,
            CommitRequested: self._on_commit_requested,
            ToggleListening: self._on_toggle_listening,
            ToggleSongsPanel: self._on_toggle_songs,
            ToggleStatsPanel: self._on_toggle_stats,
            ClosePanels: self._on_close_panels,
            SelectArea: self._on_select_area,
            PlaySong: self._on_play_song,
            TakeSong: self._on_take_song,
            DismissDetail: self._on_dismiss_detail,
        }
        self._self_locking = {ToggleListening}

        logger.info(f"ApplicationController initialized with {len(state.areas)} areas")

    # =========================================================================
    # Event loop
    # =========================================================================

    def post(self, event: Event) -> None:
        """Enqueue an event for the dispatcher."""
        self.queue.put_nowait(event)

    async def dispatch(self, event: Event) -> None:
        """
        Apply one event to the state.

        Callers outside the run loop (the HTTP layer) may dispatch directly;
        the lock keeps handlers from interleaving. Handlers that may wait
        for the microphone take the lock themselves, around state changes
        only, so other events keep flowing while they wait.
        """
        handler = self._handlers.get(type(event))
        if handler is None:
            raise TypeError(f"Unknown event type: {type(event).__name__}")

        if type(event) in self._self_locking:
            await handler(event)
        else:
            async with self._dispatch_lock:
                await handler(event)
        self.events_processed += 1

    async def run(self) -> None:
        """
        Consume events until stop() is called.

        Handler errors are logged and do not stop the loop.
        """
        self._running = True
        logger.info("Event dispatcher started")

        while self._running:
            try:
                event = await self.queue.get(timeout=1.0)
                if event is None:
                    continue
                await self.dispatch(event)
            except asyncio.CancelledError:
                logger.info("Event dispatcher cancelled")
                break
            except Exception as e:
                self.handler_errors += 1
                logger.error(f"Event handler error: {e}")

        logger.info("Event dispatcher stopped")

    async def stop(self) -> None:
        """Stop the loop, end any session and wait for a running commit."""
        self._running = False

        if self.session.is_listening:
            await self.session.stop()
            self.state.session_state = SessionState.IDLE

        task = self._commit_task
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

    async def wait_for_commit(self) -> Optional[CommitResult]:
        """Wait for the running commit routine, if any."""
        task = self._commit_task
        if task is None:
            return None
        return await task

    def drain_notices(self) -> List[Notice]:
        """Hand pending notices to the UI and forget them."""
        notices, self.state.notices = self.state.notices, []
        return notices

    def _notify(self, code: NoticeCode) -> None:
        notice = Notice.of(code)
        self.state.notices.append(notice)
        if notice.blocking:
            logger.warning(f"Notice {code.value}: {notice.message}")
        else:
            logger.info(f"Notice {code.value}: {notice.message}")

    # =========================================================================
    # Position
    # =========================================================================

    async def _on_position_fix(self, event: PositionFix) -> None:
        forwarded = self.location.on_fix(event.coordinate, self.session.is_listening)
        self.state.gps_status = self.location.status

        if forwarded is None:
            return

        # the map follows the user while listening
        self.state.position = forwarded
        self.state.map_view = MapViewState(center=forwarded, zoom=self.state.map_view.zoom)

        self.state.route.append(forwarded)
        self.state.loudness_history.append(self.session.sample())
        self._refresh_statistics()

    async def _on_position_error(self, event: PositionError) -> None:
        self.location.on_error(event.message)
        self.state.gps_status = self.location.status

    async def _on_position_unavailable(self, event: PositionUnavailable) -> None:
        self.location.on_unavailable()
        self.state.gps_status = self.location.status

    async def _on_map_moved(self, event: MapMoved) -> None:
        self.state.map_view = MapViewState(center=event.center, zoom=event.zoom)

    def _refresh_statistics(self) -> None:
        if len(self.state.route) < 2:
            return
        stats = route_statistics(self.state.route)
        self.state.distance_traveled_km = stats.distance_km
        self.state.area_visited_m2 = stats.area_m2

    # =========================================================================
    # Listening session
    # =========================================================================

    def _on_session_tick(self, level: float) -> None:
        self.post(LoudnessTick(level=level))

    async def _on_loudness_tick(self, event: LoudnessTick) -> None:
        if not self.session.is_listening:
            # tick queued before the session stopped
            return
        self.state.current_loudness = event.level
        self.state.loudness_history.append(event.level)

    async def _on_toggle_listening(self, event: ToggleListening) -> None:
        async with self._dispatch_lock:
            if self.session.is_listening:
                await self.session.stop()
                self.state.session_state = SessionState.IDLE
                return

        # may wait up to the acquire timeout for a commit to finish
        try:
            await self.session.start()
        except MicrophoneUnavailableError as e:
            logger.error(f"Error accessing microphone: {e}")
            async with self._dispatch_lock:
                self._notify(NoticeCode.MICROPHONE_UNAVAILABLE)
            return
        except MicrophoneBusyError as e:
            logger.error(f"Listening session not started: {e}")
            async with self._dispatch_lock:
                self._notify(NoticeCode.MICROPHONE_BUSY)
            return

        async with self._dispatch_lock:
            # a concurrent toggle may have started or stopped the session meanwhile
            if not self.session.is_listening or self.state.session_state == SessionState.LISTENING:
                return
            self.state.session_state = SessionState.LISTENING
            self.state.route = []
            self.state.loudness_history = []
            self.state.distance_traveled_km = 0.0
            self.state.area_visited_m2 = 0.0

    # =========================================================================
    # Area commit
    # =========================================================================

    async def _on_commit_requested(self, event: CommitRequested) -> None:
        if self.recorder.in_progress or self.state.commit_in_progress:
            self._notify(NoticeCode.COMMIT_IN_PROGRESS)
            return

        center = self.state.map_view.center
        self.state.commit_in_progress = True
        self._commit_task = asyncio.create_task(self._run_commit(center), name="area_commit")

    async def _run_commit(self, center) -> CommitResult:
        try:
            result = await self.recorder.commit(center, self.state.areas)
        except Exception as e:
            logger.error(f"Commit routine failed: {e}")
            result = CommitResult(outcome=NoticeCode.COMMIT_FAILED)
        finally:
            self.state.commit_in_progress = False

        self._notify(result.outcome)
        return result

    # =========================================================================
    # Panels
    # =========================================================================

    async def _on_toggle_songs(self, event: ToggleSongsPanel) -> None:
        self.state.panels = panel_policy.toggle_songs(self.state.panels)

    async def _on_toggle_stats(self, event: ToggleStatsPanel) -> None:
        self.state.panels = panel_policy.toggle_stats(self.state.panels)

    async def _on_close_panels(self, event: ClosePanels) -> None:
        self.state.panels = panel_policy.close_side_panels(self.state.panels)

    async def _on_select_area(self, event: SelectArea) -> None:
        if not 0 <= event.index < len(self.state.areas):
            raise IndexError(f"No area at index {event.index}")
        self.state.panels = panel_policy.select_area(self.state.panels, event.index)

    async def _on_play_song(self, event: PlaySong) -> None:
        if self.state.selected_area is None:
            self._notify(NoticeCode.NO_AREA_SELECTED)
            return
        if self.tone_player is not None:
            await self.tone_player.play()

    async def _on_take_song(self, event: TakeSong) -> None:
        if self.state.selected_area is None:
            self._notify(NoticeCode.NO_AREA_SELECTED)
            return
        self.state.songs_obtained += 1
        self.state.panels = panel_policy.close_detail(self.state.panels)

    async def _on_dismiss_detail(self, event: DismissDetail) -> None:
        self.state.panels = panel_policy.close_detail(self.state.panels)
