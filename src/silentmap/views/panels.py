"""
Panel Views
===========

Pure rendering of the songs, stats and area-detail panels.
"""

from typing import List, Optional

from pydantic import BaseModel, Field, computed_field

from silentmap.models.state import AppState, SessionState


DETAIL_ACTIONS = ["Play", "Take Song", "Water"]


class SongsPanelView(BaseModel):
    open: bool
    title: str = "Songs"
    songs_obtained: int = 0
    songs: List[str] = Field(default_factory=list)


class StatsPanelView(BaseModel):
    open: bool
    title: str = "Stats"
    current_loudness: float = 0.0
    session_state: SessionState = SessionState.IDLE
    distance_traveled_km: float = 0.0
    area_visited_m2: float = 0.0
    route_points: int = 0
    songs_obtained: int = 0

    @computed_field
    @property
    def loudness_text(self) -> str:
        return f"Current Decibel Level: {self.current_loudness:.2f} dB"


class DetailPanelView(BaseModel):
    """The selected area, shown only while the detail panel is open."""

    open: bool
    area_index: Optional[int] = None
    song: Optional[str] = None
    average_loudness: float = 0.0
    animation_seconds: float = 2.0
    actions: List[str] = Field(default_factory=lambda: list(DETAIL_ACTIONS))

    @computed_field
    @property
    def loudness_text(self) -> str:
        return f"Average Decibel Level: {self.average_loudness:.2f} dB"


class PanelsRender(BaseModel):
    songs: SongsPanelView
    stats: StatsPanelView
    detail: DetailPanelView


def animation_seconds(average_loudness: float) -> float:
    """Louder areas animate faster; never quicker than half a second."""
    return max(0.5, 2.0 - average_loudness / 50.0)


def render_panels(state: AppState) -> PanelsRender:
    panels = state.panels

    songs = SongsPanelView(
        open=panels.songs_open,
        songs_obtained=state.songs_obtained,
        songs=sorted({area.song for area in state.areas}),
    )

    stats = StatsPanelView(
        open=panels.stats_open,
        current_loudness=state.current_loudness,
        session_state=state.session_state,
        distance_traveled_km=state.distance_traveled_km,
        area_visited_m2=state.area_visited_m2,
        route_points=len(state.route),
        songs_obtained=state.songs_obtained,
    )

    area = state.selected_area
    if panels.detail_open and area is not None:
        detail = DetailPanelView(
            open=True,
            area_index=panels.selected_area,
            song=area.song,
            average_loudness=area.average_loudness,
            animation_seconds=animation_seconds(area.average_loudness),
        )
    else:
        detail = DetailPanelView(open=False)

    return PanelsRender(songs=songs, stats=stats, detail=detail)
