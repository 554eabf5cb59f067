"""
Screen View
===========

The whole screen as one render model: map, panels, status line and the
bottom action bar.
"""

from typing import List

from pydantic import BaseModel, Field

from silentmap.models.state import AppState, SessionState
from silentmap.views.map import DEFAULT_ATTRIBUTION, DEFAULT_TILE_URL, MapRender, render_map
from silentmap.views.panels import PanelsRender, render_panels


BOTTOM_ACTIONS = ["Songs", "Listen", "Commit", "Stats"]


class ScreenRender(BaseModel):
    """What the UI draws on each refresh."""

    map: MapRender
    panels: PanelsRender
    gps_status: str
    session_state: SessionState
    listen_label: str
    commit_in_progress: bool = False
    actions: List[str] = Field(default_factory=lambda: list(BOTTOM_ACTIONS))


def render_state(
    state: AppState,
    tile_url: str = DEFAULT_TILE_URL,
    attribution: str = DEFAULT_ATTRIBUTION,
) -> ScreenRender:
    return ScreenRender(
        map=render_map(state, tile_url=tile_url, attribution=attribution),
        panels=render_panels(state),
        gps_status=state.gps_status,
        session_state=state.session_state,
        listen_label="Stop" if state.is_listening else "Listen",
        commit_in_progress=state.commit_in_progress,
    )
