"""
Application State Models
========================

This module defines the single explicit state struct owned by the
application controller.

Core Concepts:
    - SessionState: Listening session states (IDLE, LISTENING)
    - PanelState: Visibility flags of the three overlay panels
    - MapViewState: Current map center and zoom
    - AppState: Everything the views render

Ownership:
    Only ApplicationController mutates AppState. Views receive it and
    return render models; they never write back.

Example:
    from silentmap.models.state import AppState, SessionState

    state = AppState.initial(center=[43.7696, 11.2558], zoom=13)
    assert state.session_state == SessionState.IDLE
"""

from enum import Enum
from typing import List, Optional, Sequence

from pydantic import BaseModel, Field

from silentmap.models.area import Area
from silentmap.models.geo import Coordinate
from silentmap.models.notices import Notice


GPS_WAITING = "Waiting for GPS..."
GPS_NOT_AVAILABLE = "GPS not available"


class SessionState(str, Enum):
    """
    Listening session states.

    Attributes:
        IDLE: No session; the microphone is not held by the tracker
        LISTENING: Position fixes and loudness samples are being recorded
    """

    IDLE = "IDLE"
    LISTENING = "LISTENING"


class PanelState(BaseModel):
    """
    Visibility of the songs, stats and area-detail panels.

    Attributes:
        songs_open: Left panel listing collected songs
        stats_open: Right panel with live statistics
        detail_open: Bottom panel describing the selected area
        selected_area: Index into the area list (a reference, not an owner)
    """

    songs_open: bool = False
    stats_open: bool = False
    detail_open: bool = False
    selected_area: Optional[int] = Field(
        default=None,
        ge=0,
        description="Index of the selected area",
    )


class MapViewState(BaseModel):
    """Current map viewport."""

    center: Coordinate
    zoom: int = Field(default=13, ge=1, le=20)


class AppState(BaseModel):
    """
    Full application state.

    Attributes:
        areas: Seed areas followed by committed areas, append-only
        map_view: Current map center and zoom
        position: Last position shown by the location marker
        gps_status: Status line text
        session_state: Listening session state
        route: Coordinates recorded during the current session
        loudness_history: Loudness samples recorded during the current session
        current_loudness: Latest timer loudness sample
        distance_traveled_km: Route length in kilometers
        area_visited_m2: Geodesic area enclosed by the route
        songs_obtained: Number of songs taken
        panels: Panel visibility flags
        commit_in_progress: Whether the commit routine is recording
        notices: Notifications not yet delivered to the UI
    """

    areas: List[Area] = Field(default_factory=list)
    map_view: MapViewState
    position: Optional[Coordinate] = None
    gps_status: str = GPS_WAITING
    session_state: SessionState = SessionState.IDLE
    route: List[Coordinate] = Field(default_factory=list)
    loudness_history: List[float] = Field(default_factory=list)
    current_loudness: float = Field(default=0.0, ge=0.0)
    distance_traveled_km: float = Field(default=0.0, ge=0.0)
    area_visited_m2: float = Field(default=0.0, ge=0.0)
    songs_obtained: int = Field(default=0, ge=0)
    panels: PanelState = Field(default_factory=PanelState)
    commit_in_progress: bool = False
    notices: List[Notice] = Field(default_factory=list)

    class Config:
        """Pydantic model configuration."""

        use_enum_values = False

    @classmethod
    def initial(cls, center: Sequence[float], zoom: int = 13) -> "AppState":
        """State at startup, before seed areas are loaded."""
        return cls(map_view=MapViewState(center=Coordinate.from_pair(center), zoom=zoom))

    @property
    def is_listening(self) -> bool:
        return self.session_state == SessionState.LISTENING

    @property
    def selected_area(self) -> Optional[Area]:
        """Resolve the selection index to the area it points at."""
        index = self.panels.selected_area
        if index is None or index >= len(self.areas):
            return None
        return self.areas[index]
