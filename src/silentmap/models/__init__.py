"""
Data Models
===========

Pydantic models for SilentMap.

This module re-exports all data models for convenient access.

Models:
    Geo:
        - Coordinate: Immutable latitude/longitude pair

    Area:
        - Area: Saved circular sound area
        - SavedPosition: Snapshot persisted after a commit

    State:
        - SessionState: Listening session states (IDLE, LISTENING)
        - PanelState: Panel visibility flags
        - MapViewState: Map center and zoom
        - AppState: Full application state

    Notices:
        - NoticeCode: Fixed user-facing notification codes
        - Notice: Notification value
"""

from silentmap.models.geo import Coordinate
from silentmap.models.area import Area, SavedPosition
from silentmap.models.notices import Notice, NoticeCode
from silentmap.models.state import AppState, MapViewState, PanelState, SessionState

__all__ = [
    # Geo
    "Coordinate",
    # Area
    "Area",
    "SavedPosition",
    # Notices
    "Notice",
    "NoticeCode",
    # State
    "SessionState",
    "PanelState",
    "MapViewState",
    "AppState",
]
