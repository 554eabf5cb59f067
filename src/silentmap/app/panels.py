"""
Panel Visibility Policy
=======================

Mutual-exclusion rules for the overlay panels.

Rules:
    toggle songs  -> songs flips, stats and detail close
    toggle stats  -> stats flips, songs and detail close
    select area   -> detail opens on that area, songs and stats close
    take / dismiss -> detail closes

There is no panel history. Every function returns a new PanelState.
"""

from silentmap.models.state import PanelState


def toggle_songs(panels: PanelState) -> PanelState:
    return panels.model_copy(update={
        "songs_open": not panels.songs_open,
        "stats_open": False,
        "detail_open": False,
    })


def toggle_stats(panels: PanelState) -> PanelState:
    return panels.model_copy(update={
        "songs_open": False,
        "stats_open": not panels.stats_open,
        "detail_open": False,
    })


def close_side_panels(panels: PanelState) -> PanelState:
    return panels.model_copy(update={"songs_open": False, "stats_open": False})


def select_area(panels: PanelState, index: int) -> PanelState:
    """Open the detail panel on an area."""
    return panels.model_copy(update={
        "songs_open": False,
        "stats_open": False,
        "detail_open": True,
        "selected_area": index,
    })


def close_detail(panels: PanelState) -> PanelState:
    # selected_area is kept
    return panels.model_copy(update={"detail_open": False})
