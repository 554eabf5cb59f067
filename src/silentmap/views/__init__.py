"""
Views Module
============

Pure functions from AppState to serializable render models.

    - map.py: Area circles, route polyline, location marker (folium)
    - panels.py: Songs, stats and area-detail panels
    - screen.py: The full screen combined
"""

from silentmap.views.map import (
    MapRender,
    build_folium_map,
    new_area_click,
    parse_area_tooltip,
    render_map,
)
from silentmap.views.panels import PanelsRender, render_panels
from silentmap.views.screen import ScreenRender, render_state

__all__ = [
    "MapRender",
    "PanelsRender",
    "ScreenRender",
    "build_folium_map",
    "new_area_click",
    "parse_area_tooltip",
    "render_map",
    "render_panels",
    "render_state",
]
