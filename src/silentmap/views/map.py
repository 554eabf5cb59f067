"""
Map View
========

Pure rendering of the map overlays from AppState.

render_map() turns the state into a serializable MapRender (what the
service returns and what the UI draws); build_folium_map() turns that
into a Leaflet map via folium.

Overlays:
    - one filled circle per area, colored by its loudness
    - the current route as a red polyline (only with 2+ points)
    - the "You are here" marker once a position is known
"""

from typing import List, Optional, Tuple

import folium
from pydantic import BaseModel, Field, computed_field

from silentmap.models.geo import Coordinate
from silentmap.models.state import AppState


DEFAULT_TILE_URL = "https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png"
DEFAULT_ATTRIBUTION = (
    '&copy; <a href="https://www.openstreetmap.org/copyright">OpenStreetMap</a> contributors'
)
ROUTE_COLOR = "red"
ROUTE_WEIGHT = 3
AREA_FILL_OPACITY = 0.5


class CircleOverlay(BaseModel):
    """A clickable area circle."""

    index: int = Field(..., ge=0, description="Index into the area list")
    center: Coordinate
    radius: float = Field(..., gt=0)
    color: str
    fill_opacity: float = AREA_FILL_OPACITY
    song: str

    @computed_field
    @property
    def tooltip(self) -> str:
        return f"Area {self.index}: {self.song}"


class RouteOverlay(BaseModel):
    """The travel path of the current session."""

    positions: List[Coordinate]
    color: str = ROUTE_COLOR
    weight: int = ROUTE_WEIGHT


class MarkerOverlay(BaseModel):
    position: Coordinate
    popup: str = "You are here"


class MapRender(BaseModel):
    """Everything needed to draw the map."""

    center: Coordinate
    zoom: int
    tile_url: str = DEFAULT_TILE_URL
    attribution: str = DEFAULT_ATTRIBUTION
    circles: List[CircleOverlay] = Field(default_factory=list)
    route: Optional[RouteOverlay] = None
    marker: Optional[MarkerOverlay] = None


def render_map(
    state: AppState,
    tile_url: str = DEFAULT_TILE_URL,
    attribution: str = DEFAULT_ATTRIBUTION,
) -> MapRender:
    """Build the map overlays for the current state."""
    circles = [
        CircleOverlay(
            index=index,
            center=area.center,
            radius=area.radius,
            color=area.color,
            song=area.song,
        )
        for index, area in enumerate(state.areas)
    ]

    route = None
    if len(state.route) > 1:
        route = RouteOverlay(positions=list(state.route))

    marker = None
    if state.position is not None:
        marker = MarkerOverlay(position=state.position)

    return MapRender(
        center=state.map_view.center,
        zoom=state.map_view.zoom,
        tile_url=tile_url,
        attribution=attribution,
        circles=circles,
        route=route,
        marker=marker,
    )


def parse_area_tooltip(tooltip: Optional[str]) -> Optional[int]:
    """Recover the area index from a clicked circle's tooltip."""
    if not tooltip or not tooltip.startswith("Area "):
        return None
    head = tooltip[len("Area "):].split(":", 1)[0]
    return int(head) if head.isdigit() else None


def new_area_click(
    map_result: Optional[dict],
    last_click: Optional[Tuple[Optional[str], str]],
) -> Tuple[Optional[int], Optional[Tuple[Optional[str], str]]]:
    """
    Pick a fresh area click out of an st_folium result.

    st_folium reports the last clicked object on every rerun, so a click
    is keyed by its tooltip and location and only counts once.

    Returns:
        (area index or None, click key to remember)
    """
    if not map_result:
        return None, last_click
    tooltip = map_result.get("last_object_clicked_tooltip")
    click = (tooltip, str(map_result.get("last_object_clicked")))
    if click == last_click:
        return None, last_click
    return parse_area_tooltip(tooltip), click


def build_folium_map(render: MapRender) -> folium.Map:
    """Draw a MapRender as a folium (Leaflet) map."""
    m = folium.Map(
        location=list(render.center.as_pair()),
        zoom_start=render.zoom,
        tiles=render.tile_url,
        attr=render.attribution,
        control_scale=True,
    )

    for circle in render.circles:
        folium.Circle(
            location=list(circle.center.as_pair()),
            radius=circle.radius,
            color=circle.color,
            fill=True,
            fill_color=circle.color,
            fill_opacity=circle.fill_opacity,
            tooltip=circle.tooltip,
        ).add_to(m)

    if render.route is not None:
        folium.PolyLine(
            locations=[list(p.as_pair()) for p in render.route.positions],
            color=render.route.color,
            weight=render.route.weight,
        ).add_to(m)

    if render.marker is not None:
        folium.Marker(
            list(render.marker.position.as_pair()),
            popup=render.marker.popup,
        ).add_to(m)

    return m
