"""
Route Statistics
================

Distance and enclosed area of a listening-session route.

Both values are pure, idempotent functions of the current route and are
recomputed whenever it changes. Routes with fewer than two points keep
the previous statistics (there is nothing to measure yet).
"""

from dataclasses import dataclass
from typing import Sequence

from silentmap.geometry.geodesy import geodesic_area_m2, route_distance_km
from silentmap.models.geo import Coordinate


@dataclass(frozen=True, slots=True)
class RouteStatistics:
    """
    Statistics derived from a route.

    Attributes:
        distance_km: Sum of great-circle segment lengths
        area_m2: Geodesic area of the route closed into a ring
        points: Number of route points
    """

    distance_km: float
    area_m2: float
    points: int

    def to_dict(self) -> dict:
        """Export as dictionary for logging/serialization."""
        return {
            "distance_km": round(self.distance_km, 4),
            "area_m2": round(self.area_m2, 1),
            "points": self.points,
        }


def route_statistics(route: Sequence[Coordinate]) -> RouteStatistics:
    """Compute the statistics of a route."""
    return RouteStatistics(
        distance_km=route_distance_km(route),
        area_m2=geodesic_area_m2(route),
        points=len(route),
    )
