"""
Geometry Module
===============

Spherical-Earth geodesy for area overlap checks and route statistics.
"""

from silentmap.geometry.geodesy import (
    EARTH_RADIUS_M,
    disks_overlap,
    geodesic_area_m2,
    haversine_m,
    route_distance_km,
    route_distance_m,
)

__all__ = [
    "EARTH_RADIUS_M",
    "haversine_m",
    "disks_overlap",
    "route_distance_m",
    "route_distance_km",
    "geodesic_area_m2",
]
