"""
Geodesy
=======

Great-circle distances, disk overlap and route statistics on a spherical
Earth.

Formulas:
    haversine:
        a = sin²(Δφ/2) + cos φ1 · cos φ2 · sin²(Δλ/2)
        d = 2R · atan2(√a, √(1 − a))            with R = 6 371 000 m

    geodesic polygon area (spherical excess approximation, as used by
    Leaflet's GeometryUtil.geodesicArea):
        A = |Σ (λ2 − λ1) · (2 + sin φ1 + sin φ2)| · R² / 2
        with R = 6 378 137 m, summed over the closed ring

All functions are pure and accept Coordinate values.
"""

import math
from typing import Sequence

import numpy as np

from silentmap.models.geo import Coordinate


EARTH_RADIUS_M = 6_371_000.0  # mean Earth radius
WGS84_EQUATORIAL_RADIUS_M = 6_378_137.0  # radius used for polygon areas


def haversine_m(a: Coordinate, b: Coordinate) -> float:
    """
    Great-circle distance between two coordinates.

    Args:
        a: First coordinate
        b: Second coordinate

    Returns:
        Distance in meters.
    """
    phi1 = math.radians(a.latitude)
    phi2 = math.radians(b.latitude)
    d_phi = math.radians(b.latitude - a.latitude)
    d_lambda = math.radians(b.longitude - a.longitude)

    h = math.sin(d_phi / 2.0) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2.0) ** 2
    c = 2.0 * math.atan2(math.sqrt(h), math.sqrt(1.0 - h))
    return EARTH_RADIUS_M * c


def disks_overlap(
    center_a: Coordinate,
    radius_a: float,
    center_b: Coordinate,
    radius_b: float,
) -> bool:
    """
    Check whether two disks intersect.

    Disks touching exactly (distance == r1 + r2) do NOT overlap.
    """
    return haversine_m(center_a, center_b) < (radius_a + radius_b)


def _as_radians(points: Sequence[Coordinate]) -> np.ndarray:
    """Return an (N, 2) array of [lat, lng] in radians."""
    return np.radians(np.array([[p.latitude, p.longitude] for p in points], dtype=np.float64))


def route_distance_m(points: Sequence[Coordinate]) -> float:
    """
    Sum of consecutive great-circle segment lengths.

    Routes with fewer than two points have zero length.
    """
    if len(points) < 2:
        return 0.0

    rad = _as_radians(points)
    phi1, phi2 = rad[:-1, 0], rad[1:, 0]
    d_phi = phi2 - phi1
    d_lambda = rad[1:, 1] - rad[:-1, 1]

    h = np.sin(d_phi / 2.0) ** 2 + np.cos(phi1) * np.cos(phi2) * np.sin(d_lambda / 2.0) ** 2
    h = np.clip(h, 0.0, 1.0)
    c = 2.0 * np.arctan2(np.sqrt(h), np.sqrt(1.0 - h))
    return float(np.sum(EARTH_RADIUS_M * c))


def route_distance_km(points: Sequence[Coordinate]) -> float:
    """Route length in kilometers."""
    return route_distance_m(points) / 1000.0


def geodesic_area_m2(points: Sequence[Coordinate]) -> float:
    """
    Area enclosed by the route treated as a closed ring.

    Rings with fewer than three points enclose nothing.

    Returns:
        Absolute area in square meters.
    """
    if len(points) < 3:
        return 0.0

    rad = _as_radians(points)
    lat = rad[:, 0]
    lng = rad[:, 1]
    lat_next = np.roll(lat, -1)
    lng_next = np.roll(lng, -1)

    total = np.sum((lng_next - lng) * (2.0 + np.sin(lat) + np.sin(lat_next)))
    area = total * WGS84_EQUATORIAL_RADIUS_M * WGS84_EQUATORIAL_RADIUS_M / 2.0
    return float(abs(area))
