"""
SilentMap
=========

Quiet-places sound map: record the loudness around a spot, save it as a
colored circle, and track listening walks on a map.

Components:
    - audio: Microphone capture, loudness sampling, tone playback
    - areas: Area commit routine, overlap registry, persistence
    - session: Listening session, GPS status, route statistics
    - geometry: Haversine distance and geodesic polygon area
    - app: Event-driven application controller
    - views: Render models for the map and panels

Example:
    from silentmap.config import settings
    from silentmap.app import build_controller

    controller = build_controller(settings)
    # The service is started via the FastAPI application in main.py
"""

__version__ = "0.1.0"
__author__ = "SilentMap Project"

__all__ = [
    "__version__",
]
