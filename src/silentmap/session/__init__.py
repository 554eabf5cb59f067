"""
Session Module
==============

Position tracking and listening sessions:
    - LocationTracker: GPS status line and last known position
    - ListeningSession: IDLE/LISTENING state machine with a sampling timer
    - route_statistics: Distance and enclosed area of a route
"""

from silentmap.session.location import LocationTracker
from silentmap.session.stats import RouteStatistics, route_statistics
from silentmap.session.tracker import ListeningSession

__all__ = [
    "LocationTracker",
    "ListeningSession",
    "RouteStatistics",
    "route_statistics",
]
