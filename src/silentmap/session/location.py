"""
Location Tracker
================

Receives platform position fixes, maintains the GPS status line and
forwards coordinates to the application while tracking is active.

Status Line:
    before any fix        "Waiting for GPS..."
    after a fix           "GPS active. Lat: 43.7696, Lon: 11.2558"
    after an error        "GPS error: <message>"
    no geolocation API    "GPS not available"

Errors are non-blocking: they only change the status line.
"""

import logging
from typing import Optional

from silentmap.models.geo import Coordinate
from silentmap.models.state import GPS_NOT_AVAILABLE, GPS_WAITING


logger = logging.getLogger(__name__)


class LocationTracker:
    """
    Holds the single transient "last known position".

    The marker position only moves while tracking is active (the map
    locates the user only during a listening session); the status line
    reflects every fix.
    """

    def __init__(self) -> None:
        self.position: Optional[Coordinate] = None
        self.status: str = GPS_WAITING
        self.fix_count: int = 0

    def on_fix(self, coordinate: Coordinate, tracking: bool) -> Optional[Coordinate]:
        """
        Handle a position fix.

        Args:
            coordinate: The fix
            tracking: Whether a listening session is active

        Returns:
            The coordinate to forward into the route, or None when not tracking
        """
        self.fix_count += 1
        self.status = (
            f"GPS active. Lat: {coordinate.latitude:.4f}, "
            f"Lon: {coordinate.longitude:.4f}"
        )

        if not tracking:
            return None

        self.position = coordinate
        return coordinate

    def on_error(self, message: str) -> None:
        logger.warning(f"GPS error: {message}")
        self.status = f"GPS error: {message}"

    def on_unavailable(self) -> None:
        logger.warning("Geolocation not available on this platform")
        self.status = GPS_NOT_AVAILABLE
