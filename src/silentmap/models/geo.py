"""
Geographic Models
=================

Immutable geographic value types shared by every component.

Coordinates are WGS84 latitude/longitude in decimal degrees, as delivered
by the platform geolocation API and the map surface. They are never
mutated after creation.

Example:
    from silentmap.models.geo import Coordinate

    florence = Coordinate(latitude=43.7696, longitude=11.2558)
    same = Coordinate.from_pair([43.7696, 11.2558])
"""

from typing import Any, Sequence, Tuple

from pydantic import BaseModel, Field


class Coordinate(BaseModel):
    """
    A point on the Earth's surface.

    Attributes:
        latitude: Latitude in decimal degrees, positive north
        longitude: Longitude in decimal degrees, positive east
    """

    latitude: float = Field(
        ...,
        ge=-90.0,
        le=90.0,
        description="Latitude in decimal degrees",
    )

    longitude: float = Field(
        ...,
        ge=-180.0,
        le=180.0,
        description="Longitude in decimal degrees",
    )

    class Config:
        """Pydantic model configuration."""

        frozen = True

    @classmethod
    def from_pair(cls, pair: Sequence[float]) -> "Coordinate":
        """Build a coordinate from a ``[lat, lng]`` pair (the seed file format)."""
        if len(pair) != 2:
            raise ValueError(f"Expected [lat, lng] pair, got {len(pair)} values")
        return cls(latitude=float(pair[0]), longitude=float(pair[1]))

    @classmethod
    def coerce(cls, value: Any) -> Any:
        """Accept a pair or a mapping wherever a Coordinate is expected."""
        if isinstance(value, (list, tuple)):
            return cls.from_pair(value)
        return value

    def as_pair(self) -> Tuple[float, float]:
        """Return ``(lat, lng)``, the order Leaflet expects."""
        return (self.latitude, self.longitude)

    def __repr__(self) -> str:
        return f"Coordinate({self.latitude:.6f}, {self.longitude:.6f})"
