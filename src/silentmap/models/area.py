"""
Area Models
===========

Saved sound areas and the persisted position snapshot.

An Area is created exactly once, at commit time, by the recording routine
(or loaded from the seed file at startup) and is never mutated afterwards.

Seed File Format:
    [
        {
            "center": [43.7696, 11.2558],
            "radius": 500,
            "color": "hsl(176, 70%, 62%)",
            "song": "Sample Song",
            "averageDecibel": 12.0
        }
    ]
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from silentmap.models.geo import Coordinate


class Area(BaseModel):
    """
    A saved circular region with its ambient loudness measurement.

    Attributes:
        center: Center of the disk
        radius: Radius in meters
        color: CSS color derived from the average loudness
        song: Song label collected when visiting the area
        average_loudness: Mean loudness recorded at commit time
    """

    center: Coordinate = Field(
        ...,
        description="Center of the area",
    )

    radius: float = Field(
        ...,
        gt=0,
        description="Radius in meters",
    )

    color: str = Field(
        ...,
        min_length=1,
        description="CSS color (named color or hsl() string)",
    )

    song: str = Field(
        default="Sample Song",
        description="Song label attached to the area",
    )

    average_loudness: float = Field(
        default=0.0,
        ge=0.0,
        alias="averageDecibel",
        description="Average loudness recorded at commit time (dB-like scale)",
    )

    class Config:
        """Pydantic model configuration."""

        frozen = True
        populate_by_name = True

    @field_validator("center", mode="before")
    @classmethod
    def parse_center(cls, v):
        """Seed files store the center as a ``[lat, lng]`` pair."""
        return Coordinate.coerce(v)

    def to_seed_dict(self) -> dict:
        """Export in the seed file format."""
        return {
            "center": list(self.center.as_pair()),
            "radius": self.radius,
            "color": self.color,
            "song": self.song,
            "averageDecibel": self.average_loudness,
        }


class SavedPosition(BaseModel):
    """
    Snapshot written to key-value storage after a successful commit.

    Only the most recent commit is kept; the application never reads it
    back.
    """

    latitude: float
    longitude: float
    timestamp: str = Field(
        ...,
        description="ISO-8601 UTC timestamp with millisecond precision",
    )
    average_decibel: float = Field(..., alias="averageDecibel")

    class Config:
        """Pydantic model configuration."""

        populate_by_name = True

    @classmethod
    def from_area(cls, area: Area, when: Optional[datetime] = None) -> "SavedPosition":
        """Build the snapshot for a freshly committed area."""
        when = when or datetime.now(timezone.utc)
        return cls(
            latitude=area.center.latitude,
            longitude=area.center.longitude,
            timestamp=format_timestamp(when),
            average_decibel=area.average_loudness,
        )


def format_timestamp(when: datetime) -> str:
    """Format as ``2024-05-01T10:20:30.123Z``."""
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    utc = when.astimezone(timezone.utc)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")
