"""
Application Events
==================

Typed platform and user events, and the bounded queue feeding the
controller's dispatcher.

Every callback of the platform event sources (position watch, timers,
button presses, map interaction) becomes one immutable event value.
Events are consumed by a single dispatcher task in arrival order; no
reordering or deduplication is performed.

Queue Rules:
    - Fixed maximum size (drops oldest on overflow)
    - Async-safe for producer/consumer pattern
    - Exposes minimal metrics for observability
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional, Union

from silentmap.models.geo import Coordinate


logger = logging.getLogger(__name__)


# =============================================================================
# Platform events
# =============================================================================

@dataclass(frozen=True, slots=True)
class PositionFix:
    """A position delivered by the platform geolocation watch."""

    coordinate: Coordinate


@dataclass(frozen=True, slots=True)
class PositionError:
    """The geolocation watch reported an error."""

    message: str


@dataclass(frozen=True, slots=True)
class PositionUnavailable:
    """The platform has no geolocation capability."""


@dataclass(frozen=True, slots=True)
class MapMoved:
    """The user panned or zoomed the map."""

    center: Coordinate
    zoom: int


@dataclass(frozen=True, slots=True)
class LoudnessTick:
    """A listening-session timer sample."""

    level: float


# =============================================================================
# User actions
# =============================================================================

@dataclass(frozen=True, slots=True)
class CommitRequested:
    """Record the map center as a new area."""


@dataclass(frozen=True, slots=True)
class ToggleListening:
    """Start or stop the listening session."""


@dataclass(frozen=True, slots=True)
class ToggleSongsPanel:
    pass


@dataclass(frozen=True, slots=True)
class ToggleStatsPanel:
    pass


@dataclass(frozen=True, slots=True)
class ClosePanels:
    """Close the songs and stats panels."""


@dataclass(frozen=True, slots=True)
class SelectArea:
    """An area circle was clicked."""

    index: int


@dataclass(frozen=True, slots=True)
class PlaySong:
    pass


@dataclass(frozen=True, slots=True)
class TakeSong:
    pass


@dataclass(frozen=True, slots=True)
class DismissDetail:
    pass


Event = Union[
    PositionFix,
    PositionError,
    PositionUnavailable,
    MapMoved,
    LoudnessTick,
    CommitRequested,
    ToggleListening,
    ToggleSongsPanel,
    ToggleStatsPanel,
    ClosePanels,
    SelectArea,
    PlaySong,
    TakeSong,
    DismissDetail,
]


# =============================================================================
# Event queue
# =============================================================================

class EventQueue:
    """
    Async-safe bounded queue of events.

    This is the ONLY path by which platform callbacks reach the
    controller. Uses a drop-oldest policy when full.

    Example:
        queue = EventQueue(maxsize=256)

        # Producer
        queue.put_nowait(PositionFix(coordinate))

        # Consumer
        event = await queue.get(timeout=1.0)
    """

    def __init__(self, maxsize: int = 256) -> None:
        if maxsize < 1:
            raise ValueError("maxsize must be >= 1")

        self._maxsize = maxsize
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self._dropped_count: int = 0
        self._total_put: int = 0

    @property
    def maxsize(self) -> int:
        return self._maxsize

    @property
    def size(self) -> int:
        return self._queue.qsize()

    @property
    def dropped_count(self) -> int:
        return self._dropped_count

    def put_nowait(self, event: Event) -> bool:
        """
        Add an event, dropping the oldest if full.

        Returns:
            True if nothing was dropped to make room
        """
        self._total_put += 1
        dropped = False

        if self._queue.full():
            try:
                self._queue.get_nowait()
                self._dropped_count += 1
                dropped = True
                logger.warning(
                    f"Event queue full, dropped oldest event. "
                    f"Total dropped: {self._dropped_count}"
                )
            except asyncio.QueueEmpty:
                pass

        self._queue.put_nowait(event)
        return not dropped

    async def get(self, timeout: Optional[float] = None) -> Optional[Event]:
        """
        Get the next event.

        Args:
            timeout: Maximum seconds to wait. None = wait forever.

        Returns:
            Next event, or None if timeout occurred.
        """
        try:
            if timeout is not None:
                return await asyncio.wait_for(self._queue.get(), timeout=timeout)
            return await self._queue.get()
        except asyncio.TimeoutError:
            return None

    def metrics(self) -> dict:
        """Queue metrics for observability."""
        return {
            "size": self.size,
            "maxsize": self._maxsize,
            "dropped_count": self._dropped_count,
            "total_put": self._total_put,
        }
