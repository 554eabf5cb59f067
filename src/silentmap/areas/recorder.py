"""
Area Recorder
=============

The one-shot commit routine that measures ambient loudness at the map
center and creates a new Area.

Routine (each step may suspend):
    1. Snapshot the map center (done by the caller, passed in)
    2. Wait commit_delay seconds
    3. Acquire the microphone
    4. Sample loudness every sample_interval for sample_window
    5. Release the microphone (on every exit path)
    6. Average the samples (empty -> 0)
    7. Derive the color
    8. Build a candidate Area with the configured radius
    9. Reject on overlap, otherwise append and persist the snapshot
       (a storage failure keeps the area and is reported as its own outcome)

Only one routine may run at a time; a second request while recording is
rejected with COMMIT_IN_PROGRESS. Microphone failures abort the routine
without retry.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, List, Optional

from silentmap.areas.color import QUIET_COLOR, loudness_color
from silentmap.areas.registry import insert_area
from silentmap.areas.storage import KeyValueStore
from silentmap.audio.capture import MicrophoneBusyError, MicrophoneUnavailableError
from silentmap.audio.loudness import average_loudness, sample_loudness
from silentmap.audio.microphone import Microphone, MicrophoneHandle
from silentmap.models.area import Area, SavedPosition
from silentmap.models.geo import Coordinate
from silentmap.models.notices import NoticeCode


logger = logging.getLogger(__name__)


@dataclass
class CommitResult:
    """Outcome of one commit routine."""

    outcome: NoticeCode
    area: Optional[Area] = None
    average: float = 0.0
    samples: List[float] = field(default_factory=list)

    @property
    def saved(self) -> bool:
        """True when the area was added to the map."""
        return self.outcome in (NoticeCode.AREA_SAVED, NoticeCode.POSITION_NOT_STORED)


class AreaRecorder:
    """
    Orchestrates the area commit routine.

    Attributes:
        microphone: Shared single-owner microphone
        storage: Key-value store receiving the last saved position
        radius_m: Radius of new areas
        sample_interval: Seconds between loudness samples
        sample_window: Length of the recording window
        commit_delay: Seconds to wait before recording
    """

    OWNER = "area-commit"

    def __init__(
        self,
        microphone: Microphone,
        storage: KeyValueStore,
        radius_m: float = 500.0,
        sample_interval: float = 0.1,
        sample_window: float = 5.0,
        commit_delay: float = 5.0,
        quiet_color: str = QUIET_COLOR,
        song: str = "Sample Song",
        storage_key: str = "lastSavedPosition",
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        if sample_interval <= 0:
            raise ValueError("sample_interval must be positive")
        if sample_window <= 0:
            raise ValueError("sample_window must be positive")

        self.microphone = microphone
        self.storage = storage
        self.radius_m = radius_m
        self.sample_interval = sample_interval
        self.sample_window = sample_window
        self.commit_delay = commit_delay
        self.quiet_color = quiet_color
        self.song = song
        self.storage_key = storage_key
        self._clock = clock
        self._in_progress = False

        logger.info(
            f"AreaRecorder initialized: radius={radius_m}m, "
            f"window={sample_window}s every {sample_interval}s, delay={commit_delay}s"
        )

    @property
    def in_progress(self) -> bool:
        return self._in_progress

    @property
    def sample_count(self) -> int:
        """Number of samples one recording window collects."""
        return max(1, round(self.sample_window / self.sample_interval))

    async def record(self, handle: MicrophoneHandle) -> List[float]:
        """Collect one window of loudness samples from a held microphone."""
        samples: List[float] = []
        for _ in range(self.sample_count):
            await asyncio.sleep(self.sample_interval)
            samples.append(sample_loudness(handle))
        return samples

    def build_area(self, center: Coordinate, average: float) -> Area:
        """Build the candidate area for a recorded average."""
        return Area(
            center=center,
            radius=self.radius_m,
            color=loudness_color(average, self.quiet_color),
            song=self.song,
            average_loudness=average,
        )

    async def commit(self, center: Coordinate, areas: List[Area]) -> CommitResult:
        """
        Run the commit routine for a snapshotted map center.

        Args:
            center: Map center captured when the user pressed commit
            areas: The application's area list (appended on success)

        Returns:
            CommitResult describing the outcome
        """
        if self._in_progress:
            logger.warning("Commit requested while another commit is recording")
            return CommitResult(outcome=NoticeCode.COMMIT_IN_PROGRESS)

        self._in_progress = True
        try:
            if self.commit_delay > 0:
                await asyncio.sleep(self.commit_delay)

            try:
                async with self.microphone.acquire(self.OWNER) as handle:
                    samples = await self.record(handle)
            except MicrophoneUnavailableError as e:
                logger.error(f"Error accessing microphone: {e}")
                return CommitResult(outcome=NoticeCode.MICROPHONE_UNAVAILABLE)
            except MicrophoneBusyError as e:
                logger.error(f"Commit aborted: {e}")
                return CommitResult(outcome=NoticeCode.MICROPHONE_BUSY)

            average = average_loudness(samples)
            candidate = self.build_area(center, average)

            if not insert_area(areas, candidate):
                return CommitResult(
                    outcome=NoticeCode.AREA_OVERLAP,
                    area=candidate,
                    average=average,
                    samples=samples,
                )

            snapshot = SavedPosition.from_area(candidate, self._clock())
            outcome = NoticeCode.AREA_SAVED
            try:
                self.storage.save_position(self.storage_key, snapshot)
            except (OSError, ValueError) as e:
                # the area stays on the map; only the snapshot is lost
                logger.error(f"Failed to store last saved position: {e}")
                outcome = NoticeCode.POSITION_NOT_STORED

            return CommitResult(
                outcome=outcome,
                area=candidate,
                average=average,
                samples=samples,
            )
        finally:
            self._in_progress = False
