"""
Microphone Ownership
====================

Single-owner wrapper around a capture source.

The microphone is one hardware resource shared by the area commit routine
and the listening session. Exactly one owner may hold it at a time:

    - A second owner waits up to ``acquire_timeout`` seconds, then fails
      with MicrophoneBusyError (requests are serialized, not stacked)
    - The capture is stopped on EVERY exit path (success, rejection,
      error, cancellation)

Example:
    microphone = Microphone(MockCapture(levels=[40]), acquire_timeout=10.0)

    async with microphone.acquire("commit") as handle:
        level = sample_loudness(handle)

    handle = await microphone.open("session")
    try:
        ...
    finally:
        await handle.release()
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import numpy as np

from silentmap.audio.capture import CaptureSource, MicrophoneBusyError


logger = logging.getLogger(__name__)


class MicrophoneHandle:
    """
    Capture handle held by a single owner.

    Reads return None once the handle is released, so stale holders
    degrade to the zero loudness reading instead of reading someone
    else's capture.
    """

    def __init__(self, microphone: "Microphone", owner: str) -> None:
        self._microphone = microphone
        self.owner = owner
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    def read_frequency_bytes(self) -> Optional[np.ndarray]:
        if self._released:
            return None
        return self._microphone.source.read_frequency_bytes()

    async def release(self) -> None:
        """Stop the capture and hand the microphone back. Idempotent."""
        if self._released:
            return
        self._released = True
        await self._microphone._release(self)


class Microphone:
    """
    Exclusive owner of the capture source.

    Attributes:
        source: Underlying capture backend
        acquire_timeout: Seconds a second owner waits before failing
    """

    def __init__(self, source: CaptureSource, acquire_timeout: float = 10.0) -> None:
        self.source = source
        self.acquire_timeout = acquire_timeout
        self._lock = asyncio.Lock()
        self._owner: Optional[str] = None

        logger.info(f"Microphone initialized: acquire_timeout={acquire_timeout}s")

    @property
    def owner(self) -> Optional[str]:
        """Name of the current owner, or None when free."""
        return self._owner

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    async def open(self, owner: str) -> MicrophoneHandle:
        """
        Take ownership and start the capture.

        Args:
            owner: Name of the routine taking the microphone (for logs)

        Returns:
            Handle that must be released by the caller

        Raises:
            MicrophoneBusyError: If the current owner does not release in time
            MicrophoneUnavailableError: If the capture cannot be started
        """
        if self._lock.locked():
            logger.info(f"Microphone held by '{self._owner}', '{owner}' waiting")

        try:
            await asyncio.wait_for(self._lock.acquire(), timeout=self.acquire_timeout)
        except asyncio.TimeoutError:
            logger.warning(
                f"Microphone busy: '{owner}' gave up after {self.acquire_timeout}s "
                f"(held by '{self._owner}')"
            )
            raise MicrophoneBusyError(f"Microphone held by '{self._owner}'")

        try:
            await self.source.start()
        except BaseException:
            await self.source.stop()
            self._lock.release()
            raise

        self._owner = owner
        logger.info(f"Microphone acquired by '{owner}'")
        return MicrophoneHandle(self, owner)

    async def _release(self, handle: MicrophoneHandle) -> None:
        try:
            await self.source.stop()
        finally:
            self._owner = None
            self._lock.release()
            logger.info(f"Microphone released by '{handle.owner}'")

    @asynccontextmanager
    async def acquire(self, owner: str) -> AsyncIterator[MicrophoneHandle]:
        """Scoped ownership: the capture is released when the block exits."""
        handle = await self.open(owner)
        try:
            yield handle
        finally:
            await handle.release()
