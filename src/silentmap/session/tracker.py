"""
Listening Session
=================

Two-state machine recording loudness while the user walks.

States:
    IDLE ──start──▶ LISTENING ──stop──▶ IDLE

    IDLE → LISTENING:
        - acquire the microphone (may wait for, or fail against, a commit)
        - start a fixed-interval timer task that samples loudness and
          reports every reading through ``on_tick``
    LISTENING → IDLE:
        - cancel the timer task
        - release the microphone

The session holds no route data itself; readings and fixes are delivered
to the application controller, which owns the route and history.
Stopping is the only cancellation path and nothing is persisted.
"""

import asyncio
import logging
from typing import Callable, Optional

from silentmap.audio.loudness import sample_loudness
from silentmap.audio.microphone import Microphone, MicrophoneHandle
from silentmap.models.state import SessionState


logger = logging.getLogger(__name__)


class ListeningSession:
    """
    Listening session state machine.

    Attributes:
        microphone: Shared single-owner microphone
        sample_interval: Seconds between timer samples
        on_tick: Receives every timer loudness reading
    """

    OWNER = "listening-session"

    def __init__(
        self,
        microphone: Microphone,
        sample_interval: float = 1.0,
        on_tick: Optional[Callable[[float], None]] = None,
    ) -> None:
        if sample_interval <= 0:
            raise ValueError("sample_interval must be positive")

        self.microphone = microphone
        self.sample_interval = sample_interval
        self.on_tick = on_tick

        self._state = SessionState.IDLE
        self._handle: Optional[MicrophoneHandle] = None
        self._timer: Optional[asyncio.Task] = None
        self._transition_lock = asyncio.Lock()
        self.sessions_started = 0

        logger.info(f"ListeningSession initialized: interval={sample_interval}s")

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_listening(self) -> bool:
        return self._state == SessionState.LISTENING

    def sample(self) -> float:
        """Loudness right now (0 when not listening)."""
        return sample_loudness(self._handle)

    async def _run_timer(self) -> None:
        while True:
            await asyncio.sleep(self.sample_interval)
            level = self.sample()
            if self.on_tick is not None:
                self.on_tick(level)

    async def start(self) -> None:
        """
        Enter LISTENING.

        Raises:
            MicrophoneUnavailableError: If the microphone cannot be opened
            MicrophoneBusyError: If another owner holds it too long
        """
        async with self._transition_lock:
            if self._state == SessionState.LISTENING:
                return

            self._handle = await self.microphone.open(self.OWNER)
            self._state = SessionState.LISTENING
            self.sessions_started += 1
            self._timer = asyncio.create_task(self._run_timer(), name="listening_timer")

            logger.info(f"Listening session {self.sessions_started} started")

    async def stop(self) -> None:
        """Enter IDLE, cancelling the timer and releasing the microphone."""
        async with self._transition_lock:
            if self._state == SessionState.IDLE:
                return

            timer, self._timer = self._timer, None
            handle, self._handle = self._handle, None
            self._state = SessionState.IDLE

            try:
                if timer is not None:
                    timer.cancel()
                    try:
                        await timer
                    except asyncio.CancelledError:
                        pass
            finally:
                if handle is not None:
                    await handle.release()

            logger.info(f"Listening session {self.sessions_started} stopped")

