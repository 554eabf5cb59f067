"""
Microphone Capture
==================

Capture backends producing frequency-magnitude buffers.

A capture source behaves like a Web Audio analyser node: once started it
can be polled for a byte buffer of ``fft_size / 2`` frequency magnitudes
in the 0-255 range. The loudness primitive consumes ONLY these buffers.

Components:
    - CaptureSource: Protocol for capture backends
    - SoundDeviceCapture: Live microphone via sounddevice (production)
    - MockCapture: Deterministic byte buffers for testing

Analyser Mapping:
    1. Blackman window over the latest fft_size samples
    2. Real FFT, magnitude normalized by fft_size
    3. dB = 20 · log10(magnitude)
    4. byte = 255 · (dB − min_decibels) / (max_decibels − min_decibels),
       clipped to [0, 255]
"""

import asyncio
import logging
import threading
from itertools import cycle
from typing import Optional, Protocol, Sequence, Union

import numpy as np


logger = logging.getLogger(__name__)


class MicrophoneError(Exception):
    """Base class for microphone failures."""
    pass


class MicrophoneUnavailableError(MicrophoneError):
    """Raised when the microphone cannot be opened (permission or hardware)."""
    pass


class MicrophoneBusyError(MicrophoneError):
    """Raised when another owner holds the microphone past the wait timeout."""
    pass


class CaptureSource(Protocol):
    """
    Protocol for capture backends.

    Implementations must be restartable: start() after stop() opens a
    fresh capture.
    """

    @property
    def is_active(self) -> bool:
        """Whether the capture is currently open."""
        ...

    async def start(self) -> None:
        """
        Open the capture.

        Raises:
            MicrophoneUnavailableError: If the device cannot be opened
        """
        ...

    async def stop(self) -> None:
        """Close the capture. Safe to call when not started."""
        ...

    def read_frequency_bytes(self) -> Optional[np.ndarray]:
        """Return the current uint8 frequency buffer, or None when inactive."""
        ...


def frequency_bytes(
    samples: np.ndarray,
    min_decibels: float = -100.0,
    max_decibels: float = -30.0,
) -> np.ndarray:
    """
    Convert a block of time-domain samples to analyser byte magnitudes.

    Args:
        samples: float samples in [-1, 1], length fft_size
        min_decibels: Level mapped to byte 0
        max_decibels: Level mapped to byte 255

    Returns:
        uint8 array of length fft_size // 2
    """
    fft_size = len(samples)
    windowed = samples * np.blackman(fft_size)
    spectrum = np.abs(np.fft.rfft(windowed))[: fft_size // 2] / fft_size

    with np.errstate(divide="ignore"):
        decibels = 20.0 * np.log10(spectrum)

    scaled = 255.0 * (decibels - min_decibels) / (max_decibels - min_decibels)
    scaled = np.nan_to_num(scaled, nan=0.0, neginf=0.0, posinf=255.0)
    return np.clip(scaled, 0, 255).astype(np.uint8)


class SoundDeviceCapture:
    """
    Live microphone capture using sounddevice.

    An input stream callback keeps the latest fft_size samples in a ring
    buffer; reads convert that window into frequency bytes on demand.

    Attributes:
        device: Input device name or index (None = system default)
        sample_rate: Capture sample rate in Hz
        fft_size: Analyser window length in samples
    """

    def __init__(
        self,
        device: Optional[Union[str, int]] = None,
        sample_rate: int = 44100,
        fft_size: int = 256,
        min_decibels: float = -100.0,
        max_decibels: float = -30.0,
    ) -> None:
        self.device = device
        self.sample_rate = sample_rate
        self.fft_size = fft_size
        self.min_decibels = min_decibels
        self.max_decibels = max_decibels

        self._stream = None
        self._window = np.zeros(fft_size, dtype=np.float32)
        self._lock = threading.Lock()

        logger.info(
            f"SoundDeviceCapture initialized: device={device}, "
            f"sample_rate={sample_rate}Hz, fft_size={fft_size}"
        )

    @property
    def is_active(self) -> bool:
        return self._stream is not None

    def _callback(self, indata, frames, time, status) -> None:
        """Input stream callback (runs on the audio thread)."""
        if status:
            logger.warning(f"Capture callback status: {status}")

        block = indata[:, 0]
        with self._lock:
            if len(block) >= self.fft_size:
                self._window[:] = block[-self.fft_size:]
            else:
                self._window = np.roll(self._window, -len(block))
                self._window[-len(block):] = block

    def _open_stream(self):
        import sounddevice as sd

        try:
            stream = sd.InputStream(
                device=self.device,
                channels=1,
                samplerate=self.sample_rate,
                dtype="float32",
                callback=self._callback,
            )
            stream.start()
        except (sd.PortAudioError, OSError, ValueError) as e:
            raise MicrophoneUnavailableError(f"Cannot open input device: {e}") from e
        return stream

    async def start(self) -> None:
        if self._stream is not None:
            return

        with self._lock:
            self._window[:] = 0.0
        self._stream = await asyncio.to_thread(self._open_stream)
        logger.info("Microphone capture started")

    async def stop(self) -> None:
        stream, self._stream = self._stream, None
        if stream is None:
            return

        await asyncio.to_thread(stream.stop)
        await asyncio.to_thread(stream.close)
        logger.info("Microphone capture stopped")

    def read_frequency_bytes(self) -> Optional[np.ndarray]:
        if self._stream is None:
            return None

        with self._lock:
            window = self._window.copy()
        return frequency_bytes(window, self.min_decibels, self.max_decibels)


class MockCapture:
    """
    Deterministic capture backend for testing.

    Each read returns a buffer filled with the next configured level,
    cycling through the list. Useful for reproducible commits and
    sessions without audio hardware.

    Attributes:
        levels: Byte magnitudes returned by successive reads
        fail_on_start: Simulate a denied microphone permission
        bins: Buffer length (fft_size / 2)
    """

    def __init__(
        self,
        levels: Sequence[int] = (0,),
        fail_on_start: bool = False,
        fft_size: int = 256,
    ) -> None:
        if not levels:
            raise ValueError("levels must not be empty")

        self.levels = [int(level) for level in levels]
        self.fail_on_start = fail_on_start
        self.bins = fft_size // 2

        self._active = False
        self._levels = cycle(self.levels)
        self.start_count = 0
        self.stop_count = 0

        logger.info(f"MockCapture initialized: levels={self.levels}, bins={self.bins}")

    @property
    def is_active(self) -> bool:
        return self._active

    async def start(self) -> None:
        if self.fail_on_start:
            raise MicrophoneUnavailableError("Permission denied (mock)")
        self._active = True
        self.start_count += 1

    async def stop(self) -> None:
        if self._active:
            self.stop_count += 1
        self._active = False

    def read_frequency_bytes(self) -> Optional[np.ndarray]:
        if not self._active:
            return None
        level = int(np.clip(next(self._levels), 0, 255))
        return np.full(self.bins, level, dtype=np.uint8)
