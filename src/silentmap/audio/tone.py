"""
Tone Playback
=============

The single fixed playback trigger of the area-detail panel: a C4 eighth
note (0.25 s at 120 bpm) from a simple enveloped sine synth.

Components:
    - TonePlayer: Protocol for playback backends
    - SoundDeviceTonePlayer: Plays through the default output via sounddevice
    - MockTonePlayer: Records triggers without touching audio hardware
"""

import asyncio
import logging
from typing import List, Optional, Protocol, Tuple, Union

import numpy as np


logger = logging.getLogger(__name__)


C4_HZ = 261.63
EIGHTH_NOTE_SECONDS = 0.25  # 8n at 120 bpm


def synthesize_tone(
    frequency: float = C4_HZ,
    duration: float = EIGHTH_NOTE_SECONDS,
    sample_rate: int = 44100,
    attack: float = 0.005,
    release: float = 0.1,
    amplitude: float = 0.3,
) -> np.ndarray:
    """
    Render an enveloped sine note.

    The release tail is appended after the note duration, like a synth
    triggerAttackRelease.

    Returns:
        float32 mono samples
    """
    total = int((duration + release) * sample_rate)
    t = np.arange(total) / sample_rate
    wave = np.sin(2.0 * np.pi * frequency * t)

    envelope = np.ones(total)
    attack_n = max(1, int(attack * sample_rate))
    release_n = max(1, int(release * sample_rate))
    envelope[:attack_n] = np.linspace(0.0, 1.0, attack_n)
    envelope[-release_n:] = np.linspace(1.0, 0.0, release_n)

    return (amplitude * wave * envelope).astype(np.float32)


class TonePlayer(Protocol):
    """Protocol for tone playback backends."""

    async def play(self) -> None:
        """Trigger the fixed note. Must not raise on device errors."""
        ...


class SoundDeviceTonePlayer:
    """Tone playback through sounddevice."""

    def __init__(
        self,
        device: Optional[Union[str, int]] = None,
        sample_rate: int = 44100,
    ) -> None:
        self.device = device
        self.sample_rate = sample_rate
        self._note = synthesize_tone(sample_rate=sample_rate)

    def _play_blocking(self) -> None:
        import sounddevice as sd

        sd.play(self._note, samplerate=self.sample_rate, device=self.device)

    async def play(self) -> None:
        try:
            await asyncio.to_thread(self._play_blocking)
        except Exception as e:
            logger.error(f"Tone playback failed: {e}")


class MockTonePlayer:
    """Records play triggers for tests and headless runs."""

    def __init__(self) -> None:
        self.played: List[Tuple[float, float]] = []

    async def play(self) -> None:
        self.played.append((C4_HZ, EIGHTH_NOTE_SECONDS))
