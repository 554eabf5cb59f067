"""
Audio Module
============

Microphone capture, loudness sampling and tone playback.

This module treats audio hardware as a pluggable black box. The rest of
the application consumes ONLY scalar loudness readings and a single
exclusively-owned microphone handle.

Components:
    - CaptureSource: Protocol for capture backends
    - SoundDeviceCapture / MockCapture: Capture implementations
    - Microphone: Single-owner resource wrapper
    - sample_loudness / average_loudness: Loudness primitives
    - TonePlayer: Fixed-note playback
"""

from silentmap.audio.capture import (
    CaptureSource,
    MicrophoneBusyError,
    MicrophoneError,
    MicrophoneUnavailableError,
    MockCapture,
    SoundDeviceCapture,
)
from silentmap.audio.loudness import (
    average_loudness,
    loudness_from_bytes,
    sample_loudness,
)
from silentmap.audio.microphone import Microphone, MicrophoneHandle
from silentmap.audio.tone import MockTonePlayer, SoundDeviceTonePlayer, TonePlayer

__all__ = [
    "CaptureSource",
    "SoundDeviceCapture",
    "MockCapture",
    "MicrophoneError",
    "MicrophoneUnavailableError",
    "MicrophoneBusyError",
    "Microphone",
    "MicrophoneHandle",
    "loudness_from_bytes",
    "sample_loudness",
    "average_loudness",
    "TonePlayer",
    "SoundDeviceTonePlayer",
    "MockTonePlayer",
]
