"""
Loudness Sampling
=================

Scalar loudness readings from analyser frequency buffers.

Formula:
    mean     = arithmetic mean of the byte magnitudes (0-255)
    loudness = max(0, 20 · log10(mean / 255))

Silence (mean == 0) and any negative log value read as 0. A missing
capture handle also reads as 0: absence of input degrades to the zero
reading and never raises.
"""

import math
from typing import Optional, Protocol, Sequence

import numpy as np


BYTE_FULL_SCALE = 255.0


class FrequencyReader(Protocol):
    """Anything that can be polled for an analyser byte buffer."""

    def read_frequency_bytes(self) -> Optional[np.ndarray]:
        ...


def loudness_from_bytes(buffer: Optional[np.ndarray]) -> float:
    """
    Convert one frequency buffer to a non-negative loudness reading.

    Args:
        buffer: uint8 frequency magnitudes, or None

    Returns:
        Loudness on the clamped log scale (never negative).
    """
    if buffer is None or len(buffer) == 0:
        return 0.0

    mean = float(np.mean(buffer))
    if mean <= 0.0:
        return 0.0

    decibels = 20.0 * math.log10(mean / BYTE_FULL_SCALE)
    return max(0.0, decibels)


def sample_loudness(reader: Optional[FrequencyReader]) -> float:
    """Take one loudness sample from a capture handle (0 when none is active)."""
    if reader is None:
        return 0.0
    return loudness_from_bytes(reader.read_frequency_bytes())


def average_loudness(samples: Sequence[float]) -> float:
    """
    Arithmetic mean of loudness samples.

    An empty collection averages to 0.
    """
    if len(samples) == 0:
        return 0.0
    return float(np.mean(np.asarray(samples, dtype=np.float64)))
