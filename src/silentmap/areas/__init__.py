"""
Areas Module
============

Sound areas: color derivation, overlap-checked insertion, the commit
routine and the last-position store.
"""

from silentmap.areas.color import QUIET_COLOR, hue_and_lightness, loudness_color
from silentmap.areas.recorder import AreaRecorder, CommitResult
from silentmap.areas.registry import find_overlap, insert_area, load_seed_areas
from silentmap.areas.storage import KeyValueStore

__all__ = [
    "QUIET_COLOR",
    "hue_and_lightness",
    "loudness_color",
    "AreaRecorder",
    "CommitResult",
    "find_overlap",
    "insert_area",
    "load_seed_areas",
    "KeyValueStore",
]
