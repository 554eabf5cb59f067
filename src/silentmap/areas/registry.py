"""
Area Registry
=============

Seed loading and overlap checks for the append-only area list.

Seed areas are STATIC and loaded once at startup; they are trusted as-is.
Committed areas are checked against every existing area at insertion
time and never re-checked afterwards.

Example:
    from silentmap.areas.registry import load_seed_areas, insert_area

    areas = load_seed_areas("./data/seed_areas.json")
    if not insert_area(areas, candidate):
        print("overlaps")
"""

import json
import logging
from pathlib import Path
from typing import List, Optional, Sequence

from pydantic import TypeAdapter

from silentmap.geometry.geodesy import disks_overlap
from silentmap.models.area import Area


logger = logging.getLogger(__name__)

_AREA_LIST = TypeAdapter(List[Area])


def load_seed_areas(path: str) -> List[Area]:
    """
    Load the seed areas from a JSON file.

    Args:
        path: Path to the seed JSON array

    Returns:
        Parsed areas; an empty list if the file does not exist

    Raises:
        ValueError: If the JSON is malformed or an entry is invalid
    """
    file_path = Path(path)

    if not file_path.exists():
        logger.warning(f"Seed file not found, starting without seed areas: {path}")
        return []

    logger.info(f"Loading seed areas from: {path}")

    with open(file_path, "r") as f:
        data = json.load(f)

    areas = _AREA_LIST.validate_python(data)
    logger.info(f"Loaded {len(areas)} seed areas")
    return areas


def find_overlap(candidate: Area, areas: Sequence[Area]) -> Optional[Area]:
    """
    Return the first existing area whose disk intersects the candidate's.

    Disks intersect when the great-circle distance between centers is
    strictly less than the sum of radii.
    """
    for area in areas:
        if disks_overlap(candidate.center, candidate.radius, area.center, area.radius):
            return area
    return None


def insert_area(areas: List[Area], candidate: Area) -> bool:
    """
    Append the candidate unless it overlaps an existing area.

    Returns:
        True if appended, False if rejected
    """
    clash = find_overlap(candidate, areas)
    if clash is not None:
        logger.info(f"Area at {candidate.center!r} rejected: overlaps area at {clash.center!r}")
        return False

    areas.append(candidate)
    logger.info(
        f"Area added at {candidate.center!r}: radius={candidate.radius}m, "
        f"loudness={candidate.average_loudness:.2f}, total={len(areas)}"
    )
    return True
