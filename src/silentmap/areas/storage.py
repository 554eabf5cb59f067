"""
Key-Value Storage
=================

File-backed string key-value store for the last saved position.

Values are JSON-encoded strings, one entry per key, all held in a single
JSON object on disk. Writes replace the file atomically so a crash never
leaves a half-written store behind.
"""

import json
import logging
import os
from pathlib import Path
from typing import Dict

from silentmap.models.area import SavedPosition


logger = logging.getLogger(__name__)


class KeyValueStore:
    """
    Persistent string key-value store.

    Attributes:
        path: Location of the JSON file
    """

    def __init__(self, path: str) -> None:
        self.path = Path(path)

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        with open(self.path, "r") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"Storage file is not a JSON object: {self.path}")
        return data

    def set_item(self, key: str, value: str) -> None:
        """Overwrite one key."""
        data = self._load()
        data[key] = value

        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp_path, "w") as f:
            json.dump(data, f, indent=2)
        os.replace(tmp_path, self.path)

    def save_position(self, key: str, snapshot: SavedPosition) -> str:
        """
        Store a position snapshot under ``key``.

        Returns:
            The JSON string written
        """
        payload = snapshot.model_dump_json(by_alias=True)
        self.set_item(key, payload)
        logger.info(f"Saved coordinates: {payload}")
        return payload
