"""File-backed key-value cache surviving restarts.

The whole map lives in one JSON file and is rewritten on every ``set``.
Read and write failures are logged and never raised: the in-memory map is
always usable.
"""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

DAYS_KEY = "calendarDays"
TASKS_KEY = "tasks"
ENTRIES_KEY = "entries"
VIDEOS_KEY = "videos"
SCREENSHOTS_KEY = "screenshots"


class LocalCache:
    """JSON-file key-value store."""

    def __init__(self, path: Path):
        self.path = path
        self._data: dict[str, Any] = {}
        self._loaded = False
        self._lock = threading.Lock()

    def load(self) -> None:
        """Read the cache file. A missing or corrupt file yields an empty map."""
        with self._lock:
            self._data = _load_file(self.path)
            self._loaded = True
        logger.debug("Loaded %d key(s) from %s", len(self._data), self.path)

    def _ensure_loaded(self) -> None:
        if not self._loaded:
            self.load()

    def get(self, key: str, default: Any = None) -> Any:
        self._ensure_loaded()
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Store a value and persist the whole map."""
        self._ensure_loaded()
        with self._lock:
            self._data[key] = value
            _save_file(self.path, self._data)

    def remove(self, key: str) -> None:
        self._ensure_loaded()
        with self._lock:
            if self._data.pop(key, None) is not None:
                _save_file(self.path, self._data)

    def keys(self) -> list[str]:
        self._ensure_loaded()
        return list(self._data)


def _load_file(path: Path) -> dict:
    if not path.exists():
        return {}
    try:
        with path.open(encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        logger.error("Could not read local cache %s: %s", path, e)
        return {}
    if not isinstance(data, dict):
        logger.error("Local cache %s does not hold an object, ignoring it", path)
        return {}
    return data


def _save_file(path: Path, data: dict) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        content = json.dumps(data, indent=2, ensure_ascii=False)
        path.write_text(content, encoding="utf-8")
    except (TypeError, ValueError, OSError) as e:
        logger.error("Could not save local cache %s: %s", path, e)
