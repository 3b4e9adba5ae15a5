"""
Persisted user preferences.

A small JSON-backed key/value store of optional strings (for example
the saved background-removal API key). Layout and transforms never
depend on it; a missing or malformed file falls back to an empty
store and records the load error instead of crashing.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, Optional

logger = logging.getLogger(__name__)

REMOVEBG_API_KEY = "removebg_api_key"


class PreferenceStore:
    """Lightweight JSON-backed store for persisting user preferences."""

    CURRENT_VERSION = 1

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self.data: Dict[str, object] = {}
        self._load_error: Optional[str] = None

        if self.path.exists():
            try:
                self.data = json.loads(self.path.read_text(encoding="utf-8"))
            except json.JSONDecodeError as e:
                self._load_error = f"Preferences file is corrupted: {e}"
                self.data = {}
            except (OSError, UnicodeDecodeError) as e:
                self._load_error = f"Failed to read preferences: {e}"
                self.data = {}
            if self._load_error:
                logger.warning(self._load_error)

        if not isinstance(self.data, dict):
            self._load_error = "Preferences file does not contain an object"
            logger.warning(self._load_error)
            self.data = {}

        if "version" not in self.data:
            self.data["version"] = self.CURRENT_VERSION

    @property
    def load_error(self) -> Optional[str]:
        return self._load_error

    def get(self, key: str) -> Optional[str]:
        """Stored string for `key`, or None if unset or not a string."""
        value = self._values().get(key)
        return value if isinstance(value, str) and value else None

    def set(self, key: str, value: str) -> None:
        if not key:
            raise ValueError("key must be non-empty")
        self._values()[key] = value
        self._save()

    def remove(self, key: str) -> None:
        if self._values().pop(key, None) is not None:
            self._save()

    def reset(self) -> None:
        """Discard all stored preferences and clear any load error."""
        self.data = {"version": self.CURRENT_VERSION}
        self._load_error = None
        self._save()

    def _values(self) -> Dict[str, object]:
        values = self.data.get("values")
        if not isinstance(values, dict):
            values = {}
            self.data["values"] = values
        return values

    def _save(self) -> None:
        """Safely write preferences with atomic replacement.

        Uses a temp file to prevent corruption if write is interrupted.
        """
        temp_path = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)

            temp_path = self.path.with_suffix(".tmp")
            temp_path.write_text(json.dumps(self.data, indent=2), encoding="utf-8")

            temp_path.replace(self.path)
        except OSError as e:
            logger.warning(f"Failed to save preferences: {e}")
            if temp_path is not None:
                temp_path.unlink(missing_ok=True)
