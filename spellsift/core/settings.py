"""Settings I/O for spellsift.

The core reads and writes a handful of keys through a minimal ``get``/``set``
facility. ``MemorySettings`` serves tests and embedding hosts;
``JsonFileSettings`` persists to a JSON document for the CLI.
"""

from __future__ import annotations

import copy
import json
from pathlib import Path
from typing import Any, Optional, Protocol

from spellsift.utils.log import get_logger

logger = get_logger("settings")

FILTER_CONFIGURATION = "filterConfiguration"
ADVANCED_SEARCH_PREFIX = "advancedSearchPrefix"
RECENT_SEARCHES = "recentSearches"
DISPLAY_FLAGS = "displayFlags"

DEFAULT_PREFIX = "^"


class SettingsError(Exception):
    """Raised when a settings backend cannot be read or written."""


class Settings(Protocol):
    """Host settings facility."""

    def get(self, key: str, default: Any = None) -> Any:
        ...

    def set(self, key: str, value: Any) -> None:
        ...


class MemorySettings:
    """In-memory settings; values are deep-copied on the way in and out."""

    def __init__(self, initial: Optional[dict] = None):
        self._values: dict[str, Any] = copy.deepcopy(initial or {})

    def get(self, key: str, default: Any = None) -> Any:
        return copy.deepcopy(self._values.get(key, default))

    def set(self, key: str, value: Any) -> None:
        self._values[key] = copy.deepcopy(value)

    def as_dict(self) -> dict:
        return copy.deepcopy(self._values)


class JsonFileSettings:
    """Settings stored in a single JSON object on disk.

    The file is read lazily and rewritten on every ``set``.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._values: Optional[dict] = None

    def _load(self) -> dict:
        if self._values is None:
            if not self.path.exists():
                self._values = {}
            else:
                try:
                    data = json.loads(self.path.read_text(encoding="utf-8") or "{}")
                except (OSError, json.JSONDecodeError) as e:
                    raise SettingsError(f"Cannot read settings from {self.path}: {e}") from e
                if not isinstance(data, dict):
                    raise SettingsError(f"Settings file {self.path} must hold a JSON object")
                self._values = data
        return self._values

    def get(self, key: str, default: Any = None) -> Any:
        return copy.deepcopy(self._load().get(key, default))

    def set(self, key: str, value: Any) -> None:
        values = self._load()
        values[key] = copy.deepcopy(value)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(values, indent=2, sort_keys=True), encoding="utf-8")
        except OSError as e:
            raise SettingsError(f"Cannot write settings to {self.path}: {e}") from e


def validate_prefix(value: Any, default: str = DEFAULT_PREFIX) -> str:
    """Return ``value`` if it is one non-whitespace character, else ``default``.

    Args:
        value: Candidate prefix from settings or config.
        default: Fallback prefix.

    Returns:
        A usable single-character prefix.
    """
    if isinstance(value, str) and len(value) == 1 and not value.isspace():
        return value
    if value not in (None, ""):
        logger.warning("Invalid advanced search prefix %r; using %r", value, default)
    return default


def read_prefix(settings: Settings) -> str:
    """Read and validate the advanced-search prefix setting."""
    return validate_prefix(settings.get(ADVANCED_SEARCH_PREFIX))
