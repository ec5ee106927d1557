"""JSON file corpus source for spellsift.

Reads spell records from a JSON file. The file holds either an array of
records or an object with a ``spells`` array and an optional ``catalogs``
mapping::

    {
      "spells": [{"id": "phb.fireball", "name": "Fireball", "level": 3}],
      "catalogs": {"schools": {"evo": "Evocation"}}
    }
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Optional, Union

from spellsift.core.plugin import PluginError
from spellsift.plugin import SpellSourcePlugin, hookimpl

# Read by the entry-point instance, which is constructed without arguments
CORPUS_ENV_VAR = "SPELLSIFT_CORPUS"


class JsonSpellSource(SpellSourcePlugin):
    """Spell source backed by one JSON file.

    Attributes:
        name: Source identifier ("json", or "json:<file>" for explicit paths)
        path: File to read, or None when unset
    """

    name = "json"
    version = "1.0.0"
    description = "Spell records from a JSON file"

    def __init__(self, path: Optional[Union[str, Path]] = None, name: Optional[str] = None):
        if path is None:
            env_path = os.environ.get(CORPUS_ENV_VAR)
            path = env_path or None
        elif name is None:
            name = f"json:{Path(path).name}"
        self.path = Path(path) if path is not None else None
        if name is not None:
            self.name = name
        self._data: Optional[Union[list, dict]] = None

    def _load(self) -> Union[list, dict]:
        if self._data is not None:
            return self._data
        if self.path is None:
            self._data = []
            return self._data
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                self._data = json.load(f)
        except OSError as e:
            raise PluginError(f"Cannot read corpus {self.path}: {e}") from e
        except json.JSONDecodeError as e:
            raise PluginError(f"Invalid JSON in {self.path} at line {e.lineno}: {e.msg}") from e
        if not isinstance(self._data, (list, dict)):
            raise PluginError(f"Corpus {self.path} must hold an array or an object")
        return self._data

    @hookimpl
    def get_spells(self) -> list[dict]:
        """Return the raw record dictionaries from the file.

        Raises:
            PluginError: If the file cannot be read or parsed.
        """
        data = self._load()
        if isinstance(data, dict):
            spells = data.get("spells", [])
            if not isinstance(spells, list):
                raise PluginError(f"'spells' in {self.path} must be an array")
            return spells
        return data

    @hookimpl
    def get_catalogs(self) -> dict | None:
        """Return the ``catalogs`` object of the file, if any."""
        data = self._load()
        if isinstance(data, dict) and isinstance(data.get("catalogs"), dict):
            return data["catalogs"]
        return None
