"""Plugin system for spellsift.

This module provides the corpus source infrastructure using pluggy.
Sources implement hooks defined in hookspec.py to supply spell records.

Usage:
    from spellsift.plugin import SpellSourcePlugin, hookimpl

    class HomebrewSource(SpellSourcePlugin):
        name = "homebrew"

        @hookimpl
        def get_spells(self):
            return [{"id": "hb.firestorm", "name": "Firestorm", "level": 7}]
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Union

import pluggy

from spellsift.plugin.hookspec import SpellSourceHookSpec

if TYPE_CHECKING:
    from spellsift.models.spell import SpellRecord

hookimpl = pluggy.HookimplMarker("spellsift")

__all__ = ["SpellSourcePlugin", "hookimpl", "SpellSourceHookSpec"]


class SpellSourcePlugin:
    """Base class for spellsift corpus sources.

    Subclasses must define:
        name: Unique identifier for the source (str)

    Required hooks (must override):
        get_spells(): The records this source provides

    Optional hooks (have defaults):
        get_catalogs(): Catalog overrides (default: None)

    Optional attributes:
        version: Source version string (str)
        description: Human-readable description (str)
    """

    name: str = "base"
    version: str = "0.0.0"
    description: str = ""

    @hookimpl
    def get_spells(self) -> list[Union[dict, "SpellRecord"]]:
        """REQUIRED: Return the spell records of this source.

        Raises:
            NotImplementedError: If not overridden by subclass.
        """
        raise NotImplementedError(
            f"Source '{self.name}' must implement get_spells()."
        )

    @hookimpl
    def get_catalogs(self) -> dict | None:
        """Default implementation: no catalog overrides."""
        return None
