"""Hook specifications for spellsift corpus sources.

This module defines the pluggy hook specification that source plugins
implement. Plugins use the @hookimpl decorator to register their
implementations.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Union

import pluggy

if TYPE_CHECKING:
    from spellsift.models.spell import SpellRecord

hookspec = pluggy.HookspecMarker("spellsift")


class SpellSourceHookSpec:
    """Hook specification defining the corpus source interface.

    Each source stands for one compendium or collection of spells. The
    PluginManager merges the records from every registered source into the
    corpus the pipeline filters.
    """

    @hookspec
    def get_spells(self) -> list[Union[dict, "SpellRecord"]]:
        """Return the spell records provided by this source.

        Entries may be SpellRecord instances or plain dictionaries in
        snake_case or camelCase form. Dictionaries are validated by the
        manager; entries that fail validation are skipped with a warning.

        Returns:
            List of records.
        """

    @hookspec
    def get_catalogs(self) -> dict | None:
        """Return enum catalogs this source contributes.

        Keys are Catalogs field names (``schools``, ``damage_types``,
        ``conditions``, ...). Values are lists of ``{"id", "label",
        "aliases"}`` mappings or ``{id: label}`` dictionaries.

        Returns:
            Catalog overrides, or None to keep the defaults.
        """
