"""Localization helpers.

The core carries display text as opaque keys. A Localizer turns them into
strings at render time; hosts pass their own ``localize``/``format``
callables, and the built-in English table covers the keys the suggestion
engine and row metadata emit.
"""

from __future__ import annotations

from typing import Callable, Mapping, Optional

DEFAULT_STRINGS: dict[str, str] = {
    "SPELLBOOK.Search.EnterField": "Type a field name",
    "SPELLBOOK.Search.EnterValue": "Enter a value for {field}",
    "SPELLBOOK.Search.TypeRange": "Type a range such as 30-60, *-30 or 120",
    "SPELLBOOK.Search.CompleteValue": "Keep typing to complete the value",
    "SPELLBOOK.Search.MatchingValues": "Values matching \"{partial}\"",
    "SPELLBOOK.Search.ExecuteQuery": "Press Enter to run the query",
    "SPELLBOOK.Search.Execute": "Run search",
    "SPELLBOOK.Search.Recent": "Recent searches",
    "SPELLBOOK.Search.Suggestions": "Suggestions",
    "SPELLBOOK.Search.NoMatches": "No matching spells",
    "SPELLBOOK.Search.Advanced": "Advanced search",
    "SPELLBOOK.Search.Fields": "Fields",
    "SPELLBOOK.Search.Values": "Values",
    "SPELLBOOK.Search.InvalidQuery": "Invalid query: {message}",
    "SPELLBOOK.Filters.All": "All",
    "SPELLBOOK.Filters.True": "True",
    "SPELLBOOK.Filters.False": "False",
    "SPELLBOOK.Filters.Materials.Consumed": "Consumed",
    "SPELLBOOK.Filters.Materials.NotConsumed": "Not consumed",
    "DND5E.SpellCantrip": "Cantrip",
    "DND5E.Concentration": "Concentration",
    "DND5E.DistSelf": "Self",
    "DND5E.DistTouch": "Touch",
    "DND5E.DistSpec": "Special",
    "SPELLBOOK.Display.Save": "{ability} save",
    "SPELLBOOK.Display.MaterialsConsumed": "Consumes materials",
}


class Localizer:
    """Renders localization keys.

    Unknown keys render as themselves, so a missing translation is visible
    but harmless.
    """

    def __init__(
        self,
        strings: Optional[Mapping[str, str]] = None,
        localize: Optional[Callable[[str], str]] = None,
    ):
        self.strings = dict(DEFAULT_STRINGS)
        if strings:
            self.strings.update(strings)
        self._localize = localize

    def localize(self, key: str) -> str:
        if self._localize is not None:
            return self._localize(key)
        return self.strings.get(key, key)

    def format(self, key: str, params: Optional[Mapping[str, object]] = None) -> str:
        """Localize ``key`` and substitute ``{name}`` placeholders.

        Missing parameters leave their placeholder in place.
        """
        template = self.localize(key)
        for name, value in (params or {}).items():
            template = template.replace("{" + name + "}", str(value))
        return template
