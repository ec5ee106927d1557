"""Fuzzy spell-name matching for standard (non-prefixed) searches.

Rules, strongest first:

    exact      name equals the query
    prefix     name starts with the query
    contains   name contains the query
    all words  every whitespace-separated token appears in the name

A query wrapped in matching single or double quotes is a phrase and matches by
substring only. An unquoted empty query matches every name; an empty phrase
(``""``) matches none.
"""

from __future__ import annotations

import re
from enum import IntEnum
from typing import Iterable, Optional

from spellsift.models.spell import SpellRecord

_PHRASE = re.compile(r"""^(["'])(.*)\1$""", re.DOTALL)
_WHITESPACE = re.compile(r"\s+")



class MatchTier(IntEnum):
    """How strongly a name matched; higher is better."""

    NONE = 0
    ALL_WORDS = 1
    CONTAINS = 2
    PREFIX = 3
    EXACT = 4


def _fold(text: Optional[str]) -> str:
    return (text or "").strip().casefold()


def phrase_of(query: str) -> Optional[str]:
    """Return the unquoted phrase if ``query`` is quoted, else None."""
    stripped = query.strip()
    if len(stripped) < 2:
        return None
    match = _PHRASE.match(stripped)
    return match.group(2) if match else None


def match_tier(query: str, name: Optional[str]) -> MatchTier:
    """Classify how ``name`` matches ``query``.

    Args:
        query: Raw search text.
        name: Spell name.

    Returns:
        The strongest MatchTier that applies, or MatchTier.NONE.
    """
    phrase = phrase_of(query)
    folded_name = _fold(name)

    if phrase is not None:
        needle = _fold(phrase)
        if not needle or needle not in folded_name:
            return MatchTier.NONE
        return MatchTier.EXACT if needle == folded_name else MatchTier.CONTAINS

    folded_query = _fold(query)
    if not folded_query:
        return MatchTier.CONTAINS
    if folded_name == folded_query:
        return MatchTier.EXACT
    if folded_name.startswith(folded_query):
        return MatchTier.PREFIX
    if folded_query in folded_name:
        return MatchTier.CONTAINS
    # No any-token rule: "fire ball" must keep Fireball and drop Firebolt,
    # which only contains "fire".
    tokens = [t for t in _WHITESPACE.split(folded_query) if t]
    if tokens and all(token in folded_name for token in tokens):
        return MatchTier.ALL_WORDS
    return MatchTier.NONE


def matches(query: str, name: Optional[str]) -> bool:
    """Whether ``name`` satisfies the standard-mode ``query``."""
    return match_tier(query, name) is not MatchTier.NONE


class NameMatcher:
    """Applies the fuzzy name rules to spell records."""

    def filter(self, query: str, spells: Iterable[SpellRecord]) -> list[SpellRecord]:
        """Keep records whose names match, preserving input order."""
        return [spell for spell in spells if matches(query, spell.name)]

    def best(self, query: str, spells: Iterable[SpellRecord], limit: int = 5) -> list[SpellRecord]:
        """Top matches for typeahead, strongest tier first, then by name.

        Args:
            query: Search text.
            spells: Candidate records.
            limit: Maximum number of results.

        Returns:
            Up to ``limit`` matching records.
        """
        ranked = []
        seen: set[str] = set()
        for index, spell in enumerate(spells):
            tier = match_tier(query, spell.name)
            if tier is MatchTier.NONE:
                continue
            key = _fold(spell.name)
            if key in seen:
                continue
            seen.add(key)
            ranked.append((-int(tier), key, index, spell))
        ranked.sort(key=lambda row: row[:3])
        return [row[3] for row in ranked[:limit]]
