"""Per-level grouping and statistics for filtered spells.

The spell browser shows one section per spell level with visible and
prepared counts. Granted and always-prepared spells are visible but not
"countable": they do not consume preparation slots.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from spellsift.models.spell import SpellRecord

NO_LEVEL_KEY = ""


def level_sort_key(key: str) -> tuple[int, int]:
    """Sort key placing numeric levels ascending and unknown levels last."""
    if key.isdigit():
        return (0, int(key))
    return (1, 0)


@dataclass
class LevelStats:
    """Statistics for one spell level.

    Attributes:
        level: Level key ("0".."9", or "" for unknown).
        visible: Records shown at this level.
        prepared: Visible records the viewer has prepared.
        countable: Visible records that count toward preparation limits.
        countable_prepared: Countable records that are prepared.
        spells: The visible records, in pipeline order.
    """

    level: str
    visible: int = 0
    prepared: int = 0
    countable: int = 0
    countable_prepared: int = 0
    spells: list = field(default_factory=list)

    def add_spell(self, spell: SpellRecord) -> None:
        """Add a spell to this group.

        Args:
            spell: The record to add.
        """
        self.visible += 1
        self.spells.append(spell)
        if spell.is_prepared:
            self.prepared += 1
        if spell.countable:
            self.countable += 1
            if spell.is_prepared:
                self.countable_prepared += 1


def aggregate_levels(spells: Iterable[SpellRecord]) -> dict[str, LevelStats]:
    """Group spells by level.

    Args:
        spells: Records to group.

    Returns:
        Dictionary mapping level key to LevelStats, ordered by level with
        unknown levels last.
    """
    groups: dict[str, LevelStats] = {}
    for spell in spells:
        key = spell.level_key
        if key not in groups:
            groups[key] = LevelStats(level=key)
        groups[key].add_spell(spell)
    return {key: groups[key] for key in sorted(groups, key=level_sort_key)}


def totals(by_level: dict[str, LevelStats]) -> LevelStats:
    """Sum every level into one LevelStats with key ``"*"``."""
    total = LevelStats(level="*")
    for stats in by_level.values():
        total.visible += stats.visible
        total.prepared += stats.prepared
        total.countable += stats.countable
        total.countable_prepared += stats.countable_prepared
    return total
