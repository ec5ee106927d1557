"""Tests for per-level aggregation."""

from conftest import make_spell
from spellsift.core.aggregation import LevelStats, aggregate_levels, level_sort_key, totals


class TestAggregateLevels:
    """Tests for aggregate_levels()."""

    def test_empty(self):
        assert aggregate_levels([]) == {}

    def test_groups_sorted_by_level(self):
        spells = [
            make_spell("Fireball", level=3),
            make_spell("Light", level=0),
            make_spell("Wish", level=9),
            make_spell("Shield", level=1),
        ]
        assert list(aggregate_levels(spells)) == ["0", "1", "3", "9"]

    def test_unknown_level_sorted_last(self):
        spells = [make_spell("Odd"), make_spell("Wish", level=9)]
        groups = aggregate_levels(spells)
        assert list(groups) == ["9", ""]
        assert groups[""].visible == 1

    def test_counts(self):
        spells = [
            make_spell("Cure Wounds", level=1, is_prepared=True),
            make_spell("Bless", level=1, is_prepared=True, always_prepared=True),
            make_spell("Shield", level=1, granted=True),
            make_spell("Sleep", level=1),
        ]
        stats = aggregate_levels(spells)["1"]
        assert stats.visible == 4
        assert stats.prepared == 2
        assert stats.countable == 2
        assert stats.countable_prepared == 1
        assert [s.name for s in stats.spells] == ["Cure Wounds", "Bless", "Shield", "Sleep"]


class TestTotals:
    """Tests for totals() and sorting helpers."""

    def test_totals(self):
        spells = [
            make_spell("Fireball", level=3, is_prepared=True),
            make_spell("Light", level=0),
            make_spell("Revivify", level=3, granted=True),
        ]
        total = totals(aggregate_levels(spells))
        assert isinstance(total, LevelStats)
        assert total.level == "*"
        assert total.visible == 3
        assert total.prepared == 1
        assert total.countable == 2

    def test_level_sort_key(self):
        assert sorted(["10", "", "2", "0"], key=level_sort_key) == ["0", "2", "10", ""]
