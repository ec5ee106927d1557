"""Tests for the recent-searches store."""

from spellsift.core.recent import RecentSearches
from spellsift.core.settings import RECENT_SEARCHES, MemorySettings, SettingsError


class FailingWrites(MemorySettings):
    def set(self, key, value):
        raise SettingsError("read-only")


class TestRecentSearches:
    """Tests for add(), remove() and list()."""

    def test_add_most_recent_first(self):
        recent = RecentSearches()
        recent.add("fireball")
        recent.add("^level:3")
        assert recent.list() == ["^level:3", "fireball"]

    def test_add_trims_and_ignores_empty(self):
        recent = RecentSearches()
        recent.add("  bless  ")
        recent.add("   ")
        recent.add("")
        assert recent.list() == ["bless"]

    def test_duplicate_moves_to_head(self):
        recent = RecentSearches()
        for q in ("a1", "b2", "c3"):
            recent.add(q)
        recent.add("a1")
        assert recent.list() == ["a1", "c3", "b2"]
        recent.add("a1")
        assert recent.list() == ["a1", "c3", "b2"]

    def test_truncated_to_limit(self):
        recent = RecentSearches()
        for n in range(12):
            recent.add(f"query {n}")
        assert len(recent) == 8
        assert recent.list()[0] == "query 11"
        assert "query 3" not in recent

    def test_custom_limit(self):
        recent = RecentSearches(limit=2)
        for q in ("a1", "b2", "c3"):
            recent.add(q)
        assert recent.list() == ["c3", "b2"]

    def test_remove(self):
        recent = RecentSearches()
        recent.add("a1")
        recent.add("b2")
        recent.remove("a1")
        assert recent.list() == ["b2"]

    def test_clear(self):
        recent = RecentSearches()
        recent.add("a1")
        recent.clear()
        assert len(recent) == 0

    def test_backed_by_settings(self):
        settings = MemorySettings()
        RecentSearches(settings).add("fireball")
        assert settings.get(RECENT_SEARCHES) == ["fireball"]
        assert RecentSearches(settings).list() == ["fireball"]

    def test_bad_stored_value_ignored(self):
        settings = MemorySettings({RECENT_SEARCHES: "not a list"})
        assert RecentSearches(settings).list() == []
        settings = MemorySettings({RECENT_SEARCHES: ["ok", 3, "", "ok"]})
        assert RecentSearches(settings).list() == ["ok"]

    def test_write_failure_is_logged(self):
        recent = RecentSearches(FailingWrites())
        assert recent.add("fireball") == ["fireball"]
        assert recent.list() == []
