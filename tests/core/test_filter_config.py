"""Tests for the FilterConfigStore: loading, migration and repair."""

import pytest

from spellsift.core.filter_config import (
    ConfigIssue,
    FilterConfigStore,
    assign_orders,
    is_newer_version,
    parse_version,
)
from spellsift.core.settings import FILTER_CONFIGURATION, MemorySettings, SettingsError
from spellsift.models.filter_def import DEFAULT_FILTER_CONFIG, DEFAULT_FILTER_CONFIG_VERSION, FilterDescriptor


def default_ids():
    return [d.id for d in DEFAULT_FILTER_CONFIG]


class BrokenSettings:
    """Settings backend whose reads and writes fail."""

    def get(self, key, default=None):
        raise SettingsError("disk on fire")

    def set(self, key, value):
        raise SettingsError("disk on fire")


class TestVersions:
    """Tests for version helpers."""

    def test_parse_version(self):
        assert parse_version("0.10.0") == (0, 10, 0)
        assert parse_version("1.2.3-beta") == (1, 2, 3)
        assert parse_version(None) == (0,)

    def test_numeric_comparison(self):
        assert is_newer_version("0.10.0", "0.9.0")
        assert not is_newer_version("0.10.0", "0.10.0")
        assert not is_newer_version("0.10.0", "0.11")
        assert is_newer_version("0.10.0", None)


class TestLoad:
    """Tests for load()."""

    def test_nothing_stored(self):
        store = FilterConfigStore(MemorySettings())
        filters = store.load()
        assert [d.id for d in filters] == default_ids()
        assert [d.order for d in filters] == [d.order for d in DEFAULT_FILTER_CONFIG]
        assert store.issues == []

    def test_migration_inserts_missing_defaults(self):
        """An older config gains missing filters and keeps unknown ids last."""
        settings = MemorySettings({
            FILTER_CONFIGURATION: {
                "version": "0.9.0",
                "filters": [
                    {"id": "level", "type": "dropdown", "order": 20, "enabled": False},
                    {"id": "homebrewTag", "type": "checkbox", "order": 15},
                ],
            }
        })
        store = FilterConfigStore(settings)
        filters = store.load()
        ids = [d.id for d in filters]

        assert set(default_ids()) <= set(ids)
        assert filters[0].id == "name"
        assert filters[0].order == 10
        assert ids[-1] == "homebrewTag"
        assert filters[-1].order >= 1000
        assert not filters[-1].sortable
        level = next(d for d in filters if d.id == "level")
        assert level.enabled is False
        assert level.search_aliases == ("LEVEL", "LVL")
        assert settings.get(FILTER_CONFIGURATION)["version"] == DEFAULT_FILTER_CONFIG_VERSION

    def test_current_version_keeps_user_order(self):
        settings = MemorySettings()
        store = FilterConfigStore(settings)
        store.move("range", 0)
        filters = FilterConfigStore(settings).load()
        assert [d.id for d in filters][:3] == ["name", "range", "level"]

    @pytest.mark.parametrize(
        "stored",
        [
            [{"id": "level", "type": "dropdown"}],
            {"filters": [{"id": "level", "type": "dropdown"}]},
        ],
    )
    def test_legacy_shape_restores_defaults(self, stored):
        settings = MemorySettings({FILTER_CONFIGURATION: stored})
        store = FilterConfigStore(settings)
        filters = store.load()
        assert [d.id for d in filters] == default_ids()
        assert store.issues == [ConfigIssue.LEGACY_SHAPE]
        assert settings.get(FILTER_CONFIGURATION)["version"] == DEFAULT_FILTER_CONFIG_VERSION

    @pytest.mark.parametrize("stored", ["garbage", 42, {"version": "0.10.0", "filters": "nope"}])
    def test_corrupt_restores_defaults(self, stored):
        store = FilterConfigStore(MemorySettings({FILTER_CONFIGURATION: stored}))
        filters = store.load()
        assert [d.id for d in filters] == default_ids()
        assert ConfigIssue.CORRUPT in store.issues

    def test_malformed_entries_dropped(self):
        settings = MemorySettings({
            FILTER_CONFIGURATION: {
                "version": DEFAULT_FILTER_CONFIG_VERSION,
                "filters": ["level", {"order": 3}, {"id": "custom", "type": "slider"}],
            }
        })
        store = FilterConfigStore(settings)
        filters = store.load()
        assert [d.id for d in filters] == default_ids()
        assert store.issues.count(ConfigIssue.CORRUPT) == 3

    def test_unreadable_settings(self):
        store = FilterConfigStore(BrokenSettings())
        filters = store.load()
        assert [d.id for d in filters] == default_ids()
        assert store.issues == [ConfigIssue.CORRUPT]

    def test_save_of_load_is_stable(self):
        settings = MemorySettings({
            FILTER_CONFIGURATION: {
                "version": "0.9.0",
                "filters": [
                    {"id": "school", "type": "dropdown", "order": 20},
                    {"id": "level", "type": "dropdown", "order": 30},
                    {"id": "custom", "type": "checkbox", "order": 7},
                ],
            }
        })
        store = FilterConfigStore(settings)
        loaded = store.load()
        assert store.save(loaded) == loaded
        assert store.load() == loaded

    def test_reset_then_load_returns_defaults(self):
        settings = MemorySettings()
        store = FilterConfigStore(settings)
        store.set_enabled("school", False)
        store.reset()
        assert store.load() == list(DEFAULT_FILTER_CONFIG)
        assert settings.get(FILTER_CONFIGURATION)["version"] == DEFAULT_FILTER_CONFIG_VERSION


class TestIntegrity:
    """Tests for ensure_integrity() and assign_orders()."""

    def test_idempotent(self):
        store = FilterConfigStore(MemorySettings())
        messy = [
            FilterDescriptor(id="ritual", type="checkbox", order=5),
            FilterDescriptor(id="school", type="dropdown", order=90, sortable=False),
            FilterDescriptor(id="school", type="dropdown", order=1),
            FilterDescriptor(id="extra", type="checkbox", order=2, sortable=True),
        ]
        once = store.ensure_integrity(messy)
        assert store.ensure_integrity(once) == once

    def test_duplicates_first_wins(self):
        store = FilterConfigStore(MemorySettings())
        filters = store.ensure_integrity([
            FilterDescriptor(id="school", type="dropdown", order=30, enabled=False),
            FilterDescriptor(id="school", type="dropdown", order=30, enabled=True),
        ])
        schools = [d for d in filters if d.id == "school"]
        assert len(schools) == 1
        assert schools[0].enabled is False

    def test_sortable_normalized_for_known_ids(self):
        store = FilterConfigStore(MemorySettings())
        filters = store.ensure_integrity([
            FilterDescriptor(id="school", type="dropdown", order=30, sortable=False),
            FilterDescriptor(id="prepared", type="checkbox", order=5, sortable=True),
        ])
        by_id = {d.id: d for d in filters}
        assert by_id["school"].sortable
        assert not by_id["prepared"].sortable
        assert by_id["prepared"].order == 1000

    def test_assign_orders_layout(self):
        filters = assign_orders([
            FilterDescriptor(id="custom", type="checkbox", sortable=False),
            FilterDescriptor(id="ritual", type="checkbox", sortable=False),
            FilterDescriptor(id="range", type="range"),
            FilterDescriptor(id="prepared", type="checkbox", sortable=False),
            FilterDescriptor(id="name", type="search", sortable=False),
            FilterDescriptor(id="level", type="dropdown"),
        ])
        assert [(d.id, d.order) for d in filters] == [
            ("name", 10),
            ("range", 20),
            ("level", 30),
            ("prepared", 1000),
            ("ritual", 1010),
            ("custom", 1020),
        ]


class TestEditing:
    """Tests for set_enabled(), move() and enabled_filters()."""

    def test_set_enabled(self):
        store = FilterConfigStore(MemorySettings())
        store.set_enabled("school", False)
        assert store.get("school").enabled is False
        assert "school" not in [d.id for d in store.enabled_filters()]

    def test_set_enabled_unknown(self):
        with pytest.raises(KeyError):
            FilterConfigStore(MemorySettings()).set_enabled("nope", True)

    def test_move_within_sortable_block(self):
        store = FilterConfigStore(MemorySettings())
        filters = store.move("favorited", 0)
        ids = [d.id for d in filters]
        assert ids[:2] == ["name", "favorited"]
        assert ids[-2:] == ["prepared", "ritual"]

    def test_move_fixed_filter_rejected(self):
        with pytest.raises(ValueError):
            FilterConfigStore(MemorySettings()).move("prepared", 0)

    def test_get_unknown(self):
        assert FilterConfigStore(MemorySettings()).get("nope") is None

    def test_write_failure_is_logged(self):
        """Failed writes do not raise."""
        store = FilterConfigStore(BrokenSettings())
        assert [d.id for d in store.reset()] == default_ids()
