"""Tests for filter descriptors and catalogs."""

import pytest
from pydantic import ValidationError

from spellsift.models.catalog import DEFAULT_CATALOGS, EnumMember, catalogs_from_dict, members_from_data
from spellsift.models.filter_def import (
    DEFAULT_FILTER_CONFIG,
    FIXED_FILTERS,
    FilterDescriptor,
    default_filters,
    descriptors_from_dicts,
)


class TestFilterDescriptor:
    """Tests for FilterDescriptor."""

    def test_aliases_upper_cased(self):
        descriptor = FilterDescriptor(id="level", type="dropdown", search_aliases=["lvl", " level "])
        assert descriptor.search_aliases == ("LVL", "LEVEL")

    def test_invalid_type(self):
        with pytest.raises(ValidationError):
            FilterDescriptor(id="level", type="slider")

    def test_blank_id(self):
        with pytest.raises(ValidationError):
            FilterDescriptor(id=" ", type="dropdown")

    def test_to_dict_is_camel_case(self):
        data = FilterDescriptor(id="range", type="range", order=50, search_aliases=["RANGE"]).to_dict()
        assert data["searchAliases"] == ["RANGE"]
        assert data["order"] == 50

    def test_round_trip_from_dicts(self):
        dicts = [d.to_dict() for d in DEFAULT_FILTER_CONFIG]
        assert descriptors_from_dicts(dicts) == list(DEFAULT_FILTER_CONFIG)


class TestDefaults:
    """Tests for the built-in filter configuration."""

    def test_default_order(self):
        ids = [d.id for d in DEFAULT_FILTER_CONFIG]
        assert ids[0] == "name"
        assert ids[-2:] == ["prepared", "ritual"]
        orders = [d.order for d in DEFAULT_FILTER_CONFIG]
        assert orders == sorted(orders)

    def test_fixed_filters_not_sortable(self):
        for descriptor in DEFAULT_FILTER_CONFIG:
            if descriptor.id in FIXED_FILTERS:
                assert not descriptor.sortable

    def test_favorited_is_sortable(self):
        favorited = next(d for d in DEFAULT_FILTER_CONFIG if d.id == "favorited")
        assert favorited.sortable
        assert favorited.order == 110

    def test_default_filters_are_copies(self):
        filters = default_filters()
        filters[1].enabled = False
        assert DEFAULT_FILTER_CONFIG[1].enabled


class TestCatalogs:
    """Tests for enum catalogs."""

    def test_spellings(self):
        member = EnumMember(id="trs", label="Transmutation", aliases=("trans", "TRS"))
        assert member.spellings() == ["trs", "transmutation", "trans"]

    def test_members_from_mapping(self):
        members = members_from_data({"evo": "Evocation", "abj": "Abjuration"})
        assert [m.id for m in members] == ["evo", "abj"]
        assert members[0].label == "Evocation"

    def test_members_from_list(self):
        members = members_from_data([{"id": "fire", "label": "Fire", "aliases": ["flame"]}])
        assert members[0].aliases == ("flame",)

    def test_overlay_keeps_unmentioned_lists(self):
        catalogs = catalogs_from_dict({"conditions": {"dazed": "Dazed"}, "unknown": {}})
        assert [m.id for m in catalogs.conditions] == ["dazed"]
        assert catalogs.schools == DEFAULT_CATALOGS.schools

    def test_overlay_none_returns_base(self):
        assert catalogs_from_dict(None) is DEFAULT_CATALOGS
