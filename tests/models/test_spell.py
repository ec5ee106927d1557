"""Tests for the SpellRecord model."""

import pytest
from pydantic import ValidationError

from spellsift.models.spell import NO_SOURCE, Activation, CorpusError, SpellRecord


class TestSpellRecord:
    """Tests for record validation and derived properties."""

    def test_minimal_record(self):
        record = SpellRecord(id="a", name="Light")
        assert record.level is None
        assert record.properties == frozenset()
        assert record.level_key == ""
        assert record.countable

    def test_camel_case_input(self):
        record = SpellRecord.model_validate(
            {
                "id": "a",
                "name": "Fireball",
                "damageTypes": ["Fire"],
                "sourceId": "dnd5e.spells.Item.x",
                "isPrepared": True,
            }
        )
        assert record.damage_types == frozenset({"fire"})
        assert record.pack_id == "dnd5e"
        assert record.is_prepared

    def test_sets_lowercased(self):
        record = SpellRecord(id="a", name="A", properties=["Ritual", " Concentration "], conditions="Prone")
        assert record.properties == frozenset({"ritual", "concentration"})
        assert record.conditions == frozenset({"prone"})
        assert record.is_ritual
        assert record.requires_concentration

    def test_derived_flags(self):
        record = SpellRecord(
            id="a",
            name="Revivify",
            properties=["material-consumed"],
            save={"ability": "con"},
            always_prepared=True,
        )
        assert record.has_consumed_materials
        assert record.requires_save
        assert not record.countable

    def test_save_without_ability(self):
        assert not SpellRecord(id="a", name="A", save={}).requires_save

    def test_spell_source_id(self):
        assert SpellRecord(id="a", name="A").spell_source_id == NO_SOURCE
        assert SpellRecord(id="a", name="A", source_label="PHB").spell_source_id == "PHB"

    def test_frozen(self):
        record = SpellRecord(id="a", name="A")
        with pytest.raises(ValidationError):
            record.name = "B"

    @pytest.mark.parametrize("level", [-1, 10])
    def test_level_bounds(self, level):
        with pytest.raises(ValidationError):
            SpellRecord(id="a", name="A", level=level)

    def test_activation_key(self):
        assert Activation(type="action").key == "action:1"
        assert Activation(type="minute", value=10).key == "minute:10"


class TestFromDict:
    """Tests for SpellRecord.from_dict()."""

    def test_valid(self):
        record = SpellRecord.from_dict({"id": "a", "name": "Light", "level": 0})
        assert record.level_key == "0"

    def test_missing_name(self):
        with pytest.raises(CorpusError) as exc_info:
            SpellRecord.from_dict({"id": "a"})
        assert exc_info.value.record_id == "a"
        assert "name" in exc_info.value.missing

    def test_blank_id(self):
        with pytest.raises(CorpusError) as exc_info:
            SpellRecord.from_dict({"id": "  ", "name": "Light"})
        assert "id" in exc_info.value.missing

    def test_not_a_mapping(self):
        with pytest.raises(CorpusError):
            SpellRecord.from_dict(["id", "name"])
