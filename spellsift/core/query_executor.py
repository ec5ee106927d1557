"""Query executor for spellsift.

Executes parsed advanced queries in two ways: by evaluating them directly
against spell records, and by translating them into a Filter State patch so
the visible filter controls reflect the committed query.
"""

from __future__ import annotations

from typing import Callable, Iterable, Optional

from spellsift.core.fields import FieldRegistry
from spellsift.core.ranges import record_range_feet
from spellsift.models.query import Conjunction, FieldId, FieldLeaf, RangeBounds
from spellsift.models.spell import SpellRecord

# Filter State attribute written for each field.
STATE_ATTRIBUTES: dict[FieldId, str] = {
    FieldId.LEVEL: "level",
    FieldId.SCHOOL: "school",
    FieldId.CASTING_TIME: "casting_time",
    FieldId.DAMAGE_TYPE: "damage_type",
    FieldId.CONDITION: "condition",
    FieldId.REQUIRES_SAVE: "requires_save",
    FieldId.CONCENTRATION: "concentration",
    FieldId.MATERIAL_COMPONENTS: "material_components",
    FieldId.PREPARED: "prepared",
    FieldId.RITUAL: "ritual",
    FieldId.FAVORITED: "favorited",
}


def activation_key(spell: SpellRecord, registry: FieldRegistry) -> Optional[str]:
    """Normalized ``type:value`` casting time of a record, or None."""
    if spell.activation is None or not spell.activation.type:
        return None
    activation_type = registry.normalize_record_value(FieldId.CASTING_TIME, spell.activation.type)
    return f"{activation_type}:{spell.activation.value or 1}"


class QueryExecutor:
    """Evaluates Conjunction queries.

    Example:
        executor = QueryExecutor()
        result = QueryParser().parse("^level:3")
        visible = executor.filter(result.query, spells)
        patch = executor.apply_to_state(result.query)
    """

    def __init__(self, registry: Optional[FieldRegistry] = None):
        self.registry = registry or FieldRegistry()
        self._evaluators: dict[FieldId, Callable[[FieldLeaf, SpellRecord], bool]] = {
            FieldId.LEVEL: self._eval_level,
            FieldId.SCHOOL: self._eval_school,
            FieldId.CASTING_TIME: self._eval_casting_time,
            FieldId.RANGE: self._eval_range,
            FieldId.DAMAGE_TYPE: self._eval_damage_type,
            FieldId.CONDITION: self._eval_condition,
            FieldId.REQUIRES_SAVE: lambda leaf, spell: spell.requires_save == leaf.value,
            FieldId.CONCENTRATION: lambda leaf, spell: spell.requires_concentration == leaf.value,
            FieldId.MATERIAL_COMPONENTS: self._eval_materials,
            FieldId.PREPARED: lambda leaf, spell: spell.is_prepared == leaf.value,
            FieldId.RITUAL: lambda leaf, spell: spell.is_ritual == leaf.value,
            FieldId.FAVORITED: lambda leaf, spell: spell.is_favorited == leaf.value,
        }

    def apply_to_state(self, query: Conjunction) -> dict:
        """Translate a query into a Filter State patch.

        The name filter is never part of the patch.

        Args:
            query: Parsed query.

        Returns:
            Mapping of FilterState attribute names to values. Later leaves on
            the same field override earlier ones.
        """
        patch: dict = {}
        for leaf in query.children:
            if leaf.field is FieldId.RANGE:
                bounds: RangeBounds = leaf.value
                patch["min_range"] = bounds.min
                patch["max_range"] = bounds.max
            elif leaf.field is FieldId.LEVEL:
                patch["level"] = str(leaf.value)
            else:
                # A false checkbox leaf unchecks the control, which does not
                # exclude records; evaluate() stays the source of truth.
                patch[STATE_ATTRIBUTES[leaf.field]] = leaf.value
        return patch

    def evaluate(self, query: Conjunction, spell: SpellRecord) -> bool:
        """Whether ``spell`` satisfies every leaf of ``query``.

        Args:
            query: Parsed query; an empty conjunction matches everything.
            spell: Record to test.

        Returns:
            True if all leaves pass. Stops at the first failing leaf.
        """
        for leaf in query.children:
            if not self.evaluate_leaf(leaf, spell):
                return False
        return True

    def evaluate_leaf(self, leaf: FieldLeaf, spell: SpellRecord) -> bool:
        return self._evaluators[leaf.field](leaf, spell)

    def filter(self, query: Conjunction, spells: Iterable[SpellRecord]) -> list[SpellRecord]:
        """Keep records matching ``query``, preserving order."""
        return [spell for spell in spells if self.evaluate(query, spell)]

    def _eval_level(self, leaf: FieldLeaf, spell: SpellRecord) -> bool:
        return spell.level is not None and spell.level == leaf.value

    def _eval_school(self, leaf: FieldLeaf, spell: SpellRecord) -> bool:
        return self.registry.normalize_record_value(FieldId.SCHOOL, spell.school) == leaf.value

    def _eval_casting_time(self, leaf: FieldLeaf, spell: SpellRecord) -> bool:
        return activation_key(spell, self.registry) == leaf.value

    def _eval_range(self, leaf: FieldLeaf, spell: SpellRecord) -> bool:
        feet = record_range_feet(spell)
        if feet is None:
            return True
        return leaf.value.contains(feet)

    def _eval_damage_type(self, leaf: FieldLeaf, spell: SpellRecord) -> bool:
        return leaf.value in {
            self.registry.normalize_record_value(FieldId.DAMAGE_TYPE, d) for d in spell.damage_types
        }

    def _eval_condition(self, leaf: FieldLeaf, spell: SpellRecord) -> bool:
        return leaf.value in {
            self.registry.normalize_record_value(FieldId.CONDITION, c) for c in spell.conditions
        }

    def _eval_materials(self, leaf: FieldLeaf, spell: SpellRecord) -> bool:
        return spell.has_consumed_materials == (leaf.value == "consumed")
