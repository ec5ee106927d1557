"""Filter pipeline for spell corpora.

This module provides the core filtering logic that runs on every commit: it
narrows a corpus by the current Filter State (and, in advanced mode, the
committed query) through a fixed sequence of stages, then groups the
survivors by level.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional

from spellsift.core.aggregation import LevelStats, aggregate_levels
from spellsift.core.fields import FieldRegistry
from spellsift.core.name_match import NameMatcher
from spellsift.core.query_executor import QueryExecutor, activation_key
from spellsift.core.ranges import record_range_feet
from spellsift.models.filter_state import ALL_SOURCES, FilterState
from spellsift.models.query import Conjunction, FieldId
from spellsift.models.spell import SpellRecord
from spellsift.utils.log import get_logger

logger = get_logger("pipeline")

SelectedPredicate = Callable[[SpellRecord, set], bool]


def default_is_in_selected_list(spell: SpellRecord, selected_ids: set) -> bool:
    """Selected-list membership by record id."""
    return spell.id in selected_ids


@dataclass
class FilterResult:
    """Output of one pipeline pass.

    Attributes:
        spells: Visible records in corpus order.
        total_filtered: Number of visible records.
        by_level: Per-level statistics keyed by level string.
        healed: Source filters that matched nothing and were ignored for this
            pass (``"source"``, ``"spellSource"``). Callers may reset the
            corresponding controls to ``all``.
    """

    spells: list[SpellRecord]
    total_filtered: int
    by_level: dict[str, LevelStats] = field(default_factory=dict)
    healed: list[str] = field(default_factory=list)

    def state_after_healing(self, state: FilterState) -> FilterState:
        """Return ``state`` with healed source filters reset to ``all``."""
        patch = {}
        if "source" in self.healed:
            patch["source"] = ALL_SOURCES
        if "spellSource" in self.healed:
            patch["spell_source"] = ALL_SOURCES
        return state.merged(patch) if patch else state


class FilterPipeline:
    """Applies Filter State, name search and advanced queries to spells.

    Stages run in a fixed order and each one only narrows the set:

    1. exclude records already in the selected list
    2. source (self-healing)
    3. spell source (self-healing)
    4. name / advanced query, level, school, casting time
    5. range
    6. damage types and conditions
    7. saves, concentration, materials, favorited, ritual, prepared,
       prepared-by-party

    The pipeline never mutates its inputs.
    """

    def __init__(
        self,
        registry: Optional[FieldRegistry] = None,
        executor: Optional[QueryExecutor] = None,
        matcher: Optional[NameMatcher] = None,
    ):
        self.registry = registry or FieldRegistry()
        self.executor = executor or QueryExecutor(self.registry)
        self.matcher = matcher or NameMatcher()

    def run(
        self,
        spells: Iterable[SpellRecord],
        state: Optional[FilterState] = None,
        query: Optional[Conjunction] = None,
        selected_ids: Optional[set] = None,
        is_in_selected_list: Optional[SelectedPredicate] = None,
    ) -> FilterResult:
        """Run every stage and group the result.

        Args:
            spells: The corpus.
            state: Filter control values; defaults to an empty state.
            query: Committed advanced query. When given it replaces the name
                search in stage 4.
            selected_ids: Ids on the selected side of a list editor; records
                in it are excluded. None disables the stage.
            is_in_selected_list: Membership predicate for ``selected_ids``;
                defaults to matching by record id.

        Returns:
            FilterResult with visible spells and per-level statistics.
        """
        state = state or FilterState()
        remaining = list(spells)
        healed: list[str] = []
        logger.debug("Filtering %d spells", len(remaining))

        if selected_ids is not None:
            predicate = is_in_selected_list or default_is_in_selected_list
            remaining = [s for s in remaining if not predicate(s, selected_ids)]

        remaining = self._filter_by_source(remaining, state, healed)
        remaining = self._filter_by_spell_source(remaining, state, healed)
        remaining = self._filter_by_basic_properties(remaining, state, query)
        remaining = self._filter_by_range(remaining, state)
        remaining = self._filter_by_damage_and_conditions(remaining, state)
        remaining = self._filter_by_special_properties(remaining, state)

        logger.debug("Pipeline kept %d spells", len(remaining))
        return FilterResult(
            spells=remaining,
            total_filtered=len(remaining),
            by_level=aggregate_levels(remaining),
            healed=healed,
        )

    def matches(self, spell: SpellRecord, state: FilterState, query: Optional[Conjunction] = None) -> bool:
        """Whether a single record survives the pipeline."""
        return bool(self.run([spell], state, query).spells)

    def _filter_by_source(self, spells: list[SpellRecord], state: FilterState, healed: list[str]) -> list[SpellRecord]:
        source = state.source.strip()
        if not source or source == ALL_SOURCES:
            return spells
        needle = source.lower()
        filtered = [
            s for s in spells
            if needle in (s.pack_id or "").lower() or needle in (s.pack_name or "").lower()
        ]
        if not filtered and spells:
            logger.warning("Source filter %r matched nothing; ignoring it", source)
            healed.append("source")
            return spells
        return filtered

    def _filter_by_spell_source(self, spells: list[SpellRecord], state: FilterState, healed: list[str]) -> list[SpellRecord]:
        spell_source = state.spell_source.strip()
        if not spell_source or spell_source == ALL_SOURCES:
            return spells
        filtered = [s for s in spells if s.spell_source_id == spell_source]
        if not filtered and spells:
            logger.warning("Spell source filter %r matched nothing; ignoring it", spell_source)
            healed.append("spellSource")
            return spells
        return filtered

    def _filter_by_basic_properties(
        self,
        spells: list[SpellRecord],
        state: FilterState,
        query: Optional[Conjunction],
    ) -> list[SpellRecord]:
        filtered = spells
        if query is not None:
            filtered = self.executor.filter(query, filtered)
        elif state.name.strip():
            filtered = self.matcher.filter(state.name, filtered)

        level = state.level.strip()
        if level:
            filtered = [s for s in filtered if s.level is not None and str(s.level) == level]

        if state.school:
            school = self.registry.normalize_record_value(FieldId.SCHOOL, state.school)
            filtered = [
                s for s in filtered
                if self.registry.normalize_record_value(FieldId.SCHOOL, s.school) == school
            ]

        if state.casting_time:
            wanted = state.casting_time if ":" in state.casting_time else f"{state.casting_time}:1"
            filtered = [s for s in filtered if activation_key(s, self.registry) == wanted]

        return filtered

    def _filter_by_range(self, spells: list[SpellRecord], state: FilterState) -> list[SpellRecord]:
        if state.min_range is None and state.max_range is None:
            return spells
        low = state.min_range or 0
        high = state.max_range
        filtered = []
        for spell in spells:
            feet = record_range_feet(spell)
            if feet is None or (feet >= low and (high is None or feet <= high)):
                filtered.append(spell)
        return filtered

    def _filter_by_damage_and_conditions(self, spells: list[SpellRecord], state: FilterState) -> list[SpellRecord]:
        filtered = spells
        if state.damage_type:
            damage = self.registry.normalize_record_value(FieldId.DAMAGE_TYPE, state.damage_type)
            filtered = [
                s for s in filtered
                if damage in {self.registry.normalize_record_value(FieldId.DAMAGE_TYPE, d) for d in s.damage_types}
            ]
        if state.condition:
            condition = self.registry.normalize_record_value(FieldId.CONDITION, state.condition)
            filtered = [
                s for s in filtered
                if condition in {self.registry.normalize_record_value(FieldId.CONDITION, c) for c in s.conditions}
            ]
        return filtered

    def _filter_by_special_properties(self, spells: list[SpellRecord], state: FilterState) -> list[SpellRecord]:
        filtered = spells
        if state.requires_save is not None:
            filtered = [s for s in filtered if s.requires_save == state.requires_save]
        if state.concentration is not None:
            filtered = [s for s in filtered if s.requires_concentration == state.concentration]
        if state.material_components is not None:
            consumed = state.material_components == "consumed"
            filtered = [s for s in filtered if s.has_consumed_materials == consumed]
        if state.favorited:
            filtered = [s for s in filtered if s.is_favorited]
        if state.ritual:
            filtered = [s for s in filtered if s.is_ritual]
        if state.prepared:
            filtered = [s for s in filtered if s.is_prepared]
        if state.prepared_by_party:
            filtered = [s for s in filtered if s.prepared_by_party]
        return filtered
