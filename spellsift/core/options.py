"""Option lists for the filter dropdown controls.

Each dropdown starts with an "All" entry (empty value) followed by the values
for its field. Level and casting-time options are derived from the spells
actually present; the rest come from the enum catalogs.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from spellsift.core.fields import FieldRegistry
from spellsift.core.query_executor import activation_key
from spellsift.models.filter_state import FilterState
from spellsift.models.query import FieldId
from spellsift.models.spell import SpellRecord

LABEL_ALL = "SPELLBOOK.Filters.All"

ACTIVATION_PRIORITY = {
    "action": 1,
    "bonus": 2,
    "reaction": 3,
    "minute": 4,
    "hour": 5,
    "day": 6,
    "legendary": 7,
    "mythic": 8,
    "lair": 9,
    "crew": 10,
    "special": 11,
    "none": 12,
}


@dataclass(frozen=True)
class FilterOption:
    """One ``<option>`` of a dropdown.

    Attributes:
        value: Value written to Filter State when chosen.
        label: Display label or localization key.
        selected: Whether it matches the current Filter State.
    """

    value: str
    label: str
    selected: bool = False


def _state_value(state: FilterState, filter_id: str) -> str:
    if filter_id == "castingTime":
        return state.casting_time
    if filter_id == "damageType":
        return state.damage_type
    if filter_id in ("requiresSave", "concentration"):
        value = state.requires_save if filter_id == "requiresSave" else state.concentration
        return "" if value is None else str(value).lower()
    if filter_id == "materialComponents":
        return state.material_components or ""
    return str(getattr(state, filter_id, "") or "")


def _activation_sort_key(combo: str) -> tuple[int, int]:
    activation_type, _, amount = combo.partition(":")
    return (ACTIVATION_PRIORITY.get(activation_type, 999), int(amount) if amount.isdigit() else 1)


def casting_time_options(spells: Iterable[SpellRecord], registry: FieldRegistry) -> list[tuple[str, str]]:
    """Distinct ``type:value`` casting times present in ``spells``.

    Returns:
        (value, label) pairs, by activation priority then amount.
    """
    combos = {key for key in (activation_key(s, registry) for s in spells) if key}
    labels = {m.id: m.label or m.id for m in registry.catalogs.activation_types}
    result = []
    for combo in sorted(combos, key=_activation_sort_key):
        activation_type, _, amount = combo.partition(":")
        label = labels.get(activation_type, activation_type)
        count = int(amount) if amount.isdigit() else 1
        result.append((combo, label if count == 1 else f"{count} {label}s"))
    return result


def options_for_filter(
    filter_id: str,
    state: FilterState,
    spells: Iterable[SpellRecord] = (),
    registry: Optional[FieldRegistry] = None,
) -> list[FilterOption]:
    """Build the option list for one dropdown filter.

    Args:
        filter_id: Descriptor id (``level``, ``school``, ...).
        state: Current Filter State, used to mark the selection.
        spells: Visible corpus; drives level and casting-time options.
        registry: Field registry supplying enum catalogs.

    Returns:
        Options, "All" first. Non-dropdown ids return only "All".
    """
    registry = registry or FieldRegistry()
    current = _state_value(state, filter_id)
    pairs: list[tuple[str, str]] = []

    if filter_id == "level":
        present = sorted({s.level for s in spells if s.level is not None})
        labels = {m.id: m.label for m in registry.catalogs.spell_levels}
        pairs = [(str(level), labels.get(str(level), str(level))) for level in present]
    elif filter_id == "castingTime":
        pairs = casting_time_options(list(spells), registry)
    elif filter_id in ("school", "damageType", "condition"):
        members = registry.members(FieldId(filter_id))
        pairs = [(m.id, m.label or m.id) for m in members]
        if filter_id != "school":
            pairs.sort(key=lambda pair: pair[1].casefold())
    elif filter_id in ("requiresSave", "concentration"):
        pairs = [("true", "SPELLBOOK.Filters.True"), ("false", "SPELLBOOK.Filters.False")]
    elif filter_id == "materialComponents":
        pairs = [
            ("consumed", "SPELLBOOK.Filters.Materials.Consumed"),
            ("notConsumed", "SPELLBOOK.Filters.Materials.NotConsumed"),
        ]

    options = [FilterOption("", LABEL_ALL, selected=current == "")]
    options.extend(FilterOption(value, label, selected=current == value) for value, label in pairs)
    return options
