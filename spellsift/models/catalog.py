"""Enum catalogs that define the value domains of the searchable fields.

The host game system supplies its spell-school, damage-type, condition,
activation-type, ability and range-unit lists. ``DEFAULT_CATALOGS`` mirrors the
5e SRD so the core works without a host; source plugins may override any list
through ``catalogs_from_dict``.
"""

from __future__ import annotations

from typing import Union

from pydantic import BaseModel, ConfigDict, Field


class EnumMember(BaseModel):
    """One member of an enum catalog.

    Attributes:
        id: Canonical id stored on records and in filter state (``evo``).
        label: Display label (``Evocation``).
        aliases: Extra surface spellings accepted in queries.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    label: str = ""
    aliases: tuple[str, ...] = ()

    def spellings(self) -> list[str]:
        """All accepted spellings, lowercased, id first."""
        seen: list[str] = []
        for s in (self.id, self.label, *self.aliases):
            low = s.strip().lower()
            if low and low not in seen:
                seen.append(low)
        return seen


def _members(*rows: tuple) -> tuple[EnumMember, ...]:
    return tuple(
        EnumMember(id=row[0], label=row[1], aliases=tuple(row[2:])) for row in rows
    )


DEFAULT_SPELL_LEVELS = _members(
    ("0", "Cantrip", "cantrip"),
    ("1", "1st Level"),
    ("2", "2nd Level"),
    ("3", "3rd Level"),
    ("4", "4th Level"),
    ("5", "5th Level"),
    ("6", "6th Level"),
    ("7", "7th Level"),
    ("8", "8th Level"),
    ("9", "9th Level"),
)

DEFAULT_SCHOOLS = _members(
    ("abj", "Abjuration"),
    ("con", "Conjuration"),
    ("div", "Divination"),
    ("enc", "Enchantment"),
    ("evo", "Evocation"),
    ("ill", "Illusion"),
    ("nec", "Necromancy"),
    ("trs", "Transmutation", "trans"),
)

DEFAULT_DAMAGE_TYPES = _members(
    ("acid", "Acid"),
    ("bludgeoning", "Bludgeoning"),
    ("cold", "Cold"),
    ("fire", "Fire"),
    ("force", "Force"),
    ("lightning", "Lightning"),
    ("necrotic", "Necrotic"),
    ("piercing", "Piercing"),
    ("poison", "Poison"),
    ("psychic", "Psychic"),
    ("radiant", "Radiant"),
    ("slashing", "Slashing"),
    ("thunder", "Thunder"),
    ("healing", "Healing"),
)

DEFAULT_CONDITIONS = _members(
    ("blinded", "Blinded"),
    ("charmed", "Charmed"),
    ("deafened", "Deafened"),
    ("exhaustion", "Exhaustion"),
    ("frightened", "Frightened"),
    ("grappled", "Grappled"),
    ("incapacitated", "Incapacitated"),
    ("invisible", "Invisible"),
    ("paralyzed", "Paralyzed"),
    ("petrified", "Petrified"),
    ("poisoned", "Poisoned"),
    ("prone", "Prone"),
    ("restrained", "Restrained"),
    ("stunned", "Stunned"),
    ("unconscious", "Unconscious"),
)

DEFAULT_ACTIVATION_TYPES = _members(
    ("action", "Action"),
    ("bonus", "Bonus Action", "bonusaction"),
    ("reaction", "Reaction"),
    ("minute", "Minute", "minutes"),
    ("hour", "Hour", "hours"),
    ("day", "Day", "days"),
    ("special", "Special"),
)

DEFAULT_ABILITIES = _members(
    ("str", "Strength"),
    ("dex", "Dexterity"),
    ("con", "Constitution"),
    ("int", "Intelligence"),
    ("wis", "Wisdom"),
    ("cha", "Charisma"),
)

DEFAULT_RANGE_UNITS = _members(
    ("self", "Self"),
    ("touch", "Touch"),
    ("ft", "Feet"),
    ("mi", "Miles"),
    ("m", "Meters"),
    ("km", "Kilometers"),
    ("spec", "Special"),
)


class Catalogs(BaseModel):
    """Bundle of enum catalogs consumed by the field registry.

    Member order is the natural display order used for suggestions.
    """

    model_config = ConfigDict(frozen=True)

    spell_levels: tuple[EnumMember, ...] = Field(default=DEFAULT_SPELL_LEVELS)
    schools: tuple[EnumMember, ...] = Field(default=DEFAULT_SCHOOLS)
    damage_types: tuple[EnumMember, ...] = Field(default=DEFAULT_DAMAGE_TYPES)
    conditions: tuple[EnumMember, ...] = Field(default=DEFAULT_CONDITIONS)
    activation_types: tuple[EnumMember, ...] = Field(default=DEFAULT_ACTIVATION_TYPES)
    abilities: tuple[EnumMember, ...] = Field(default=DEFAULT_ABILITIES)
    range_units: tuple[EnumMember, ...] = Field(default=DEFAULT_RANGE_UNITS)


DEFAULT_CATALOGS = Catalogs()


def members_from_data(data: Union[list, dict]) -> tuple[EnumMember, ...]:
    """Convert host catalog data to EnumMember objects.

    Accepts either a list of member dictionaries or a mapping of id to label
    (the shape most game systems use for their config tables).

    Args:
        data: List of ``{"id", "label", "aliases"}`` dicts or ``{id: label}``.

    Returns:
        Tuple of EnumMember objects in input order.
    """
    if isinstance(data, dict):
        return tuple(
            EnumMember(id=str(key), label=label if isinstance(label, str) else str(key))
            for key, label in data.items()
        )
    return tuple(EnumMember(**d) for d in data)


def catalogs_from_dict(data: dict | None, base: Catalogs = DEFAULT_CATALOGS) -> Catalogs:
    """Overlay host-supplied catalogs on top of ``base``.

    Unrecognized keys are ignored; missing keys keep the base list.

    Args:
        data: Mapping of catalog name (``schools``, ``damage_types``, ...) to
            catalog data accepted by ``members_from_data``.
        base: Catalogs to start from.

    Returns:
        New Catalogs instance.
    """
    if not data:
        return base
    updates = {
        key: members_from_data(value)
        for key, value in data.items()
        if key in Catalogs.model_fields
    }
    return base.model_copy(update=updates)
