"""Row metadata projection for spell lists.

Each spell row shows a short subtitle such as::

    3rd Level • Evocation • 1 Action • 150 ft • Fire • Dexterity save

Which elements appear is a user setting, carried as a DisplayFlags bitset.
``build_metadata`` is a pure projection of a record through that bitset;
``render_metadata`` resolves localization keys and joins the parts.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Flag
from typing import Optional

from spellsift.core.i18n import Localizer
from spellsift.core.ranges import format_range
from spellsift.models.catalog import DEFAULT_CATALOGS, Catalogs, EnumMember
from spellsift.models.spell import SpellRecord

SEPARATOR = " • "


class DisplayFlags(Flag):
    """Row metadata elements that can be shown."""

    NONE = 0
    SPELL_LEVEL = 1
    SCHOOL = 2
    CASTING_TIME = 4
    RANGE = 8
    DAMAGE_TYPES = 16
    CONDITIONS = 32
    SAVE = 64
    CONCENTRATION = 128
    MATERIAL_COMPONENTS = 256
    DEFAULT = 511

    @classmethod
    def elements(cls) -> dict[str, "DisplayFlags"]:
        """Single-element flags keyed by their config name, in display order."""
        return dict(_ELEMENTS)

    @classmethod
    def from_value(cls, value: object) -> "DisplayFlags":
        """Decode a stored setting (int bitset or list of names).

        Unrecognized input yields DEFAULT.
        """
        if isinstance(value, bool):
            return cls.DEFAULT
        if isinstance(value, int):
            return cls(value & cls.DEFAULT.value)
        if isinstance(value, (list, tuple)):
            flags = cls.NONE
            for name in value:
                member = _ELEMENTS.get(str(name))
                if member is not None:
                    flags |= member
            return flags
        return cls.DEFAULT


_ELEMENTS: dict[str, DisplayFlags] = {
    "spell_level": DisplayFlags.SPELL_LEVEL,
    "school": DisplayFlags.SCHOOL,
    "casting_time": DisplayFlags.CASTING_TIME,
    "range": DisplayFlags.RANGE,
    "damage_types": DisplayFlags.DAMAGE_TYPES,
    "conditions": DisplayFlags.CONDITIONS,
    "save": DisplayFlags.SAVE,
    "concentration": DisplayFlags.CONCENTRATION,
    "material_components": DisplayFlags.MATERIAL_COMPONENTS,
}


@dataclass(frozen=True)
class MetadataPart:
    """One subtitle element.

    Attributes:
        element: Config name of the element (``school``, ``range``, ...).
        text: Literal text, or a localization key when ``localize`` is set.
        params: Format parameters for localized text.
        localize: Whether ``text`` is a localization key.
    """

    element: str
    text: str
    params: tuple = ()
    localize: bool = False


def _label(members: tuple[EnumMember, ...], member_id: str) -> str:
    wanted = member_id.strip().lower()
    for member in members:
        if wanted in member.spellings():
            return member.label or member.id
    return member_id


def _activation_text(record: SpellRecord, catalogs: Catalogs) -> str:
    if record.activation is None or not record.activation.type:
        return ""
    label = _label(catalogs.activation_types, record.activation.type)
    value = record.activation.value or 1
    return label if value == 1 else f"{value} {label}s"


def build_metadata(
    record: SpellRecord,
    flags: DisplayFlags = DisplayFlags.DEFAULT,
    catalogs: Catalogs = DEFAULT_CATALOGS,
    metric: bool = False,
) -> list[MetadataPart]:
    """Project a record onto the visible subtitle elements.

    Elements with nothing to show are skipped.

    Args:
        record: Spell to describe.
        flags: Enabled elements.
        catalogs: Catalogs supplying display labels.
        metric: Render distances in meters.

    Returns:
        Parts in fixed display order.
    """
    parts: list[MetadataPart] = []

    if DisplayFlags.SPELL_LEVEL in flags and record.level is not None:
        if record.level == 0:
            parts.append(MetadataPart("spell_level", "DND5E.SpellCantrip", localize=True))
        else:
            parts.append(MetadataPart("spell_level", _label(catalogs.spell_levels, str(record.level))))

    if DisplayFlags.SCHOOL in flags and record.school:
        parts.append(MetadataPart("school", _label(catalogs.schools, record.school)))

    if DisplayFlags.CASTING_TIME in flags:
        text = _activation_text(record, catalogs)
        if text:
            parts.append(MetadataPart("casting_time", text))

    if DisplayFlags.RANGE in flags:
        text, is_key = format_range(record.range, metric=metric)
        if text:
            parts.append(MetadataPart("range", text, localize=is_key))

    if DisplayFlags.DAMAGE_TYPES in flags and record.damage_types:
        labels = sorted(_label(catalogs.damage_types, d) for d in record.damage_types)
        parts.append(MetadataPart("damage_types", ", ".join(labels)))

    if DisplayFlags.CONDITIONS in flags and record.conditions:
        labels = sorted(_label(catalogs.conditions, c) for c in record.conditions)
        parts.append(MetadataPart("conditions", ", ".join(labels)))

    if DisplayFlags.SAVE in flags and record.requires_save:
        ability = _label(catalogs.abilities, record.save.ability)
        parts.append(
            MetadataPart("save", "SPELLBOOK.Display.Save", params=(("ability", ability),), localize=True)
        )

    if DisplayFlags.CONCENTRATION in flags and record.requires_concentration:
        parts.append(MetadataPart("concentration", "DND5E.Concentration", localize=True))

    if DisplayFlags.MATERIAL_COMPONENTS in flags and record.has_consumed_materials:
        parts.append(MetadataPart("material_components", "SPELLBOOK.Display.MaterialsConsumed", localize=True))

    return parts


def render_metadata(parts: list[MetadataPart], localizer: Optional[Localizer] = None) -> str:
    """Join parts into the subtitle string."""
    localizer = localizer or Localizer()
    texts = [
        localizer.format(p.text, dict(p.params)) if p.localize else p.text
        for p in parts
    ]
    return SEPARATOR.join(texts)
