"""Range unit conversion for spellsift.

All range comparisons use one scalar, "range-feet". Metric only affects
display. Units that cannot be measured (``self``, ``touch``, ``spec``) map to 0;
unknown units behave as if the record had no range at all.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from spellsift.models.spell import SpellRange, SpellRecord

FEET_PER_MILE = 5280
FEET_PER_METER = Decimal("3.28084")
FEET_PER_KILOMETER = Decimal("3280.84")
METERS_PER_FOOT = Decimal("0.3048")

ZERO_RANGE_UNITS = frozenset({"self", "touch", "spec"})


def _round(value: Decimal) -> int:
    return int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def canonicalize(value: Optional[int], units: Optional[str]) -> Optional[int]:
    """Convert an authored range to range-feet.

    Args:
        value: Authored magnitude; None is treated as 0.
        units: Unit id (``ft``, ``mi``, ``m``, ``km``, ``self``, ...).

    Returns:
        Non-negative range-feet, or None when the unit is absent or unknown.
    """
    if not units:
        return None
    unit = units.strip().lower()
    if unit in ZERO_RANGE_UNITS:
        return 0
    magnitude = max(int(value or 0), 0)
    if unit == "ft":
        return magnitude
    if unit == "mi":
        return magnitude * FEET_PER_MILE
    if unit == "m":
        return _round(magnitude * FEET_PER_METER)
    if unit == "km":
        return _round(magnitude * FEET_PER_KILOMETER)
    return None


def record_range_feet(record: SpellRecord) -> Optional[int]:
    """Canonical range of a record, or None when it carries no range data."""
    spell_range: Optional[SpellRange] = record.range
    if spell_range is None:
        return None
    return canonicalize(spell_range.value, spell_range.units)


def feet_to_meters(feet: int) -> int:
    """Convert range-feet to whole meters for metric display."""
    return _round(Decimal(feet) * METERS_PER_FOOT)


def format_range(spell_range: Optional[SpellRange], metric: bool = False) -> tuple[str, bool]:
    """Render a range for display.

    Args:
        spell_range: Authored range, or None.
        metric: Render distances in meters.

    Returns:
        Tuple of (text, is_localization_key). Unmeasured units come back as
        localization keys; distances as literal text.
    """
    if spell_range is None or not spell_range.units:
        return "", False
    unit = spell_range.units.strip().lower()
    if unit in ZERO_RANGE_UNITS:
        return f"DND5E.Dist{unit.capitalize()}", True
    feet = canonicalize(spell_range.value, unit)
    if feet is None:
        return f"{spell_range.value or ''} {spell_range.units}".strip(), False
    if metric:
        return f"{feet_to_meters(feet)} m", False
    if unit == "mi":
        return f"{spell_range.value} mi", False
    return f"{feet} ft", False
