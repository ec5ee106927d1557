"""Field registry for advanced queries.

The registry knows every searchable field: which aliases resolve to it, what
kind of values it takes, which enum members are valid and how raw query text
is coerced into typed values. The parser, executor and suggestion engine all
consult the same registry so that spellings accepted in one place are accepted
everywhere.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Sequence, Union

from spellsift.models.catalog import DEFAULT_CATALOGS, Catalogs, EnumMember
from spellsift.models.filter_def import DEFAULT_FILTER_CONFIG, FilterDescriptor
from spellsift.models.query import FieldId, Op, ParseError, ParseErrorKind, RangeBounds, Value


class DomainKind(str, Enum):
    """Value domain of a field."""

    ENUM = "enum"
    BOOL = "bool"
    INT = "int"
    RANGE = "range"


class _Unbounded:
    """Marker for fields whose values cannot be enumerated."""

    def __repr__(self) -> str:
        return "UNBOUNDED"


UNBOUNDED = _Unbounded()

TRUE_SPELLINGS = ("TRUE", "YES")
FALSE_SPELLINGS = ("FALSE", "NO")
BOOL_SPELLINGS = ("TRUE", "FALSE", "YES", "NO")

# Casting times offered as suggestions, in display order.
COMMON_CASTING_TIMES = (
    "action:1",
    "bonus:1",
    "reaction:1",
    "minute:1",
    "minute:10",
    "hour:1",
    "hour:8",
    "hour:24",
    "special:1",
)

MATERIAL_MEMBERS = (
    EnumMember(id="consumed", label="Consumed"),
    EnumMember(id="notConsumed", label="Not Consumed"),
)

_RANGE_SIDE = r"(\d+|\*)"
_RANGE_PATTERN = re.compile(rf"^{_RANGE_SIDE}(?:-{_RANGE_SIDE})?$")


class FieldValueError(ValueError):
    """Raised by ``FieldRegistry.coerce`` when a value does not fit a field.

    Attributes:
        error: The ParseError describing the failure.
    """

    def __init__(self, error: ParseError):
        self.error = error
        super().__init__(error.message)


@dataclass(frozen=True)
class FieldSpec:
    """Static description of one searchable field.

    Attributes:
        field: Canonical field id.
        kind: Value domain kind.
        op: Operator used by leaves of this field.
        aliases: Upper-case aliases, primary alias first.
    """

    field: FieldId
    kind: DomainKind
    op: Op
    aliases: tuple[str, ...]


_FIELD_SHAPES: dict[FieldId, tuple[DomainKind, Op]] = {
    FieldId.LEVEL: (DomainKind.INT, Op.EQ),
    FieldId.SCHOOL: (DomainKind.ENUM, Op.EQ),
    FieldId.CASTING_TIME: (DomainKind.ENUM, Op.EQ),
    FieldId.RANGE: (DomainKind.RANGE, Op.RANGE_IN),
    FieldId.DAMAGE_TYPE: (DomainKind.ENUM, Op.HAS),
    FieldId.CONDITION: (DomainKind.ENUM, Op.HAS),
    FieldId.REQUIRES_SAVE: (DomainKind.BOOL, Op.EQ),
    FieldId.CONCENTRATION: (DomainKind.BOOL, Op.EQ),
    FieldId.MATERIAL_COMPONENTS: (DomainKind.ENUM, Op.EQ),
    FieldId.PREPARED: (DomainKind.BOOL, Op.EQ),
    FieldId.RITUAL: (DomainKind.BOOL, Op.EQ),
    FieldId.FAVORITED: (DomainKind.BOOL, Op.EQ),
}


def _error(kind: ParseErrorKind, message: str, fragment: str = "") -> FieldValueError:
    return FieldValueError(ParseError(kind=kind, message=message, fragment=fragment))


def parse_range(raw: str) -> RangeBounds:
    """Parse ``min-max`` range text.

    Either side may be ``*`` for unbounded; a bare number is a lower bound.

    Args:
        raw: Range text, e.g. ``30-60``, ``*-30``, ``120``.

    Returns:
        RangeBounds in range-feet.

    Raises:
        FieldValueError: INVALID_VALUE for malformed text, INVALID_RANGE when
            min exceeds max.
    """
    text = raw.strip()
    match = _RANGE_PATTERN.match(text)
    if not match:
        raise _error(
            ParseErrorKind.INVALID_VALUE,
            f"Range must look like MIN-MAX with optional '*': {raw!r}",
            raw,
        )
    low_text, high_text = match.group(1), match.group(2)
    low = None if low_text == "*" else int(low_text)
    high = None if high_text in (None, "*") else int(high_text)
    if low is not None and high is not None and low > high:
        raise _error(
            ParseErrorKind.INVALID_RANGE,
            f"Range minimum {low} exceeds maximum {high}",
            raw,
        )
    return RangeBounds(min=low, max=high)


class FieldRegistry:
    """Catalog of searchable fields, their aliases and value domains.

    Example:
        registry = FieldRegistry()
        registry.get_field_id("lvl")           # FieldId.LEVEL
        registry.coerce(FieldId.SCHOOL, "Evocation")  # "evo"
        registry.is_incomplete(FieldId.RITUAL, "y")    # True
    """

    def __init__(
        self,
        catalogs: Catalogs = DEFAULT_CATALOGS,
        descriptors: Sequence[FilterDescriptor] = DEFAULT_FILTER_CONFIG,
    ):
        """Initialize the registry.

        Args:
            catalogs: Enum catalogs defining the value domains.
            descriptors: Filter descriptors whose ``search_aliases`` name the
                fields. Only descriptors with a searchable id contribute.
        """
        self.catalogs = catalogs
        self._specs: dict[FieldId, FieldSpec] = {}
        self._aliases: dict[str, FieldId] = {}

        by_id = {d.id: d for d in descriptors}
        ordered = sorted(
            FieldId,
            key=lambda fid: by_id[fid.value].order if fid.value in by_id else 10_000,
        )
        for field_id in ordered:
            kind, op = _FIELD_SHAPES[field_id]
            descriptor = by_id.get(field_id.value)
            aliases = list(descriptor.search_aliases) if descriptor else []
            canonical = field_id.value.upper()
            if canonical not in aliases:
                aliases.append(canonical)
            self._specs[field_id] = FieldSpec(field_id, kind, op, tuple(aliases))
            for alias in aliases:
                self._aliases.setdefault(alias, field_id)

    def fields(self) -> list[FieldId]:
        """Canonical fields in filter-configuration order."""
        return list(self._specs)

    def spec(self, field: FieldId) -> FieldSpec:
        return self._specs[field]

    def kind(self, field: FieldId) -> DomainKind:
        return self._specs[field].kind

    def op(self, field: FieldId) -> Op:
        return self._specs[field].op

    def primary_alias(self, field: FieldId) -> str:
        """The alias suggested when completing a field name."""
        return self._specs[field].aliases[0]

    def aliases(self) -> list[str]:
        """Every known alias, upper-case."""
        return list(self._aliases)

    def get_field_id(self, alias: str) -> Optional[FieldId]:
        """Resolve an alias case-insensitively.

        Args:
            alias: Alias as typed, e.g. ``lvl`` or ``DMG``.

        Returns:
            Canonical FieldId, or None for unknown aliases.
        """
        if not alias:
            return None
        return self._aliases.get(alias.strip().upper())

    def members(self, field: FieldId) -> tuple[EnumMember, ...]:
        """Enum members backing an enum or int field, in natural order."""
        if field is FieldId.LEVEL:
            return self.catalogs.spell_levels
        if field is FieldId.SCHOOL:
            return self.catalogs.schools
        if field is FieldId.DAMAGE_TYPE:
            return self.catalogs.damage_types
        if field is FieldId.CONDITION:
            return self.catalogs.conditions
        if field is FieldId.CASTING_TIME:
            return self.catalogs.activation_types
        if field is FieldId.MATERIAL_COMPONENTS:
            return MATERIAL_MEMBERS
        return ()

    def valid_values(self, field: FieldId) -> Union[list[str], _Unbounded]:
        """Suggestible values for a field.

        Args:
            field: Canonical field.

        Returns:
            Surface tokens in natural order, or UNBOUNDED for range.
        """
        kind = self.kind(field)
        if kind is DomainKind.RANGE:
            return UNBOUNDED
        if kind is DomainKind.BOOL:
            return list(BOOL_SPELLINGS)
        if field is FieldId.CASTING_TIME:
            known = {m.id for m in self.catalogs.activation_types}
            return [v for v in COMMON_CASTING_TIMES if v.split(":")[0] in known]
        return [m.id for m in self.members(field)]

    def _match_member(self, members: Iterable[EnumMember], raw: str) -> Optional[str]:
        needle = raw.strip().lower()
        if not needle:
            return None
        for member in members:
            if needle in member.spellings():
                return member.id
        return None

    def coerce(self, field: FieldId, raw: str) -> Value:
        """Coerce raw query text to a typed value for ``field``.

        Args:
            field: Canonical field.
            raw: Value text as typed.

        Returns:
            bool, int, enum id string or RangeBounds depending on the field.

        Raises:
            FieldValueError: If the text is not a valid value for the field.
        """
        kind = self.kind(field)
        text = raw.strip()
        fragment = f"{self.primary_alias(field)}:{raw}"

        if kind is DomainKind.BOOL:
            upper = text.upper()
            if upper in TRUE_SPELLINGS:
                return True
            if upper in FALSE_SPELLINGS:
                return False
            raise _error(
                ParseErrorKind.INVALID_BOOLEAN,
                f"{field.value} expects TRUE, FALSE, YES or NO, got {raw!r}",
                fragment,
            )

        if kind is DomainKind.RANGE:
            try:
                return parse_range(text)
            except FieldValueError as e:
                raise _error(e.error.kind, e.error.message, fragment) from e

        if kind is DomainKind.INT:
            member_id = self._match_member(self.members(field), text)
            if member_id is None or not member_id.isdigit():
                raise _error(
                    ParseErrorKind.INVALID_VALUE,
                    f"{raw!r} is not a valid {field.value}",
                    fragment,
                )
            return int(member_id)

        if field is FieldId.CASTING_TIME:
            return self._coerce_casting_time(text, fragment)

        member_id = self._match_member(self.members(field), text)
        if member_id is None:
            raise _error(
                ParseErrorKind.INVALID_VALUE,
                f"{raw!r} is not a valid {field.value}",
                fragment,
            )
        return member_id

    def _coerce_casting_time(self, text: str, fragment: str) -> str:
        type_text, sep, value_text = text.partition(":")
        activation = self._match_member(self.catalogs.activation_types, type_text)
        if activation is None:
            raise _error(
                ParseErrorKind.INVALID_VALUE,
                f"Unknown casting time {text!r}",
                fragment,
            )
        if not sep:
            return f"{activation}:1"
        if not value_text.isdigit() or int(value_text) < 1:
            raise _error(
                ParseErrorKind.INVALID_VALUE,
                f"Casting time amount must be a positive integer: {text!r}",
                fragment,
            )
        return f"{activation}:{int(value_text)}"

    def accepts(self, field: FieldId, raw: str) -> bool:
        """True when ``raw`` coerces cleanly."""
        try:
            self.coerce(field, raw)
        except FieldValueError:
            return False
        return True

    def _spellings(self, field: FieldId) -> list[str]:
        kind = self.kind(field)
        if kind is DomainKind.BOOL:
            return [s.lower() for s in BOOL_SPELLINGS]
        spellings: list[str] = []
        if field is FieldId.CASTING_TIME:
            spellings.extend(v.lower() for v in self.valid_values(field))
        for member in self.members(field):
            spellings.extend(member.spellings())
        return spellings

    def is_incomplete(self, field: FieldId, raw: str) -> bool:
        """Whether ``raw`` is an unfinished prefix of a valid value.

        Range values are never incomplete: they either parse or they do not.

        Args:
            field: Canonical field.
            raw: Partial value text.

        Returns:
            True if ``raw`` is not yet acceptable but could become so by
            typing more characters.
        """
        if self.kind(field) is DomainKind.RANGE:
            return False
        if self.accepts(field, raw):
            return False
        partial = raw.strip().lower()
        return any(s.startswith(partial) for s in self._spellings(field))

    def completions(self, field: FieldId, partial: str) -> list[str]:
        """Valid values whose id starts with ``partial`` (case-insensitive).

        Args:
            field: Canonical field.
            partial: Partial value text.

        Returns:
            Matching values from ``valid_values`` in natural order; empty for
            range.
        """
        values = self.valid_values(field)
        if values is UNBOUNDED:
            return []
        prefix = partial.strip().lower()
        return [v for v in values if v.lower().startswith(prefix)]

    def normalize_record_value(self, field: FieldId, raw: Optional[str]) -> Optional[str]:
        """Map a record-side value onto the id space used by queries.

        Records may carry full names (``evocation``) where queries carry ids
        (``evo``). Unknown values pass through lowercased.

        Args:
            field: Canonical enum field.
            raw: Value found on the record.

        Returns:
            The matching member id, the lowercased raw value, or None.
        """
        if raw is None or not str(raw).strip():
            return None
        member_id = self._match_member(self.members(field), str(raw))
        return member_id if member_id is not None else str(raw).strip().lower()
