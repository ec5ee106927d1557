"""SpellRecord data model for spellsift.

A SpellRecord is the immutable view of one spell that the filter pipeline
reads. Corpus providers may hand records over as camelCase dictionaries;
``SpellRecord.from_dict`` validates them and reports unusable records as
CorpusError.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

NO_SOURCE = "no-source"


class CorpusError(ValueError):
    """Raised when a corpus entry cannot be turned into a SpellRecord.

    Attributes:
        record_id: Identifier of the offending entry, if it had one.
        missing: Names of required fields that were absent or empty.
    """

    def __init__(self, message: str, record_id: Optional[str] = None, missing: tuple[str, ...] = ()):
        self.record_id = record_id
        self.missing = missing
        super().__init__(message)


class Activation(BaseModel):
    """Casting activation, e.g. ``action:1`` or ``minute:10``."""

    model_config = ConfigDict(frozen=True)

    type: str
    value: Optional[int] = Field(default=None, ge=1)

    @property
    def key(self) -> str:
        """The ``type:value`` form used by the casting-time filter."""
        return f"{self.type}:{self.value or 1}"


class SpellRange(BaseModel):
    """Raw range as authored: a value and a unit id."""

    model_config = ConfigDict(frozen=True)

    value: Optional[int] = Field(default=None, ge=0)
    units: Optional[str] = None


class SavingThrow(BaseModel):
    """Saving throw requirement."""

    model_config = ConfigDict(frozen=True)

    ability: Optional[str] = None


class SpellRecord(BaseModel):
    """One spell as seen by the search core.

    Missing optional fields mean "unknown": they never satisfy a positive
    filter.

    Attributes:
        id: Stable identifier (usually a document UUID).
        name: Display name.
        level: Spell level 0-9, or None when unknown.
        school: School id (``evo``) or its full name.
        activation: Casting activation.
        range: Authored range.
        properties: Flags such as ``ritual``, ``concentration`` and
            ``material-consumed``.
        save: Saving throw, if the spell calls for one.
        damage_types: Damage type ids (``healing`` included).
        conditions: Condition ids the spell can inflict.
        source_id: Pack or book identity, e.g. ``dnd5e.spells.Item.abc``.
        source_label: Display label of the source book.
        pack_name: Display name of the compendium pack.
        package_name: Name of the package that ships the pack.
        is_prepared: Prepared by the viewing character.
        is_favorited: Favorited by the viewer.
        prepared_by_party: Prepared by another member of the viewer's party.
        granted: Granted by a feature; excluded from countable statistics.
        always_prepared: Always prepared; excluded from countable statistics.
    """

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    id: str
    name: str
    level: Optional[int] = Field(default=None, ge=0, le=9)
    school: Optional[str] = None
    activation: Optional[Activation] = None
    range: Optional[SpellRange] = None
    properties: frozenset[str] = frozenset()
    save: Optional[SavingThrow] = None
    damage_types: frozenset[str] = frozenset()
    conditions: frozenset[str] = frozenset()
    source_id: Optional[str] = None
    source_label: Optional[str] = None
    pack_name: Optional[str] = None
    package_name: Optional[str] = None
    is_prepared: bool = False
    is_favorited: bool = False
    prepared_by_party: bool = False
    granted: bool = False
    always_prepared: bool = False

    @field_validator("properties", "damage_types", "conditions", mode="before")
    @classmethod
    def lowercase_ids(cls, v: Any) -> Any:
        """Normalize set members to lowercase ids."""
        if v is None:
            return frozenset()
        if isinstance(v, str):
            v = [v]
        return frozenset(str(item).strip().lower() for item in v if str(item).strip())

    @field_validator("id", "name")
    @classmethod
    def require_text(cls, v: str) -> str:
        """Reject blank identifiers and names."""
        if not v.strip():
            raise ValueError("must not be empty")
        return v

    @classmethod
    def from_dict(cls, data: dict) -> "SpellRecord":
        """Validate a corpus dictionary into a SpellRecord.

        Args:
            data: Record in snake_case or camelCase form.

        Returns:
            The validated record.

        Raises:
            CorpusError: If the entry is not a mapping or fails validation.
        """
        if not isinstance(data, dict):
            raise CorpusError(f"Corpus entry is not a mapping: {type(data).__name__}")
        record_id = data.get("id")
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            missing = tuple(
                str(err["loc"][0])
                for err in e.errors()
                if err["loc"] and err["type"] in ("missing", "value_error")
            )
            raise CorpusError(
                f"Invalid spell record {record_id!r}: {e.error_count()} validation error(s)",
                record_id=record_id if isinstance(record_id, str) else None,
                missing=missing,
            ) from e

    @property
    def has_consumed_materials(self) -> bool:
        return "material-consumed" in self.properties

    @property
    def is_ritual(self) -> bool:
        return "ritual" in self.properties

    @property
    def requires_concentration(self) -> bool:
        return "concentration" in self.properties

    @property
    def requires_save(self) -> bool:
        return self.save is not None and bool(self.save.ability)

    @property
    def spell_source_id(self) -> str:
        """Identity used by the spell-source filter."""
        return self.source_label or NO_SOURCE

    @property
    def pack_id(self) -> Optional[str]:
        """First dotted segment of ``source_id`` (the owning package)."""
        if not self.source_id:
            return None
        return self.source_id.split(".")[0]

    @property
    def level_key(self) -> str:
        """Grouping key for per-level statistics."""
        return "" if self.level is None else str(self.level)

    @property
    def countable(self) -> bool:
        """Whether the spell counts toward prepared-spell statistics."""
        return not (self.granted or self.always_prepared)
