"""Advanced query AST for spellsift.

An advanced query is a conjunction of ``field:value`` leaves. Leaves carry the
canonical field after alias resolution and an already-coerced value, so the
executor never re-parses text.
"""

from __future__ import annotations

from enum import Enum
from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator


class FieldId(str, Enum):
    """Canonical searchable fields. Values match filter descriptor ids."""

    LEVEL = "level"
    SCHOOL = "school"
    CASTING_TIME = "castingTime"
    RANGE = "range"
    DAMAGE_TYPE = "damageType"
    CONDITION = "condition"
    REQUIRES_SAVE = "requiresSave"
    CONCENTRATION = "concentration"
    MATERIAL_COMPONENTS = "materialComponents"
    PREPARED = "prepared"
    RITUAL = "ritual"
    FAVORITED = "favorited"


class Op(str, Enum):
    """Leaf operators."""

    EQ = "eq"
    HAS = "has"
    RANGE_IN = "rangeIn"


class RangeBounds(BaseModel):
    """Inclusive range in canonical range-feet; an absent side is unbounded."""

    model_config = ConfigDict(frozen=True)

    min: Optional[int] = Field(default=None, ge=0)
    max: Optional[int] = Field(default=None, ge=0)

    @model_validator(mode="after")
    def check_order(self) -> "RangeBounds":
        if self.min is not None and self.max is not None and self.min > self.max:
            raise ValueError(f"min ({self.min}) exceeds max ({self.max})")
        return self

    def contains(self, value: int) -> bool:
        low = self.min if self.min is not None else 0
        if value < low:
            return False
        return self.max is None or value <= self.max


Value = Union[bool, int, str, RangeBounds]


class FieldLeaf(BaseModel):
    """A single ``field op value`` test."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["field"] = "field"
    field: FieldId
    op: Op
    value: Value


class Conjunction(BaseModel):
    """AND of leaves. An empty conjunction matches every record."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["and"] = "and"
    children: tuple[FieldLeaf, ...] = ()

    @property
    def fields(self) -> list[FieldId]:
        return [leaf.field for leaf in self.children]


class ParseErrorKind(str, Enum):
    """Why an advanced query was rejected."""

    UNKNOWN_FIELD = "unknownField"
    INVALID_BOOLEAN = "invalidBoolean"
    INVALID_VALUE = "invalidValue"
    INVALID_RANGE = "invalidRange"
    SYNTAX = "syntax"


class ParseError(BaseModel):
    """Parse failure returned as a value.

    Attributes:
        kind: Failure category.
        message: Human-readable description.
        fragment: The ``alias:value`` text that failed.
    """

    model_config = ConfigDict(frozen=True)

    kind: ParseErrorKind
    message: str
    fragment: str = ""


class ParseResult(BaseModel):
    """Outcome of parsing one query body: exactly one of query/error is set."""

    model_config = ConfigDict(frozen=True)

    query: Optional[Conjunction] = None
    error: Optional[ParseError] = None

    @property
    def ok(self) -> bool:
        return self.query is not None
