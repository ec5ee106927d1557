"""FilterState data model for spellsift.

Holds the current typed value of every recognized filter control. Dropdowns
store an enum id string (empty for "any"), checkboxes a bool, and the range
control a pair of optional bounds in canonical range-feet.
"""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

ALL_SOURCES = "all"


class FilterState(BaseModel):
    """Snapshot of filter control values.

    Attributes:
        name: Free-text name search (standard mode).
        level: Spell level as a string id, or empty.
        school: School id, or empty.
        casting_time: ``type:value`` activation key, or empty.
        min_range: Lower range bound in range-feet.
        max_range: Upper range bound in range-feet.
        damage_type: Damage type id, or empty.
        condition: Condition id, or empty.
        requires_save: Tri-state: True, False or None for "any".
        concentration: Tri-state: True, False or None for "any".
        material_components: ``consumed``, ``notConsumed`` or None.
        prepared: Show only prepared spells.
        ritual: Show only ritual spells.
        favorited: Show only favorited spells.
        prepared_by_party: Show only spells prepared by the party.
        source: Source pack filter, ``all`` when unset.
        spell_source: Spell-source label filter, ``all`` when unset.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str = ""
    level: str = ""
    school: str = ""
    casting_time: str = ""
    min_range: Optional[int] = Field(default=None, ge=0)
    max_range: Optional[int] = Field(default=None, ge=0)
    damage_type: str = ""
    condition: str = ""
    requires_save: Optional[bool] = None
    concentration: Optional[bool] = None
    material_components: Optional[Literal["consumed", "notConsumed"]] = None
    prepared: bool = False
    ritual: bool = False
    favorited: bool = False
    prepared_by_party: bool = False
    source: str = ALL_SOURCES
    spell_source: str = ALL_SOURCES

    @field_validator("level", mode="before")
    @classmethod
    def level_as_text(cls, v: Any) -> Any:
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return "" if v is None else v

    @field_validator("requires_save", "concentration", mode="before")
    @classmethod
    def tri_state(cls, v: Any) -> Any:
        """Accept the dropdown strings ``""``, ``"true"`` and ``"false"``."""
        if isinstance(v, str):
            lowered = v.strip().lower()
            if lowered == "":
                return None
            if lowered == "true":
                return True
            if lowered == "false":
                return False
        return v

    @field_validator("material_components", "min_range", "max_range", mode="before")
    @classmethod
    def empty_as_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("source", "spell_source", mode="before")
    @classmethod
    def empty_source_as_all(cls, v: Any) -> Any:
        if v is None or (isinstance(v, str) and not v.strip()):
            return ALL_SOURCES
        return v

    @model_validator(mode="after")
    def check_range(self) -> "FilterState":
        if (
            self.min_range is not None
            and self.max_range is not None
            and self.min_range > self.max_range
        ):
            raise ValueError(
                f"min_range ({self.min_range}) exceeds max_range ({self.max_range})"
            )
        return self

    def is_empty(self) -> bool:
        """True when no control narrows the corpus."""
        return self == FilterState()

    def merged(self, patch: dict) -> "FilterState":
        """Return a validated copy with ``patch`` applied.

        Args:
            patch: Attribute names (snake_case or camelCase) to new values.

        Returns:
            New FilterState.

        Raises:
            pydantic.ValidationError: If the patched state is invalid.
        """
        data = self.model_dump()
        for key, value in patch.items():
            attr = _ALIAS_TO_ATTR.get(key, key)
            if attr not in data:
                raise KeyError(f"Unknown filter state key: {key}")
            data[attr] = value
        return FilterState.model_validate(data)


_ALIAS_TO_ATTR = {
    (info.alias or name): name for name, info in FilterState.model_fields.items()
}
