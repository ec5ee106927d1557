"""FilterDescriptor data model for spellsift.

A descriptor is one row of the persisted filter configuration: which filter
control exists, what kind of control it is, where it sits and whether the
user may reorder or hide it.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

FilterType = Literal["search", "dropdown", "checkbox", "range"]

DEFAULT_FILTER_CONFIG_VERSION = "0.10.0"

# Never user-sortable; "name" leads, the rest trail the sortable block.
LEADING_FIXED_FILTERS = ("name",)
TRAILING_FIXED_FILTERS = ("prepared", "ritual")
FIXED_FILTERS = LEADING_FIXED_FILTERS + TRAILING_FIXED_FILTERS


class FilterDescriptor(BaseModel):
    """Metadata row describing one filter control.

    Attributes:
        id: Unique filter id; also the Filter State key for built-in filters.
        type: Control variant: search, dropdown, checkbox or range.
        order: Sort key; gaps of 10 leave room for reordering.
        enabled: Whether the control is shown.
        label: Localization key for the control label.
        sortable: Whether the user may move the control.
        search_aliases: Upper-case aliases accepted by advanced queries.
    """

    model_config = ConfigDict(frozen=False, alias_generator=to_camel, populate_by_name=True)

    id: str
    type: FilterType
    order: int = 0
    enabled: bool = True
    label: str = ""
    sortable: bool = True
    search_aliases: tuple[str, ...] = ()

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: str) -> str:
        """Reject blank ids."""
        if not v.strip():
            raise ValueError("Filter id must not be empty")
        return v

    @field_validator("search_aliases", mode="before")
    @classmethod
    def upper_aliases(cls, v):
        """Store aliases upper-cased for case-insensitive lookup."""
        if v is None:
            return ()
        return tuple(str(a).strip().upper() for a in v if str(a).strip())

    def to_dict(self) -> dict:
        """Serialize to the persisted camelCase shape."""
        return self.model_dump(by_alias=True, mode="json")


def _descriptor(id: str, type: str, order: int, label: str, sortable: bool, *aliases: str) -> FilterDescriptor:
    return FilterDescriptor(
        id=id,
        type=type,
        order=order,
        label=f"SPELLBOOK.Filters.{label}",
        sortable=sortable,
        search_aliases=aliases,
    )


DEFAULT_FILTER_CONFIG: tuple[FilterDescriptor, ...] = (
    _descriptor("name", "search", 10, "Search", False),
    _descriptor("level", "dropdown", 20, "Level", True, "LEVEL", "LVL"),
    _descriptor("school", "dropdown", 30, "School", True, "SCHOOL"),
    _descriptor("castingTime", "dropdown", 40, "CastingTime", True, "CASTTIME", "CASTING"),
    _descriptor("range", "range", 50, "Range", True, "RANGE"),
    _descriptor("damageType", "dropdown", 60, "DamageType", True, "DAMAGE", "DMG"),
    _descriptor("condition", "dropdown", 70, "Condition", True, "CONDITION"),
    _descriptor("requiresSave", "dropdown", 80, "RequiresSave", True, "SAVE", "REQUIRESSAVE"),
    _descriptor("concentration", "dropdown", 90, "RequiresConcentration", True, "CON", "CONCENTRATION"),
    _descriptor("materialComponents", "dropdown", 100, "Materials.Title", True, "MATERIALS", "COMPONENTS"),
    _descriptor("favorited", "checkbox", 110, "FavoritedOnly", True, "FAVORITED", "FAVE", "FAV"),
    _descriptor("prepared", "checkbox", 1000, "PreparedOnly", False, "PREPARED"),
    _descriptor("ritual", "checkbox", 1010, "RitualOnly", False, "RITUAL"),
)


def default_filters() -> list[FilterDescriptor]:
    """Return deep copies of the built-in descriptors."""
    return [d.model_copy(deep=True) for d in DEFAULT_FILTER_CONFIG]


def descriptors_from_dicts(dicts: list[dict]) -> list[FilterDescriptor]:
    """Convert a list of dictionaries to FilterDescriptor objects.

    Args:
        dicts: List of dictionaries with descriptor data (camelCase or
            snake_case keys).

    Returns:
        List of FilterDescriptor objects.
    """
    return [FilterDescriptor.model_validate(d) for d in dicts]
