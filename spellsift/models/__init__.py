"""Data models for spellsift."""

from spellsift.models.catalog import (
    DEFAULT_CATALOGS,
    Catalogs,
    EnumMember,
    catalogs_from_dict,
    members_from_data,
)
from spellsift.models.filter_def import (
    DEFAULT_FILTER_CONFIG,
    DEFAULT_FILTER_CONFIG_VERSION,
    FilterDescriptor,
    default_filters,
    descriptors_from_dicts,
)
from spellsift.models.filter_state import ALL_SOURCES, FilterState
from spellsift.models.query import (
    Conjunction,
    FieldId,
    FieldLeaf,
    Op,
    ParseError,
    ParseErrorKind,
    ParseResult,
    RangeBounds,
)
from spellsift.models.spell import CorpusError, SpellRecord

__all__ = [
    "ALL_SOURCES",
    "Catalogs",
    "Conjunction",
    "CorpusError",
    "DEFAULT_CATALOGS",
    "DEFAULT_FILTER_CONFIG",
    "DEFAULT_FILTER_CONFIG_VERSION",
    "EnumMember",
    "FieldId",
    "FieldLeaf",
    "FilterDescriptor",
    "FilterState",
    "Op",
    "ParseError",
    "ParseErrorKind",
    "ParseResult",
    "RangeBounds",
    "SpellRecord",
    "catalogs_from_dict",
    "default_filters",
    "descriptors_from_dicts",
    "members_from_data",
]
