"""Core logic for spellsift.

This module provides the core functionality:
- FieldRegistry: Searchable fields, aliases and value domains
- QueryParser / QueryExecutor: Advanced query parsing and evaluation
- FilterPipeline: Staged corpus filtering and level grouping
- FilterConfigStore / FilterStateStore: Persistent and live filter state
- SuggestionEngine / SearchSession: Typeahead and commit orchestration
- ConfigLoader: Configuration file loading
- PluginManager: Corpus source discovery and registration
"""

from spellsift.core.aggregation import LevelStats, aggregate_levels, totals
from spellsift.core.config import (
    Config,
    ConfigError,
    ConfigLoader,
    DisplayConfig,
    LoggingConfig,
    SearchConfig,
)
from spellsift.core.display import DisplayFlags, MetadataPart, build_metadata, render_metadata
from spellsift.core.fields import UNBOUNDED, DomainKind, FieldRegistry, FieldValueError
from spellsift.core.filter import FilterPipeline, FilterResult
from spellsift.core.filter_config import ConfigIssue, FilterConfigStore
from spellsift.core.filter_state import FilterStateStore
from spellsift.core.i18n import Localizer
from spellsift.core.name_match import MatchTier, NameMatcher
from spellsift.core.options import FilterOption, options_for_filter
from spellsift.core.plugin import NoPluginFoundError, PluginError, PluginManager
from spellsift.core.query_executor import QueryExecutor
from spellsift.core.query_parser import QueryParser
from spellsift.core.recent import RecentSearches
from spellsift.core.session import CommitOutcome, SearchSession
from spellsift.core.settings import JsonFileSettings, MemorySettings, SettingsError
from spellsift.core.suggest import Dropdown, Suggestion, SuggestionEngine

__all__ = [
    "CommitOutcome",
    "Config",
    "ConfigError",
    "ConfigIssue",
    "ConfigLoader",
    "DisplayConfig",
    "DisplayFlags",
    "DomainKind",
    "Dropdown",
    "FieldRegistry",
    "FieldValueError",
    "FilterConfigStore",
    "FilterOption",
    "FilterPipeline",
    "FilterResult",
    "FilterStateStore",
    "JsonFileSettings",
    "LevelStats",
    "Localizer",
    "LoggingConfig",
    "MatchTier",
    "MemorySettings",
    "MetadataPart",
    "NameMatcher",
    "NoPluginFoundError",
    "PluginError",
    "PluginManager",
    "QueryExecutor",
    "QueryParser",
    "RecentSearches",
    "SearchConfig",
    "SearchSession",
    "SettingsError",
    "Suggestion",
    "SuggestionEngine",
    "UNBOUNDED",
    "aggregate_levels",
    "build_metadata",
    "options_for_filter",
    "render_metadata",
    "totals",
]
