"""Search session orchestration.

A SearchSession wires the filter configuration, field registry, parser,
executor, pipeline, recent-search history and suggestion engine together
for one corpus. It is the seam a host UI (or the CLI) talks to: typing and
key events go in, FilterResults and dropdown models come out.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Iterable, Optional

from spellsift.core.config import Config
from spellsift.core.display import DisplayFlags, MetadataPart, build_metadata, render_metadata
from spellsift.core.fields import FieldRegistry
from spellsift.core.filter import FilterPipeline, FilterResult
from spellsift.core.filter_config import FilterConfigStore
from spellsift.core.filter_state import FilterStateStore
from spellsift.core.i18n import Localizer
from spellsift.core.name_match import NameMatcher
from spellsift.core.options import FilterOption, options_for_filter
from spellsift.core.query_executor import QueryExecutor
from spellsift.core.query_parser import QueryParser
from spellsift.core.recent import RecentSearches
from spellsift.core.settings import (
    ADVANCED_SEARCH_PREFIX,
    DISPLAY_FLAGS,
    MemorySettings,
    Settings,
    SettingsError,
    validate_prefix,
)
from spellsift.core.suggest import Commit, Dropdown, SuggestionEngine
from spellsift.models.catalog import DEFAULT_CATALOGS, Catalogs
from spellsift.models.filter_state import FilterState
from spellsift.models.query import Conjunction, ParseError
from spellsift.models.spell import SpellRecord
from spellsift.utils.log import get_logger

logger = get_logger("session")


@dataclass
class CommitOutcome:
    """What one commit did.

    Attributes:
        query: The committed buffer.
        advanced: Whether it carried the advanced prefix.
        result: Pipeline output after the commit.
        state: Filter State after the commit (and any self-healing).
        error: Parse error for an invalid advanced query.
        remembered: Whether the query was added to recent searches.
    """

    query: str
    advanced: bool
    result: FilterResult
    state: FilterState
    error: Optional[ParseError] = None
    remembered: bool = False


class SearchSession:
    """One search box bound to one corpus.

    Example:
        session = SearchSession(spells)
        outcome = session.commit("^LEVEL:3 AND SCHOOL:evo")
        [s.name for s in outcome.result.spells]
    """

    def __init__(
        self,
        spells: Iterable[SpellRecord],
        settings: Optional[Settings] = None,
        config: Optional[Config] = None,
        catalogs: Catalogs = DEFAULT_CATALOGS,
        clock: Callable[[], float] = time.monotonic,
        localizer: Optional[Localizer] = None,
    ):
        self.spells = list(spells)
        self.settings = settings if settings is not None else MemorySettings()
        self.config = config or Config()
        self.catalogs = catalogs
        self.localizer = localizer or Localizer()

        self.filter_config = FilterConfigStore(self.settings)
        self.filters = self.filter_config.load()
        self.registry = FieldRegistry(catalogs, self.filters)

        search = self.config.search
        prefix = validate_prefix(self._setting(ADVANCED_SEARCH_PREFIX), default=search.prefix)
        self.parser = QueryParser(self.registry, prefix=prefix)
        self.executor = QueryExecutor(self.registry)
        matcher = NameMatcher()
        self.pipeline = FilterPipeline(self.registry, self.executor, matcher)
        self.state_store = FilterStateStore(clock=clock)
        self.recent = RecentSearches(self.settings, limit=search.recent_limit)
        self.engine = SuggestionEngine(
            self.parser,
            self.recent,
            spells=lambda: self.spells,
            on_commit=self._on_commit,
            clock=clock,
            standard_debounce=search.standard_debounce_ms / 1000,
            advanced_debounce=search.advanced_debounce_ms / 1000,
            fuzzy_limit=search.fuzzy_limit,
            matcher=matcher,
        )

        self.query: Optional[Conjunction] = None
        self.selected_ids: Optional[set] = None
        self.last_outcome: Optional[CommitOutcome] = None
        self.result = self.refresh()

    @property
    def prefix(self) -> str:
        return self.parser.prefix

    @property
    def state(self) -> FilterState:
        return self.state_store.get()

    @property
    def dropdown(self) -> Optional[Dropdown]:
        return self.engine.dropdown

    # Search box events

    def type(self, text: str) -> None:
        """Replace the search buffer; work runs on the next ``poll``."""
        self.engine.input(text)

    def key(self, key: str) -> None:
        self.engine.key(key)

    def poll(self, now: Optional[float] = None) -> bool:
        return self.engine.poll(now)

    def flush(self) -> bool:
        return self.engine.flush()

    def suggest(self, text: str) -> Dropdown:
        """Compute the dropdown for ``text`` without touching the buffer."""
        return self.engine.suggest(text)

    # Filtering

    def commit(self, query: str, remember: bool = True) -> CommitOutcome:
        """Commit a search query and re-run the pipeline.

        Args:
            query: Buffer contents. A leading prefix makes it advanced.
            remember: Whether a successful commit is added to recent
                searches.

        Returns:
            CommitOutcome describing the new state and result.
        """
        advanced = self.parser.is_advanced(query)
        error = None
        if advanced:
            parsed = self.parser.parse(query)
            if parsed.ok:
                self.query = parsed.query
                patch = self.executor.apply_to_state(parsed.query)
                patch["name"] = ""
            else:
                error = parsed.error
                self.query = None
                patch = {"name": ""}
                logger.info("Invalid advanced query %r: %s", query, error.message)
        else:
            self.query = None
            patch = {"name": query}

        self.state_store.merge_partial(patch)
        self.state_store.invalidate()
        result = self._run()

        remembered = False
        if remember and error is None and query.strip():
            self.recent.add(query)
            remembered = True

        outcome = CommitOutcome(
            query=query,
            advanced=advanced,
            result=result,
            state=self.state,
            error=error,
            remembered=remembered,
        )
        self.last_outcome = outcome
        return outcome

    def update_filters(self, **values) -> FilterResult:
        """Change filter controls and re-run the pipeline.

        Args:
            **values: Filter State fields by attribute or camelCase name.

        Returns:
            The new FilterResult.
        """
        self.state_store.merge_partial(values)
        return self._run()

    def reset_filters(self) -> FilterResult:
        """Clear every control and the committed query."""
        self.state_store.reset()
        self.query = None
        return self._run()

    def refresh(self) -> FilterResult:
        """Re-run the pipeline with the current state and query."""
        return self._run()

    def _run(self) -> FilterResult:
        result = self.pipeline.run(self.spells, self.state, self.query, self.selected_ids)
        if result.healed:
            logger.warning("Source filter matched nothing; reset %s", ", ".join(result.healed))
            self.state_store.set(result.state_after_healing(self.state_store.get()))
        self.result = result
        return result

    def _on_commit(self, commit: Commit) -> None:
        self.commit(commit.query, remember=commit.explicit)

    def _setting(self, key: str):
        try:
            return self.settings.get(key)
        except SettingsError as e:
            logger.warning("Cannot read setting %s: %s", key, e)
            return None

    # Presentation helpers

    @property
    def display_flags(self) -> DisplayFlags:
        stored = self._setting(DISPLAY_FLAGS)
        if stored is None:
            return self.config.display.flags
        return DisplayFlags.from_value(stored)

    def metadata(self, spell: SpellRecord) -> list[MetadataPart]:
        return build_metadata(spell, self.display_flags, self.catalogs, self.config.display.metric)

    def subtitle(self, spell: SpellRecord) -> str:
        """Rendered metadata line for one row."""
        return render_metadata(self.metadata(spell), self.localizer)

    def options(self, filter_id: str) -> list[FilterOption]:
        """Dropdown options for a filter control."""
        return options_for_filter(filter_id, self.state, self.spells, self.registry)
