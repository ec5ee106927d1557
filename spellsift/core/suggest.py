"""Typeahead suggestion engine for the spell search box.

The engine is a synchronous state machine over the search buffer. It never
starts timers: keystrokes schedule a single pending job (replacing any
earlier one) and the host calls ``poll`` from its own event loop. Time comes
from an injectable clock so tests can step through debounce windows.

Standard buffers (no prefix) show recent searches, then fuzzy name matches
once three characters are typed. Advanced buffers walk through field, colon
and value staging and offer an Execute action once the query parses.
"""

from __future__ import annotations

import re
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional, Sequence

from spellsift.core.fields import UNBOUNDED, FieldRegistry
from spellsift.core.name_match import NameMatcher
from spellsift.core.query_parser import AND_SEPARATOR, QueryParser
from spellsift.core.recent import RecentSearches
from spellsift.models.query import FieldId, ParseError, ParseResult
from spellsift.models.spell import SpellRecord
from spellsift.utils.log import get_logger

logger = get_logger("suggest")

STANDARD_DEBOUNCE = 0.8
ADVANCED_DEBOUNCE = 0.15
DUPLICATE_SELECT_WINDOW = 0.5
FUZZY_MIN_LENGTH = 3
FUZZY_LIMIT = 5

_TRAILING_AND = re.compile(r"(?:^|\s)AND\s*$", re.IGNORECASE)

# Status and header keys, rendered through a Localizer.
STATUS_ENTER_FIELD = "SPELLBOOK.Search.EnterField"
STATUS_ENTER_VALUE = "SPELLBOOK.Search.EnterValue"
STATUS_TYPE_RANGE = "SPELLBOOK.Search.TypeRange"
STATUS_COMPLETE_VALUE = "SPELLBOOK.Search.CompleteValue"
STATUS_MATCHING_VALUES = "SPELLBOOK.Search.MatchingValues"
STATUS_EXECUTE = "SPELLBOOK.Search.ExecuteQuery"
STATUS_NO_MATCHES = "SPELLBOOK.Search.NoMatches"
STATUS_INVALID = "SPELLBOOK.Search.InvalidQuery"
HEADER_RECENT = "SPELLBOOK.Search.Recent"
HEADER_SUGGESTIONS = "SPELLBOOK.Search.Suggestions"
HEADER_ADVANCED = "SPELLBOOK.Search.Advanced"
HEADER_FIELDS = "SPELLBOOK.Search.Fields"
HEADER_VALUES = "SPELLBOOK.Search.Values"
LABEL_EXECUTE = "SPELLBOOK.Search.Execute"


class Stage(str, Enum):
    """Where the buffer sits in the typing flow."""

    STANDARD_RECENT = "standardRecent"
    STANDARD_FUZZY = "standardFuzzy"
    ADVANCED_FIELD = "advancedField"
    ADVANCED_VALUE = "advancedValue"
    ADVANCED_PARTIAL = "advancedPartial"
    ADVANCED_COMPLETE = "advancedComplete"
    ADVANCED_INVALID = "advancedInvalid"


class SuggestionKind(str, Enum):
    RECENT = "recent"
    FUZZY = "fuzzy"
    FIELD = "field"
    VALUE = "value"
    HINT = "hint"
    EXECUTE = "execute"


SUBMITTABLE = frozenset({SuggestionKind.RECENT, SuggestionKind.FUZZY, SuggestionKind.EXECUTE})


class Key(str, Enum):
    ARROW_DOWN = "ArrowDown"
    ARROW_UP = "ArrowUp"
    ENTER = "Enter"
    ESCAPE = "Escape"


@dataclass(frozen=True)
class Suggestion:
    """One dropdown row.

    Attributes:
        kind: Row kind.
        label: Display text, or a localization key for hints and actions.
        query: Buffer after selecting the row; None for hints.
        removable: Whether the row offers a remove action (recent searches).
    """

    kind: SuggestionKind
    label: str
    query: Optional[str] = None
    removable: bool = False

    @property
    def submittable(self) -> bool:
        return self.kind in SUBMITTABLE


@dataclass(frozen=True)
class Dropdown:
    """Dropdown contents: status line, section header, then rows."""

    stage: Stage
    status: Optional[str] = None
    status_params: dict = field(default_factory=dict)
    header: Optional[str] = None
    suggestions: tuple[Suggestion, ...] = ()
    error: Optional[ParseError] = None

    @property
    def has_execute(self) -> bool:
        return any(s.kind is SuggestionKind.EXECUTE for s in self.suggestions)


@dataclass(frozen=True)
class Commit:
    """A query leaving the typing state.

    Attributes:
        query: Committed buffer.
        advanced: Whether it carried the advanced prefix.
        parse: Parse outcome for advanced queries.
        explicit: True for Enter and selections; False for the standard-mode
            debounced search, which filters live but is not remembered.
    """

    query: str
    advanced: bool
    parse: Optional[ParseResult] = None
    explicit: bool = True


class JobKind(str, Enum):
    REFRESH = "refresh"
    SEARCH = "search"


@dataclass(frozen=True)
class PendingJob:
    kind: JobKind
    buffer: str
    due: float


@dataclass(frozen=True)
class _Analysis:
    stage: Stage
    head: str = ""
    partial: str = ""
    field: Optional[FieldId] = None
    parse: Optional[ParseResult] = None


class SuggestionEngine:
    """Typeahead state machine.

    Example:
        engine = SuggestionEngine(parser, recent, spells=lambda: corpus,
                                  on_commit=handle_commit)
        engine.input("^lvl:")
        engine.poll()                  # after the advanced debounce
        engine.dropdown.suggestions    # level values
        engine.key("ArrowDown")
        engine.key("Enter")            # selects the highlighted value
    """

    def __init__(
        self,
        parser: QueryParser,
        recent: RecentSearches,
        spells: Optional[Callable[[], Sequence[SpellRecord]]] = None,
        on_commit: Optional[Callable[[Commit], None]] = None,
        clock: Callable[[], float] = time.monotonic,
        standard_debounce: float = STANDARD_DEBOUNCE,
        advanced_debounce: float = ADVANCED_DEBOUNCE,
        duplicate_window: float = DUPLICATE_SELECT_WINDOW,
        fuzzy_limit: int = FUZZY_LIMIT,
        matcher: Optional[NameMatcher] = None,
    ):
        self.parser = parser
        self.registry: FieldRegistry = parser.registry
        self.recent = recent
        self._spells = spells or (lambda: ())
        self.on_commit = on_commit
        self._clock = clock
        self.standard_debounce = standard_debounce
        self.advanced_debounce = advanced_debounce
        self.duplicate_window = duplicate_window
        self.fuzzy_limit = fuzzy_limit
        self.matcher = matcher or NameMatcher()

        self.buffer = ""
        self.dropdown: Optional[Dropdown] = None
        self.selected_index = -1
        self.pending: Optional[PendingJob] = None
        self.last_commit: Optional[Commit] = None
        self._last_selection: Optional[tuple[str, float]] = None

    @property
    def is_open(self) -> bool:
        return self.dropdown is not None

    @property
    def selected(self) -> Optional[Suggestion]:
        if self.dropdown is None or not 0 <= self.selected_index < len(self.dropdown.suggestions):
            return None
        return self.dropdown.suggestions[self.selected_index]

    # Input events

    def focus(self) -> Dropdown:
        """Open the dropdown for the current buffer without debouncing."""
        return self.refresh()

    def input(self, text: str) -> None:
        """Replace the buffer after a keystroke and schedule work.

        Any pending job is replaced. Advanced buffers schedule a dropdown
        refresh; standard buffers schedule a live search.
        """
        self.buffer = text
        self.selected_index = -1
        now = self._clock()
        if self.parser.is_advanced(text):
            self.pending = PendingJob(JobKind.REFRESH, text, now + self.advanced_debounce)
        else:
            self.pending = PendingJob(JobKind.SEARCH, text, now + self.standard_debounce)

    def poll(self, now: Optional[float] = None) -> bool:
        """Run the pending job if its debounce has elapsed.

        Args:
            now: Current time; defaults to the engine clock.

        Returns:
            True if a job ran.
        """
        job = self.pending
        if job is None:
            return False
        current = self._clock() if now is None else now
        if current < job.due:
            return False
        self.pending = None
        self.refresh()
        if job.kind is JobKind.SEARCH:
            self._commit(job.buffer, explicit=False)
        return True

    def flush(self) -> bool:
        """Run the pending job immediately, ignoring its due time."""
        if self.pending is None:
            return False
        return self.poll(now=self.pending.due)

    def cancel_pending(self) -> None:
        self.pending = None

    def key(self, key: str) -> None:
        """Handle a navigation key.

        Args:
            key: One of ``ArrowDown``, ``ArrowUp``, ``Enter``, ``Escape``.
        """
        key = Key(key)
        if key is Key.ESCAPE:
            self.close()
            return
        if key is Key.ENTER:
            self._enter()
            return

        count = len(self.dropdown.suggestions) if self.dropdown else 0
        if count == 0:
            self.selected_index = -1
        elif key is Key.ARROW_DOWN:
            self.selected_index = min(self.selected_index + 1, count - 1)
        else:
            self.selected_index = max(self.selected_index - 1, -1)

    def close(self) -> None:
        """Close the dropdown and cancel pending work."""
        self.cancel_pending()
        self.dropdown = None
        self.selected_index = -1

    def select(self, suggestion: Suggestion) -> bool:
        """Apply a suggestion as if the user clicked it.

        Selecting the same query twice within the duplicate window is
        ignored.

        Returns:
            True if the selection was applied.
        """
        if suggestion.query is None:
            return False
        now = self._clock()
        if self._last_selection is not None:
            last_query, last_at = self._last_selection
            if last_query == suggestion.query and now - last_at < self.duplicate_window:
                logger.debug("Ignoring duplicate selection %r", suggestion.query)
                return False
        self._last_selection = (suggestion.query, now)

        self.cancel_pending()
        self.buffer = suggestion.query
        self.selected_index = -1
        if suggestion.submittable:
            self.dropdown = None
            self._commit(self.buffer, explicit=True)
        else:
            self.refresh()
        return True

    def remove_recent(self, query: str) -> None:
        """Delete a recent search and refresh the list if it is showing."""
        self.recent.remove(query)
        if self.dropdown is not None and self.dropdown.stage is Stage.STANDARD_RECENT:
            self.refresh()

    # Dropdown construction

    def refresh(self) -> Dropdown:
        """Rebuild the dropdown for the current buffer."""
        self.dropdown = self.suggest(self.buffer)
        count = len(self.dropdown.suggestions)
        if self.selected_index >= count:
            self.selected_index = count - 1
        return self.dropdown

    def suggest(self, text: str) -> Dropdown:
        """Compute the dropdown for ``text`` without changing engine state."""
        analysis = self.analyze(text)
        builder = {
            Stage.STANDARD_RECENT: self._recent_dropdown,
            Stage.STANDARD_FUZZY: self._fuzzy_dropdown,
            Stage.ADVANCED_FIELD: self._field_dropdown,
            Stage.ADVANCED_VALUE: self._value_dropdown,
            Stage.ADVANCED_PARTIAL: self._partial_dropdown,
            Stage.ADVANCED_COMPLETE: self._execute_dropdown,
            Stage.ADVANCED_INVALID: self._invalid_dropdown,
        }[analysis.stage]
        return builder(text, analysis)

    def analyze(self, text: str) -> _Analysis:
        """Classify a buffer into a typing stage."""
        if not self.parser.is_advanced(text):
            if len(text.strip()) < FUZZY_MIN_LENGTH:
                return _Analysis(Stage.STANDARD_RECENT)
            return _Analysis(Stage.STANDARD_FUZZY)

        prefix_end = len(text) - len(self.parser.body(text))
        body = text[prefix_end:]
        if not body.strip() or _TRAILING_AND.search(body):
            return _Analysis(Stage.ADVANCED_FIELD, head=text)

        last = AND_SEPARATOR.split(body)[-1]
        head = text[: len(text) - len(last)]
        alias, sep, value = last.partition(":")
        if not sep:
            return _Analysis(Stage.ADVANCED_FIELD, head=head, partial=last.strip())

        field_id = self.registry.get_field_id(alias)
        if field_id is None:
            return _Analysis(Stage.ADVANCED_INVALID, head=head, parse=self.parser.parse(text))
        if value == "":
            return _Analysis(Stage.ADVANCED_VALUE, head=text, field=field_id)
        if self.registry.is_incomplete(field_id, value):
            return _Analysis(Stage.ADVANCED_PARTIAL, head=text[: len(text) - len(value)], partial=value, field=field_id)

        result = self.parser.parse(text)
        if result.ok:
            return _Analysis(Stage.ADVANCED_COMPLETE, field=field_id, parse=result)
        if self.registry.valid_values(field_id) is UNBOUNDED:
            return _Analysis(Stage.ADVANCED_VALUE, head=text, partial=value, field=field_id, parse=result)
        return _Analysis(
            Stage.ADVANCED_INVALID,
            head=text[: len(text) - len(value)],
            partial=value,
            field=field_id,
            parse=result,
        )

    def _recent_dropdown(self, text: str, analysis: _Analysis) -> Dropdown:
        rows = tuple(
            Suggestion(SuggestionKind.RECENT, q, query=q, removable=True)
            for q in self.recent.list()
        )
        return Dropdown(analysis.stage, header=HEADER_RECENT, suggestions=rows)

    def _fuzzy_dropdown(self, text: str, analysis: _Analysis) -> Dropdown:
        matches = self.matcher.best(text, self._spells(), limit=self.fuzzy_limit)
        if not matches:
            return Dropdown(analysis.stage, status=STATUS_NO_MATCHES, header=HEADER_SUGGESTIONS)
        rows = tuple(Suggestion(SuggestionKind.FUZZY, s.name, query=s.name) for s in matches)
        return Dropdown(analysis.stage, header=HEADER_SUGGESTIONS, suggestions=rows)

    def _field_dropdown(self, text: str, analysis: _Analysis) -> Dropdown:
        head = analysis.head
        if head and _TRAILING_AND.search(head) and not head[-1].isspace():
            head += " "
        partial = analysis.partial.upper()
        rows = []
        for field_id in self.registry.fields():
            aliases = self.registry.spec(field_id).aliases
            alias = next((a for a in aliases if a.startswith(partial)), None)
            if alias is None:
                continue
            rows.append(Suggestion(SuggestionKind.FIELD, alias, query=f"{head}{alias}:"))
        status = STATUS_ENTER_FIELD if rows else STATUS_NO_MATCHES
        return Dropdown(analysis.stage, status=status, header=HEADER_FIELDS, suggestions=tuple(rows))

    def _value_dropdown(self, text: str, analysis: _Analysis) -> Dropdown:
        field_id = analysis.field
        values = self.registry.valid_values(field_id)
        if values is UNBOUNDED:
            hint = Suggestion(SuggestionKind.HINT, STATUS_TYPE_RANGE)
            return Dropdown(
                analysis.stage,
                status=STATUS_TYPE_RANGE,
                header=HEADER_VALUES,
                suggestions=(hint,),
                error=analysis.parse.error if analysis.parse else None,
            )
        rows = tuple(
            Suggestion(SuggestionKind.VALUE, v, query=f"{analysis.head}{v}") for v in values
        )
        return Dropdown(
            analysis.stage,
            status=STATUS_ENTER_VALUE,
            status_params={"field": self.registry.primary_alias(field_id)},
            header=HEADER_VALUES,
            suggestions=rows,
        )

    def _partial_dropdown(self, text: str, analysis: _Analysis) -> Dropdown:
        completions = self.registry.completions(analysis.field, analysis.partial)
        rows = tuple(
            Suggestion(SuggestionKind.VALUE, v, query=f"{analysis.head}{v}") for v in completions
        )
        return Dropdown(
            analysis.stage,
            status=STATUS_MATCHING_VALUES if rows else STATUS_COMPLETE_VALUE,
            status_params={"partial": analysis.partial},
            header=HEADER_VALUES,
            suggestions=rows,
        )

    def _execute_dropdown(self, text: str, analysis: _Analysis) -> Dropdown:
        row = Suggestion(SuggestionKind.EXECUTE, LABEL_EXECUTE, query=text)
        return Dropdown(analysis.stage, status=STATUS_EXECUTE, header=HEADER_ADVANCED, suggestions=(row,))

    def _invalid_dropdown(self, text: str, analysis: _Analysis) -> Dropdown:
        error = analysis.parse.error if analysis.parse else None
        rows: tuple[Suggestion, ...] = ()
        if analysis.field is not None:
            values = self.registry.valid_values(analysis.field)
            if values is not UNBOUNDED:
                rows = tuple(
                    Suggestion(SuggestionKind.VALUE, v, query=f"{analysis.head}{v}") for v in values
                )
        return Dropdown(
            analysis.stage,
            status=STATUS_INVALID,
            status_params={"message": error.message if error else ""},
            header=HEADER_VALUES if rows else None,
            suggestions=rows,
            error=error,
        )

    # Commit handling

    def _enter(self) -> None:
        highlighted = self.selected
        if highlighted is not None:
            self.select(highlighted)
            return

        self.cancel_pending()
        if self.parser.is_advanced(self.buffer):
            analysis = self.analyze(self.buffer)
            still_typing = analysis.stage in (Stage.ADVANCED_FIELD, Stage.ADVANCED_PARTIAL) or (
                analysis.stage is Stage.ADVANCED_VALUE and not analysis.partial
            )
            if still_typing:
                self.refresh()
                return
            if analysis.stage is Stage.ADVANCED_COMPLETE:
                self.dropdown = None
            else:
                self.refresh()
            self._commit(self.buffer, explicit=True)
            return

        self.dropdown = None
        self._commit(self.buffer, explicit=True)

    def _commit(self, query: str, explicit: bool) -> Commit:
        advanced = self.parser.is_advanced(query)
        parse = self.parser.parse(query) if advanced else None
        commit = Commit(query=query, advanced=advanced, parse=parse, explicit=explicit)
        self.last_commit = commit
        logger.debug("Commit %r (advanced=%s, explicit=%s)", query, advanced, explicit)
        if self.on_commit is not None:
            self.on_commit(commit)
        return commit
