"""Tests for the typeahead suggestion engine."""

import pytest

from conftest import make_spell
from spellsift.core.query_parser import QueryParser
from spellsift.core.recent import RecentSearches
from spellsift.core.suggest import (
    HEADER_FIELDS,
    HEADER_RECENT,
    STATUS_ENTER_VALUE,
    STATUS_EXECUTE,
    STATUS_INVALID,
    STATUS_MATCHING_VALUES,
    STATUS_NO_MATCHES,
    STATUS_TYPE_RANGE,
    Stage,
    Suggestion,
    SuggestionEngine,
    SuggestionKind,
)
from spellsift.models.query import ParseErrorKind


@pytest.fixture
def commits():
    return []


@pytest.fixture
def spells():
    return [
        make_spell("Fireball"),
        make_spell("Fire Bolt"),
        make_spell("Wall of Fire"),
        make_spell("Mage Hand"),
    ]


@pytest.fixture
def engine(spells, commits, clock):
    return SuggestionEngine(
        QueryParser(),
        RecentSearches(),
        spells=lambda: spells,
        on_commit=commits.append,
        clock=clock,
    )


def queries(dropdown):
    return [s.query for s in dropdown.suggestions]


class TestStages:
    """Tests for buffer classification."""

    @pytest.mark.parametrize(
        "text,stage",
        [
            ("", Stage.STANDARD_RECENT),
            ("fi", Stage.STANDARD_RECENT),
            ("fir", Stage.STANDARD_FUZZY),
            ("^", Stage.ADVANCED_FIELD),
            ("^lv", Stage.ADVANCED_FIELD),
            ("^level:3 AND ", Stage.ADVANCED_FIELD),
            ("^level:", Stage.ADVANCED_VALUE),
            ("^range:", Stage.ADVANCED_VALUE),
            ("^school:ev", Stage.ADVANCED_PARTIAL),
            ("^ritual:y", Stage.ADVANCED_PARTIAL),
            ("^level:3", Stage.ADVANCED_COMPLETE),
            ("^level:3 AND dmg:fire", Stage.ADVANCED_COMPLETE),
            ("^bogus:1", Stage.ADVANCED_INVALID),
            ("^school:zzz", Stage.ADVANCED_INVALID),
        ],
    )
    def test_analyze(self, engine, text, stage):
        assert engine.analyze(text).stage is stage

    def test_unparseable_range_stays_in_value_stage(self, engine):
        dropdown = engine.suggest("^range:abc")
        assert dropdown.stage is Stage.ADVANCED_VALUE
        assert dropdown.error is not None


class TestDropdowns:
    """Tests for the rows offered at each stage."""

    def test_recent_rows(self, engine):
        engine.recent.add("fireball")
        engine.recent.add("^level:3")
        dropdown = engine.suggest("")
        assert dropdown.header == HEADER_RECENT
        assert queries(dropdown) == ["^level:3", "fireball"]
        assert all(s.removable for s in dropdown.suggestions)

    def test_fuzzy_rows(self, engine):
        dropdown = engine.suggest("fire")
        assert {s.label for s in dropdown.suggestions} == {"Fireball", "Fire Bolt", "Wall of Fire"}
        assert dropdown.suggestions[-1].label == "Wall of Fire"
        assert all(s.kind is SuggestionKind.FUZZY for s in dropdown.suggestions)

    def test_fuzzy_no_matches(self, engine):
        dropdown = engine.suggest("zzzz")
        assert dropdown.status == STATUS_NO_MATCHES
        assert dropdown.suggestions == ()

    def test_fuzzy_limit(self, clock):
        spells = [make_spell(f"Fire {n}") for n in range(10)]
        engine = SuggestionEngine(QueryParser(), RecentSearches(), spells=lambda: spells, clock=clock)
        assert len(engine.suggest("fire").suggestions) == 5

    def test_field_rows(self, engine):
        dropdown = engine.suggest("^")
        assert dropdown.header == HEADER_FIELDS
        assert "^LEVEL:" in queries(dropdown)
        assert "^SCHOOL:" in queries(dropdown)

    def test_field_rows_filtered_by_partial(self, engine):
        assert queries(engine.suggest("^lv")) == ["^LVL:"]

    def test_field_rows_after_and(self, engine):
        assert "^level:3 AND SCHOOL:" in queries(engine.suggest("^level:3 AND sch"))
        assert "^level:3 AND SCHOOL:" in queries(engine.suggest("^level:3 AND"))

    def test_value_rows(self, engine):
        dropdown = engine.suggest("^level:")
        assert dropdown.status == STATUS_ENTER_VALUE
        assert dropdown.status_params == {"field": "LEVEL"}
        assert queries(dropdown) == [f"^level:{n}" for n in range(10)]

    def test_range_hint(self, engine):
        dropdown = engine.suggest("^range:")
        assert dropdown.status == STATUS_TYPE_RANGE
        assert [s.kind for s in dropdown.suggestions] == [SuggestionKind.HINT]
        assert dropdown.suggestions[0].query is None

    def test_partial_rows(self, engine):
        dropdown = engine.suggest("^school:ev")
        assert dropdown.status == STATUS_MATCHING_VALUES
        assert queries(dropdown) == ["^school:evo"]

    def test_execute_row(self, engine):
        dropdown = engine.suggest("^level:3")
        assert dropdown.status == STATUS_EXECUTE
        assert dropdown.has_execute
        assert queries(dropdown) == ["^level:3"]

    def test_invalid_value_offers_valid_values(self, engine):
        dropdown = engine.suggest("^school:zzz")
        assert dropdown.status == STATUS_INVALID
        assert dropdown.error.kind is ParseErrorKind.INVALID_VALUE
        assert "^school:evo" in queries(dropdown)

    def test_unknown_field(self, engine):
        dropdown = engine.suggest("^bogus:1")
        assert dropdown.error.kind is ParseErrorKind.UNKNOWN_FIELD
        assert dropdown.suggestions == ()

    def test_suggest_does_not_change_state(self, engine):
        engine.suggest("^level:")
        assert engine.dropdown is None
        assert engine.buffer == ""


class TestDebounce:
    """Tests for pending jobs and the injected clock."""

    def test_standard_search_after_debounce(self, engine, commits, clock):
        engine.input("fireball")
        clock.advance(0.5)
        assert engine.poll() is False
        assert commits == []
        clock.advance(0.5)
        assert engine.poll() is True
        assert commits[0].query == "fireball"
        assert commits[0].explicit is False
        assert engine.pending is None

    def test_keystroke_replaces_pending_job(self, engine, commits, clock):
        engine.input("fi")
        clock.advance(0.5)
        engine.input("fir")
        clock.advance(0.5)
        assert engine.poll() is False
        clock.advance(0.5)
        assert engine.poll() is True
        assert [c.query for c in commits] == ["fir"]

    def test_advanced_refresh_does_not_commit(self, engine, commits, clock):
        engine.input("^lvl:")
        assert engine.poll() is False
        clock.advance(0.2)
        assert engine.poll() is True
        assert engine.dropdown.stage is Stage.ADVANCED_VALUE
        assert commits == []

    def test_flush(self, engine, commits):
        engine.input("mage")
        assert engine.flush() is True
        assert commits[0].query == "mage"
        assert engine.flush() is False

    def test_poll_without_job(self, engine):
        assert engine.poll() is False


class TestKeys:
    """Tests for arrow, Enter and Escape handling."""

    def test_arrows_are_bounded(self, engine):
        engine.buffer = "^level:"
        engine.focus()
        engine.key("ArrowUp")
        assert engine.selected_index == -1
        for _ in range(12):
            engine.key("ArrowDown")
        assert engine.selected_index == 9
        engine.key("ArrowUp")
        assert engine.selected_index == 8
        assert engine.selected.query == "^level:8"

    def test_arrows_without_dropdown(self, engine):
        engine.key("ArrowDown")
        assert engine.selected_index == -1

    def test_enter_on_value_row_fills_buffer(self, engine, commits):
        engine.buffer = "^level:"
        engine.focus()
        engine.key("ArrowDown")
        engine.key("ArrowDown")
        engine.key("Enter")
        assert engine.buffer == "^level:1"
        assert engine.dropdown.stage is Stage.ADVANCED_COMPLETE
        assert commits == []

        engine.key("Enter")
        assert engine.dropdown is None
        assert commits[0].query == "^level:1"
        assert commits[0].parse.ok
        assert commits[0].explicit

    def test_enter_on_execute_row(self, engine, commits):
        engine.buffer = "^level:3"
        engine.focus()
        engine.key("ArrowDown")
        engine.key("Enter")
        assert [c.query for c in commits] == ["^level:3"]
        assert engine.dropdown is None

    def test_enter_while_typing_field(self, engine, commits):
        engine.buffer = "^lev"
        engine.key("Enter")
        assert commits == []
        assert engine.dropdown.stage is Stage.ADVANCED_FIELD

    def test_enter_on_invalid_query_commits_with_error(self, engine, commits):
        engine.buffer = "^bogus:1"
        engine.key("Enter")
        assert commits[0].parse.ok is False
        assert engine.dropdown.stage is Stage.ADVANCED_INVALID

    def test_enter_standard(self, engine, commits):
        engine.input("mage")
        engine.key("Enter")
        assert commits[0].query == "mage"
        assert commits[0].advanced is False
        assert engine.pending is None
        assert engine.dropdown is None

    def test_escape_closes_and_cancels(self, engine, commits, clock):
        engine.input("mage")
        engine.focus()
        engine.key("Escape")
        assert engine.dropdown is None
        clock.advance(5)
        assert engine.poll() is False
        assert commits == []

    def test_unknown_key(self, engine):
        with pytest.raises(ValueError):
            engine.key("Tab")


class TestSelection:
    """Tests for select() and recent-search removal."""

    def test_duplicate_selection_ignored(self, engine, commits, clock):
        row = Suggestion(SuggestionKind.RECENT, "fireball", query="fireball")
        assert engine.select(row) is True
        clock.advance(0.2)
        assert engine.select(row) is False
        clock.advance(1.0)
        assert engine.select(row) is True
        assert len(commits) == 2

    def test_hint_not_selectable(self, engine, commits):
        assert engine.select(Suggestion(SuggestionKind.HINT, "hint")) is False
        assert commits == []

    def test_field_selection_refreshes(self, engine, commits):
        engine.select(Suggestion(SuggestionKind.FIELD, "LEVEL", query="^LEVEL:"))
        assert engine.buffer == "^LEVEL:"
        assert engine.dropdown.stage is Stage.ADVANCED_VALUE
        assert commits == []

    def test_remove_recent_refreshes(self, engine):
        engine.recent.add("fireball")
        engine.recent.add("bless")
        engine.focus()
        engine.remove_recent("bless")
        assert queries(engine.dropdown) == ["fireball"]
