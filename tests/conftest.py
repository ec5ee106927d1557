"""Shared pytest fixtures for spellsift tests."""

from pathlib import Path

import pytest

from spellsift.models.spell import SpellRecord


def make_spell(name, **fields):
    """Build a SpellRecord with an id derived from the name."""
    fields.setdefault("id", "test." + name.lower().replace(" ", "-"))
    return SpellRecord(name=name, **fields)


@pytest.fixture
def project_root():
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def corpus_file(project_root):
    """Sample JSON corpus shipped with the repository."""
    return project_root / "examples/corpus/srd_spells.json"


@pytest.fixture
def fireball():
    return make_spell(
        "Fireball",
        level=3,
        school="evocation",
        activation={"type": "action", "value": 1},
        range={"value": 150, "units": "ft"},
        properties=["vocal", "somatic", "material"],
        save={"ability": "dex"},
        damage_types=["fire"],
        source_id="dnd5e.spells.Item.fireball",
        source_label="Player's Handbook",
        pack_name="Spells (SRD)",
    )


@pytest.fixture
def bless():
    return make_spell(
        "Bless",
        level=1,
        school="enchantment",
        activation={"type": "action", "value": 1},
        range={"value": 30, "units": "ft"},
        properties=["concentration"],
        source_id="dnd5e.spells.Item.bless",
        source_label="Player's Handbook",
        pack_name="Spells (SRD)",
        is_prepared=True,
    )


@pytest.fixture
def firebolt():
    return make_spell("Firebolt", level=0, school="evo", damage_types=["fire"])


@pytest.fixture
def fire_bolt():
    return make_spell("Fire Bolt", level=0, school="evo", damage_types=["fire"])


@pytest.fixture
def mage_hand():
    return make_spell("Mage Hand", level=0, school="con")


@pytest.fixture
def hold_person():
    return make_spell(
        "Hold Person",
        level=2,
        school="enc",
        activation={"type": "action", "value": 1},
        range={"value": 60, "units": "ft"},
        properties=["concentration"],
        save={"ability": "wis"},
        conditions=["paralyzed"],
        source_id="homebrew.spells.Item.hold",
        source_label="Grimoire",
        pack_name="Homebrew Spells",
    )


@pytest.fixture
def revivify():
    return make_spell(
        "Revivify",
        level=3,
        school="nec",
        activation={"type": "action", "value": 1},
        range={"units": "touch"},
        properties=["material-consumed"],
        damage_types=["healing"],
        always_prepared=True,
        is_prepared=True,
    )


@pytest.fixture
def detect_magic():
    return make_spell(
        "Detect Magic",
        level=1,
        school="div",
        activation={"type": "minute", "value": 10},
        range={"units": "self"},
        properties=["concentration", "ritual"],
        is_favorited=True,
    )


@pytest.fixture
def corpus(fireball, bless, hold_person, revivify, detect_magic, mage_hand):
    """A small mixed corpus in a fixed order."""
    return [fireball, bless, hold_person, revivify, detect_magic, mage_hand]


def names(spells):
    return [s.name for s in spells]


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 100.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


# Pytest markers
def pytest_configure(config):
    config.addinivalue_line("markers", "integration: mark test as integration test")
