"""Pytest configuration and shared fixtures."""
import os
import sys
from pathlib import Path

# Point the session store at in-memory SQLite before settings are loaded
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
sys.path.insert(0, str(Path(__file__).parent))

import pytest

from skillbattle.config.settings import reset_settings
from skillbattle.infra.storage.battle_session_repository import InMemorySessionStore
from skillbattle.mechanics.combat.battle_adapters import SessionAdapter
from skillbattle.utils.dice import DiceRoller

from battle_factories import create_test_combatant, create_test_move


@pytest.fixture(autouse=True)
def fresh_settings():
    """Re-read settings from the environment for every test."""
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def rng():
    """Seeded randomness source."""
    return DiceRoller(seed=1234)


@pytest.fixture
def hero():
    return create_test_combatant("hero", "Hero", health=100, shield=20, power_points=30)


@pytest.fixture
def rival():
    return create_test_combatant("rival", "Rival", health=100, shield=20, power_points=30, is_cpu=True)


@pytest.fixture
def basic_attack():
    return create_test_move("strike", "Strike", damage=10)


@pytest.fixture
def memory_store():
    return InMemorySessionStore()


@pytest.fixture
def session_adapter(memory_store):
    return SessionAdapter(memory_store, max_retries=3)
