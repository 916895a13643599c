"""Session persistence."""

from .connection import DatabaseManager, db_manager
from .battle_session_repository import (
    BattleSessionStore,
    InMemorySessionStore,
    SqlBattleSessionStore,
)

__all__ = [
    "DatabaseManager",
    "db_manager",
    "BattleSessionStore",
    "InMemorySessionStore",
    "SqlBattleSessionStore",
]
