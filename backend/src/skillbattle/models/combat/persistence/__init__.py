"""Persisted battle state."""

from .combatant_state import CombatantState, clamp
from .battle_session import BattleSessionRecord

__all__ = [
    "CombatantState",
    "clamp",
    "BattleSessionRecord",
]
