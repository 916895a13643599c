"""Enumerations for the battle skill system."""
from enum import Enum


class StatusEffectType(Enum):
    """Types of status effects a move can attempt to apply."""
    BURN = "burn"
    STUN = "stun"
    BLEED = "bleed"
    POISON = "poison"
    CONFUSE = "confuse"
    DRAIN = "drain"
    CLEANSE = "cleanse"
    REDUCE = "reduce"
    NONE = "none"


class MoveCategory(str, Enum):
    """Category of a move."""
    ATTACK = "attack"
    DEFENSE = "defense"
    HEAL = "heal"


class BattleMode(str, Enum):
    """Which kind of encounter a battle belongs to."""
    ARENA = "arena"
    LIVE_EVENT = "live_event"
    RAID = "raid"
    JOURNEY = "journey"


class CpuPolicy(str, Enum):
    """How a CPU opponent picks its move."""
    RANDOM = "random"
    OPTIMAL = "optimal"


class BattlePhase(str, Enum):
    """Phases of the per-encounter turn state machine."""
    SELECTION = "selection"
    EXECUTION = "execution"
    RESOLUTION = "resolution"
    OPPONENT_TURN = "opponent_turn"
    VICTORY = "victory"
    DEFEAT = "defeat"

    @property
    def is_terminal(self) -> bool:
        return self in (BattlePhase.VICTORY, BattlePhase.DEFEAT)


class EffectTarget(str, Enum):
    """Who receives a status effect when its template succeeds."""
    TARGET = "target"
    SELF = "self"
