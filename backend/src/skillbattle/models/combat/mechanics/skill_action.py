"""Value types produced by skill resolution."""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .enums import StatusEffectType
from .status_effect import StatusEffectInstance


@dataclass(frozen=True)
class CombatantDelta:
    """Net change to one combatant's pools."""
    health: int = 0
    shield: int = 0
    power_points: int = 0

    @property
    def is_empty(self) -> bool:
        return self.health == 0 and self.shield == 0 and self.power_points == 0

    def to_dict(self) -> Dict[str, int]:
        return {"health": self.health, "shield": self.shield, "power_points": self.power_points}


@dataclass(frozen=True)
class StatusTickEvent:
    """One status effect firing during the tick step."""
    owner_name: str
    effect_type: StatusEffectType
    health_lost: int = 0
    pp_lost: int = 0
    pp_transferred: int = 0
    healed: int = 0
    beneficiary_name: Optional[str] = None
    expired: bool = False


@dataclass(frozen=True)
class AppliedEffect:
    """A status effect that landed on a combatant during this action."""
    recipient_name: str
    effect_type: StatusEffectType
    duration: int


@dataclass
class MoveOutcome:
    """Already-resolved values the log formatter renders.

    Every number here is final: clamped and after mitigation.
    """
    move_name: str
    actor_name: str
    target_name: str
    ticks: List[StatusTickEvent] = field(default_factory=list)
    stunned: bool = False
    redirected: bool = False
    damage: int = 0
    shield_absorbed: int = 0
    health_damage: int = 0
    damage_reduced: int = 0
    healing: int = 0
    shield_boost: int = 0
    pp_stolen: int = 0
    pp_spent: int = 0
    cleansed: List[StatusEffectType] = field(default_factory=list)
    cleansed_name: Optional[str] = None
    applied_effects: List[AppliedEffect] = field(default_factory=list)
    resisted_effects: List[AppliedEffect] = field(default_factory=list)
    defeated: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class ResolvedSkillAction:
    """Deltas, effect lists and log lines for one resolved move.

    Pure value: holds copies only, never references into adapter state.
    """
    actor_id: str
    target_id: str
    move_id: str
    turn: int
    actor_delta: CombatantDelta
    target_delta: CombatantDelta
    actor_effects: List[StatusEffectInstance]
    target_effects: List[StatusEffectInstance]
    outcome: MoveOutcome
    log: List[str]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "actor_id": self.actor_id,
            "target_id": self.target_id,
            "move_id": self.move_id,
            "turn": self.turn,
            "actor_delta": self.actor_delta.to_dict(),
            "target_delta": self.target_delta.to_dict(),
            "actor_effects": [e.to_dict() for e in self.actor_effects],
            "target_effects": [e.to_dict() for e in self.target_effects],
            "log": list(self.log),
        }
