"""Battle models package - re-exports for public API"""

from skillbattle.models.combat.persistence import (
    CombatantState,
    BattleSessionRecord,
)
from skillbattle.models.combat.mechanics import (
    StatusEffectType,
    MoveCategory,
    BattleMode,
    BattlePhase,
    StatusEffectTemplate,
    StatusEffectInstance,
    ScalarDamage,
    RangeDamage,
    HealingSpec,
    MoveDefinition,
    BattleContext,
    CombatantDelta,
    ResolvedSkillAction,
)

__all__ = [
    # Enums
    "StatusEffectType",
    "MoveCategory",
    "BattleMode",
    "BattlePhase",
    # Persistence
    "CombatantState",
    "BattleSessionRecord",
    # Mechanics
    "StatusEffectTemplate",
    "StatusEffectInstance",
    "ScalarDamage",
    "RangeDamage",
    "HealingSpec",
    "MoveDefinition",
    "BattleContext",
    "CombatantDelta",
    "ResolvedSkillAction",
]
