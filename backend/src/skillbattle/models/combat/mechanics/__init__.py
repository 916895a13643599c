"""Battle mechanics value types."""

from .enums import (
    StatusEffectType,
    MoveCategory,
    BattleMode,
    BattlePhase,
    CpuPolicy,
    EffectTarget,
)
from .status_effect import (
    StatusEffectTemplate,
    StatusEffectInstance,
    NEGATIVE_EFFECTS,
    parse_effect_type,
)
from .damage_spec import (
    DamageSpec,
    ScalarDamage,
    RangeDamage,
    HealingSpec,
    parse_damage_spec,
)
from .move_definition import MoveDefinition
from .battle_context import BattleContext
from .skill_action import (
    CombatantDelta,
    StatusTickEvent,
    AppliedEffect,
    MoveOutcome,
    ResolvedSkillAction,
)

__all__ = [
    "StatusEffectType",
    "MoveCategory",
    "BattleMode",
    "BattlePhase",
    "CpuPolicy",
    "EffectTarget",
    "StatusEffectTemplate",
    "StatusEffectInstance",
    "NEGATIVE_EFFECTS",
    "parse_effect_type",
    "DamageSpec",
    "ScalarDamage",
    "RangeDamage",
    "HealingSpec",
    "parse_damage_spec",
    "MoveDefinition",
    "BattleContext",
    "CombatantDelta",
    "StatusTickEvent",
    "AppliedEffect",
    "MoveOutcome",
    "ResolvedSkillAction",
]
