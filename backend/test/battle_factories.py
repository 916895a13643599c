"""Factories for building battle test data."""
from typing import Any, Dict, List, Optional

from skillbattle.models.combat.mechanics.battle_context import BattleContext
from skillbattle.models.combat.mechanics.damage_spec import HealingSpec, parse_damage_spec
from skillbattle.models.combat.mechanics.enums import MoveCategory, StatusEffectType
from skillbattle.models.combat.mechanics.move_definition import MoveDefinition
from skillbattle.models.combat.mechanics.status_effect import StatusEffectInstance, StatusEffectTemplate
from skillbattle.models.combat.persistence.combatant_state import CombatantState
from skillbattle.utils.dice import DiceRoller


def create_test_combatant(
    combatant_id: str,
    name: Optional[str] = None,
    health: int = 100,
    max_health: Optional[int] = None,
    shield: int = 0,
    max_shield: Optional[int] = None,
    power_points: int = 0,
    max_power_points: Optional[int] = None,
    level: int = 1,
    is_cpu: bool = False,
    move_ids: Optional[List[str]] = None,
    effects: Optional[List[StatusEffectInstance]] = None,
) -> CombatantState:
    """Create a combatant whose max pools default to the current values."""
    return CombatantState(
        combatant_id=combatant_id,
        name=name or combatant_id,
        level=level,
        health=health,
        max_health=max_health if max_health is not None else health,
        shield=shield,
        max_shield=max_shield if max_shield is not None else max(shield, 50),
        power_points=power_points,
        max_power_points=max_power_points if max_power_points is not None else max(power_points, 50),
        is_cpu=is_cpu,
        move_ids=list(move_ids or []),
        status_effects=list(effects or []),
    )


def create_test_move(
    move_id: str,
    name: Optional[str] = None,
    category: MoveCategory = MoveCategory.ATTACK,
    damage: Any = None,
    healing: Any = None,
    pp_steal: int = 0,
    effects: Optional[List[Dict[str, Any]]] = None,
    **kwargs,
) -> MoveDefinition:
    """Create a move; ``effects`` are template dicts like ``{"type": "burn", ...}``."""
    return MoveDefinition(
        move_id=move_id,
        name=name or move_id,
        category=category,
        damage=parse_damage_spec(damage),
        healing=HealingSpec.parse(healing),
        pp_steal=pp_steal,
        status_effects=[StatusEffectTemplate.from_dict(e) for e in (effects or [])],
        **kwargs,
    )


def create_effect(effect_type: StatusEffectType, duration: int = 2, applied_turn: int = 0,
                  **magnitudes) -> StatusEffectInstance:
    """Create an active effect that has not yet ticked after ``applied_turn``."""
    return StatusEffectInstance(
        effect_type=effect_type,
        duration=duration,
        applied_turn=applied_turn,
        last_ticked_turn=applied_turn,
        **magnitudes,
    )


def create_context(turn: int = 1, seed: int = 7, **kwargs) -> BattleContext:
    return BattleContext(turn=turn, rng=kwargs.pop("rng", None) or DiceRoller(seed=seed), **kwargs)
