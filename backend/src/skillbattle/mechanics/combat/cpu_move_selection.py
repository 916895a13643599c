"""Move selection and turn ordering for CPU opponents."""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from skillbattle.models.combat.mechanics.damage_spec import RangeDamage, ScalarDamage
from skillbattle.models.combat.mechanics.enums import MoveCategory, StatusEffectType
from skillbattle.models.combat.mechanics.move_definition import MoveDefinition
from skillbattle.models.combat.persistence.combatant_state import CombatantState
from skillbattle.utils.dice import DiceRoller

logger = logging.getLogger(__name__)

DEFAULT_SPEED = 50


def available_moves(moves: List[MoveDefinition], cooldowns: Optional[Dict[str, int]] = None) -> List[MoveDefinition]:
    """Return the moves whose cooldown has run out."""
    cooldowns = cooldowns or {}
    return [m for m in moves if cooldowns.get(m.move_id, 0) <= 0]


def select_random_cpu_move(moves: List[MoveDefinition], rng: DiceRoller,
                           cooldowns: Optional[Dict[str, int]] = None) -> Optional[MoveDefinition]:
    """Pick uniformly among moves not on cooldown; None when nothing is available."""
    candidates = available_moves(moves, cooldowns)
    if not candidates:
        return None
    return rng.choice(candidates)


def _average_damage(move: MoveDefinition) -> float:
    if isinstance(move.damage, RangeDamage):
        return (move.damage.minimum + move.damage.maximum) / 2
    if isinstance(move.damage, ScalarDamage):
        return float(move.damage.amount)
    return 0.0


def _average_healing(move: MoveDefinition) -> float:
    if move.healing is None:
        return 0.0
    return (move.healing.minimum + move.healing.maximum) / 2


def _percent(value: int, maximum: int) -> float:
    return (value / maximum) * 100 if maximum > 0 else 0.0


@dataclass
class ScoredMove:
    move: MoveDefinition
    score: float
    reason: str


def score_cpu_move(move: MoveDefinition, cpu: CombatantState, target: CombatantState) -> ScoredMove:
    """Score one move for the situation; higher is better."""
    cpu_health = _percent(cpu.health, cpu.max_health)
    cpu_shield = _percent(cpu.shield, cpu.max_shield)
    target_health = _percent(target.health, target.max_health)
    target_shield = _percent(target.shield, target.max_shield)
    is_attack = move.category == MoveCategory.ATTACK
    is_heal = move.category == MoveCategory.HEAL or move.healing is not None
    is_defense = move.category == MoveCategory.DEFENSE or move.shield_boost > 0
    avg_damage = _average_damage(move)
    avg_healing = _average_healing(move)

    score = 0.0
    reason = ""

    if cpu_health < 25:
        if is_heal:
            score += 100 + avg_healing * 2
            reason = f"Critical health - need healing ({avg_healing} HP)"
        elif is_defense:
            score += 80 + move.shield_boost
            reason = "Critical health - need defense"
        elif is_attack:
            score -= 50
            reason = "Too low on health to attack"
    elif cpu_health < 50:
        if is_heal:
            score += 60 + avg_healing * 1.5
            reason = f"Low health - healing beneficial ({avg_healing} HP)"
        elif is_defense:
            score += 40 + move.shield_boost * 0.5
            reason = "Low health - defense helpful"

    if is_defense:
        if cpu_shield < 20:
            score += 70 + move.shield_boost * 2
            reason = reason or f"No shields - need shield boost ({move.shield_boost})"
        elif cpu_shield < 50:
            score += 30 + move.shield_boost
            reason = reason or f"Low shields - shield boost helpful ({move.shield_boost})"

    if is_attack:
        if target_health < 30:
            score += 90 + avg_damage * 1.5
            reason = reason or f"Target low health - finish them ({avg_damage} damage)"
        elif target_shield < 20:
            score += 50 + avg_damage * 1.2
            reason = reason or f"Target no shields - high damage attack ({avg_damage} damage)"
        elif target_shield > 50:
            if avg_damage > target.shield:
                score += 40 + avg_damage * 0.8
            else:
                score += 20 + avg_damage * 0.5
            reason = reason or f"Target has shields ({avg_damage} damage)"

    effect_types = {t.known_type for t in move.status_effects}
    if effect_types & {StatusEffectType.DRAIN, StatusEffectType.CLEANSE}:
        score += 30
        reason = reason or "Applies beneficial effects"
    if effect_types & {StatusEffectType.BURN, StatusEffectType.POISON, StatusEffectType.STUN,
                       StatusEffectType.BLEED, StatusEffectType.CONFUSE}:
        score += 25
        reason = reason or "Applies negative effects"

    if move.pp_steal > 0:
        score += 20 + move.pp_steal * 0.5
        reason = reason or f"Steals PP ({move.pp_steal})"

    if move.priority > 0:
        score += move.priority * 15
        reason = reason or f"High priority move (+{move.priority})"
    elif move.priority < 0:
        score -= abs(move.priority) * 5
        reason = reason or f"Low priority move ({move.priority})"

    if is_attack:
        score += 10 + avg_damage * 0.3
        reason = reason or f"Standard attack ({avg_damage} damage)"
        if target_health > 70 and avg_damage < 10:
            score -= 20
            reason = reason or "Weak attack against healthy target"

    return ScoredMove(move, score, reason)


def select_optimal_cpu_move(moves: List[MoveDefinition], cpu: CombatantState, target: CombatantState,
                            cooldowns: Optional[Dict[str, int]] = None) -> Optional[ScoredMove]:
    """Pick the best-scoring available move, falling back to the first one."""
    candidates = available_moves(moves, cooldowns)
    if not candidates:
        return None

    scored = sorted((score_cpu_move(m, cpu, target) for m in candidates), key=lambda s: s.score, reverse=True)
    best = scored[0]
    if best.score < 0:
        return ScoredMove(candidates[0], best.score, "Fallback: first available move")
    logger.debug(f"[CPU] {cpu.name} picks {best.move.name}: {best.reason}")
    return best


@dataclass
class TurnOrderEntry:
    combatant_id: str
    name: str
    order_score: int
    priority: int
    speed: int
    random: int


def calculate_turn_order(participants: List[Dict], rng: DiceRoller) -> List[TurnOrderEntry]:
    """Order participants by move priority, then speed, then a 0-5 roll.

    Each participant dict carries ``combatant``, an optional ``move`` and an
    optional ``speed``.
    """
    results = []
    for participant in participants:
        combatant = participant["combatant"]
        move = participant.get("move")
        priority = move.priority if move is not None else 0
        speed = participant.get("speed") or DEFAULT_SPEED
        roll = rng.randint(0, 5)
        results.append(TurnOrderEntry(
            combatant_id=combatant.combatant_id,
            name=combatant.name,
            order_score=priority * 100 + speed + roll,
            priority=priority,
            speed=speed,
            random=roll,
        ))
    results.sort(key=lambda r: r.order_score, reverse=True)
    return results
