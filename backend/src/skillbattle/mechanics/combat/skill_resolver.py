"""Skill resolution: one move plus two combatants in, deltas and log out.

The resolver is the only place battle numbers are computed. Local play,
shared sessions and CPU turns all call it; none of them mutate state
themselves.
"""

import logging
from typing import Dict, Optional

from skillbattle.mechanics.combat.battle_log_formatter import format_battle_log_entry
from skillbattle.mechanics.combat.damage_calculator import (
    apply_answer_multiplier,
    sample_damage,
    sample_healing,
    sample_shield_boost,
)
from skillbattle.mechanics.combat.exceptions import InvalidInputError
from skillbattle.mechanics.combat.status_effect_engine import StatusEffectEngine
from skillbattle.models.combat.mechanics.battle_context import BattleContext
from skillbattle.models.combat.mechanics.move_definition import MoveDefinition
from skillbattle.models.combat.mechanics.skill_action import MoveOutcome, ResolvedSkillAction
from skillbattle.models.combat.persistence.combatant_state import CombatantState

logger = logging.getLogger(__name__)


class SkillResolver:
    """Resolves moves into ResolvedSkillAction values.

    Holds no battle state. The only randomness comes from ``context.rng``.
    """

    def __init__(self, effect_engine: Optional[StatusEffectEngine] = None):
        self.effect_engine = effect_engine or StatusEffectEngine()

    def _validate(self, actor: CombatantState, target: CombatantState, move: MoveDefinition,
                  context: BattleContext) -> None:
        if actor is None or target is None:
            raise InvalidInputError("Both an actor and a target are required", field="combatant")
        if move is None:
            raise InvalidInputError("A move is required", field="move")
        actor.validate()
        target.validate()
        move.validate()
        if actor.combatant_id == target.combatant_id:
            raise InvalidInputError("Actor and target must be different combatants", field="target")
        if isinstance(context.turn, bool) or not isinstance(context.turn, int) or context.turn < 1:
            raise InvalidInputError(f"Turn stamp must be a positive integer, got {context.turn!r}", field="turn")

    def resolve(self, actor: CombatantState, target: CombatantState, move: MoveDefinition,
                context: BattleContext) -> ResolvedSkillAction:
        """Resolve ``move`` used by ``actor`` on ``target``.

        Args:
            actor: Combatant using the move (read only)
            target: Combatant the move is aimed at (read only)
            move: Effective move definition, overrides already merged
            context: Mode, player level, rule flags, turn stamp and rng

        Returns:
            ResolvedSkillAction with clamped deltas and updated effect lists

        Raises:
            InvalidInputError: If any input is malformed; nothing is resolved
        """
        self._validate(actor, target, move, context)

        engine = self.effect_engine
        turn = context.turn
        working_actor = actor.copy()
        working_target = target.copy()
        outcome = MoveOutcome(move_name=move.name, actor_name=actor.name, target_name=target.name)

        # Stun, confuse and reduce act on the turn of their final tick, so read them first
        pre_tick = {actor.combatant_id: actor, target.combatant_id: target}
        stunned = engine.is_stunned(actor)

        outcome.ticks.extend(engine.tick_effects(working_actor, working_target, turn))
        outcome.ticks.extend(engine.tick_effects(working_target, working_actor, turn))

        if working_actor.is_defeated:
            logger.info(f"[SkillResolver] {actor.name} fell to status effects before using {move.name}")
        elif stunned:
            outcome.stunned = True
            logger.debug(f"[SkillResolver] {actor.name} is stunned, {move.name} skipped")
        else:
            self._resolve_core(working_actor, working_target, move, context, outcome, pre_tick)

        for before, after in ((actor, working_actor), (target, working_target)):
            after.clamp_pools()
            if after.is_defeated and not before.is_defeated:
                outcome.defeated.append(after.name)

        log = format_battle_log_entry(actor.name, target.name, move, outcome)
        resolved = ResolvedSkillAction(
            actor_id=actor.combatant_id,
            target_id=target.combatant_id,
            move_id=move.move_id,
            turn=turn,
            actor_delta=working_actor.delta_from(actor),
            target_delta=working_target.delta_from(target),
            actor_effects=[e.copy() for e in working_actor.status_effects],
            target_effects=[e.copy() for e in working_target.status_effects],
            outcome=outcome,
            log=log,
        )
        logger.debug(f"[SkillResolver] Turn {turn}: {actor.name} used {move.name} on {target.name} "
                     f"-> actor {resolved.actor_delta.to_dict()}, target {resolved.target_delta.to_dict()}")
        return resolved

    def _resolve_core(self, actor: CombatantState, target: CombatantState, move: MoveDefinition,
                      context: BattleContext, outcome: MoveOutcome,
                      pre_tick: Dict[str, CombatantState]) -> None:
        """Damage, healing, shield boost, PP steal and status templates."""
        engine = self.effect_engine
        rng = context.rng

        outcome.pp_spent = actor.spend_power_points(move.pp_cost)

        recipient = target
        if engine.roll_confusion(pre_tick[actor.combatant_id], rng):
            recipient = actor
            outcome.redirected = True
            logger.debug(f"[SkillResolver] {actor.name} is confused, {move.name} redirected to self")

        player_level = context.player_level if context.player_level is not None else actor.level
        damage = sample_damage(move.damage, rng, player_level, move.level, move.mastery)
        if damage and context.alternate_rules:
            damage = apply_answer_multiplier(damage, actor.is_cpu, context.answered_correctly)
        if damage > 0:
            mitigated = engine.reduce_damage(pre_tick[recipient.combatant_id], damage)
            outcome.damage_reduced = damage - mitigated
            hit = recipient.apply_damage(mitigated)
            outcome.damage = mitigated
            outcome.shield_absorbed = hit["shield_absorbed"]
            outcome.health_damage = hit["health_damage"]

        if move.healing is not None:
            outcome.healing = actor.heal(sample_healing(move.healing, rng, move.level, move.mastery))

        if move.shield_boost:
            outcome.shield_boost = actor.boost_shield(
                sample_shield_boost(move.shield_boost, rng, move.level, move.mastery)
            )

        # A self-hit has no one to steal from
        if move.pp_steal and not outcome.redirected:
            stolen = target.spend_power_points(move.pp_steal)
            actor.gain_power_points(stolen)
            outcome.pp_stolen = stolen

        application = engine.apply_templates(move.status_effects, actor, recipient, context.turn, rng)
        outcome.applied_effects = application.applied
        outcome.resisted_effects = application.resisted
        outcome.cleansed = application.cleansed
        outcome.cleansed_name = application.cleansed_name or None


_default_resolver = SkillResolver()


def resolve_skill_action(actor: CombatantState, target: CombatantState, move: MoveDefinition,
                         context: BattleContext) -> ResolvedSkillAction:
    """Resolve a move with the default (stateless) resolver."""
    return _default_resolver.resolve(actor, target, move, context)
