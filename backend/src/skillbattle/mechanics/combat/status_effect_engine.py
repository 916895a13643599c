"""Status effect lifecycle: application, per-turn ticks, expiry and cleanse.

Every function here works on the resolver's private working copies of the
combatants. Nothing in this module touches adapter-owned state.
"""

import logging
import math
from dataclasses import dataclass, field, replace
from typing import List

from skillbattle.models.combat.mechanics.enums import EffectTarget, StatusEffectType
from skillbattle.models.combat.mechanics.skill_action import AppliedEffect, StatusTickEvent
from skillbattle.models.combat.mechanics.status_effect import StatusEffectInstance, StatusEffectTemplate
from skillbattle.models.combat.persistence.combatant_state import CombatantState
from skillbattle.utils.dice import DiceRoller

logger = logging.getLogger(__name__)


@dataclass
class TemplateApplication:
    """What happened when a move's status templates were rolled."""
    applied: List[AppliedEffect] = field(default_factory=list)
    resisted: List[AppliedEffect] = field(default_factory=list)
    cleansed: List[StatusEffectType] = field(default_factory=list)
    cleansed_name: str = ""
    skipped: List[str] = field(default_factory=list)


class StatusEffectEngine:
    """Applies, ticks and clears status effects."""

    def tick_effects(self, owner: CombatantState, opponent: CombatantState, turn: int) -> List[StatusTickEvent]:
        """Fire every effect on ``owner`` that has not yet ticked for ``turn``.

        Each firing applies its per-turn contribution, then decrements the
        duration. Effects reaching 0 are removed after that final tick.
        Effects already stamped with ``turn`` are left untouched, which keeps
        a re-resolved turn from ticking twice.
        """
        events = []
        remaining = []

        for effect in owner.status_effects:
            if not effect.is_active:
                continue
            if effect.has_ticked_on(turn):
                remaining.append(effect)
                continue

            event = self._fire(effect, owner, opponent)
            ticked = effect.ticked(turn)
            if ticked.is_active:
                remaining.append(ticked)
            else:
                logger.debug(f"[StatusEffects] {effect.effect_type.value} expired on {owner.name} at turn {turn}")
            if event is None and not ticked.is_active:
                event = StatusTickEvent(owner.name, effect.effect_type)
            if event is not None:
                events.append(replace(event, expired=not ticked.is_active))

        owner.status_effects = remaining
        return events

    def _fire(self, effect: StatusEffectInstance, owner: CombatantState, opponent: CombatantState):
        """Apply one tick's numeric contribution. Return None for effects without one."""
        effect_type = effect.effect_type

        if effect_type in (StatusEffectType.BURN, StatusEffectType.BLEED):
            lost = owner.lose_health(effect.damage_per_turn)
            return StatusTickEvent(owner.name, effect_type, health_lost=lost)

        if effect_type == StatusEffectType.POISON:
            lost = owner.lose_health(effect.damage_per_turn)
            pp_lost = owner.spend_power_points(effect.pp_loss_per_turn)
            return StatusTickEvent(owner.name, effect_type, health_lost=lost, pp_lost=pp_lost)

        if effect_type == StatusEffectType.DRAIN:
            taken = owner.spend_power_points(effect.pp_steal_per_turn)
            opponent.gain_power_points(taken)
            healed = opponent.heal(effect.heal_per_turn)
            return StatusTickEvent(
                owner.name,
                effect_type,
                pp_transferred=taken,
                healed=healed,
                beneficiary_name=opponent.name,
            )

        # stun, confuse and reduce act outside the tick; none is a placeholder
        return None

    def is_stunned(self, combatant: CombatantState) -> bool:
        return combatant.has_effect(StatusEffectType.STUN)

    def roll_confusion(self, combatant: CombatantState, rng: DiceRoller) -> bool:
        """Roll each active confuse effect; True when any redirects the action."""
        redirected = False
        for effect in combatant.effects_of(StatusEffectType.CONFUSE):
            if rng.chance(effect.chance):
                redirected = True
                break
        return redirected

    def reduce_damage(self, recipient: CombatantState, damage: int) -> int:
        """Lower incoming damage by each active reduce effect in turn."""
        reduced = damage
        for effect in recipient.effects_of(StatusEffectType.REDUCE):
            percent = max(0, min(100, effect.damage_reduction))
            reduced = math.floor(reduced * (100 - percent) / 100)
        return reduced

    def cleanse(self, combatant: CombatantState) -> List[StatusEffectType]:
        """Remove every negative effect; return the types removed."""
        removed = [e.effect_type for e in combatant.status_effects if e.is_negative]
        combatant.status_effects = [e for e in combatant.status_effects if not e.is_negative]
        return removed

    def apply_templates(
        self,
        templates: List[StatusEffectTemplate],
        user: CombatantState,
        recipient: CombatantState,
        turn: int,
        rng: DiceRoller,
    ) -> TemplateApplication:
        """Roll each template's success chance and apply what lands.

        Rolls happen in template order. Successful cleanses run before any
        new instance is appended, so a cleanse never strips an effect landed
        by the same move.
        """
        result = TemplateApplication()
        landed = []

        for template in templates:
            effect_type = template.known_type
            if effect_type is None:
                logger.warning(f"[StatusEffects] Skipping unrecognized status effect type: {template.effect_type!r}")
                result.skipped.append(str(template.effect_type))
                continue
            if effect_type == StatusEffectType.NONE:
                continue

            receiver = user if template.recipient() == EffectTarget.SELF else recipient
            if rng.chance(template.success_chance):
                landed.append((template, receiver))
            else:
                result.resisted.append(AppliedEffect(receiver.name, effect_type, template.duration))

        for template, receiver in landed:
            if template.known_type == StatusEffectType.CLEANSE:
                result.cleansed.extend(self.cleanse(receiver))
                result.cleansed_name = receiver.name

        for template, receiver in landed:
            if template.known_type == StatusEffectType.CLEANSE:
                continue
            if template.duration <= 0:
                logger.warning(f"[StatusEffects] Ignoring {template.known_type.value} "
                               f"with non-positive duration {template.duration}")
                continue
            receiver.status_effects.append(template.instantiate(user.combatant_id, turn))
            result.applied.append(AppliedEffect(receiver.name, template.known_type, template.duration))

        return result
