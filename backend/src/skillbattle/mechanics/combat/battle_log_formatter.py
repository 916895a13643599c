"""Render resolved battle outcomes as transcript lines.

Templates are fixed so that every battle mode produces the same transcript
for the same outcome. No numbers are computed here.
"""

from typing import List

from skillbattle.models.combat.mechanics.enums import StatusEffectType
from skillbattle.models.combat.mechanics.move_definition import MoveDefinition
from skillbattle.models.combat.mechanics.skill_action import MoveOutcome, StatusTickEvent

TICK_TEMPLATES = {
    StatusEffectType.BURN: "🔥 {owner} takes {health} burn damage!",
    StatusEffectType.BLEED: "🩸 {owner} bleeds for {health} damage!",
    StatusEffectType.POISON: "☠️ {owner} takes {health} poison damage and loses {pp} PP!",
    StatusEffectType.DRAIN: "🌀 {beneficiary} drained {pp} PP from {owner} and healed {healed} HP!",
}

DAMAGE_TEMPLATE = "⚔️ {actor} attacked {target} with {move} for {damage} damage ({shield} to shields, {health} to health)!"
REDUCED_TEMPLATE = "🛡️ {target}'s damage reduction blocked {amount} damage!"
HEAL_TEMPLATE = "💚 {actor} used {move} to heal for {amount} HP!"
SHIELD_TEMPLATE = "🛡️ {actor} used {move} to boost shields by {amount}!"
STEAL_TEMPLATE = "💰 {actor} stole {amount} PP from {target}!"
APPLIED_TEMPLATE = "✨ {target} is affected by {effect} for {duration} turn(s)!"
RESISTED_TEMPLATE = "❌ {target} resisted {effect}!"
CLEANSED_TEMPLATE = "🧼 {target} was cleansed of {effects}!"
EXPIRED_TEMPLATE = "⌛ {owner}'s {effect} wore off."
STUNNED_TEMPLATE = "💫 {actor} is stunned and cannot act!"
CONFUSED_TEMPLATE = "😵 {actor} is confused and hit themselves!"
DEFAULT_TEMPLATE = "⚔️ {actor} used {move} on {target}!"
DEFEAT_TEMPLATE = "💀 {name} has been defeated!"
TURN_TEMPLATE = "🔄 Turn {turn} begins!"


def format_tick(event: StatusTickEvent) -> List[str]:
    """Render one status tick, plus its expiry line when it wore off."""
    lines = []
    template = TICK_TEMPLATES.get(event.effect_type)
    if template and (event.health_lost or event.pp_lost or event.pp_transferred or event.healed):
        lines.append(template.format(
            owner=event.owner_name,
            health=event.health_lost,
            pp=event.pp_transferred if event.effect_type == StatusEffectType.DRAIN else event.pp_lost,
            healed=event.healed,
            beneficiary=event.beneficiary_name,
        ))
    if event.expired:
        lines.append(EXPIRED_TEMPLATE.format(owner=event.owner_name, effect=event.effect_type.value))
    return lines


def format_battle_log_entry(actor_name: str, target_name: str, move: MoveDefinition,
                            outcome: MoveOutcome) -> List[str]:
    """Render a resolved action as ordered transcript lines."""
    lines = []

    for event in outcome.ticks:
        lines.extend(format_tick(event))

    if outcome.stunned:
        lines.append(STUNNED_TEMPLATE.format(actor=actor_name))
    else:
        hit_name = actor_name if outcome.redirected else target_name
        acted = False

        if outcome.redirected:
            lines.append(CONFUSED_TEMPLATE.format(actor=actor_name))
        if outcome.damage_reduced:
            lines.append(REDUCED_TEMPLATE.format(target=hit_name, amount=outcome.damage_reduced))
        if outcome.damage:
            lines.append(DAMAGE_TEMPLATE.format(
                actor=actor_name,
                target=hit_name,
                move=move.name,
                damage=outcome.damage,
                shield=outcome.shield_absorbed,
                health=outcome.health_damage,
            ))
            acted = True
        if outcome.healing:
            lines.append(HEAL_TEMPLATE.format(actor=actor_name, move=move.name, amount=outcome.healing))
            acted = True
        if outcome.shield_boost:
            lines.append(SHIELD_TEMPLATE.format(actor=actor_name, move=move.name, amount=outcome.shield_boost))
            acted = True
        if outcome.pp_stolen:
            lines.append(STEAL_TEMPLATE.format(actor=actor_name, target=target_name, amount=outcome.pp_stolen))
            acted = True
        if not acted:
            lines.append(DEFAULT_TEMPLATE.format(actor=actor_name, move=move.name, target=hit_name))

        if outcome.cleansed:
            lines.append(CLEANSED_TEMPLATE.format(
                target=outcome.cleansed_name,
                effects=", ".join(t.value for t in outcome.cleansed),
            ))
        for applied in outcome.applied_effects:
            lines.append(APPLIED_TEMPLATE.format(
                target=applied.recipient_name,
                effect=applied.effect_type.value,
                duration=applied.duration,
            ))
        for resisted in outcome.resisted_effects:
            lines.append(RESISTED_TEMPLATE.format(target=resisted.recipient_name, effect=resisted.effect_type.value))

    for name in outcome.defeated:
        lines.append(DEFEAT_TEMPLATE.format(name=name))

    return lines


def format_turn_start(turn: int) -> str:
    return TURN_TEMPLATE.format(turn=turn)
