"""Damage, healing and shield-boost ranges scaled by move level and mastery."""

import math
from typing import Optional, Tuple

from skillbattle.models.combat.mechanics.damage_spec import DamageSpec, HealingSpec, RangeDamage, ScalarDamage
from skillbattle.utils.dice import DiceRoller

MAX_DAMAGE_PROBABILITY_CAP = 95

# Alternate rule variant multipliers
CORRECT_ANSWER_MULTIPLIER = 1.75
WRONG_ANSWER_MULTIPLIER = 0.5
CPU_VS_CORRECT_ANSWER_MULTIPLIER = 0.65


def level_bonus(base: int, move_level: int) -> int:
    """+10% of base per move level above 1."""
    return math.floor(base * 0.1 * (move_level - 1))


def mastery_bonus(base: int, mastery: int) -> int:
    """+5% of base per mastery level above 1."""
    return math.floor(base * 0.05 * (mastery - 1))


def calculate_damage_range(base: int, move_level: int = 1, mastery: int = 1) -> Tuple[int, int]:
    """Return (min, max) damage for a base amount."""
    bonus = level_bonus(base, move_level)
    return math.floor(base * 0.8) + bonus, base + bonus + mastery_bonus(base, mastery)


def calculate_healing_range(base: int, move_level: int = 1, mastery: int = 1) -> Tuple[int, int]:
    """Return (min, max) healing for a base amount."""
    return calculate_damage_range(base, move_level, mastery)


def calculate_shield_boost_range(base: int, move_level: int = 1, mastery: int = 1) -> Tuple[int, int]:
    """Return (min, max) shield boost for a base amount."""
    bonus = math.floor(base * 0.08 * (move_level - 1))
    return (
        math.floor(base * 0.85) + bonus,
        base + bonus + math.floor(base * 0.04 * (mastery - 1)),
    )


def max_damage_probability(player_level: int, move_level: int = 1, mastery: int = 1) -> int:
    """Percent chance that a ranged roll lands on its maximum."""
    probability = (
        20
        + min(player_level * 2, 50)
        + (move_level - 1) * 5
        + (mastery - 1) * 8
    )
    return min(MAX_DAMAGE_PROBABILITY_CAP, probability)


def roll_in_range(
    low: int,
    high: int,
    rng: DiceRoller,
    player_level: int = 1,
    move_level: int = 1,
    mastery: int = 1,
) -> int:
    """Roll a value in [low, high], biased toward ``high`` by experience.

    With ``max_damage_probability`` percent the roll is exactly ``high``;
    otherwise it is interpolated linearly across the range.
    """
    if high <= low:
        return low
    if rng.chance(max_damage_probability(player_level, move_level, mastery)):
        return high
    value = low + math.floor(rng.random() * (high - low + 1))
    return max(low, min(high, value))


def scaled_damage_bounds(spec: DamageSpec, move_level: int = 1, mastery: int = 1) -> Tuple[int, int]:
    """Return the (min, max) a damage spec can produce after scaling.

    Scalar damage is exact, so both bounds are equal. Mastery raises the
    ceiling of a range; move level lifts both ends.
    """
    if isinstance(spec, ScalarDamage):
        amount = spec.amount + level_bonus(spec.amount, move_level) + mastery_bonus(spec.amount, mastery)
        return amount, amount
    low = spec.minimum + level_bonus(spec.minimum, move_level)
    high = spec.maximum + level_bonus(spec.maximum, move_level) + mastery_bonus(spec.maximum, mastery)
    return low, high


def sample_damage(
    spec: Optional[DamageSpec],
    rng: DiceRoller,
    player_level: int = 1,
    move_level: int = 1,
    mastery: int = 1,
) -> int:
    """Return the raw damage a move deals before mitigation."""
    if spec is None:
        return 0
    low, high = scaled_damage_bounds(spec, move_level, mastery)
    if isinstance(spec, RangeDamage):
        return roll_in_range(low, high, rng, player_level, move_level, mastery)
    return low


def sample_healing(spec: Optional[HealingSpec], rng: DiceRoller, move_level: int = 1, mastery: int = 1) -> int:
    """Return healing within the spec's range, ceiling raised by mastery."""
    if spec is None:
        return 0
    high = spec.maximum + level_bonus(spec.maximum, move_level) + mastery_bonus(spec.maximum, mastery)
    low = spec.minimum + level_bonus(spec.minimum, move_level)
    if high <= low:
        return low
    return rng.randint(low, high)


def sample_shield_boost(base: int, rng: DiceRoller, move_level: int = 1, mastery: int = 1) -> int:
    if base <= 0:
        return 0
    low, high = calculate_shield_boost_range(base, move_level, mastery)
    if high <= low:
        return low
    return rng.randint(low, high)


def apply_answer_multiplier(damage: int, actor_is_cpu: bool, answered_correctly: Optional[bool]) -> int:
    """Scale damage for the alternate rule variant.

    A player hits harder after a correct answer and softer after a wrong one;
    a CPU hits softer against a player who answered correctly.
    """
    if answered_correctly is None:
        return damage
    if actor_is_cpu:
        multiplier = CPU_VS_CORRECT_ANSWER_MULTIPLIER if answered_correctly else 1.0
    else:
        multiplier = CORRECT_ANSWER_MULTIPLIER if answered_correctly else WRONG_ANSWER_MULTIPLIER
    return math.floor(damage * multiplier)
