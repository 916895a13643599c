"""Tests for damage, healing and shield ranges."""
from skillbattle.mechanics.combat.damage_calculator import (
    apply_answer_multiplier,
    calculate_damage_range,
    calculate_shield_boost_range,
    max_damage_probability,
    roll_in_range,
    sample_damage,
    scaled_damage_bounds,
)
from skillbattle.models.combat.mechanics.damage_spec import RangeDamage, ScalarDamage
from skillbattle.utils.dice import DiceRoller, FixedDiceRoller


class TestRanges:
    """Range formulas."""

    def test_damage_range_base_level(self):
        assert calculate_damage_range(20) == (16, 20)

    def test_damage_range_with_level_and_mastery(self):
        # level 3: +4 both ends, mastery 3: +2 on the ceiling
        assert calculate_damage_range(20, move_level=3, mastery=3) == (20, 26)

    def test_shield_boost_range(self):
        assert calculate_shield_boost_range(30) == (25, 30)
        assert calculate_shield_boost_range(50, move_level=2, mastery=2) == (46, 56)

    def test_scaled_bounds_for_range(self):
        assert scaled_damage_bounds(RangeDamage(10, 20)) == (10, 20)
        assert scaled_damage_bounds(RangeDamage(10, 20), mastery=5) == (10, 24)

    def test_scalar_bounds_are_equal(self):
        assert scaled_damage_bounds(ScalarDamage(30), move_level=2) == (33, 33)


class TestRolls:
    """Biased rolls."""

    def test_max_probability_caps_at_95(self):
        assert max_damage_probability(1) == 22
        assert max_damage_probability(30, move_level=4, mastery=5) == 95

    def test_roll_lands_on_max_when_chance_hits(self):
        # 0.1 -> percent roll 11, under the 22% max chance
        rng = FixedDiceRoller([0.1])
        assert roll_in_range(10, 20, rng) == 20

    def test_roll_interpolates_otherwise(self):
        # 0.9 -> percent roll 91 misses; 0.5 -> 10 + floor(0.5 * 11) = 15
        rng = FixedDiceRoller([0.9, 0.5])
        assert roll_in_range(10, 20, rng) == 15

    def test_rolls_stay_in_range(self):
        rng = DiceRoller(seed=11)
        for _ in range(200):
            assert 3 <= sample_damage(RangeDamage(3, 9), rng) <= 9

    def test_no_damage_spec_is_zero(self):
        assert sample_damage(None, DiceRoller(seed=1)) == 0


class TestAnswerMultiplier:
    """Alternate rule variant."""

    def test_no_answer_leaves_damage(self):
        assert apply_answer_multiplier(40, actor_is_cpu=False, answered_correctly=None) == 40

    def test_cpu_after_wrong_answer_is_unchanged(self):
        assert apply_answer_multiplier(40, actor_is_cpu=True, answered_correctly=False) == 40
