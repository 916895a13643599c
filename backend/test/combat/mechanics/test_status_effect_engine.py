"""Tests for status effect ticks, expiry and cleanse."""
import pytest

from skillbattle.mechanics.combat.status_effect_engine import StatusEffectEngine
from skillbattle.models.combat.mechanics.enums import StatusEffectType
from skillbattle.models.combat.mechanics.status_effect import StatusEffectInstance, StatusEffectTemplate
from skillbattle.utils.dice import DiceRoller

from battle_factories import create_effect, create_test_combatant


@pytest.fixture
def engine():
    return StatusEffectEngine()


class TestTicks:
    """Per-turn contributions and duration handling."""

    def test_burn_damages_health_and_decrements(self, engine):
        owner = create_test_combatant("a", health=50, shield=10,
                                      effects=[create_effect(StatusEffectType.BURN, duration=3, damage_per_turn=4)])
        other = create_test_combatant("b")

        events = engine.tick_effects(owner, other, turn=1)

        assert owner.health == 46
        assert owner.shield == 10
        assert owner.status_effects[0].duration == 2
        assert events[0].health_lost == 4
        assert events[0].expired is False

    def test_poison_drains_health_and_pp(self, engine):
        owner = create_test_combatant("a", health=20, power_points=3, effects=[
            create_effect(StatusEffectType.POISON, duration=2, damage_per_turn=2, pp_loss_per_turn=5),
        ])

        engine.tick_effects(owner, create_test_combatant("b"), turn=1)

        assert owner.health == 18
        assert owner.power_points == 0

    def test_drain_over_two_turns(self, engine):
        """5 PP and 3 HP per turn for two turns: 10 PP moved, 6 HP healed, then gone."""
        victim = create_test_combatant("v", power_points=30, effects=[
            create_effect(StatusEffectType.DRAIN, duration=2, pp_steal_per_turn=5, heal_per_turn=3),
        ])
        drainer = create_test_combatant("d", health=80, max_health=100, power_points=0, max_power_points=50)

        engine.tick_effects(victim, drainer, turn=1)
        engine.tick_effects(victim, drainer, turn=2)

        assert victim.power_points == 20
        assert drainer.power_points == 10
        assert drainer.health == 86
        assert victim.status_effects == []

    def test_drain_is_clamped_by_victim_pp_and_max_health(self, engine):
        victim = create_test_combatant("v", power_points=7, effects=[
            create_effect(StatusEffectType.DRAIN, duration=2, pp_steal_per_turn=5, heal_per_turn=3),
        ])
        drainer = create_test_combatant("d", health=98, max_health=100, power_points=0, max_power_points=50)

        engine.tick_effects(victim, drainer, turn=1)
        engine.tick_effects(victim, drainer, turn=2)

        assert victim.power_points == 0
        assert drainer.power_points == 7
        assert drainer.health == 100

    def test_duration_one_fires_exactly_once(self, engine):
        owner = create_test_combatant("a", health=50, effects=[
            create_effect(StatusEffectType.BLEED, duration=1, damage_per_turn=5),
        ])
        other = create_test_combatant("b")

        first = engine.tick_effects(owner, other, turn=1)
        second = engine.tick_effects(owner, other, turn=2)

        assert owner.health == 45
        assert first[0].expired is True
        assert second == []
        assert owner.status_effects == []

    def test_same_turn_does_not_tick_twice(self, engine):
        owner = create_test_combatant("a", health=50, effects=[
            create_effect(StatusEffectType.BURN, duration=3, damage_per_turn=5),
        ])
        other = create_test_combatant("b")

        engine.tick_effects(owner, other, turn=4)
        engine.tick_effects(owner, other, turn=4)

        assert owner.health == 45
        assert owner.status_effects[0].duration == 2

    def test_effect_does_not_tick_on_the_turn_it_landed(self, engine):
        template = StatusEffectTemplate.from_dict({"type": "burn", "duration": 2, "damage_per_turn": 3})
        owner = create_test_combatant("a", health=30)
        owner.status_effects.append(template.instantiate("b", applied_turn=5))

        engine.tick_effects(owner, create_test_combatant("b"), turn=5)

        assert owner.health == 30

    @pytest.mark.parametrize("duration", [1, 2, 4])
    def test_effect_is_gone_by_turn_plus_duration(self, engine, duration):
        template = StatusEffectTemplate.from_dict({"type": "poison", "duration": duration, "damage_per_turn": 1})
        owner = create_test_combatant("a", health=50)
        other = create_test_combatant("b")
        owner.status_effects.append(template.instantiate("b", applied_turn=10))

        for turn in range(11, 10 + duration):
            engine.tick_effects(owner, other, turn)
            assert owner.has_effect(StatusEffectType.POISON)
        engine.tick_effects(owner, other, 10 + duration)

        assert not owner.has_effect(StatusEffectType.POISON)
        assert owner.health == 50 - duration

    def test_stun_and_confuse_do_no_damage(self, engine):
        owner = create_test_combatant("a", health=50, effects=[
            create_effect(StatusEffectType.STUN, duration=2),
            create_effect(StatusEffectType.CONFUSE, duration=2, chance=40),
        ])

        events = engine.tick_effects(owner, create_test_combatant("b"), turn=1)

        assert owner.health == 50
        assert events == []
        assert [e.duration for e in owner.status_effects] == [1, 1]


class TestInteractions:
    """Cleanse, confuse rolls and damage reduction."""

    def test_cleanse_keeps_reduce(self, engine):
        target = create_test_combatant("a", effects=[
            create_effect(StatusEffectType.BURN),
            create_effect(StatusEffectType.REDUCE, damage_reduction=30),
            create_effect(StatusEffectType.DRAIN),
        ])

        removed = engine.cleanse(target)

        assert removed == [StatusEffectType.BURN, StatusEffectType.DRAIN]
        assert [e.effect_type for e in target.status_effects] == [StatusEffectType.REDUCE]

    def test_cleanse_runs_before_new_effects_from_same_move(self, engine):
        user = create_test_combatant("u")
        target = create_test_combatant("t", effects=[create_effect(StatusEffectType.POISON)])
        templates = [
            StatusEffectTemplate.from_dict({"type": "burn", "duration": 2}),
            StatusEffectTemplate.from_dict({"type": "cleanse", "applies_to": "target"}),
        ]

        result = engine.apply_templates(templates, user, target, turn=1, rng=DiceRoller(seed=1))

        assert [e.effect_type for e in target.status_effects] == [StatusEffectType.BURN]
        assert result.cleansed == [StatusEffectType.POISON]

    def test_none_type_is_ignored_quietly(self, engine):
        user = create_test_combatant("u")
        target = create_test_combatant("t")
        templates = [StatusEffectTemplate.from_dict({"type": "none", "duration": 1})]

        result = engine.apply_templates(templates, user, target, turn=1, rng=DiceRoller(seed=1))

        assert result.applied == []
        assert result.skipped == []

    def test_reduce_effects_compound(self, engine):
        target = create_test_combatant("t", effects=[
            create_effect(StatusEffectType.REDUCE, damage_reduction=50),
            create_effect(StatusEffectType.REDUCE, damage_reduction=50),
        ])

        assert engine.reduce_damage(target, 100) == 25

    def test_confusion_roll_uses_stored_chance(self, engine):
        certain = create_test_combatant("a", effects=[create_effect(StatusEffectType.CONFUSE, chance=100)])
        never = create_test_combatant("b", effects=[create_effect(StatusEffectType.CONFUSE, chance=0)])
        clear = create_test_combatant("c")
        rng = DiceRoller(seed=3)

        assert engine.roll_confusion(certain, rng) is True
        assert engine.roll_confusion(never, rng) is False
        assert engine.roll_confusion(clear, rng) is False


class TestSerialization:
    """Instances survive the session record round trip with their turn stamp."""

    def test_instance_round_trip_keeps_tick_stamp(self):
        effect = create_effect(StatusEffectType.DRAIN, duration=2, applied_turn=3,
                               pp_steal_per_turn=5, heal_per_turn=3)
        effect.last_ticked_turn = 4

        restored = StatusEffectInstance.from_dict(effect.to_dict())

        assert restored == effect

    def test_unknown_stored_type_is_dropped(self):
        assert StatusEffectInstance.from_dict({"type": "freeze", "duration": 2}) is None
