"""Tests for local and shared-session battle adapters."""
import asyncio

import pytest

from skillbattle.infra.storage.battle_session_repository import InMemorySessionStore
from skillbattle.mechanics.combat.battle_adapters import (
    BattleRef,
    LocalStateAdapter,
    SessionAdapter,
    resolve_and_apply_action,
)
from skillbattle.mechanics.combat.exceptions import (
    InvalidInputError,
    InvalidPhaseError,
    PersistenceFailureError,
    SessionConflictError,
    StaleTurnError,
)
from skillbattle.mechanics.combat.skill_resolver import resolve_skill_action
from skillbattle.models.combat.mechanics.enums import BattlePhase, StatusEffectType

from battle_factories import create_context, create_effect, create_test_combatant, create_test_move


class FlakyCasStore(InMemorySessionStore):
    """Store whose first ``misses`` compare-and-set calls lose the race."""

    def __init__(self, misses: int):
        super().__init__()
        self.misses = misses
        self.cas_calls = 0

    async def compare_and_set(self, record, expected_version):
        self.cas_calls += 1
        if self.misses > 0:
            self.misses -= 1
            return False
        return await super().compare_and_set(record, expected_version)


class UnreachableStore(InMemorySessionStore):
    """Store that fails every load."""

    async def load(self, session_id):
        raise PersistenceFailureError("connection refused", session_id=session_id,
                                      error=ConnectionError("refused"))


class TestLocalStateAdapter:
    """Private single-player state."""

    @pytest.mark.asyncio
    async def test_applies_deltas_directly(self, hero, rival, basic_attack):
        adapter = LocalStateAdapter([hero, rival])

        resolved, result = await resolve_and_apply_action(
            adapter, BattleRef("hero", "rival"), basic_attack, create_context()
        )

        assert result.success is True
        assert result.turn == 1
        assert adapter.turn == 1
        assert adapter.combatants["rival"].shield == 10
        assert adapter.combatants["rival"].health == 100
        assert adapter.log == resolved.log

    @pytest.mark.asyncio
    async def test_snapshot_returns_copies(self, hero, rival):
        adapter = LocalStateAdapter([hero, rival], turn=4)

        snapshot = await adapter.snapshot(BattleRef("hero", "rival"))
        snapshot.actor.health = 1

        assert snapshot.ref.turn == 5
        assert adapter.combatants["hero"].health == 100

    @pytest.mark.asyncio
    async def test_unknown_combatant(self, hero, basic_attack):
        adapter = LocalStateAdapter([hero])

        with pytest.raises(InvalidInputError):
            await resolve_and_apply_action(adapter, BattleRef("hero", "ghost"), basic_attack, create_context())


class TestSessionAdapter:
    """Shared session commits."""

    @pytest.mark.asyncio
    async def test_commit_bumps_turn_and_version(self, session_adapter, memory_store, hero, rival, basic_attack):
        await session_adapter.create_session("s1", hero, rival)

        _, result = await resolve_and_apply_action(
            session_adapter, BattleRef("hero", "rival", session_id="s1"), basic_attack, create_context()
        )

        record = await memory_store.load("s1")
        assert result.attempts == 1
        assert record.turn == 1
        assert record.version == 1
        assert record.combatant("rival").shield == 10
        assert record.log

    @pytest.mark.asyncio
    async def test_apply_without_version_is_rejected(self, session_adapter, hero, rival, basic_attack):
        await session_adapter.create_session("s1", hero, rival)
        snapshot = await session_adapter.snapshot(BattleRef("hero", "rival", session_id="s1"))
        resolved = resolve_skill_action(snapshot.actor, snapshot.target, basic_attack, create_context())

        with pytest.raises(InvalidInputError):
            await session_adapter.apply_resolved_action(BattleRef("hero", "rival", session_id="s1"), resolved)

    @pytest.mark.asyncio
    async def test_direct_apply_with_stale_version_conflicts(self, session_adapter, hero, rival, basic_attack):
        await session_adapter.create_session("s1", hero, rival)
        ref = BattleRef("hero", "rival", session_id="s1")
        first = await session_adapter.snapshot(ref)
        second = await session_adapter.snapshot(ref)

        winner = resolve_skill_action(first.actor, first.target, basic_attack, create_context(turn=1))
        loser = resolve_skill_action(second.actor, second.target, basic_attack, create_context(turn=1))
        await session_adapter.apply_resolved_action(first.ref, winner)

        with pytest.raises(StaleTurnError) as exc_info:
            await session_adapter.apply_resolved_action(second.ref, loser)
        assert exc_info.value.turn == 1

    @pytest.mark.asyncio
    async def test_defeat_sets_session_phase(self, session_adapter, memory_store, hero):
        weak = create_test_combatant("rival", "Rival", health=5)
        await session_adapter.create_session("s1", hero, weak)

        await resolve_and_apply_action(
            session_adapter, BattleRef("hero", "rival", session_id="s1"),
            create_test_move("smash", damage=50), create_context()
        )

        record = await memory_store.load("s1")
        assert record.phase == BattlePhase.VICTORY
        assert record.winner_id == "hero"
        assert record.combatant("rival").health == 0

    @pytest.mark.asyncio
    async def test_finished_session_rejects_further_actions(self, session_adapter, memory_store, hero, basic_attack):
        weak = create_test_combatant("rival", "Rival", health=5)
        await session_adapter.create_session("s1", hero, weak)
        await resolve_and_apply_action(
            session_adapter, BattleRef("hero", "rival", session_id="s1"),
            create_test_move("smash", damage=50), create_context()
        )

        with pytest.raises(InvalidPhaseError):
            await resolve_and_apply_action(
                session_adapter, BattleRef("rival", "hero", session_id="s1"), basic_attack, create_context()
            )

        record = await memory_store.load("s1")
        assert record.phase == BattlePhase.VICTORY
        assert record.winner_id == "hero"
        assert record.turn == 1
        assert record.version == 1
        assert record.combatant("hero").shield == 20

    @pytest.mark.asyncio
    async def test_outcome_is_recorded_for_session_creator(self, session_adapter, memory_store, rival):
        weak_hero = create_test_combatant("hero", "Hero", health=5)
        await session_adapter.create_session("s1", weak_hero, rival)

        await resolve_and_apply_action(
            session_adapter, BattleRef("rival", "hero", session_id="s1"),
            create_test_move("smash", damage=50), create_context()
        )

        record = await memory_store.load("s1")
        assert record.phase == BattlePhase.DEFEAT
        assert record.winner_id == "rival"

    @pytest.mark.asyncio
    async def test_invalid_input_leaves_session_untouched(self, session_adapter, memory_store, hero, rival):
        await session_adapter.create_session("s1", hero, rival)
        bad_move = create_test_move("bad", damage=5, pp_cost=-1)

        with pytest.raises(InvalidInputError):
            await resolve_and_apply_action(
                session_adapter, BattleRef("hero", "rival", session_id="s1"), bad_move, create_context()
            )

        record = await memory_store.load("s1")
        assert record.version == 0
        assert record.turn == 0
        assert record.combatant("rival").shield == 20


class TestExactlyOnce:
    """One commit per (session, turn)."""

    @pytest.mark.asyncio
    async def test_concurrent_submissions_for_same_turn(self, session_adapter, memory_store,
                                                        hero, rival, basic_attack):
        await session_adapter.create_session("s1", hero, rival)
        ref = BattleRef("hero", "rival", session_id="s1", turn=1)

        outcomes = await asyncio.gather(
            resolve_and_apply_action(session_adapter, ref, basic_attack, create_context(seed=1)),
            resolve_and_apply_action(session_adapter, ref, basic_attack, create_context(seed=2)),
            return_exceptions=True,
        )

        committed = [o for o in outcomes if not isinstance(o, BaseException)]
        rejected = [o for o in outcomes if isinstance(o, BaseException)]
        assert len(committed) == 1
        assert len(rejected) == 1
        assert isinstance(rejected[0], StaleTurnError)

        record = await memory_store.load("s1")
        assert record.turn == 1
        assert record.version == 1
        assert record.combatant("rival").shield == 10

    @pytest.mark.asyncio
    async def test_unpinned_submissions_commit_in_sequence(self, session_adapter, memory_store,
                                                           hero, rival, basic_attack):
        await session_adapter.create_session("s1", hero, rival)
        ref = BattleRef("hero", "rival", session_id="s1")

        results = await asyncio.gather(
            resolve_and_apply_action(session_adapter, ref, basic_attack, create_context(seed=1)),
            resolve_and_apply_action(session_adapter, ref, basic_attack, create_context(seed=2)),
        )

        assert sorted(result.turn for _, result in results) == [1, 2]
        record = await memory_store.load("s1")
        assert record.version == 2
        assert record.combatant("rival").shield == 0

    @pytest.mark.asyncio
    async def test_conflict_retries_then_commits(self, hero, rival, basic_attack):
        store = FlakyCasStore(misses=2)
        adapter = SessionAdapter(store, max_retries=3)
        await adapter.create_session("s1", hero, rival)

        _, result = await resolve_and_apply_action(
            adapter, BattleRef("hero", "rival", session_id="s1"), basic_attack, create_context()
        )

        assert result.attempts == 3
        assert (await store.load("s1")).version == 1

    @pytest.mark.asyncio
    async def test_exhausted_retries_raise_stale_turn(self, hero, rival, basic_attack):
        store = FlakyCasStore(misses=10)
        adapter = SessionAdapter(store, max_retries=2)
        await adapter.create_session("s1", hero, rival)

        with pytest.raises(StaleTurnError) as exc_info:
            await resolve_and_apply_action(
                adapter, BattleRef("hero", "rival", session_id="s1"), basic_attack, create_context()
            )

        assert exc_info.value.attempts == 3
        assert isinstance(exc_info.value, SessionConflictError)
        assert store.cas_calls == 3
        assert (await store.load("s1")).version == 0

    @pytest.mark.asyncio
    async def test_retried_turn_ticks_effects_once(self, rival):
        burning = create_test_combatant("hero", "Hero", health=100, effects=[
            create_effect(StatusEffectType.BURN, duration=3, damage_per_turn=5),
        ])
        store = FlakyCasStore(misses=2)
        adapter = SessionAdapter(store, max_retries=3)
        await adapter.create_session("s1", burning, rival)

        await resolve_and_apply_action(
            adapter, BattleRef("hero", "rival", session_id="s1"), create_test_move("focus"), create_context()
        )

        hero = (await store.load("s1")).combatant("hero")
        assert hero.health == 95
        assert hero.status_effects[0].duration == 2
        assert hero.status_effects[0].last_ticked_turn == 1

    @pytest.mark.asyncio
    async def test_unreachable_store_is_persistence_failure(self, hero, rival, basic_attack):
        adapter = SessionAdapter(UnreachableStore())

        with pytest.raises(PersistenceFailureError) as exc_info:
            await resolve_and_apply_action(
                adapter, BattleRef("hero", "rival", session_id="s1"), basic_attack, create_context()
            )

        assert isinstance(exc_info.value.original_error, ConnectionError)
