"""Adapters that apply resolved actions to authoritative battle state.

Two regimes with separate write paths:

- LocalStateAdapter owns private in-process state and mutates it directly.
- SessionAdapter commits to a shared session record through a versioned
  compare-and-set, so at most one action lands per (session, turn).
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Tuple

from skillbattle.config.settings import get_settings
from skillbattle.mechanics.combat.exceptions import (
    InvalidInputError,
    InvalidPhaseError,
    SessionConflictError,
    StaleTurnError,
)
from skillbattle.mechanics.combat.skill_resolver import SkillResolver
from skillbattle.models.combat.mechanics.battle_context import BattleContext
from skillbattle.models.combat.mechanics.move_definition import MoveDefinition
from skillbattle.models.combat.mechanics.skill_action import ResolvedSkillAction
from skillbattle.models.combat.persistence.battle_session import BattleSessionRecord
from skillbattle.models.combat.persistence.combatant_state import CombatantState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BattleRef:
    """Identifies the state an action applies to.

    ``turn`` pins the turn a submission is for; ``version`` is the store
    version the action was resolved against. Local battles leave
    ``session_id`` and ``version`` unset.
    """
    actor_id: str
    target_id: str
    session_id: Optional[str] = None
    turn: Optional[int] = None
    version: Optional[int] = None


@dataclass
class StateSnapshot:
    """Copies of both combatants plus the ref stamped with turn and version."""
    actor: CombatantState
    target: CombatantState
    ref: BattleRef


@dataclass
class AppliedActionResult:
    """Result of committing one resolved action."""
    success: bool
    message: str
    turn: int
    before: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    after: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    log: List[str] = field(default_factory=list)
    attempts: int = 1


def _apply_to_pair(actor: CombatantState, target: CombatantState, resolved: ResolvedSkillAction) -> None:
    actor.apply_delta(resolved.actor_delta, resolved.actor_effects)
    target.apply_delta(resolved.target_delta, resolved.target_effects)


def _pool_snapshot(state: CombatantState) -> Dict[str, Any]:
    return {
        "health": state.health,
        "shield": state.shield,
        "power_points": state.power_points,
        "status_effects": [e.effect_type.value for e in state.status_effects],
    }


class BattleAdapter:
    """Applies ResolvedSkillAction values to whichever state is authoritative."""

    max_retries = 0

    async def read_state(self, ref: BattleRef) -> Tuple[CombatantState, CombatantState]:
        """Return copies of (actor, target) for ``ref``."""
        raise NotImplementedError

    async def snapshot(self, ref: BattleRef) -> StateSnapshot:
        """Read state and stamp the ref with the turn the next commit will be."""
        raise NotImplementedError

    async def apply_resolved_action(self, ref: BattleRef, resolved: ResolvedSkillAction) -> AppliedActionResult:
        raise NotImplementedError


class LocalStateAdapter(BattleAdapter):
    """Private in-process state for single-player encounters.

    No contention is possible, so writes go straight to the held objects.
    """

    def __init__(self, combatants: List[CombatantState], turn: int = 0):
        self.combatants: Dict[str, CombatantState] = {c.combatant_id: c for c in combatants}
        self.turn = turn
        self.log: List[str] = []

    def _get(self, combatant_id: str) -> CombatantState:
        try:
            return self.combatants[combatant_id]
        except KeyError:
            raise InvalidInputError(f"Unknown combatant {combatant_id}", field="combatant_id")

    async def read_state(self, ref: BattleRef) -> Tuple[CombatantState, CombatantState]:
        return self._get(ref.actor_id).copy(), self._get(ref.target_id).copy()

    async def snapshot(self, ref: BattleRef) -> StateSnapshot:
        actor, target = await self.read_state(ref)
        return StateSnapshot(actor, target, replace(ref, turn=self.turn + 1))

    async def apply_resolved_action(self, ref: BattleRef, resolved: ResolvedSkillAction) -> AppliedActionResult:
        actor = self._get(resolved.actor_id)
        target = self._get(resolved.target_id)
        before = {actor.combatant_id: _pool_snapshot(actor), target.combatant_id: _pool_snapshot(target)}

        _apply_to_pair(actor, target, resolved)
        self.turn = resolved.turn
        self.log.extend(resolved.log)

        return AppliedActionResult(
            success=True,
            message=f"Applied {resolved.move_id} for turn {resolved.turn}",
            turn=resolved.turn,
            before=before,
            after={actor.combatant_id: _pool_snapshot(actor), target.combatant_id: _pool_snapshot(target)},
            log=list(resolved.log),
        )


class SessionAdapter(BattleAdapter):
    """Shared multi-party session state behind a versioned compare-and-set."""

    def __init__(self, store, max_retries: Optional[int] = None):
        self.store = store
        self.max_retries = max_retries if max_retries is not None else get_settings().session_max_retries

    async def read_state(self, ref: BattleRef) -> Tuple[CombatantState, CombatantState]:
        snapshot = await self.snapshot(ref)
        return snapshot.actor, snapshot.target

    async def snapshot(self, ref: BattleRef) -> StateSnapshot:
        if not ref.session_id:
            raise InvalidInputError("Session battles need a session id", field="session_id")
        record = await self.store.load(ref.session_id)
        actor, target = record.pair(ref.actor_id, ref.target_id)
        return StateSnapshot(actor, target, replace(ref, turn=record.next_turn, version=record.version))

    async def apply_resolved_action(self, ref: BattleRef, resolved: ResolvedSkillAction) -> AppliedActionResult:
        """Commit ``resolved`` if the session is still where it was resolved.

        Raises:
            InvalidPhaseError: If the session already ended
            StaleTurnError: If the session already committed this turn
            SessionConflictError: If the stored version moved since the read
            PersistenceFailureError: If the store is unreachable
        """
        if ref.version is None:
            raise InvalidInputError("Session commits need the version they were resolved against",
                                    field="version")

        record = await self.store.load(ref.session_id)
        if record.is_finished:
            raise InvalidPhaseError(
                f"Session {ref.session_id} already ended in {record.phase.value}",
                phase=record.phase.value,
            )
        if resolved.turn != record.next_turn:
            raise StaleTurnError(
                f"Session {ref.session_id} is at turn {record.turn}; turn {resolved.turn} cannot commit",
                session_id=ref.session_id,
                turn=resolved.turn,
                actual_version=record.version,
            )
        if record.version != ref.version:
            raise SessionConflictError(
                f"Session {ref.session_id} changed since it was read",
                session_id=ref.session_id,
                expected_version=ref.version,
                actual_version=record.version,
            )

        actor = record.combatant(resolved.actor_id)
        target = record.combatant(resolved.target_id)
        before = {actor.combatant_id: _pool_snapshot(actor), target.combatant_id: _pool_snapshot(target)}
        _apply_to_pair(actor, target, resolved)
        record.turn = resolved.turn
        record.log.extend(resolved.log)
        record.settle_outcome()

        if not await self.store.compare_and_set(record, ref.version):
            raise SessionConflictError(
                f"Session {ref.session_id} was written concurrently",
                session_id=ref.session_id,
                expected_version=ref.version,
            )

        logger.info(f"[SessionAdapter] Committed turn {resolved.turn} for session {ref.session_id} "
                    f"(version {ref.version} -> {ref.version + 1})")
        return AppliedActionResult(
            success=True,
            message=f"Committed {resolved.move_id} for turn {resolved.turn}",
            turn=resolved.turn,
            before=before,
            after={actor.combatant_id: _pool_snapshot(actor), target.combatant_id: _pool_snapshot(target)},
            log=list(resolved.log),
        )

    async def create_session(self, session_id: str, first: CombatantState, second: CombatantState,
                             rng_seed: Optional[int] = None) -> BattleSessionRecord:
        """Create the shared record for a new session."""
        record = BattleSessionRecord(
            session_id=session_id,
            actor_state=first.copy(),
            target_state=second.copy(),
            rng_seed=rng_seed,
        )
        return await self.store.create(record)


async def resolve_and_apply_action(
    adapter: BattleAdapter,
    ref: BattleRef,
    move: MoveDefinition,
    context: BattleContext,
    resolver: Optional[SkillResolver] = None,
) -> Tuple[ResolvedSkillAction, AppliedActionResult]:
    """Read state, resolve the move and commit it through ``adapter``.

    A version conflict re-reads and re-resolves, up to ``adapter.max_retries``
    extra attempts. When ``ref.turn`` is set the submission is pinned to that
    turn and fails with StaleTurnError once the session has moved past it.

    Returns:
        Tuple of (resolved action, commit result)
    """
    resolver = resolver or SkillResolver()
    attempts = 0

    while True:
        attempts += 1
        snapshot = await adapter.snapshot(ref)
        if ref.turn is not None and snapshot.ref.turn != ref.turn:
            logger.warning(f"[SessionAdapter] Turn {ref.turn} already committed for {ref.session_id}")
            raise StaleTurnError(
                f"Turn {ref.turn} is no longer open (next turn is {snapshot.ref.turn})",
                session_id=ref.session_id,
                turn=ref.turn,
                attempts=attempts,
                actual_version=snapshot.ref.version,
            )

        resolved = resolver.resolve(snapshot.actor, snapshot.target, move, context.for_turn(snapshot.ref.turn))
        try:
            result = await adapter.apply_resolved_action(snapshot.ref, resolved)
        except SessionConflictError as e:
            # A pinned submission cannot move to a later turn
            if isinstance(e, StaleTurnError) and ref.turn is not None:
                e.attempts = attempts
                raise
            if attempts > adapter.max_retries:
                logger.warning(f"[SessionAdapter] Giving up on turn {snapshot.ref.turn} after {attempts} attempts")
                raise StaleTurnError(
                    f"Turn {snapshot.ref.turn} lost {attempts} commit attempts; refresh and resubmit",
                    session_id=ref.session_id,
                    turn=snapshot.ref.turn,
                    attempts=attempts,
                    actual_version=e.actual_version,
                )
            logger.warning(f"[SessionAdapter] Version conflict on {ref.session_id}, "
                           f"retrying ({attempts}/{adapter.max_retries})")
            continue

        result.attempts = attempts
        return resolved, result
