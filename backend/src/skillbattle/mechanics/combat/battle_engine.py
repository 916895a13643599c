"""Per-encounter turn state machine.

Selection -> Execution (animation) -> Resolution -> OpponentTurn ->
Selection, until one side is defeated. Player and CPU moves go through the
same resolver and adapter.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, List, Optional

from skillbattle.config.settings import get_settings
from skillbattle.mechanics.combat.battle_adapters import BattleAdapter, BattleRef, resolve_and_apply_action
from skillbattle.mechanics.combat.battle_log_formatter import format_turn_start
from skillbattle.mechanics.combat.cpu_move_selection import select_optimal_cpu_move, select_random_cpu_move
from skillbattle.mechanics.combat.exceptions import BattleError, InvalidInputError, InvalidPhaseError
from skillbattle.mechanics.combat.skill_resolver import SkillResolver
from skillbattle.mechanics.moves.move_catalog import MoveDefinitionSource
from skillbattle.models.combat.mechanics.battle_context import BattleContext
from skillbattle.models.combat.mechanics.enums import BattleMode, BattlePhase, CpuPolicy
from skillbattle.models.combat.mechanics.move_definition import MoveDefinition
from skillbattle.utils.dice import DiceRoller

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PendingAction:
    """A move and target waiting on its animation."""
    actor_id: str
    target_id: str
    move_id: str


async def _no_animation(action: PendingAction) -> None:
    return None


class BattleEngine:
    """Drives one encounter between a player and an opponent.

    When the opponent is a CPU, every player action is followed by a CPU
    action. Otherwise the two sides alternate through Selection.
    """

    def __init__(
        self,
        adapter: BattleAdapter,
        moves: MoveDefinitionSource,
        player_id: str,
        opponent_id: str,
        mode: BattleMode = BattleMode.ARENA,
        rng: Optional[DiceRoller] = None,
        resolver: Optional[SkillResolver] = None,
        animation: Optional[Callable[[PendingAction], Awaitable[None]]] = None,
        alternate_rules: Optional[bool] = None,
        session_id: Optional[str] = None,
        mastery: Optional[Dict[str, int]] = None,
        on_finished: Optional[Callable[[BattlePhase], None]] = None,
        cpu_policy: CpuPolicy = CpuPolicy.RANDOM,
    ):
        self.adapter = adapter
        self.moves = moves
        self.player_id = player_id
        self.opponent_id = opponent_id
        self.mode = mode
        self.rng = rng or DiceRoller()
        self.resolver = resolver or SkillResolver()
        self.animation = animation or _no_animation
        self.alternate_rules = (
            alternate_rules if alternate_rules is not None else get_settings().alternate_rules_enabled
        )
        self.session_id = session_id
        self.mastery = mastery or {}
        self.on_finished = on_finished
        self.cpu_policy = cpu_policy

        self.phase = BattlePhase.SELECTION
        self.active_id = player_id
        self.selected_move_id: Optional[str] = None
        self.selected_target_id: Optional[str] = None
        self.cooldowns: Dict[str, Dict[str, int]] = {player_id: {}, opponent_id: {}}
        self.round_number = 1
        self.log: List[str] = []
        self._finished = asyncio.Event()
        self._executing = False

    # ========== Selection ==========

    def _require_phase(self, *phases: BattlePhase):
        if self._executing:
            raise InvalidPhaseError(
                f"An action is already executing for {self.active_id}",
                phase=self.phase.value,
            )
        if self.phase not in phases:
            raise InvalidPhaseError(
                f"Not allowed during {self.phase.value}",
                phase=self.phase.value,
            )

    def _other(self, combatant_id: str) -> str:
        return self.opponent_id if combatant_id == self.player_id else self.player_id

    def available_move_ids(self, combatant_id: str, move_ids: List[str]) -> List[str]:
        """Return the ids in ``move_ids`` that are off cooldown for ``combatant_id``."""
        cooldowns = self.cooldowns.get(combatant_id, {})
        return [move_id for move_id in move_ids if cooldowns.get(move_id, 0) <= 0]

    def select_move(self, move_id: str):
        self._require_phase(BattlePhase.SELECTION)
        if move_id not in self.moves.catalog:
            raise InvalidInputError(f"Unknown move: {move_id}", field="move_id")
        if self.cooldowns[self.active_id].get(move_id, 0) > 0:
            raise InvalidInputError(
                f"{move_id} is on cooldown for {self.cooldowns[self.active_id][move_id]} more turn(s)",
                field="move_id",
            )
        self.selected_move_id = move_id
        self._maybe_begin_execution()

    def select_target(self, target_id: str):
        self._require_phase(BattlePhase.SELECTION)
        if target_id not in (self.player_id, self.opponent_id) or target_id == self.active_id:
            raise InvalidInputError(f"{target_id} is not a valid target", field="target_id")
        self.selected_target_id = target_id
        self._maybe_begin_execution()

    def cancel_selection(self):
        """Clear a chosen move and target. Only possible before execution starts."""
        self._require_phase(BattlePhase.SELECTION)
        self.selected_move_id = None
        self.selected_target_id = None

    def _maybe_begin_execution(self):
        if self.selected_move_id and self.selected_target_id:
            self.phase = BattlePhase.EXECUTION
            logger.debug(f"[BattleEngine] {self.active_id} locked in {self.selected_move_id}")

    # ========== Execution / Resolution ==========

    async def execute(self, answered_correctly: Optional[bool] = None) -> List[str]:
        """Run the locked-in action to completion, then the opponent's turn.

        Only one call runs per selection; a second call made while the first
        is still animating or resolving raises InvalidPhaseError.

        Returns:
            Log lines produced during this cycle
        """
        self._require_phase(BattlePhase.EXECUTION)
        self._executing = True
        try:
            return await self._execute_cycle(answered_correctly)
        finally:
            self._executing = False

    async def _execute_cycle(self, answered_correctly: Optional[bool]) -> List[str]:
        start = len(self.log)
        action = PendingAction(self.active_id, self.selected_target_id, self.selected_move_id)
        self.selected_move_id = None
        self.selected_target_id = None

        await self.animation(action)
        self.phase = BattlePhase.RESOLUTION
        await self._resolve(action, answered_correctly)

        if self.phase.is_terminal:
            return self.log[start:]

        opponent_is_cpu = await self._is_cpu(self.opponent_id)
        if opponent_is_cpu and action.actor_id == self.player_id:
            await self._run_cpu_turn(answered_correctly)
        else:
            self.active_id = self._other(action.actor_id)
            self.phase = BattlePhase.SELECTION
        return self.log[start:]

    async def _is_cpu(self, combatant_id: str) -> bool:
        state, _ = await self.adapter.read_state(BattleRef(combatant_id, self._other(combatant_id), self.session_id))
        return state.is_cpu

    def _effective_move(self, actor_id: str, move_id: str) -> MoveDefinition:
        mastery = self.mastery.get(move_id) if actor_id == self.player_id else None
        return self.moves.get_effective_move(move_id, mastery)

    async def _resolve(self, action: PendingAction, answered_correctly: Optional[bool], cpu_turn: bool = False):
        context = BattleContext(
            mode=self.mode,
            alternate_rules=self.alternate_rules,
            rng=self.rng,
            answered_correctly=answered_correctly if self.alternate_rules else None,
        )
        ref = BattleRef(action.actor_id, action.target_id, self.session_id)
        try:
            move = self._effective_move(action.actor_id, action.move_id)
            resolved, _ = await resolve_and_apply_action(self.adapter, ref, move, context, self.resolver)
        except BattleError as e:
            logger.error(f"[BattleEngine] {action.move_id} by {action.actor_id} was not applied: {e}")
            self.phase = BattlePhase.SELECTION
            self.active_id = self.player_id if cpu_turn else action.actor_id
            self.selected_move_id = None
            self.selected_target_id = None
            raise

        self._start_cooldown(action.actor_id, move)
        self.log.extend(resolved.log)
        await self._check_finished()

    def _tick_cooldowns(self, combatant_id: str):
        cooldowns = self.cooldowns.setdefault(combatant_id, {})
        for move_id in list(cooldowns):
            cooldowns[move_id] -= 1
            if cooldowns[move_id] <= 0:
                del cooldowns[move_id]

    def _start_cooldown(self, combatant_id: str, move: MoveDefinition):
        """Count down this combatant's cooldowns, then start the one for ``move``."""
        self._tick_cooldowns(combatant_id)
        if move.cooldown > 0:
            self.cooldowns[combatant_id][move.move_id] = move.cooldown

    async def _check_finished(self):
        player, opponent = await self.adapter.read_state(
            BattleRef(self.player_id, self.opponent_id, self.session_id)
        )
        if player.is_defeated:
            self._finish(BattlePhase.DEFEAT)
        elif opponent.is_defeated:
            self._finish(BattlePhase.VICTORY)

    def _finish(self, phase: BattlePhase):
        self.phase = phase
        logger.info(f"[BattleEngine] Encounter finished: {phase.value}")
        self._finished.set()
        if self.on_finished:
            self.on_finished(phase)

    # ========== Opponent turn ==========

    def _pick_cpu_move(self, cpu_moves: List[MoveDefinition], cpu, player) -> Optional[MoveDefinition]:
        cooldowns = self.cooldowns[self.opponent_id]
        if self.cpu_policy == CpuPolicy.OPTIMAL:
            scored = select_optimal_cpu_move(cpu_moves, cpu, player, cooldowns)
            return scored.move if scored is not None else None
        return select_random_cpu_move(cpu_moves, self.rng, cooldowns)

    async def _run_cpu_turn(self, answered_correctly: Optional[bool]):
        self.phase = BattlePhase.OPPONENT_TURN
        cpu, player = await self.adapter.read_state(BattleRef(self.opponent_id, self.player_id, self.session_id))
        cpu_moves = []
        for move_id in cpu.move_ids:
            try:
                cpu_moves.append(self.moves.get_effective_move(move_id))
            except InvalidInputError as e:
                logger.warning(f"[BattleEngine] Skipping CPU move {move_id}: {e}")
        move = self._pick_cpu_move(cpu_moves, cpu, player)

        if move is None:
            logger.warning(f"[BattleEngine] {cpu.name} has no move off cooldown, skipping")
            self.log.append(f"⏳ {cpu.name} has no available moves!")
            self._tick_cooldowns(self.opponent_id)
        else:
            action = PendingAction(self.opponent_id, self.player_id, move.move_id)
            await self.animation(action)
            self.phase = BattlePhase.RESOLUTION
            await self._resolve(action, answered_correctly, cpu_turn=True)
            if self.phase.is_terminal:
                return

        self.round_number += 1
        self.log.append(format_turn_start(self.round_number))
        self.active_id = self.player_id
        self.phase = BattlePhase.SELECTION

    async def wait_for_outcome(self) -> BattlePhase:
        """Wait until the encounter reaches Victory or Defeat."""
        await self._finished.wait()
        return self.phase
