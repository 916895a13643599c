"""Battle session record shared by every participant of a multi-party battle."""
from dataclasses import dataclass, field
from typing import List, Dict, Optional, Any, Tuple

from skillbattle.mechanics.combat.exceptions import InvalidInputError
from skillbattle.models.combat.mechanics.enums import BattlePhase
from skillbattle.models.combat.persistence.combatant_state import CombatantState


@dataclass
class BattleSessionRecord:
    """Persisted shape of a shared battle.

    ``turn`` counts committed actions; the next action must be submitted for
    ``turn + 1``. ``version`` changes on every write and guards the
    compare-and-set. Once a side falls, ``phase`` holds the outcome as seen
    by ``actor_state`` (the session creator) and ``winner_id`` names the
    survivor; both are final.
    """
    session_id: str
    actor_state: CombatantState
    target_state: CombatantState
    turn: int = 0
    version: int = 0
    log: List[str] = field(default_factory=list)
    phase: BattlePhase = BattlePhase.SELECTION
    rng_seed: Optional[int] = None
    winner_id: Optional[str] = None

    @property
    def next_turn(self) -> int:
        return self.turn + 1

    @property
    def is_finished(self) -> bool:
        return self.phase.is_terminal

    def settle_outcome(self) -> None:
        """Record the outcome once a combatant is defeated.

        A loss for the creator wins ties, so a double knockout is DEFEAT with
        no winner.
        """
        if self.is_finished:
            return
        if self.actor_state.is_defeated:
            self.phase = BattlePhase.DEFEAT
            if not self.target_state.is_defeated:
                self.winner_id = self.target_state.combatant_id
        elif self.target_state.is_defeated:
            self.phase = BattlePhase.VICTORY
            self.winner_id = self.actor_state.combatant_id

    def combatant(self, combatant_id: str) -> CombatantState:
        """Return the stored combatant with this id."""
        for state in (self.actor_state, self.target_state):
            if state.combatant_id == combatant_id:
                return state
        raise InvalidInputError(
            f"Combatant {combatant_id} is not part of session {self.session_id}",
            field="combatant_id",
        )

    def pair(self, actor_id: str, target_id: str) -> Tuple[CombatantState, CombatantState]:
        """Return copies of (actor, target) in the requested roles."""
        return self.combatant(actor_id).copy(), self.combatant(target_id).copy()

    def copy(self) -> "BattleSessionRecord":
        return BattleSessionRecord(
            session_id=self.session_id,
            actor_state=self.actor_state.copy(),
            target_state=self.target_state.copy(),
            turn=self.turn,
            version=self.version,
            log=list(self.log),
            phase=self.phase,
            rng_seed=self.rng_seed,
            winner_id=self.winner_id,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "session_id": self.session_id,
            "turn": self.turn,
            "version": self.version,
            "actor_state": self.actor_state.to_dict(),
            "target_state": self.target_state.to_dict(),
            "log": list(self.log),
            "phase": self.phase.value,
            "rng_seed": self.rng_seed,
            "winner_id": self.winner_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BattleSessionRecord':
        """Create BattleSessionRecord from dictionary representation.

        Args:
            data: Dictionary containing session data

        Returns:
            Deserialized BattleSessionRecord
        """
        phase = data.get("phase", "selection")
        if isinstance(phase, str):
            try:
                phase = BattlePhase(phase)
            except ValueError:
                phase = BattlePhase.SELECTION

        return cls(
            session_id=data["session_id"],
            actor_state=CombatantState.from_dict(data["actor_state"]),
            target_state=CombatantState.from_dict(data["target_state"]),
            turn=data.get("turn", 0),
            version=data.get("version", 0),
            log=list(data.get("log", [])),
            phase=phase,
            rng_seed=data.get("rng_seed"),
            winner_id=data.get("winner_id"),
        )
