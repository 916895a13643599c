"""Per-resolution battle context."""
from dataclasses import dataclass, field, replace
from typing import Optional

from skillbattle.utils.dice import DiceRoller
from .enums import BattleMode


@dataclass
class BattleContext:
    """Inputs to a resolution that are not part of either combatant.

    ``turn`` is the turn stamp being committed. Status ticks are keyed to it,
    so resolving the same turn twice never ticks an effect twice.
    ``player_level`` defaults to the acting combatant's level when unset.
    ``answered_correctly`` feeds the alternate rule variant and is ignored
    when ``alternate_rules`` is off.
    """
    mode: BattleMode = BattleMode.ARENA
    player_level: Optional[int] = None
    alternate_rules: bool = False
    turn: int = 1
    rng: DiceRoller = field(default_factory=DiceRoller)
    answered_correctly: Optional[bool] = None

    def for_turn(self, turn: int) -> "BattleContext":
        return replace(self, turn=turn)
