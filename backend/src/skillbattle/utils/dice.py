"""Seedable randomness source for battle resolution."""

import random
from typing import Any, Dict, List, Optional, Sequence


class DiceRoller:
    """Roll numbers for damage sampling and success-chance checks.

    Each roller owns its own ``random.Random`` so two rollers built with the
    same seed produce the same draws regardless of other code using the
    ``random`` module.
    """

    def __init__(self, seed: Optional[int] = None):
        self.seed = seed
        self._random = random.Random(seed)
        self.roll_history: List[Dict[str, Any]] = []

    def random(self) -> float:
        """Return a float in [0.0, 1.0)."""
        value = self._random.random()
        self.roll_history.append({"kind": "random", "result": value})
        return value

    def randint(self, low: int, high: int) -> int:
        """Return an integer in [low, high]."""
        if high < low:
            raise ValueError(f"Invalid range: {low}..{high}")
        value = self._random.randint(low, high)
        self.roll_history.append({"kind": "randint", "low": low, "high": high, "result": value})
        return value

    def percent_roll(self) -> int:
        """Roll 1..100."""
        return self.randint(1, 100)

    def chance(self, percent: int) -> bool:
        """Return True with the given percent probability.

        100 always succeeds and 0 always fails without consuming a roll.
        """
        if percent >= 100:
            return True
        if percent <= 0:
            return False
        return self.percent_roll() <= percent

    def choice(self, options: Sequence[Any]) -> Any:
        """Pick one option uniformly."""
        if not options:
            raise ValueError("Cannot choose from an empty sequence")
        index = self.randint(0, len(options) - 1)
        return options[index]

    def clear_history(self):
        """Clear the roll history."""
        self.roll_history.clear()


class FixedDiceRoller(DiceRoller):
    """Roller that replays a fixed list of ``random()`` values.

    Integer draws are derived from the same values so tests can pin exact
    outcomes. Raises IndexError when the list runs out.
    """

    def __init__(self, values: Sequence[float]):
        super().__init__(seed=None)
        self._values = list(values)
        self._index = 0

    def random(self) -> float:
        value = self._values[self._index]
        self._index += 1
        self.roll_history.append({"kind": "random", "result": value})
        return value

    def randint(self, low: int, high: int) -> int:
        if high < low:
            raise ValueError(f"Invalid range: {low}..{high}")
        value = self._values[self._index]
        self._index += 1
        result = min(high, low + int(value * (high - low + 1)))
        self.roll_history.append({"kind": "randint", "low": low, "high": high, "result": result})
        return result
