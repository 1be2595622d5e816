"""
Dice pyramid: the pool of dice not yet rolled this leg.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from .constants import CAMELS, CAMEL_NAMES, CRAZY, CRAZY_COLORS, DICE_VALUES, NUM_CRAZY_DICE
from .errors import EmptyResource


def full_pool() -> list[int]:
    """One die per racing camel plus the crazy dice."""
    return list(CAMELS) + [CRAZY] * NUM_CRAZY_DICE


@dataclass(frozen=True)
class DieRoll:
    """
    Outcome of one pyramid draw.

    Attributes:
        camel: Camel id that moves (CRAZY for a crazy die).
        value: Rolled distance (1, 2 or 3).
        crazy_color: "black" or "white" for a crazy die, else None.
    """

    camel: int
    value: int
    crazy_color: Optional[str] = None

    @property
    def is_crazy(self) -> bool:
        return self.camel == CRAZY

    def describe(self) -> str:
        if self.is_crazy:
            return f"{self.crazy_color} crazy camel {self.value} backward"
        return f"{CAMEL_NAMES[self.camel]} {self.value}"


@dataclass
class DicePyramid:
    """
    Multiset of unrolled dice.

    Attributes:
        dice: Die ids still in the pyramid.
        rolled: Rolls made this leg, in order.
    """

    dice: list[int] = field(default_factory=full_pool)
    rolled: list[DieRoll] = field(default_factory=list)

    def draw(self, rng: Optional[np.random.Generator] = None) -> DieRoll:
        """
        Draw a die uniformly among those remaining, remove it and roll it.

        A crazy die also picks which crazy camel it shows, uniformly, in the
        same draw.

        Raises:
            EmptyResource: If no dice remain in the pyramid.
        """
        if not self.dice:
            raise EmptyResource("No dice remaining in pyramid")

        if rng is None:
            rng = np.random.default_rng()

        camel = self.dice.pop(int(rng.integers(len(self.dice))))
        value = int(rng.choice(DICE_VALUES))
        crazy_color = str(rng.choice(CRAZY_COLORS)) if camel == CRAZY else None

        roll = DieRoll(camel=camel, value=value, crazy_color=crazy_color)
        self.rolled.append(roll)
        return roll

    def is_empty(self) -> bool:
        return not self.dice

    def __len__(self) -> int:
        return len(self.dice)

    def remaining_racing_dice(self) -> list[int]:
        return [d for d in self.dice if d != CRAZY]

    def reset(self) -> None:
        """Return every die to the pyramid (leg reset only)."""
        self.dice = full_pool()
        self.rolled = []

    def copy(self) -> DicePyramid:
        return DicePyramid(dice=list(self.dice), rolled=list(self.rolled))
