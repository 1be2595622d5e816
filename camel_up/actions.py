"""
Player actions.

Exactly one action is taken per turn. Actions are plain frozen dataclasses
so they can be compared, hashed, logged and serialized.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from .constants import CAMEL_NAMES, OASIS


@dataclass(frozen=True)
class RollDie:
    """Draw a die from the pyramid and move its camel."""

    kind = "roll"

    def describe(self) -> str:
        return "Roll"


@dataclass(frozen=True)
class TakeLegBet:
    """Take the top leg-bet tile of a camel."""

    camel: int
    kind = "leg_bet"

    def describe(self) -> str:
        return f"Leg bet on {CAMEL_NAMES[self.camel]}"


@dataclass(frozen=True)
class PlaceDesertTile:
    """Place the player's desert tile (oasis or mirage) on a space."""

    space: int
    tile: str
    kind = "desert_tile"

    def describe(self) -> str:
        name = "Oasis (+1)" if self.tile == OASIS else "Mirage (-1)"
        return f"Place {name} on space {self.space + 1}"


@dataclass(frozen=True)
class PlaceRaceBet:
    """Bet on the overall race winner (winner=True) or loser."""

    camel: int
    winner: bool
    kind = "race_bet"

    def describe(self) -> str:
        side = "winner" if self.winner else "loser"
        return f"Race {side} bet on {CAMEL_NAMES[self.camel]}"


Action = Union[RollDie, TakeLegBet, PlaceDesertTile, PlaceRaceBet]
