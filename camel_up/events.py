"""
Result events emitted by the engine after each resolved action.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable

GAME_STARTED = "game_started"
DIE_ROLLED = "die_rolled"
CAMEL_MOVED = "camel_moved"
DESERT_PAYOUT = "desert_payout"
LEG_BET_TAKEN = "leg_bet_taken"
DESERT_TILE_PLACED = "desert_tile_placed"
RACE_BET_PLACED = "race_bet_placed"
LEG_SCORED = "leg_scored"
LEG_STARTED = "leg_started"
TURN_ADVANCED = "turn_advanced"
GAME_ENDED = "game_ended"


@dataclass(frozen=True)
class GameEvent:
    """Represents something that happened in the game."""

    seq: int
    kind: str
    data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"seq": self.seq, "kind": self.kind, "data": self.data}


EventListener = Callable[[GameEvent], None]
