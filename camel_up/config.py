"""
Game configuration.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from .constants import (
    AI_DIFFICULTIES,
    MAX_PLAYERS,
    MIN_PLAYERS,
    NUM_PLAYERS,
    NUM_SPACES,
    STARTING_COINS,
)


@dataclass
class GameConfig:
    """
    Settings for one Camel Up game.

    Attributes:
        num_players: Number of seats (2-8).
        player_names: Display names; defaults to "Player 1", "Player 2", ...
        ai_players: Mapping of seat index to AI difficulty ("random",
                    "basic" or "smart"). Seats not listed are human.
        track_length: Number of track spaces.
        starting_coins: Coins each player starts with.
        seed: Non-negative seed for the game's random generator (None = fresh
              entropy).
        auto_advance_legs: Start the next leg right after leg scoring. When
                           False the game waits in LEG_END until
                           Game.start_next_leg() is called.
        ai_think_delay: Seconds a UI should wait before playing an AI turn.
                        Presentation only; the engine never sleeps.
    """

    num_players: int = NUM_PLAYERS
    player_names: list[str] = field(default_factory=list)
    ai_players: dict[int, str] = field(default_factory=dict)
    track_length: int = NUM_SPACES
    starting_coins: int = STARTING_COINS
    seed: Optional[int] = None
    auto_advance_legs: bool = True
    ai_think_delay: float = 1.0

    def __post_init__(self) -> None:
        if not MIN_PLAYERS <= self.num_players <= MAX_PLAYERS:
            raise ValueError(
                f"num_players must be between {MIN_PLAYERS} and {MAX_PLAYERS}, "
                f"got {self.num_players}"
            )
        if not self.player_names:
            self.player_names = [f"Player {i + 1}" for i in range(self.num_players)]
        if len(self.player_names) != self.num_players:
            raise ValueError("player_names must have one entry per player")
        for seat, difficulty in self.ai_players.items():
            if not 0 <= seat < self.num_players:
                raise ValueError(f"AI seat {seat} is out of range")
            if difficulty not in AI_DIFFICULTIES:
                raise ValueError(f"Unknown AI difficulty: {difficulty!r}")
        # Room for 3 start spaces, the crazy unit's start zone and a finish
        if self.track_length < 8:
            raise ValueError("track_length must be at least 8")
        if self.ai_think_delay < 0:
            raise ValueError("ai_think_delay must be non-negative")
        if self.seed is not None and (
            isinstance(self.seed, bool) or not isinstance(self.seed, int) or self.seed < 0
        ):
            raise ValueError(f"seed must be a non-negative integer or None, got {self.seed!r}")
