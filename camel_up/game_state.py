"""
Core game state management for Camel Up.

One explicitly owned aggregate holds the track, the dice pyramid, the
betting ledger, the players, the turn state and the game's random
generator. The turn state machine in engine.py is the only writer.
"""

from __future__ import annotations

import enum
from copy import deepcopy
from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from .actions import Action, PlaceDesertTile, PlaceRaceBet, RollDie, TakeLegBet
from .config import GameConfig
from .constants import (
    CAMELS,
    CAMEL_NAMES,
    DESERT_KINDS,
    DESERT_TILE_PAYOUT,
    NUM_PLAYERS,
    ROLL_REWARD,
)
from .errors import EmptyResource, InvalidAction
from .ledger import BettingLedger, Player
from .movement import MoveResult, resolve_move
from .pyramid import DicePyramid, DieRoll
from .track import Track


class Phase(str, enum.Enum):
    """Turn state machine phases."""

    AWAITING_ACTION = "awaiting_action"
    LEG_END = "leg_end"
    GAME_END = "game_end"


def default_players(num_players: int = NUM_PLAYERS) -> list[Player]:
    return [Player(id=i, name=f"Player {i + 1}") for i in range(num_players)]


@dataclass
class GameState:
    """
    Manages the complete state of a Camel Up game.

    Attributes:
        track: Camel stacks, desert tiles and finish order.
        pyramid: Dice not yet rolled this leg.
        ledger: Leg-bet tile stacks and race bets.
        players: Seats in turn order.
        current_player: Index of the player whose turn it is.
        has_acted: Whether the current player already acted this turn.
        current_leg: Current leg number (starts at 1).
        phase: AWAITING_ACTION, LEG_END or GAME_END.
        rng: The game's random generator; every dice draw comes from here.
    """

    track: Track = field(default_factory=Track)
    pyramid: DicePyramid = field(default_factory=DicePyramid)
    ledger: BettingLedger = field(default_factory=BettingLedger)
    players: list[Player] = field(default_factory=default_players)
    current_player: int = 0
    has_acted: bool = False
    current_leg: int = 1
    phase: Phase = Phase.AWAITING_ACTION
    rng: np.random.Generator = field(default_factory=np.random.default_rng)

    @classmethod
    def create(cls, config: Optional[GameConfig] = None) -> GameState:
        """
        Create a new game with camels at random starting positions.

        Args:
            config: Game settings. Defaults to GameConfig().

        Returns:
            A fresh GameState seeded from config.seed.
        """
        if config is None:
            config = GameConfig()

        rng = np.random.default_rng(config.seed)
        players = [
            Player(
                id=i,
                name=config.player_names[i],
                coins=config.starting_coins,
                ai=config.ai_players.get(i),
            )
            for i in range(config.num_players)
        ]
        return cls(
            track=Track.create_random_start(rng, length=config.track_length),
            players=players,
            rng=rng,
        )

    @property
    def num_players(self) -> int:
        return len(self.players)

    @property
    def dice_remaining(self) -> int:
        return len(self.pyramid)

    @property
    def player_coins(self) -> list[int]:
        return [p.coins for p in self.players]

    def get_rankings(self) -> list[int]:
        return self.track.get_rankings()

    def is_leg_complete(self) -> bool:
        """Check if the leg is complete (every die rolled)."""
        return self.pyramid.is_empty()

    def is_game_complete(self) -> bool:
        """Check if any racing camel has crossed the finish line."""
        return bool(self.track.finish_order)

    # =========================================================================
    # Validation
    # =========================================================================

    def check_action(self, player: int, action: Action) -> Optional[InvalidAction]:
        """
        Return the error an action would be rejected with, or None if valid.

        Nothing is raised and nothing is mutated.
        """
        if self.phase == Phase.GAME_END:
            return InvalidAction("The game is over", reason="game_over")
        if self.phase == Phase.LEG_END:
            return InvalidAction("The leg is being scored", reason="leg_over")
        if not 0 <= player < self.num_players:
            return InvalidAction(f"Unknown player {player}", reason="unknown_player")
        if player != self.current_player:
            return InvalidAction(
                f"It is player {self.current_player}'s turn, not player {player}'s",
                reason="not_your_turn",
            )
        if self.has_acted:
            return InvalidAction(
                f"Player {player} already acted this turn", reason="already_acted"
            )

        if isinstance(action, RollDie):
            if self.pyramid.is_empty():
                return EmptyResource("No dice remaining in pyramid", reason="no_dice_remaining")
            return None

        if isinstance(action, TakeLegBet):
            if action.camel not in CAMELS:
                return InvalidAction(
                    f"Cannot take a leg bet on camel {action.camel}", reason="unknown_camel"
                )
            if self.track.is_finished(action.camel):
                return InvalidAction(
                    f"{CAMEL_NAMES[action.camel]} has already finished", reason="camel_finished"
                )
            if not self.ledger.tiles_remaining[action.camel]:
                return EmptyResource(
                    f"No tiles remaining for camel {CAMEL_NAMES[action.camel]}",
                    reason="no_tiles_remaining",
                )
            return None

        if isinstance(action, PlaceDesertTile):
            if action.tile not in DESERT_KINDS:
                return InvalidAction(
                    f"Unknown desert tile kind {action.tile!r}", reason="unknown_tile"
                )
            problem = self.track.desert_tile_problem(player, action.space)
            if problem is not None:
                return InvalidAction(
                    f"Cannot place desert tile: {problem}", reason="bad_desert_space"
                )
            return None

        if isinstance(action, PlaceRaceBet):
            if action.camel not in CAMELS:
                return InvalidAction(
                    f"Cannot race-bet on camel {action.camel}", reason="unknown_camel"
                )
            if action.camel not in self.players[player].race_cards:
                return InvalidAction(
                    f"Player {player} has no race card left for {CAMEL_NAMES[action.camel]}",
                    reason="no_race_card",
                )
            return None

        return InvalidAction(f"Unknown action {action!r}", reason="unknown_action")

    def get_valid_actions(self, player: int) -> list[Action]:
        """
        Every action the player could submit right now.

        Empty when it is not the player's turn or the game is not awaiting
        an action.
        """
        if self.phase != Phase.AWAITING_ACTION or player != self.current_player or self.has_acted:
            return []

        valid: list[Action] = []

        # 1. Roll: valid if dice remain
        if self.pyramid.dice:
            valid.append(RollDie())

        # 2. Leg betting: valid if tiles remain for an unfinished camel
        for camel in CAMELS:
            if self.ledger.tiles_remaining[camel] and not self.track.is_finished(camel):
                valid.append(TakeLegBet(camel))

        # 3. Desert tiles: any legal space, either side up
        for space in self.track.legal_desert_spaces(player):
            for kind in DESERT_KINDS:
                valid.append(PlaceDesertTile(space, kind))

        # 4. Race bets: one card per camel, winner or loser
        for camel in sorted(self.players[player].race_cards):
            valid.append(PlaceRaceBet(camel, winner=True))
            valid.append(PlaceRaceBet(camel, winner=False))

        return valid

    # =========================================================================
    # Mutations (validated by the engine before being called)
    # =========================================================================

    def roll_die_for_player(self, player: int) -> tuple[DieRoll, MoveResult]:
        """
        Player rolls a die: draw, move, pay any desert tile owner, then give
        the roller the roll reward and a pyramid tile.
        """
        roll = self.pyramid.draw(self.rng)
        move = resolve_move(self.track, roll.camel, roll.value)

        owner = move.desert_tile_owner
        if owner is not None and 0 <= owner < self.num_players:
            self.players[owner].coins += DESERT_TILE_PAYOUT

        roller = self.players[player]
        roller.coins += ROLL_REWARD
        roller.pyramid_tiles += 1
        return roll, move

    def take_bet_tile(self, player: int, camel: int) -> int:
        return self.ledger.take_bet_tile(self.players[player], camel)

    def place_desert_tile(self, player: int, space: int, kind: str) -> None:
        self.track.place_desert_tile(player, space, kind)

    def place_race_bet(self, player: int, camel: int, winner: bool) -> None:
        self.ledger.place_race_bet(self.players[player], camel, winner)

    def advance_turn(self) -> None:
        """Round-robin to the next seat."""
        self.current_player = (self.current_player + 1) % self.num_players
        self.has_acted = False

    def start_new_leg(self) -> None:
        """
        Reset leg state for a new leg.

        - Returns all dice to the pyramid
        - Refills leg betting tiles
        - Clears leg bets and pyramid tiles
        - Returns desert tiles to their owners
        - Increments leg counter
        """
        self.pyramid.reset()
        self.ledger.reset_leg()
        for p in self.players:
            p.leg_bets = []
            p.pyramid_tiles = 0
        self.track.clear_desert_tiles()
        self.current_leg += 1
        self.has_acted = False
        self.phase = Phase.AWAITING_ACTION

    def copy(self) -> GameState:
        """
        Create a deep copy of this game state.

        The random generator is copied too, so the copy draws the same dice.
        """
        return GameState(
            track=self.track.copy(),
            pyramid=self.pyramid.copy(),
            ledger=self.ledger.copy(),
            players=[p.copy() for p in self.players],
            current_player=self.current_player,
            has_acted=self.has_acted,
            current_leg=self.current_leg,
            phase=self.phase,
            rng=deepcopy(self.rng),
        )

    def __repr__(self) -> str:
        """Pretty print the game state."""
        lines = [f"GameState (leg {self.current_leg}, {self.phase.value}):"]
        lines.extend("  " + line for line in repr(self.track).splitlines())

        dice_names = [CAMEL_NAMES[c] for c in self.pyramid.dice]
        lines.append(f"  Dice remaining: {dice_names}")

        lines.append("  Tiles available:")
        for camel in CAMELS:
            lines.append(f"    {CAMEL_NAMES[camel]}: {self.ledger.tiles_remaining[camel]}")

        lines.append("  Players:")
        for p in self.players:
            marker = "*" if p.id == self.current_player else " "
            bets_str = ", ".join(
                f"{CAMEL_NAMES[c]}@{v}" for c, v in p.leg_bets
            ) or "none"
            lines.append(
                f"   {marker}P{p.id} {p.name}: {p.coins} coins, bets: {bets_str}, "
                f"pyramid tiles: {p.pyramid_tiles}"
            )
        return "\n".join(lines)

