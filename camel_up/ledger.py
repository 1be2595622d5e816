"""
Betting ledger and player records.

Tracks the leg-bet tile stacks, the race-bet (winner/loser) lists and what
each player holds.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from .constants import (
    BET_TILE_VALUES,
    CAMELS,
    CAMEL_NAMES,
    STARTING_COINS,
)
from .errors import EmptyResource


@dataclass
class Player:
    """
    One seat at the table.

    Attributes:
        id: Seat index.
        name: Display name.
        coins: Money balance (may go negative).
        leg_bets: Leg-bet tiles held this leg as (camel, tile_value).
        race_cards: Camels this player still holds a race-bet card for.
        pyramid_tiles: Dice this player rolled this leg.
        ai: AI difficulty for computer seats, None for humans.
    """

    id: int
    name: str
    coins: int = STARTING_COINS
    leg_bets: list[tuple[int, int]] = field(default_factory=list)
    race_cards: set[int] = field(default_factory=lambda: set(CAMELS))
    pyramid_tiles: int = 0
    ai: Optional[str] = None

    @property
    def is_ai(self) -> bool:
        return self.ai is not None

    def copy(self) -> Player:
        return Player(
            id=self.id,
            name=self.name,
            coins=self.coins,
            leg_bets=list(self.leg_bets),
            race_cards=set(self.race_cards),
            pyramid_tiles=self.pyramid_tiles,
            ai=self.ai,
        )


def full_tile_stacks() -> dict[int, list[int]]:
    return {c: list(BET_TILE_VALUES) for c in CAMELS}


@dataclass
class BettingLedger:
    """
    Leg-bet tiles and race bets.

    Attributes:
        tiles_remaining: Dict mapping camel index to remaining tile values,
                         top of the stack first.
        winner_bets: Race winner bets as (player, camel), in placement order.
        loser_bets: Race loser bets as (player, camel), in placement order.
    """

    tiles_remaining: dict[int, list[int]] = field(default_factory=full_tile_stacks)
    winner_bets: list[tuple[int, int]] = field(default_factory=list)
    loser_bets: list[tuple[int, int]] = field(default_factory=list)

    def get_top_tile(self, camel: int) -> int:
        """
        Get the top available bet tile value for a camel.

        Returns:
            The next available tile value (5, 3 or 2), or 0 if no tiles remain.
        """
        tiles = self.tiles_remaining[camel]
        return tiles[0] if tiles else 0

    def take_bet_tile(self, player: Player, camel: int) -> int:
        """
        Player takes the top bet tile for a camel.

        The tile's face value travels with the player, so later payouts do
        not look at the (by then shorter) stack again.

        Returns:
            The tile value taken.

        Raises:
            EmptyResource: If no tiles remain for this camel.

        Example:
            >>> ledger.tiles_remaining[BLUE]
            [5, 3, 2]
            >>> ledger.take_bet_tile(player, BLUE)
            5
            >>> ledger.tiles_remaining[BLUE]
            [3, 2]
        """
        if not self.tiles_remaining[camel]:
            raise EmptyResource(
                f"No tiles remaining for camel {CAMEL_NAMES[camel]}",
                reason="no_tiles_remaining",
            )

        tile_value = self.tiles_remaining[camel].pop(0)
        player.leg_bets.append((camel, tile_value))
        return tile_value

    def place_race_bet(self, player: Player, camel: int, winner: bool) -> None:
        """
        Play the player's race card for a camel as a winner or loser bet.

        Raises:
            ValueError: If the player no longer holds that camel's card.
        """
        if camel not in player.race_cards:
            raise ValueError(
                f"Player {player.id} has no race card left for {CAMEL_NAMES[camel]}"
            )
        player.race_cards.discard(camel)
        if winner:
            self.winner_bets.append((player.id, camel))
        else:
            self.loser_bets.append((player.id, camel))

    def reset_leg(self) -> None:
        """Refill every leg-bet tile stack."""
        self.tiles_remaining = full_tile_stacks()

    def copy(self) -> BettingLedger:
        return BettingLedger(
            tiles_remaining={c: list(tiles) for c, tiles in self.tiles_remaining.items()},
            winner_bets=list(self.winner_bets),
            loser_bets=list(self.loser_bets),
        )
