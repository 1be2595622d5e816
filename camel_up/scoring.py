"""
Scoring engine: leg-end and game-end payouts.

Every coin moved by scoring is recorded as a Payout entry so a leg or
game result can be audited against the rankings it was computed from.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from .constants import (
    CAMEL_NAMES,
    GAME_END_BET_MIN_PAYOUT,
    GAME_END_BET_PAYOUTS,
    GAME_END_BET_PENALTY,
    LEG_SECOND_PLACE_PAYOUT,
    LEG_WRONG_BET_PENALTY,
    PYRAMID_TILE_PAYOUT,
)
from .errors import IllegalState
from .game_state import GameState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Payout:
    """One scoring entry: `amount` coins to `player` for `reason`."""

    player: int
    amount: int
    reason: str
    camel: Optional[int] = None


@dataclass
class ScoreResult:
    """
    Outcome of a scoring pass.

    Attributes:
        rankings: Racing camels from 1st to last at scoring time.
        payouts: Every individual payout, in the order applied.
        deltas: Net coin change per player.
    """

    rankings: list[int]
    payouts: list[Payout] = field(default_factory=list)
    deltas: dict[int, int] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return sum(p.amount for p in self.payouts)


def race_bet_payout(correct_index: int) -> int:
    """Payout for the n-th correct race bet (0-based): 8, 5, 3, 2, 1, 1, ..."""
    if correct_index < len(GAME_END_BET_PAYOUTS):
        return GAME_END_BET_PAYOUTS[correct_index]
    return GAME_END_BET_MIN_PAYOUT


def compute_leg_payouts(state: GameState) -> ScoreResult:
    """
    Compute leg payouts without applying them.

    Scoring rules per bet tile:
    - Bet matches 1st place: +tile_value coins
    - Bet matches 2nd place: +1 coin
    - Otherwise: -1 coin
    Each pyramid tile pays +1 coin.

    Example:
        >>> state.players[0].leg_bets = [(BLUE, 5), (GREEN, 3)]
        >>> # Blue 1st, Red 2nd, Green 3rd
        >>> compute_leg_payouts(state).deltas[0]  # +5 for Blue, -1 for Green
        4
    """
    rankings = state.get_rankings()
    first_place, second_place = rankings[0], rankings[1]

    result = ScoreResult(rankings=rankings)
    for player in state.players:
        for camel, tile_value in player.leg_bets:
            if camel == first_place:
                result.payouts.append(Payout(player.id, tile_value, "leg_bet_first", camel))
            elif camel == second_place:
                result.payouts.append(
                    Payout(player.id, LEG_SECOND_PLACE_PAYOUT, "leg_bet_second", camel)
                )
            else:
                result.payouts.append(
                    Payout(player.id, LEG_WRONG_BET_PENALTY, "leg_bet_wrong", camel)
                )
        if player.pyramid_tiles:
            result.payouts.append(
                Payout(player.id, player.pyramid_tiles * PYRAMID_TILE_PAYOUT, "pyramid_tiles")
            )

    result.deltas = _sum_deltas(state, result.payouts)
    return result


def compute_game_payouts(state: GameState) -> ScoreResult:
    """
    Compute race-bet payouts without applying them.

    Bets are evaluated in the order they were placed. Correct bets get
    8, 5, 3, 2, 1, 1, ...; wrong bets lose 1. Winner bets are checked
    against the 1st-place camel, loser bets against the last-place camel.
    """
    rankings = state.get_rankings()
    winner, loser = rankings[0], rankings[-1]

    result = ScoreResult(rankings=rankings)
    for bets, target, side in (
        (state.ledger.winner_bets, winner, "winner"),
        (state.ledger.loser_bets, loser, "loser"),
    ):
        correct_idx = 0
        for player, camel in bets:
            if camel == target:
                result.payouts.append(
                    Payout(player, race_bet_payout(correct_idx), f"race_{side}_correct", camel)
                )
                correct_idx += 1
            else:
                result.payouts.append(
                    Payout(player, GAME_END_BET_PENALTY, f"race_{side}_wrong", camel)
                )

    result.deltas = _sum_deltas(state, result.payouts)
    return result


def score_leg(state: GameState) -> ScoreResult:
    """
    Score all leg bets and pyramid tiles and add them to player coins.

    Raises:
        IllegalState: If the leg has not ended (dice remain and no camel
                      has finished).
    """
    if not (state.is_leg_complete() or state.is_game_complete()):
        raise IllegalState(
            f"Leg {state.current_leg} scored with {state.dice_remaining} dice remaining"
        )

    result = compute_leg_payouts(state)
    _apply(state, result)
    logger.info(
        "Leg %d scored: 1st %s, 2nd %s, deltas %s",
        state.current_leg,
        CAMEL_NAMES[result.rankings[0]],
        CAMEL_NAMES[result.rankings[1]],
        result.deltas,
    )
    return result


def score_game(state: GameState) -> ScoreResult:
    """
    Score all race bets and add them to player coins.

    Raises:
        IllegalState: If no camel has crossed the finish line.
    """
    if not state.is_game_complete():
        raise IllegalState("Final scoring requested before any camel finished")

    result = compute_game_payouts(state)
    _apply(state, result)
    logger.info(
        "Game scored: winner %s, loser %s, deltas %s",
        CAMEL_NAMES[result.rankings[0]],
        CAMEL_NAMES[result.rankings[-1]],
        result.deltas,
    )
    return result


def _sum_deltas(state: GameState, payouts: list[Payout]) -> dict[int, int]:
    deltas: dict[int, int] = {p.id: 0 for p in state.players}
    for payout in payouts:
        deltas[payout.player] += payout.amount
    return deltas


def _apply(state: GameState, result: ScoreResult) -> None:
    for player, delta in result.deltas.items():
        state.players[player].coins += delta
