"""
Unit tests for leg and game-end scoring.
"""

import pytest

from camel_up.constants import BLUE, GREEN, RED, YELLOW, PURPLE
from camel_up.errors import IllegalState
from camel_up.game_state import GameState
from camel_up.scoring import (
    compute_game_payouts,
    compute_leg_payouts,
    race_bet_payout,
    score_game,
    score_leg,
)


def ended_leg_state() -> GameState:
    """Blue 1st, Red 2nd, Green 3rd, Yellow 4th, Purple 5th; no dice left."""
    state = GameState()
    state.track.board[10] = [BLUE]
    state.track.board[8] = [GREEN, RED]
    state.track.board[5] = [YELLOW]
    state.track.board[2] = [PURPLE]
    state.pyramid.dice = []
    return state


def finished_game_state() -> GameState:
    """Blue crossed the line; Purple is last."""
    state = ended_leg_state()
    state.track.board[10] = []
    state.track.board[15] = [BLUE]
    state.track.finish_order = [BLUE]
    return state


class TestLegScoring:
    """Tests for leg-bet payouts."""

    def test_first_place_bet_pays_tile_value(self):
        state = ended_leg_state()
        state.players[0].leg_bets = [(BLUE, 5)]

        result = compute_leg_payouts(state)

        assert result.deltas[0] == 5

    def test_second_place_bet_pays_one(self):
        state = ended_leg_state()
        state.players[0].leg_bets = [(RED, 5)]

        assert compute_leg_payouts(state).deltas[0] == 1

    def test_wrong_bet_loses_one(self):
        state = ended_leg_state()
        state.players[0].leg_bets = [(PURPLE, 3)]

        assert compute_leg_payouts(state).deltas[0] == -1

    def test_multiple_bets_summed(self):
        state = ended_leg_state()
        state.players[0].leg_bets = [(BLUE, 5), (GREEN, 3), (RED, 2)]

        # +5 for Blue, -1 for Green, +1 for Red
        assert compute_leg_payouts(state).deltas[0] == 5

    def test_holders_paid_their_own_tile_values(self):
        """Blue tiles taken at 5 and at 3; Blue wins: holders get 5 and 3."""
        state = ended_leg_state()
        state.players[0].leg_bets = [(BLUE, 5)]
        state.players[1].leg_bets = [(BLUE, 3)]

        deltas = compute_leg_payouts(state).deltas

        assert deltas[0] == 5
        assert deltas[1] == 3

    def test_pyramid_tiles_pay_one_each(self):
        state = ended_leg_state()
        state.players[2].pyramid_tiles = 3

        result = compute_leg_payouts(state)

        assert result.deltas[2] == 3
        assert [p.reason for p in result.payouts] == ["pyramid_tiles"]

    def test_scoring_updates_player_coins(self):
        state = ended_leg_state()
        state.players[0].leg_bets = [(BLUE, 5)]
        state.players[1].leg_bets = [(PURPLE, 5)]
        before = state.player_coins

        score_leg(state)

        assert state.players[0].coins == before[0] + 5
        assert state.players[1].coins == before[1] - 1

    def test_coins_may_go_negative(self):
        state = ended_leg_state()
        state.players[0].coins = 0
        state.players[0].leg_bets = [(PURPLE, 5), (YELLOW, 5)]

        score_leg(state)

        assert state.players[0].coins == -2

    def test_deltas_match_independent_audit(self):
        """Sum of deltas equals the total of every individual payout."""
        state = ended_leg_state()
        state.players[0].leg_bets = [(BLUE, 5), (GREEN, 5)]
        state.players[1].leg_bets = [(BLUE, 3), (RED, 5)]
        state.players[2].leg_bets = [(YELLOW, 3)]
        state.players[3].pyramid_tiles = 2

        result = compute_leg_payouts(state)

        expected = (5 - 1) + (3 + 1) + (-1) + 2
        assert sum(result.deltas.values()) == result.total == expected

    def test_scoring_mid_leg_is_illegal(self):
        state = ended_leg_state()
        state.pyramid.dice = [RED]

        with pytest.raises(IllegalState):
            score_leg(state)


class TestRaceBetPayouts:
    """Tests for race winner/loser scoring."""

    def test_payout_ladder(self):
        assert [race_bet_payout(i) for i in range(7)] == [8, 5, 3, 2, 1, 1, 1]

    def test_correct_winner_bets_paid_in_order(self):
        state = finished_game_state()
        state.ledger.winner_bets = [(2, BLUE), (0, BLUE), (1, BLUE)]

        deltas = compute_game_payouts(state).deltas

        assert deltas == {0: 5, 1: 3, 2: 8, 3: 0}

    def test_wrong_bets_lose_one_and_do_not_use_a_slot(self):
        state = finished_game_state()
        state.ledger.winner_bets = [(0, GREEN), (1, BLUE)]

        deltas = compute_game_payouts(state).deltas

        assert deltas[0] == -1
        assert deltas[1] == 8

    def test_loser_bets_scored_against_last_place(self):
        state = finished_game_state()
        state.ledger.loser_bets = [(3, PURPLE), (2, YELLOW), (1, PURPLE)]

        result = compute_game_payouts(state)

        assert result.deltas[3] == 8
        assert result.deltas[2] == -1
        assert result.deltas[1] == 5
        assert {p.reason for p in result.payouts} == {"race_loser_correct", "race_loser_wrong"}

    def test_more_than_five_correct_bets_pay_one(self):
        state = finished_game_state()
        state.ledger.winner_bets = [(0, BLUE)] * 7

        result = compute_game_payouts(state)

        assert [p.amount for p in result.payouts] == [8, 5, 3, 2, 1, 1, 1]

    def test_score_game_requires_a_finisher(self):
        with pytest.raises(IllegalState):
            score_game(ended_leg_state())

    def test_score_game_applies_deltas(self):
        state = finished_game_state()
        state.ledger.winner_bets = [(0, BLUE)]
        start = state.players[0].coins

        score_game(state)

        assert state.players[0].coins == start + 8
