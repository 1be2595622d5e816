"""
Computer opponents for Camel Up.

Three difficulties share one interface, `choose_action(state, player)`:

- RandomAI: uniform over action kinds, then over parameters.
- BasicAI: grab a high leader leg bet, otherwise roll.
- SmartAI: expected-value search over every valid action, using exact
  leg probabilities when few dice remain and Monte Carlo otherwise.

AIs only read the state they are given and keep their own seeded random
generator, so they never consume the game's dice.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from itertools import permutations, product
from typing import Optional

import numpy as np

from .actions import Action, PlaceDesertTile, PlaceRaceBet, RollDie, TakeLegBet
from .config import GameConfig
from .constants import (
    AI_BASIC,
    AI_RANDOM,
    AI_SMART,
    BASIC_TILE_THRESHOLD,
    CAMELS,
    DESERT_TILE_PAYOUT,
    DICE_VALUES,
    GAME_END_BET_PENALTY,
    LEG_SECOND_PLACE_PAYOUT,
    LEG_WRONG_BET_PENALTY,
    PYRAMID_TILE_PAYOUT,
    ROLL_REWARD,
)
from .errors import InvalidAction
from .game_state import GameState
from .movement import resolve_move
from .pyramid import DicePyramid
from .scoring import race_bet_payout
from .track import Track

logger = logging.getLogger(__name__)

EXACT_DICE_LIMIT = 3


# =============================================================================
# Probability estimates
# =============================================================================


@dataclass
class LegForecast:
    """
    Leg outcome estimate.

    Attributes:
        first: P(camel is 1st at leg end) per racing camel.
        second: P(camel is 2nd at leg end) per racing camel.
        landings: Expected number of moves landing on each space before the
                  leg ends.
    """

    first: dict[int, float] = field(default_factory=dict)
    second: dict[int, float] = field(default_factory=dict)
    landings: dict[int, float] = field(default_factory=dict)


def _roll_on(track: Track, pyramid: DicePyramid, rng: np.random.Generator) -> int:
    """Draw and resolve one die on a scratch track; returns the landing space."""
    roll = pyramid.draw(rng)
    return resolve_move(track, roll.camel, roll.value).raw_target


def leg_forecast(
    state: GameState,
    simulations: int = 500,
    rng: Optional[np.random.Generator] = None,
) -> LegForecast:
    """
    Estimate the leg result from the current position.

    Uses exact enumeration of die orders and values if 3 or fewer dice
    remain, otherwise Monte Carlo. Which crazy camel a crazy die shows does
    not change the movement, so it is not enumerated.
    """
    dice = list(state.pyramid.dice)
    first = {c: 0.0 for c in CAMELS}
    second = {c: 0.0 for c in CAMELS}
    landings: dict[int, float] = {}

    if not dice or state.is_game_complete():
        rankings = state.get_rankings()
        first[rankings[0]] = 1.0
        second[rankings[1]] = 1.0
        return LegForecast(first, second, landings)

    if len(dice) <= EXACT_DICE_LIMIT:
        orderings = list(permutations(dice))
        rolls = list(product(DICE_VALUES, repeat=len(dice)))
        weight = 1.0 / (len(orderings) * len(rolls))

        for ordering in orderings:
            for values in rolls:
                track = state.track.copy()
                for camel, distance in zip(ordering, values):
                    if track.finish_order:
                        break
                    move = resolve_move(track, camel, distance)
                    landings[move.raw_target] = landings.get(move.raw_target, 0.0) + weight
                rankings = track.get_rankings()
                first[rankings[0]] += weight
                second[rankings[1]] += weight
        return LegForecast(first, second, landings)

    if rng is None:
        rng = np.random.default_rng()

    weight = 1.0 / simulations
    for _ in range(simulations):
        track = state.track.copy()
        pyramid = state.pyramid.copy()
        while not pyramid.is_empty() and not track.finish_order:
            space = _roll_on(track, pyramid, rng)
            landings[space] = landings.get(space, 0.0) + weight
        rankings = track.get_rankings()
        first[rankings[0]] += weight
        second[rankings[1]] += weight
    return LegForecast(first, second, landings)


def get_leg_probabilities(
    state: GameState,
    simulations: int = 500,
    rng: Optional[np.random.Generator] = None,
) -> dict[int, tuple[float, float]]:
    """
    Calculate probability of each camel finishing 1st and 2nd in the current leg.

    Uses exact calculation if 3 or fewer dice remain, otherwise uses Monte Carlo.
    """
    forecast = leg_forecast(state, simulations, rng)
    return {c: (forecast.first[c], forecast.second[c]) for c in CAMELS}


def get_game_probabilities(
    state: GameState,
    simulations: int = 200,
    rng: Optional[np.random.Generator] = None,
) -> tuple[dict[int, float], dict[int, float]]:
    """
    Calculate probability of each camel winning or losing the entire race.

    Plays random dice until a camel crosses the finish line. Desert tiles
    stay in place for the current leg and are removed at each simulated leg
    reset.
    """
    if rng is None:
        rng = np.random.default_rng()

    win_counts = {c: 0 for c in CAMELS}
    lose_counts = {c: 0 for c in CAMELS}

    for _ in range(simulations):
        track = state.track.copy()
        pyramid = state.pyramid.copy()
        while not track.finish_order:
            if pyramid.is_empty():
                pyramid.reset()
                track.clear_desert_tiles()
            _roll_on(track, pyramid, rng)

        rankings = track.get_rankings()
        win_counts[rankings[0]] += 1
        lose_counts[rankings[-1]] += 1

    return (
        {c: win_counts[c] / simulations for c in CAMELS},
        {c: lose_counts[c] / simulations for c in CAMELS},
    )


# =============================================================================
# Opponents
# =============================================================================


class BaseAI:
    """Common plumbing for computer players."""

    difficulty = ""

    def __init__(self, seed: Optional[int] = None):
        self.rng = np.random.default_rng(seed)

    def choose_action(self, state: GameState, player: int) -> Action:
        """
        Pick one of the player's valid actions.

        Raises:
            InvalidAction: If the player has nothing to do (not their turn,
                           or the game is not awaiting an action).
        """
        valid = state.get_valid_actions(player)
        if not valid:
            raise InvalidAction(
                f"Player {player} has no valid action to choose from",
                reason="no_valid_actions",
            )
        action = self._choose(state, player, valid)
        logger.debug("%s AI (player %d) chose %s", self.difficulty, player, action.describe())
        return action

    def _choose(self, state: GameState, player: int, valid: list[Action]) -> Action:
        raise NotImplementedError

    def _pick(self, actions: list[Action]) -> Action:
        return actions[int(self.rng.integers(len(actions)))]


class RandomAI(BaseAI):
    """
    Selects an action kind uniformly, then one of its parameters uniformly.

    Grouping by kind first keeps the many desert-tile placements from
    drowning out rolling.
    """

    difficulty = AI_RANDOM

    def _choose(self, state: GameState, player: int, valid: list[Action]) -> Action:
        by_kind: dict[str, list[Action]] = {}
        for action in valid:
            by_kind.setdefault(action.kind, []).append(action)
        kinds = list(by_kind)
        kind = kinds[int(self.rng.integers(len(kinds)))]
        return self._pick(by_kind[kind])


class BasicAI(BaseAI):
    """Takes the leader's leg bet while its tile is worth 5, otherwise rolls."""

    difficulty = AI_BASIC

    def _choose(self, state: GameState, player: int, valid: list[Action]) -> Action:
        leader = state.track.get_leader()
        bet = TakeLegBet(leader)
        if bet in valid and state.ledger.get_top_tile(leader) >= BASIC_TILE_THRESHOLD:
            return bet
        if RollDie() in valid:
            return RollDie()
        return self._pick(valid)


class SmartAI(BaseAI):
    """
    Expected-value maximizer.

    Attributes:
        leg_simulations: Monte Carlo samples for the leg forecast.
        game_simulations: Monte Carlo rollouts for race-bet odds.
        race_bet_horizon: Race bets are only evaluated once the leader is
                          within this many spaces of the finish space.
        desert_reach: Desert tiles are only considered this many spaces
                      ahead of the leader.
    """

    difficulty = AI_SMART

    def __init__(
        self,
        seed: Optional[int] = None,
        leg_simulations: int = 500,
        game_simulations: int = 200,
        race_bet_horizon: int = 5,
        desert_reach: int = 3,
    ):
        super().__init__(seed)
        self.leg_simulations = leg_simulations
        self.game_simulations = game_simulations
        self.race_bet_horizon = race_bet_horizon
        self.desert_reach = desert_reach

    def action_values(self, state: GameState, player: int) -> dict[Action, float]:
        """Expected coin value of every valid action for the player."""
        valid = state.get_valid_actions(player)
        forecast = leg_forecast(state, self.leg_simulations, self.rng)

        leader_pos = state.track.get_leader_position()
        game_probs = None
        if state.track.finish_space - leader_pos <= self.race_bet_horizon:
            game_probs = get_game_probabilities(state, self.game_simulations, self.rng)

        values: dict[Action, float] = {}
        for action in valid:
            if isinstance(action, RollDie):
                values[action] = float(ROLL_REWARD + PYRAMID_TILE_PAYOUT)

            elif isinstance(action, TakeLegBet):
                p1 = forecast.first[action.camel]
                p2 = forecast.second[action.camel]
                tile = state.ledger.get_top_tile(action.camel)
                values[action] = (
                    p1 * tile
                    + p2 * LEG_SECOND_PLACE_PAYOUT
                    + (1.0 - p1 - p2) * LEG_WRONG_BET_PENALTY
                )

            elif isinstance(action, PlaceDesertTile):
                if 0 < action.space - leader_pos <= self.desert_reach:
                    landings = forecast.landings.get(action.space, 0.0)
                    values[action] = landings * DESERT_TILE_PAYOUT
                else:
                    values[action] = 0.0

            elif isinstance(action, PlaceRaceBet):
                if game_probs is None:
                    # Too early to commit a race card
                    values[action] = -1.5
                    continue
                win_probs, lose_probs = game_probs
                if action.winner:
                    p = win_probs[action.camel]
                    placed = state.ledger.winner_bets
                else:
                    p = lose_probs[action.camel]
                    placed = state.ledger.loser_bets
                slot = sum(1 for _, camel in placed if camel == action.camel)
                values[action] = p * race_bet_payout(slot) + (1.0 - p) * GAME_END_BET_PENALTY

        return values

    def _choose(self, state: GameState, player: int, valid: list[Action]) -> Action:
        values = self.action_values(state, player)
        # max() keeps the first of equal values, so ties go to the earliest valid action
        return max(valid, key=lambda a: values[a])


AI_CLASSES: dict[str, type[BaseAI]] = {
    AI_RANDOM: RandomAI,
    AI_BASIC: BasicAI,
    AI_SMART: SmartAI,
}


def make_ai(difficulty: str, seed: Optional[int] = None) -> BaseAI:
    """
    Build an AI of the given difficulty.

    Raises:
        ValueError: If the difficulty is unknown.
    """
    try:
        cls = AI_CLASSES[difficulty]
    except KeyError:
        raise ValueError(f"Unknown AI difficulty: {difficulty!r}") from None
    return cls(seed=seed)


def make_ai_players(config: GameConfig) -> dict[int, BaseAI]:
    """One AI per computer seat, each seeded from the game seed and its seat."""
    return {
        seat: make_ai(
            difficulty,
            seed=None if config.seed is None else config.seed * 1000 + seat,
        )
        for seat, difficulty in config.ai_players.items()
    }
