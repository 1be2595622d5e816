"""
Gymnasium environment for a full game of Camel Up.

One agent-controlled seat plays against AI opponents. Every legal move
has a fixed index in a flat action catalogue (roll, leg bets, desert
tiles per space and side, race bets per camel and side), and
`action_masks()` marks the ones that are valid right now, so the env
works with mask-aware algorithms.
"""

from __future__ import annotations

from typing import Any, Literal, Optional

import gymnasium as gym
import numpy as np
from gymnasium import spaces

from .actions import Action, PlaceDesertTile, PlaceRaceBet, RollDie, TakeLegBet
from .ai import BaseAI, make_ai
from .config import GameConfig
from .constants import (
    AGENT_SEAT,
    AI_RANDOM,
    ALL_TOKENS,
    BET_TILE_VALUES,
    CAMELS,
    CAMEL_NAMES,
    DESERT_KINDS,
    DESERT_EFFECTS,
    INVALID_ACTION_PENALTY,
    NUM_CAMELS,
    NUM_CRAZY_DICE,
    NUM_PLAYERS,
    NUM_SPACES,
)
from .engine import ActionOutcome, Game
from .game_state import Phase


def build_action_catalogue(track_length: int = NUM_SPACES) -> list[Action]:
    """
    Every action an agent could ever take, in a fixed order.

    Layout:
        0: roll
        1-5: leg bet on each camel
        next 2 * track_length: desert tile (space, oasis/mirage)
        last 10: race bet (camel, winner/loser)
    """
    catalogue: list[Action] = [RollDie()]
    catalogue.extend(TakeLegBet(camel) for camel in CAMELS)
    catalogue.extend(
        PlaceDesertTile(space, kind)
        for space in range(track_length)
        for kind in DESERT_KINDS
    )
    catalogue.extend(
        PlaceRaceBet(camel, winner)
        for camel in CAMELS
        for winner in (True, False)
    )
    return catalogue


class CamelUpEnv(gym.Env):
    """
    Gymnasium environment for a full game of Camel Up.

    Each step() plays the agent's action, then every opponent turn until it
    is the agent's turn again or the game ends.

    Attributes:
        game: The current Game.
        catalogue: Flat action list; action i is catalogue[i].
        opponent: AI difficulty used for every other seat.
        reward_mode: "coins" pays the agent's coin change after every step,
                     "win" pays +1/-1 at game end only.
        render_mode: "human" for text output, None for no rendering.

    Example:
        >>> env = CamelUpEnv(opponent="basic", seed=3)
        >>> obs, info = env.reset()
        >>> obs, reward, terminated, truncated, info = env.step(0)  # Roll
    """

    metadata = {"render_modes": ["human"]}

    def __init__(
        self,
        num_players: int = NUM_PLAYERS,
        opponent: str = AI_RANDOM,
        track_length: int = NUM_SPACES,
        reward_mode: Literal["coins", "win"] = "coins",
        render_mode: Optional[str] = None,
        seed: Optional[int] = None,
    ):
        super().__init__()
        if reward_mode not in ("coins", "win"):
            raise ValueError(f"Unknown reward mode: {reward_mode!r}")

        self.num_players = num_players
        self.opponent = opponent
        self.track_length = track_length
        self.reward_mode = reward_mode
        self.render_mode = render_mode
        self.agent_seat = AGENT_SEAT

        self._rng = np.random.default_rng(seed)
        self.catalogue = build_action_catalogue(track_length)
        self._index = {action: i for i, action in enumerate(self.catalogue)}

        self.observation_space = spaces.Dict({
            # Space of every token (5 racers then the crazy unit)
            "positions": spaces.Box(
                low=0, high=track_length - 1, shape=(len(ALL_TOKENS),), dtype=np.int8
            ),
            # Height in its stack of every token (0 = bottom)
            "heights": spaces.Box(
                low=0, high=len(ALL_TOKENS) - 1, shape=(len(ALL_TOKENS),), dtype=np.int8
            ),
            # Unrolled dice per token
            "dice_remaining": spaces.Box(
                low=0, high=NUM_CRAZY_DICE, shape=(len(ALL_TOKENS),), dtype=np.int8
            ),
            # Top leg-bet tile per camel (0 if none)
            "top_tiles": spaces.Box(
                low=0, high=max(BET_TILE_VALUES), shape=(NUM_CAMELS,), dtype=np.int8
            ),
            # Desert tile per space: +1 oasis, -1 mirage, 0 none
            "desert_tiles": spaces.Box(low=-1, high=1, shape=(track_length,), dtype=np.int8),
            # Race cards the agent still holds
            "race_cards": spaces.MultiBinary(NUM_CAMELS),
            "player_coins": spaces.Box(
                low=-1000, high=1000, shape=(num_players,), dtype=np.int16
            ),
        })
        self.action_space = spaces.Discrete(len(self.catalogue))

        self.game: Optional[Game] = None
        self._opponents: dict[int, BaseAI] = {}
        self._last_coins = 0

    def reset(
        self,
        *,
        seed: Optional[int] = None,
        options: Optional[dict[str, Any]] = None,
    ) -> tuple[dict[str, np.ndarray], dict[str, Any]]:
        """Start a new game and play opponents up to the agent's first turn."""
        super().reset(seed=seed)
        if seed is not None:
            self._rng = np.random.default_rng(seed)

        opponents = {
            seat: self.opponent for seat in range(self.num_players) if seat != self.agent_seat
        }
        config = GameConfig(
            num_players=self.num_players,
            ai_players=opponents,
            track_length=self.track_length,
            seed=int(self._rng.integers(0, 2**31)),
        )
        self.game = Game(config)
        self._opponents = {
            seat: make_ai(difficulty, seed=int(self._rng.integers(0, 2**31)))
            for seat, difficulty in opponents.items()
        }

        if self.render_mode == "human":
            print(f"\n=== NEW GAME (Agent is Player {self.agent_seat}) ===")
            print(self.game.state)

        self._play_opponents()
        self._last_coins = self.game.state.players[self.agent_seat].coins
        return self._get_observation(), self._get_info()

    def step(
        self,
        action: int,
    ) -> tuple[dict[str, np.ndarray], float, bool, bool, dict[str, Any]]:
        """
        Execute the agent's action and the opponents' turns.

        Returns:
            Tuple of (observation, reward, terminated, truncated, info).
            An invalid action returns INVALID_ACTION_PENALTY and changes nothing.
        """
        assert self.game is not None, "Must call reset() before step()"

        if not 0 <= action < len(self.catalogue) or not self.action_masks()[action]:
            if self.render_mode == "human":
                print(f"  [INVALID] Agent tried action {action}")
            return (
                self._get_observation(),
                float(INVALID_ACTION_PENALTY),
                False,
                False,
                self._get_info(),
            )

        outcome = self.game.submit_action(self.agent_seat, self.catalogue[action])
        if self.render_mode == "human":
            self._render_outcome(outcome)

        self._play_opponents()

        terminated = self.game.phase == Phase.GAME_END
        reward = self._calculate_reward(terminated)
        if terminated and self.render_mode == "human":
            print("\n=== GAME COMPLETE ===")
            print(f"  Final rankings: {[CAMEL_NAMES[c] for c in self.game.state.get_rankings()]}")
            print(f"  Final coins: {self.game.state.player_coins}")

        return self._get_observation(), reward, terminated, False, self._get_info()

    def _play_opponents(self) -> None:
        """Let AI seats act until the agent is up or the game is over."""
        state = self.game.state
        while state.phase != Phase.GAME_END and state.current_player != self.agent_seat:
            player = state.current_player
            choice = self._opponents[player].choose_action(self.game.snapshot(), player)
            outcome = self.game.submit_action(player, choice)
            if self.render_mode == "human":
                self._render_outcome(outcome)

    def _calculate_reward(self, terminated: bool) -> float:
        coins = self.game.state.player_coins
        mine = coins[self.agent_seat]
        if self.reward_mode == "win":
            if not terminated:
                return 0.0
            return 1.0 if mine == max(coins) else -1.0

        delta = mine - self._last_coins
        self._last_coins = mine
        return float(delta)

    def action_masks(self) -> np.ndarray:
        """
        Return boolean mask of valid actions.

        Returns:
            Boolean array over the catalogue where True = valid action.
        """
        masks = np.zeros(len(self.catalogue), dtype=bool)
        if self.game is None:
            return masks
        for action in self.game.valid_actions(self.agent_seat):
            masks[self._index[action]] = True
        return masks

    def _get_observation(self) -> dict[str, np.ndarray]:
        state = self.game.state
        positions = state.track.positions()

        desert = np.zeros(self.track_length, dtype=np.int8)
        for space, (_, kind) in state.track.desert_tiles.items():
            desert[space] = DESERT_EFFECTS[kind]

        agent = state.players[self.agent_seat]
        return {
            "positions": np.array([positions[t][0] for t in ALL_TOKENS], dtype=np.int8),
            "heights": np.array([positions[t][1] for t in ALL_TOKENS], dtype=np.int8),
            "dice_remaining": np.array(
                [state.pyramid.dice.count(t) for t in ALL_TOKENS], dtype=np.int8
            ),
            "top_tiles": np.array(
                [state.ledger.get_top_tile(c) for c in CAMELS], dtype=np.int8
            ),
            "desert_tiles": desert,
            "race_cards": np.array([c in agent.race_cards for c in CAMELS], dtype=np.int8),
            "player_coins": np.array(state.player_coins, dtype=np.int16),
        }

    def _get_info(self) -> dict[str, Any]:
        if self.game is None:
            return {}
        state = self.game.state
        return {
            "rankings": state.get_rankings(),
            "current_leg": state.current_leg,
            "player_coins": state.player_coins,
            "phase": state.phase.value,
        }

    def render(self) -> None:
        """Render current state (if render_mode='human')."""
        if self.render_mode == "human" and self.game is not None:
            print("\nCurrent State")
            print(self.game.state)

    def _render_outcome(self, outcome: ActionOutcome) -> None:
        line = f"  P{outcome.player}: {outcome.action.describe()}"
        if outcome.roll is not None:
            line += f" -> {outcome.roll.describe()}"
        print(line)
        if outcome.leg_ended:
            print(f"  Leg scored: {outcome.leg_score.deltas}")

    def close(self) -> None:
        pass
