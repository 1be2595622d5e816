"""
Integration tests for the Gymnasium environment.
"""

import pytest
import numpy as np

from camel_up.actions import PlaceDesertTile, PlaceRaceBet, RollDie, TakeLegBet
from camel_up.constants import (
    ALL_TOKENS, CAMELS, INVALID_ACTION_PENALTY, NUM_CAMELS, NUM_PLAYERS,
    NUM_SPACES, PYRAMID_SIZE, STARTING_COINS,
)
from camel_up.env import CamelUpEnv, build_action_catalogue
from camel_up.game_state import Phase
from camel_up.serialization import state_to_dict


def play_out(env: CamelUpEnv, max_steps: int = 1000) -> list[float]:
    """Take the first valid action until the game ends; return the rewards."""
    rewards = []
    terminated = False
    while not terminated and len(rewards) < max_steps:
        action = int(np.flatnonzero(env.action_masks())[0])
        _, reward, terminated, _, _ = env.step(action)
        rewards.append(reward)
    assert terminated, "Game should end"
    return rewards


class TestActionCatalogue:
    """Tests for the flat action layout."""

    def test_layout(self):
        catalogue = build_action_catalogue()

        assert catalogue[0] == RollDie()
        assert catalogue[1:6] == [TakeLegBet(c) for c in CAMELS]
        assert len(catalogue) == 1 + NUM_CAMELS + 2 * NUM_SPACES + 2 * NUM_CAMELS
        assert catalogue[-1] == PlaceRaceBet(CAMELS[-1], winner=False)

    def test_entries_unique(self):
        catalogue = build_action_catalogue()

        assert len(set(catalogue)) == len(catalogue)


class TestEnvBasics:
    """Basic environment functionality tests."""

    def test_reset_returns_valid_obs(self):
        env = CamelUpEnv(seed=42)
        obs, info = env.reset()

        assert env.observation_space.contains(obs)
        assert info["current_leg"] == 1
        assert info["phase"] == Phase.AWAITING_ACTION.value

    def test_obs_shapes_correct(self):
        env = CamelUpEnv()
        obs, _ = env.reset(seed=42)

        assert obs["positions"].shape == (len(ALL_TOKENS),)
        assert obs["heights"].shape == (len(ALL_TOKENS),)
        assert obs["top_tiles"].shape == (NUM_CAMELS,)
        assert obs["desert_tiles"].shape == (NUM_SPACES,)
        assert obs["player_coins"].shape == (NUM_PLAYERS,)

    def test_initial_observation_values(self):
        """Full pyramid, all 5 tiles on top, every race card held."""
        env = CamelUpEnv()
        obs, _ = env.reset(seed=42)

        assert obs["dice_remaining"].sum() == PYRAMID_SIZE
        assert all(t == 5 for t in obs["top_tiles"])
        assert all(obs["race_cards"] == 1)
        assert all(obs["player_coins"] == STARTING_COINS)

    def test_unknown_reward_mode(self):
        with pytest.raises(ValueError):
            CamelUpEnv(reward_mode="style")


class TestActionMasking:
    """Tests for action masking."""

    def test_action_masks_shape(self):
        env = CamelUpEnv()
        env.reset(seed=42)

        masks = env.action_masks()

        assert masks.shape == (len(env.catalogue),)
        assert masks.dtype == bool

    def test_mask_matches_valid_actions(self):
        env = CamelUpEnv()
        env.reset(seed=42)

        masks = env.action_masks()
        valid = env.game.valid_actions(env.agent_seat)

        assert masks.sum() == len(valid)
        assert masks[0]  # Roll
        assert all(masks[env.catalogue.index(a)] for a in valid)

    def test_start_space_never_offered(self):
        env = CamelUpEnv()
        env.reset(seed=42)

        masks = env.action_masks()

        for i, action in enumerate(env.catalogue):
            if isinstance(action, PlaceDesertTile) and action.space == 0:
                assert not masks[i]


class TestStepFunction:
    """Tests for step execution."""

    def test_step_returns_correct_tuple(self):
        env = CamelUpEnv()
        env.reset(seed=42)

        obs, reward, terminated, truncated, info = env.step(0)

        assert isinstance(reward, float)
        assert isinstance(terminated, bool)
        assert truncated is False
        assert isinstance(info, dict)

    def test_invalid_action_penalty(self):
        """Invalid action returns penalty and leaves the game untouched."""
        env = CamelUpEnv()
        env.reset(seed=42)
        invalid = int(np.flatnonzero(~env.action_masks())[0])
        before = state_to_dict(env.game.state)

        _, reward, terminated, _, _ = env.step(invalid)

        assert reward == float(INVALID_ACTION_PENALTY)
        assert not terminated
        assert state_to_dict(env.game.state) == before

    def test_out_of_range_action_penalised(self):
        env = CamelUpEnv()
        env.reset(seed=42)

        _, reward, _, _, _ = env.step(len(env.catalogue))

        assert reward == float(INVALID_ACTION_PENALTY)

    def test_agent_acts_again_after_step(self):
        """Opponents play in between; control returns on the agent's turn."""
        env = CamelUpEnv(opponent="basic")
        env.reset(seed=3)

        env.step(0)

        assert env.game.phase == Phase.GAME_END or env.game.current_player == env.agent_seat


class TestFullGame:
    """Episodes run to the end of the race."""

    @pytest.mark.parametrize("opponent", ["random", "basic"])
    def test_game_terminates(self, opponent):
        env = CamelUpEnv(num_players=3, opponent=opponent, seed=5)
        env.reset()

        play_out(env)

        assert env.game.phase == Phase.GAME_END
        assert env.game.state.track.finish_order

    def test_coin_rewards_sum_to_coin_change(self):
        env = CamelUpEnv(seed=11)
        env.reset()

        rewards = play_out(env)

        final = env.game.state.players[env.agent_seat].coins
        assert sum(rewards) == pytest.approx(final - STARTING_COINS)

    def test_win_reward_only_at_end(self):
        env = CamelUpEnv(reward_mode="win", seed=11)
        env.reset()

        rewards = play_out(env)

        assert all(r == 0.0 for r in rewards[:-1])
        assert rewards[-1] in (1.0, -1.0)


class TestReproducibility:
    """Tests for deterministic behavior with seeds."""

    def test_reset_with_seed_deterministic(self):
        env = CamelUpEnv()

        obs1, _ = env.reset(seed=42)
        obs2, _ = env.reset(seed=42)

        for key in obs1:
            assert np.array_equal(obs1[key], obs2[key])

    def test_same_seed_same_episode(self):
        def episode():
            env = CamelUpEnv(opponent="basic", seed=9)
            env.reset()
            return play_out(env), state_to_dict(env.game.state)

        assert episode() == episode()
