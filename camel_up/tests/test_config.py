"""
Tests for game settings validation.
"""

import pytest

from camel_up.config import GameConfig
from camel_up.engine import Game


class TestGameConfig:
    """Invalid settings are rejected up front with ValueError."""

    def test_defaults(self):
        config = GameConfig()

        assert config.num_players == 4
        assert config.player_names == ["Player 1", "Player 2", "Player 3", "Player 4"]
        assert config.auto_advance_legs

    @pytest.mark.parametrize("kwargs", [
        {"num_players": 1},
        {"num_players": 9},
        {"num_players": 2, "player_names": ["Ann"]},
        {"ai_players": {4: "basic"}},
        {"ai_players": {0: "grandmaster"}},
        {"track_length": 5},
        {"ai_think_delay": -0.5},
        {"seed": -1},
        {"seed": 1.5},
        {"seed": True},
    ])
    def test_rejected(self, kwargs):
        with pytest.raises(ValueError):
            GameConfig(**kwargs)

    def test_zero_seed_allowed(self):
        assert GameConfig(seed=0).seed == 0


class TestSeats:
    """AI seats carry their difficulty into the players."""

    def test_ai_flags(self):
        game = Game(GameConfig(num_players=3, ai_players={1: "smart"}, seed=2))

        assert [p.is_ai for p in game.state.players] == [False, True, False]
        assert game.state.players[1].ai == "smart"
