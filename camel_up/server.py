"""
Flask server for playing and inspecting Camel Up games over HTTP.

Holds one game per process. Every mutation goes through the same
Game.submit_action entry point the other front ends use; rejected actions
come back as HTTP 400 with the rejection reason.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from flask import Flask, jsonify, request

from .ai import BaseAI, make_ai_players
from .config import GameConfig
from .engine import ActionOutcome, Game
from .errors import InvalidAction
from .serialization import action_from_dict, action_to_dict, state_to_dict

logger = logging.getLogger(__name__)

app = Flask(__name__)


# Global state
_game: Optional[Game] = None
_ais: dict[int, BaseAI] = {}


def new_game(config: Optional[GameConfig] = None) -> Game:
    """Replace the server's game with a fresh one."""
    global _game, _ais
    config = config if config is not None else GameConfig()
    _game = Game(config)
    _ais = make_ai_players(config)
    logger.info("New game: %d players, AI seats %s", config.num_players, config.ai_players)
    return _game


def get_game() -> Game:
    if _game is None:
        return new_game()
    return _game


def config_from_json(data: dict[str, Any]) -> GameConfig:
    """
    Build a GameConfig from a request body.

    Raises:
        ValueError: If a field is invalid.
    """
    kwargs: dict[str, Any] = {}
    if "numPlayers" in data:
        kwargs["num_players"] = int(data["numPlayers"])
    if "playerNames" in data:
        kwargs["player_names"] = list(data["playerNames"])
    if "aiPlayers" in data:
        kwargs["ai_players"] = {int(seat): level for seat, level in data["aiPlayers"].items()}
    if "trackLength" in data:
        kwargs["track_length"] = int(data["trackLength"])
    if "startingCoins" in data:
        kwargs["starting_coins"] = int(data["startingCoins"])
    if data.get("seed") is not None:
        kwargs["seed"] = int(data["seed"])
    if "autoAdvanceLegs" in data:
        kwargs["auto_advance_legs"] = bool(data["autoAdvanceLegs"])
    return GameConfig(**kwargs)


def game_to_dict(game: Game) -> dict[str, Any]:
    state = game.state
    return {
        "state": state_to_dict(state),
        "phase": state.phase.value,
        "currentPlayer": state.current_player,
        "validActions": [action_to_dict(a) for a in game.valid_actions()],
        "lastEvent": game.events[-1].seq if game.events else 0,
    }


def outcome_to_dict(outcome: ActionOutcome, game: Game) -> dict[str, Any]:
    result = {
        "player": outcome.player,
        "action": action_to_dict(outcome.action),
        "events": [e.to_dict() for e in outcome.events],
        "game": game_to_dict(game),
    }
    if outcome.roll is not None:
        result["roll"] = {
            "camel": outcome.roll.camel,
            "value": outcome.roll.value,
            "crazyColor": outcome.roll.crazy_color,
        }
    return result


def error_response(error: InvalidAction):
    return jsonify({"error": error.to_dict()}), 400


# Routes

@app.route('/api/state', methods=['GET'])
def get_state():
    """Get current game state."""
    return jsonify(game_to_dict(get_game()))


@app.route('/api/new-game', methods=['POST'])
def start_game():
    """Start a new game from the posted settings."""
    data = request.get_json(silent=True) or {}
    try:
        config = config_from_json(data)
    except (ValueError, TypeError, AttributeError) as e:
        return jsonify({"error": {"reason": "bad_config", "message": str(e)}}), 400
    return jsonify(game_to_dict(new_game(config)))


@app.route('/api/action', methods=['POST'])
def submit_action():
    """Submit one player's action."""
    game = get_game()
    data = request.get_json(silent=True) or {}
    player = data.get("player")
    try:
        if isinstance(player, bool) or not isinstance(player, int):
            raise InvalidAction(f"Unknown player {player!r}", reason="unknown_player")
        action = action_from_dict(data.get("action"))
        outcome = game.submit_action(player, action)
    except InvalidAction as e:
        return error_response(e)
    return jsonify(outcome_to_dict(outcome, game))


@app.route('/api/ai-move', methods=['POST'])
def ai_move():
    """Let the AI whose turn it is take one action."""
    game = get_game()
    player = game.current_player
    try:
        if not game.state.players[player].is_ai:
            raise InvalidAction(f"Player {player} is not an AI seat", reason="not_ai_turn")
        action = _ais[player].choose_action(game.snapshot(), player)
        outcome = game.submit_action(player, action)
    except InvalidAction as e:
        return error_response(e)
    return jsonify(outcome_to_dict(outcome, game))


@app.route('/api/next-leg', methods=['POST'])
def next_leg():
    """Start the next leg when legs do not advance automatically."""
    game = get_game()
    try:
        game.start_next_leg()
    except InvalidAction as e:
        return error_response(e)
    return jsonify(game_to_dict(game))


@app.route('/api/valid-actions', methods=['GET'])
def valid_actions():
    """List the actions a player (default: current player) may take."""
    game = get_game()
    player = request.args.get("player", default=game.current_player, type=int)
    return jsonify({
        "player": player,
        "actions": [action_to_dict(a) for a in game.valid_actions(player)],
    })


@app.route('/api/events', methods=['GET'])
def get_events():
    """Events after the given sequence number (default: all)."""
    game = get_game()
    since = request.args.get("since", default=0, type=int)
    return jsonify({"events": [e.to_dict() for e in game.events_since(since)]})


def run_server(port: int = 5000, debug: bool = False):
    """Run the HTTP server."""
    logging.basicConfig(level=logging.DEBUG if debug else logging.INFO)
    print(f"\nCamel Up server on http://localhost:{port}\n")
    app.run(host='0.0.0.0', port=port, debug=debug)


if __name__ == '__main__':
    import sys
    port = int(sys.argv[1]) if len(sys.argv) > 1 else 5000
    run_server(port)
