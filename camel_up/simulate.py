"""
Command-line harness for Camel Up.

    python -m camel_up.simulate run --games 20 --ai smart basic random random --seed 1
    python -m camel_up.simulate serve --port 5000
"""

from __future__ import annotations

import argparse
import logging
from collections import Counter
from typing import Any, Optional, Sequence

import numpy as np

from .ai import make_ai_players
from .config import GameConfig
from .constants import AI_DIFFICULTIES, AI_BASIC, CAMEL_NAMES, NUM_SPACES
from .engine import Game
from .game_state import Phase

logger = logging.getLogger(__name__)


def play_game(config: GameConfig) -> Game:
    """
    Play one game to the end with every seat controlled by its AI.

    Raises:
        ValueError: If a seat has no AI difficulty.
    """
    if len(config.ai_players) != config.num_players:
        raise ValueError("Every seat needs an AI difficulty to simulate a game")

    game = Game(config)
    ais = make_ai_players(config)
    while game.phase != Phase.GAME_END:
        if game.phase == Phase.LEG_END:
            game.start_next_leg()
            continue
        player = game.current_player
        game.submit_action(player, ais[player].choose_action(game.snapshot(), player))
    return game


def run_batch(
    num_games: int,
    difficulties: Sequence[str],
    seed: Optional[int] = None,
    track_length: int = NUM_SPACES,
) -> dict[str, Any]:
    """
    Play several seeded AI-only games and summarize them.

    Returns:
        Dict with per-seat wins (ties count for every tied seat), average
        coins, average number of legs and race winners by camel name.
    """
    seeds = np.random.default_rng(seed).integers(0, 2**31, size=num_games)
    wins = Counter()
    winners = Counter()
    total_coins = np.zeros(len(difficulties))
    total_legs = 0

    for game_idx, game_seed in enumerate(seeds):
        config = GameConfig(
            num_players=len(difficulties),
            ai_players=dict(enumerate(difficulties)),
            track_length=track_length,
            seed=int(game_seed),
        )
        game = play_game(config)
        coins = game.state.player_coins
        top = max(coins)
        for seat, c in enumerate(coins):
            if c == top:
                wins[seat] += 1
        total_coins += coins
        total_legs += game.state.current_leg
        winners[CAMEL_NAMES[game.state.get_rankings()[0]]] += 1
        logger.info("Game %d: coins %s, %d legs", game_idx + 1, coins, game.state.current_leg)

    return {
        "games": num_games,
        "players": list(difficulties),
        "wins": [wins[seat] for seat in range(len(difficulties))],
        "avg_coins": [round(float(c) / num_games, 2) for c in total_coins] if num_games else [],
        "avg_legs": round(total_legs / num_games, 2) if num_games else 0.0,
        "race_winners": dict(winners),
    }


def print_summary(summary: dict[str, Any]) -> None:
    print(f"\nSimulation Results ({summary['games']} games):")
    for seat, level in enumerate(summary["players"]):
        print(
            f"  P{seat} ({level:<6}): {summary['wins'][seat]:>4} wins, "
            f"avg coins {summary['avg_coins'][seat]:.1f}"
        )
    print(f"  Avg legs per game: {summary['avg_legs']:.1f}")
    print("  Race winners: " + ", ".join(
        f"{name} {count}" for name, count in sorted(summary["race_winners"].items())
    ))


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point with CLI."""
    parser = argparse.ArgumentParser(description="Simulate or serve Camel Up games")
    parser.add_argument(
        "--verbose", "-v", action="count", default=0,
        help="Log game progress (-v for INFO, -vv for DEBUG)"
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Run command
    run_parser = subparsers.add_parser("run", help="Play AI-only games")
    run_parser.add_argument(
        "--games", type=int, default=10,
        help="Number of games to play"
    )
    run_parser.add_argument(
        "--ai", nargs="+", default=[AI_BASIC] * 4, choices=AI_DIFFICULTIES,
        help="AI difficulty per seat (2-8 seats)"
    )
    run_parser.add_argument(
        "--seed", type=int, default=None,
        help="Random seed"
    )
    run_parser.add_argument(
        "--track-length", type=int, default=NUM_SPACES,
        help="Number of track spaces"
    )

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Launch the HTTP server")
    serve_parser.add_argument(
        "--port", type=int, default=5000,
        help="Port to run server on"
    )

    args = parser.parse_args(argv)

    level = logging.WARNING
    if args.verbose == 1:
        level = logging.INFO
    elif args.verbose > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    if args.command == "run":
        summary = run_batch(args.games, args.ai, seed=args.seed, track_length=args.track_length)
        print_summary(summary)
    elif args.command == "serve":
        from .server import run_server
        run_server(port=args.port, debug=args.verbose > 1)
    else:
        parser.print_help()
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
