"""
JSON-compatible documents for game state and actions.

Used by the relay (host snapshots and client action requests) and the HTTP
server. A full state document round-trips losslessly, including the random
generator, so a restored game draws the same dice as the original. The
public view is what the relay broadcasts to every seat.
"""

from __future__ import annotations

from typing import Any

import numpy as np

from .actions import Action, PlaceDesertTile, PlaceRaceBet, RollDie, TakeLegBet
from .constants import CAMEL_NAMES, CAMELS
from .errors import InvalidAction
from .game_state import GameState, Phase
from .ledger import BettingLedger, Player
from .pyramid import DicePyramid, DieRoll
from .track import Track

FORMAT_VERSION = 1


def rng_to_dict(rng: np.random.Generator) -> dict[str, Any]:
    return dict(rng.bit_generator.state)


def rng_from_dict(data: dict[str, Any]) -> np.random.Generator:
    """Rebuild a Generator from its bit generator state."""
    bit_generator = getattr(np.random, data["bit_generator"])()
    bit_generator.state = data
    return np.random.Generator(bit_generator)


def state_to_dict(state: GameState) -> dict[str, Any]:
    """
    Convert GameState to a JSON-serializable dict.

    Besides the raw fields needed to restore the state, the document carries
    a few derived read-only fields (rankings, leader position) for clients
    that only display it.
    """
    track = state.track
    return {
        "version": FORMAT_VERSION,
        "trackLength": track.length,
        "board": [
            {"space": space_idx, "camels": [int(c) for c in stack]}
            for space_idx, stack in enumerate(track.board)
        ],
        "desertTiles": {
            str(space): {"owner": int(owner), "type": kind}
            for space, (owner, kind) in track.desert_tiles.items()
        },
        "finishOrder": [int(c) for c in track.finish_order],
        "diceRemaining": [int(d) for d in state.pyramid.dice],
        "rolled": [
            {"camel": r.camel, "value": r.value, "crazyColor": r.crazy_color}
            for r in state.pyramid.rolled
        ],
        "tilesRemaining": {
            str(c): [int(t) for t in tiles] for c, tiles in state.ledger.tiles_remaining.items()
        },
        "winnerBets": [[int(p), int(c)] for p, c in state.ledger.winner_bets],
        "loserBets": [[int(p), int(c)] for p, c in state.ledger.loser_bets],
        "players": [
            {
                "id": p.id,
                "name": p.name,
                "coins": int(p.coins),
                "legBets": [[int(c), int(v)] for c, v in p.leg_bets],
                "raceCards": sorted(int(c) for c in p.race_cards),
                "pyramidTiles": int(p.pyramid_tiles),
                "ai": p.ai,
            }
            for p in state.players
        ],
        "currentPlayer": state.current_player,
        "hasActed": state.has_acted,
        "currentLeg": state.current_leg,
        "phase": state.phase.value,
        "rng": rng_to_dict(state.rng),
        "rankings": [{"rank": i + 1, "camel": c, "name": CAMEL_NAMES[c]}
                     for i, c in enumerate(state.get_rankings())],
        "leaderPosition": track.get_leader_position(),
    }


def public_state_to_dict(state: GameState) -> dict[str, Any]:
    """
    The view of the state every seat may see.

    Drops the random generator so future draws cannot be predicted, and
    hides which camel each race bet names: bets keep only their bettor and
    order, and players show how many race cards they hold rather than which.
    This document cannot be restored with state_from_dict.
    """
    document = state_to_dict(state)
    del document["rng"]
    document["winnerBets"] = [int(p) for p, _ in state.ledger.winner_bets]
    document["loserBets"] = [int(p) for p, _ in state.ledger.loser_bets]
    for player in document["players"]:
        player["raceCardsLeft"] = len(player.pop("raceCards"))
    return document


def state_from_dict(data: dict[str, Any]) -> GameState:
    """
    Create GameState from a document made by state_to_dict.

    Raises:
        ValueError: If the document has an unsupported version or is malformed.
    """
    version = data.get("version")
    if version != FORMAT_VERSION:
        raise ValueError(f"Unsupported state document version: {version!r}")

    try:
        length = int(data["trackLength"])
        board: list[list[int]] = [[] for _ in range(length)]
        for space_data in data["board"]:
            board[int(space_data["space"])] = [int(c) for c in space_data["camels"]]

        track = Track(
            board=board,
            desert_tiles={
                int(space): (int(tile["owner"]), tile["type"])
                for space, tile in data["desertTiles"].items()
            },
            finish_order=[int(c) for c in data["finishOrder"]],
            length=length,
        )
        pyramid = DicePyramid(
            dice=[int(d) for d in data["diceRemaining"]],
            rolled=[
                DieRoll(camel=int(r["camel"]), value=int(r["value"]), crazy_color=r["crazyColor"])
                for r in data["rolled"]
            ],
        )
        ledger = BettingLedger(
            tiles_remaining={
                c: [int(t) for t in data["tilesRemaining"][str(c)]] for c in CAMELS
            },
            winner_bets=[(int(p), int(c)) for p, c in data["winnerBets"]],
            loser_bets=[(int(p), int(c)) for p, c in data["loserBets"]],
        )
        players = [
            Player(
                id=int(p["id"]),
                name=p["name"],
                coins=int(p["coins"]),
                leg_bets=[(int(c), int(v)) for c, v in p["legBets"]],
                race_cards={int(c) for c in p["raceCards"]},
                pyramid_tiles=int(p["pyramidTiles"]),
                ai=p.get("ai"),
            )
            for p in data["players"]
        ]
        return GameState(
            track=track,
            pyramid=pyramid,
            ledger=ledger,
            players=players,
            current_player=int(data["currentPlayer"]),
            has_acted=bool(data["hasActed"]),
            current_leg=int(data["currentLeg"]),
            phase=Phase(data["phase"]),
            rng=rng_from_dict(data["rng"]),
        )
    except (KeyError, TypeError, IndexError) as e:
        raise ValueError(f"Malformed state document: {e!r}") from e


def action_to_dict(action: Action) -> dict[str, Any]:
    """Convert an action to a JSON-serializable dict tagged by its kind."""
    if isinstance(action, RollDie):
        return {"kind": action.kind}
    if isinstance(action, TakeLegBet):
        return {"kind": action.kind, "camel": action.camel}
    if isinstance(action, PlaceDesertTile):
        return {"kind": action.kind, "space": action.space, "tile": action.tile}
    if isinstance(action, PlaceRaceBet):
        return {"kind": action.kind, "camel": action.camel, "winner": action.winner}
    raise TypeError(f"Not an action: {action!r}")


def action_from_dict(data: dict[str, Any]) -> Action:
    """
    Parse an action document.

    Only the shape is checked here; whether the action is legal is decided
    by the game when it is submitted.

    Raises:
        InvalidAction: If the kind is unknown or a field is missing or has
                       the wrong type (reason "malformed_action").
    """
    kind = data.get("kind") if isinstance(data, dict) else None
    try:
        if kind == RollDie.kind:
            return RollDie()
        if kind == TakeLegBet.kind:
            return TakeLegBet(camel=_int(data["camel"]))
        if kind == PlaceDesertTile.kind:
            tile = data["tile"]
            if not isinstance(tile, str):
                raise TypeError("tile must be a string")
            return PlaceDesertTile(space=_int(data["space"]), tile=tile)
        if kind == PlaceRaceBet.kind:
            winner = data["winner"]
            if not isinstance(winner, bool):
                raise TypeError("winner must be a boolean")
            return PlaceRaceBet(camel=_int(data["camel"]), winner=winner)
    except (KeyError, TypeError) as e:
        raise InvalidAction(f"Malformed {kind} action: {e}", reason="malformed_action") from e
    raise InvalidAction(f"Unknown action kind: {kind!r}", reason="malformed_action")


def _int(value: Any) -> int:
    # bool is an int subclass but never a valid camel or space
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"expected an integer, got {value!r}")
    return value
