"""
Host-authoritative relay over a key-value room store.

The host owns the only Game. Clients never mutate state: they enqueue
action requests and read the snapshots the host publishes. The host
drains the queue in arrival order, applies each request through
Game.submit_action and records an outcome or error per request.

The store is an interface; InMemoryRoomStore is enough for tests and
single-process play. A networked store only needs the same methods.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

import numpy as np

from .actions import Action
from .constants import ROOM_CODE_ALPHABET, ROOM_CODE_LENGTH
from .engine import Game
from .errors import InvalidAction
from .serialization import action_from_dict, action_to_dict, public_state_to_dict

logger = logging.getLogger(__name__)


def generate_room_code(rng: Optional[np.random.Generator] = None) -> str:
    """Generate a random 4-character room code."""
    if rng is None:
        rng = np.random.default_rng()
    picks = rng.integers(len(ROOM_CODE_ALPHABET), size=ROOM_CODE_LENGTH)
    return "".join(ROOM_CODE_ALPHABET[int(i)] for i in picks)


def is_valid_room_code(code: str) -> bool:
    """Check a room code's format (case-insensitive)."""
    return (
        isinstance(code, str)
        and len(code) == ROOM_CODE_LENGTH
        and all(ch in ROOM_CODE_ALPHABET for ch in code.upper())
    )


# =============================================================================
# Store
# =============================================================================


class RoomStore:
    """Key-value storage shared by a host and its clients."""

    def create_room(self, code: str, metadata: dict[str, Any]) -> None:
        raise NotImplementedError

    def room_exists(self, code: str) -> bool:
        raise NotImplementedError

    def write_snapshot(self, code: str, document: dict[str, Any]) -> None:
        raise NotImplementedError

    def read_snapshot(self, code: str) -> Optional[dict[str, Any]]:
        raise NotImplementedError

    def enqueue_request(self, code: str, request: dict[str, Any]) -> str:
        """Append an action request; returns its id."""
        raise NotImplementedError

    def pending_requests(self, code: str) -> list[dict[str, Any]]:
        """Unprocessed requests in arrival order."""
        raise NotImplementedError

    def mark_processed(self, code: str, request_id: str, result: dict[str, Any]) -> None:
        raise NotImplementedError

    def get_result(self, code: str, request_id: str) -> Optional[dict[str, Any]]:
        raise NotImplementedError


@dataclass
class _Room:
    metadata: dict[str, Any]
    snapshot: Optional[dict[str, Any]] = None
    requests: list[dict[str, Any]] = field(default_factory=list)
    results: dict[str, dict[str, Any]] = field(default_factory=dict)
    next_id: int = 1


class InMemoryRoomStore(RoomStore):
    """RoomStore backed by plain dicts."""

    def __init__(self):
        self._rooms: dict[str, _Room] = {}

    def _room(self, code: str) -> _Room:
        try:
            return self._rooms[code.upper()]
        except KeyError:
            raise KeyError(f"No such room: {code}") from None

    def create_room(self, code: str, metadata: dict[str, Any]) -> None:
        code = code.upper()
        if code in self._rooms:
            raise ValueError(f"Room {code} already exists")
        self._rooms[code] = _Room(metadata=dict(metadata))

    def room_exists(self, code: str) -> bool:
        return code.upper() in self._rooms

    def write_snapshot(self, code: str, document: dict[str, Any]) -> None:
        self._room(code).snapshot = document

    def read_snapshot(self, code: str) -> Optional[dict[str, Any]]:
        return self._room(code).snapshot

    def enqueue_request(self, code: str, request: dict[str, Any]) -> str:
        room = self._room(code)
        request_id = str(room.next_id)
        room.next_id += 1
        room.requests.append({**request, "id": request_id})
        return request_id

    def pending_requests(self, code: str) -> list[dict[str, Any]]:
        room = self._room(code)
        return [r for r in room.requests if r["id"] not in room.results]

    def mark_processed(self, code: str, request_id: str, result: dict[str, Any]) -> None:
        self._room(code).results[request_id] = result

    def get_result(self, code: str, request_id: str) -> Optional[dict[str, Any]]:
        return self._room(code).results.get(request_id)


# =============================================================================
# Sessions
# =============================================================================


class HostSession:
    """
    The authoritative side of a room.

    Example:
        >>> store = InMemoryRoomStore()
        >>> host = HostSession(store, Game(GameConfig(seed=1)))
        >>> client = ClientSession(store, host.room_code, player=0)
        >>> request_id = client.submit(RollDie())
        >>> host.drain()[0]["ok"]
        True
    """

    def __init__(
        self,
        store: RoomStore,
        game: Game,
        room_code: Optional[str] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        self.store = store
        self.game = game
        self.version = 0

        if room_code is None:
            rng = rng if rng is not None else np.random.default_rng()
            room_code = generate_room_code(rng)
            while store.room_exists(room_code):
                room_code = generate_room_code(rng)
        elif not is_valid_room_code(room_code):
            raise ValueError(f"Invalid room code: {room_code!r}")

        self.room_code = room_code.upper()
        store.create_room(
            self.room_code,
            {"players": [p.name for p in game.state.players]},
        )
        self.publish()
        logger.info("Hosting room %s", self.room_code)

    def publish(self) -> dict[str, Any]:
        """
        Write the current public snapshot document to the store.

        Clients get the public view only; the host resumes from
        state_to_dict(host.game.state), which it never publishes.
        """
        self.version += 1
        document = {
            "version": self.version,
            "state": public_state_to_dict(self.game.state),
            "lastEvent": self.game.events[-1].seq if self.game.events else 0,
        }
        self.store.write_snapshot(self.room_code, document)
        return document

    def drain(self) -> list[dict[str, Any]]:
        """
        Apply every pending request in arrival order.

        Each request is marked processed with either {"ok": True, "events": [...]}
        or {"ok": False, "error": {...}}. A snapshot is published after each
        request, so every resolved action has its own version.

        Returns:
            The results, in the order the requests were applied.
        """
        results = []
        for request in self.store.pending_requests(self.room_code):
            result = self._apply(request)
            self.store.mark_processed(self.room_code, request["id"], result)
            results.append(result)
            self.publish()
        return results

    def _apply(self, request: dict[str, Any]) -> dict[str, Any]:
        player = request.get("player")
        try:
            if isinstance(player, bool) or not isinstance(player, int):
                raise InvalidAction(f"Unknown player {player!r}", reason="unknown_player")
            action = action_from_dict(request.get("action"))
            outcome = self.game.submit_action(player, action)
        except InvalidAction as e:
            logger.info("Room %s rejected request %s: %s", self.room_code, request["id"], e)
            return {"id": request["id"], "ok": False, "error": e.to_dict()}
        return {
            "id": request["id"],
            "ok": True,
            "events": [event.to_dict() for event in outcome.events],
        }


class ClientSession:
    """A remote seat: submits requests and reads the host's snapshots."""

    def __init__(self, store: RoomStore, room_code: str, player: int):
        if not is_valid_room_code(room_code):
            raise ValueError(f"Invalid room code: {room_code!r}")
        if not store.room_exists(room_code):
            raise KeyError(f"No such room: {room_code}")
        self.store = store
        self.room_code = room_code.upper()
        self.player = player
        self.seen_version = 0

    def submit(self, action: Action) -> str:
        """Queue an action request for the host; returns the request id."""
        return self.store.enqueue_request(
            self.room_code,
            {"player": self.player, "action": action_to_dict(action)},
        )

    def result(self, request_id: str) -> Optional[dict[str, Any]]:
        """The host's verdict on a request, or None while it is pending."""
        return self.store.get_result(self.room_code, request_id)

    def state(self) -> Optional[dict[str, Any]]:
        """Latest published public state document, or None before the first publish."""
        document = self.store.read_snapshot(self.room_code)
        if document is None:
            return None
        self.seen_version = document["version"]
        return document["state"]

    def has_update(self) -> bool:
        document = self.store.read_snapshot(self.room_code)
        return document is not None and document["version"] > self.seen_version
