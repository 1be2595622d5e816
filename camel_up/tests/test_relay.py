"""
Tests for state/action serialization and the host-authoritative relay.
"""

import json

import numpy as np
import pytest

from camel_up.actions import PlaceDesertTile, PlaceRaceBet, RollDie, TakeLegBet
from camel_up.config import GameConfig
from camel_up.constants import GREEN, OASIS, ROOM_CODE_ALPHABET
from camel_up.engine import Game
from camel_up.errors import InvalidAction
from camel_up.relay import (
    ClientSession,
    HostSession,
    InMemoryRoomStore,
    generate_room_code,
    is_valid_room_code,
)
from camel_up.serialization import (
    action_from_dict,
    action_to_dict,
    public_state_to_dict,
    state_from_dict,
    state_to_dict,
)


def played_game(turns: int = 4, seed: int = 12) -> Game:
    game = Game(GameConfig(num_players=3, seed=seed))
    game.submit_action(0, TakeLegBet(GREEN))
    game.submit_action(1, PlaceRaceBet(GREEN, winner=False))
    for _ in range(turns):
        game.submit_action(game.current_player, RollDie())
    return game


class TestStateDocuments:
    """Snapshot documents are lossless and JSON-compatible."""

    def test_document_survives_json(self):
        game = played_game()
        document = state_to_dict(game.state)

        restored = state_from_dict(json.loads(json.dumps(document)))

        assert state_to_dict(restored) == document

    def test_restored_state_rolls_the_same_dice(self):
        game = played_game()
        twin = Game(game.config, state=state_from_dict(state_to_dict(game.state)))

        for _ in range(5):
            a = game.submit_action(game.current_player, RollDie())
            b = twin.submit_action(twin.current_player, RollDie())
            assert a.roll == b.roll

        assert state_to_dict(game.state) == state_to_dict(twin.state)

    def test_desert_tiles_and_bets_kept(self):
        game = Game(GameConfig(num_players=2, seed=3))
        space = game.state.track.legal_desert_spaces(0)[0]
        game.submit_action(0, PlaceDesertTile(space, OASIS))
        game.submit_action(1, PlaceRaceBet(GREEN, winner=True))

        restored = state_from_dict(state_to_dict(game.state))

        assert restored.track.desert_tiles == {space: (0, OASIS)}
        assert restored.ledger.winner_bets == [(1, GREEN)]
        assert GREEN not in restored.players[1].race_cards

    def test_unknown_version_rejected(self):
        document = state_to_dict(Game(GameConfig(seed=1)).state)
        document["version"] = 99

        with pytest.raises(ValueError):
            state_from_dict(document)

    def test_malformed_document_rejected(self):
        document = state_to_dict(Game(GameConfig(seed=1)).state)
        del document["players"]

        with pytest.raises(ValueError, match="Malformed"):
            state_from_dict(document)


class TestActionDocuments:
    """Action documents."""

    @pytest.mark.parametrize("action", [
        RollDie(),
        TakeLegBet(GREEN),
        PlaceDesertTile(7, OASIS),
        PlaceRaceBet(GREEN, winner=False),
    ])
    def test_round_trip(self, action):
        assert action_from_dict(action_to_dict(action)) == action

    @pytest.mark.parametrize("document", [
        {"kind": "teleport"},
        {"kind": "leg_bet"},
        {"kind": "leg_bet", "camel": "green"},
        {"kind": "race_bet", "camel": 1, "winner": "yes"},
        {"kind": "desert_tile", "space": True, "tile": "oasis"},
        None,
    ])
    def test_malformed_actions(self, document):
        with pytest.raises(InvalidAction) as exc_info:
            action_from_dict(document)
        assert exc_info.value.reason == "malformed_action"


class TestRoomCodes:
    """Tests for room code generation and validation."""

    def test_generated_codes_are_valid(self):
        rng = np.random.default_rng(0)
        for _ in range(50):
            code = generate_room_code(rng)
            assert len(code) == 4
            assert all(ch in ROOM_CODE_ALPHABET for ch in code)
            assert is_valid_room_code(code)

    @pytest.mark.parametrize("code,valid", [
        ("ABCD", True),
        ("abcd", True),
        ("AB2Z", True),
        ("ABC", False),
        ("ABCDE", False),
        ("AB0D", False),  # 0 and O are left out of the alphabet
        ("ABID", False),
    ])
    def test_validation(self, code, valid):
        assert is_valid_room_code(code) == valid


class TestRelayLoop:
    """Host drains client requests and publishes snapshots."""

    def setup_room(self):
        store = InMemoryRoomStore()
        host = HostSession(store, Game(GameConfig(num_players=2, seed=6)),
                           rng=np.random.default_rng(0))
        clients = [ClientSession(store, host.room_code, player=i) for i in range(2)]
        return store, host, clients

    def test_client_sees_initial_snapshot(self):
        _, host, clients = self.setup_room()

        state = clients[0].state()

        assert state == public_state_to_dict(host.game.state)
        assert state["board"] == state_to_dict(host.game.state)["board"]

    def test_requests_applied_in_arrival_order(self):
        _, host, clients = self.setup_room()
        first = clients[0].submit(TakeLegBet(GREEN))
        second = clients[1].submit(TakeLegBet(GREEN))

        results = host.drain()

        assert [r["id"] for r in results] == [first, second]
        assert all(r["ok"] for r in results)
        assert host.game.state.players[0].leg_bets == [(GREEN, 5)]
        assert host.game.state.players[1].leg_bets == [(GREEN, 3)]

    def test_invalid_request_recorded_not_raised(self):
        _, host, clients = self.setup_room()
        request_id = clients[1].submit(RollDie())  # Not player 1's turn

        host.drain()

        result = clients[1].result(request_id)
        assert result["ok"] is False
        assert result["error"]["reason"] == "not_your_turn"
        assert host.game.current_player == 0

    def test_drain_processes_each_request_once(self):
        _, host, clients = self.setup_room()
        clients[0].submit(RollDie())

        assert len(host.drain()) == 1
        assert host.drain() == []

    def test_snapshot_published_after_drain(self):
        _, host, clients = self.setup_room()
        clients[0].state()
        assert not clients[0].has_update()

        clients[0].submit(RollDie())
        host.drain()

        assert clients[0].has_update()
        assert clients[1].state()["currentPlayer"] == 1

    def test_result_pending_until_drained(self):
        _, host, clients = self.setup_room()
        request_id = clients[0].submit(RollDie())

        assert clients[0].result(request_id) is None
        host.drain()
        assert clients[0].result(request_id)["ok"] is True

    def test_malformed_request_rejected(self):
        store, host, _ = self.setup_room()
        store.enqueue_request(host.room_code, {"player": "zero", "action": {"kind": "roll"}})
        store.enqueue_request(host.room_code, {"player": 0, "action": {"kind": "dance"}})

        results = host.drain()

        assert [r["error"]["reason"] for r in results] == ["unknown_player", "malformed_action"]

    def test_join_unknown_room(self):
        with pytest.raises(KeyError):
            ClientSession(InMemoryRoomStore(), "ABCD", player=0)

    def test_two_hosts_get_distinct_codes(self):
        store = InMemoryRoomStore()
        a = HostSession(store, Game(GameConfig(seed=1)), rng=np.random.default_rng(0))
        b = HostSession(store, Game(GameConfig(seed=1)), rng=np.random.default_rng(0))

        assert a.room_code != b.room_code

    def test_each_request_gets_its_own_snapshot(self):
        store, host, clients = self.setup_room()
        start = store.read_snapshot(host.room_code)["version"]
        clients[0].submit(RollDie())
        clients[1].submit(RollDie())

        host.drain()

        assert store.read_snapshot(host.room_code)["version"] == start + 2


class TestPublicSnapshot:
    """What clients can and cannot learn from a published snapshot."""

    def test_no_generator_state(self):
        store = InMemoryRoomStore()
        host = HostSession(store, played_game(), rng=np.random.default_rng(0))

        state = ClientSession(store, host.room_code, player=1).state()

        assert "rng" not in state
        assert "rng" in state_to_dict(host.game.state)

    def test_race_bet_camels_hidden(self):
        game = played_game()
        document = public_state_to_dict(game.state)

        assert document["loserBets"] == [1]
        assert document["winnerBets"] == []
        assert "raceCards" not in document["players"][1]
        assert document["players"][1]["raceCardsLeft"] == 4

    def test_host_resumes_from_private_document(self):
        store = InMemoryRoomStore()
        host = HostSession(store, played_game(), rng=np.random.default_rng(0))
        saved = state_to_dict(host.game.state)

        resumed = Game(host.game.config, state=state_from_dict(saved))

        assert resumed.submit_action(resumed.current_player, RollDie()).roll == \
            host.game.submit_action(host.game.current_player, RollDie()).roll
