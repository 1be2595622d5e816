"""
Tests for the HTTP API.
"""

import pytest

from camel_up import server
from camel_up.constants import GREEN


@pytest.fixture
def client():
    server.app.config["TESTING"] = True
    with server.app.test_client() as client:
        yield client


def start(client, **settings):
    settings.setdefault("numPlayers", 2)
    settings.setdefault("seed", 1)
    response = client.post("/api/new-game", json=settings)
    assert response.status_code == 200
    return response.get_json()


class TestNewGame:
    """Tests for creating games."""

    def test_new_game_state(self, client):
        body = start(client)

        assert body["phase"] == "awaiting_action"
        assert body["currentPlayer"] == 0
        assert len(body["state"]["players"]) == 2
        assert {"kind": "roll"} in body["validActions"]

    def test_same_seed_same_board(self, client):
        first = start(client, seed=4)["state"]["board"]
        second = start(client, seed=4)["state"]["board"]

        assert first == second

    def test_state_endpoint_matches(self, client):
        body = start(client)

        assert client.get("/api/state").get_json() == body

    @pytest.mark.parametrize("settings", [
        {"numPlayers": 1},
        {"numPlayers": "many"},
        {"aiPlayers": {"0": "grandmaster"}},
        {"trackLength": 3},
        {"seed": -1},
    ])
    def test_bad_config(self, client, settings):
        response = client.post("/api/new-game", json=settings)

        assert response.status_code == 400
        assert response.get_json()["error"]["reason"] == "bad_config"


class TestActions:
    """Tests for submitting actions."""

    def test_leg_bet(self, client):
        start(client)

        response = client.post("/api/action", json={
            "player": 0, "action": {"kind": "leg_bet", "camel": GREEN},
        })

        body = response.get_json()
        assert response.status_code == 200
        assert body["events"][0]["kind"] == "leg_bet_taken"
        assert body["game"]["currentPlayer"] == 1
        assert body["game"]["state"]["players"][0]["legBets"] == [[GREEN, 5]]

    def test_roll_reports_die(self, client):
        start(client)

        body = client.post("/api/action", json={
            "player": 0, "action": {"kind": "roll"},
        }).get_json()

        assert body["roll"]["value"] in (1, 2, 3)
        assert body["game"]["currentPlayer"] == 1

    def test_wrong_player_rejected(self, client):
        start(client)

        response = client.post("/api/action", json={
            "player": 1, "action": {"kind": "roll"},
        })

        assert response.status_code == 400
        assert response.get_json()["error"]["reason"] == "not_your_turn"

    @pytest.mark.parametrize("payload,reason", [
        ({"player": "0", "action": {"kind": "roll"}}, "unknown_player"),
        ({"player": 0, "action": {"kind": "fly"}}, "malformed_action"),
        ({"player": 0}, "malformed_action"),
        ({"player": 0, "action": {"kind": "desert_tile", "space": 0, "tile": "oasis"}},
         "bad_desert_space"),
    ])
    def test_rejections(self, client, payload, reason):
        start(client)

        response = client.post("/api/action", json=payload)

        assert response.status_code == 400
        assert response.get_json()["error"]["reason"] == reason
        assert client.get("/api/state").get_json()["currentPlayer"] == 0


class TestAIMoves:
    """Tests for the AI move endpoint."""

    def test_ai_seat_moves(self, client):
        start(client, aiPlayers={"0": "basic"})

        response = client.post("/api/ai-move")

        assert response.status_code == 200
        assert response.get_json()["player"] == 0

    def test_human_seat_refused(self, client):
        start(client, aiPlayers={"1": "random"})

        response = client.post("/api/ai-move")

        assert response.status_code == 400
        assert response.get_json()["error"]["reason"] == "not_ai_turn"


class TestQueries:
    """Tests for read-only endpoints and leg control."""

    def test_valid_actions_for_other_player_empty(self, client):
        start(client)

        assert client.get("/api/valid-actions?player=1").get_json()["actions"] == []
        assert client.get("/api/valid-actions").get_json()["player"] == 0

    def test_events_since(self, client):
        body = start(client)
        mark = body["lastEvent"]
        client.post("/api/action", json={"player": 0, "action": {"kind": "roll"}})

        events = client.get(f"/api/events?since={mark}").get_json()["events"]

        assert events
        assert all(e["seq"] > mark for e in events)
        assert events[0]["kind"] == "die_rolled"

    def test_next_leg_mid_leg_rejected(self, client):
        start(client)

        response = client.post("/api/next-leg")

        assert response.status_code == 400
        assert response.get_json()["error"]["reason"] == "leg_not_over"
