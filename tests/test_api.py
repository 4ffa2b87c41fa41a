"""
HTTP tests for the Mergers rules service.

Covers the happy paths of every endpoint plus the error contract:
- rejected moves come back as 200 with ``valid: false``
- engine errors that are not move rejections are 400s
- malformed payloads are 422s
"""

from __future__ import annotations

from fastapi.encoders import jsonable_encoder
from fastapi.testclient import TestClient

from mergers.main import app
from mergers.models import BuildingStage, Chain, GamePhase
from tests.helpers import make_state

client = TestClient(app)


def _encode(state):
    return jsonable_encoder(state, by_alias=True)


class TestServiceEndpoints:
    def test_root(self):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["status"] == "running"

    def test_health(self):
        assert client.get("/health").json() == {"status": "healthy"}

    def test_metrics_exposes_move_counters(self):
        state = make_state(["T T 0"])
        client.post(
            "/rules/apply_move",
            json={
                "gameState": _encode(state),
                "move": {"type": "placeHotel", "player": "0", "hotel": "3-A"},
            },
        )
        response = client.get("/metrics")
        assert response.status_code == 200
        assert "mergers_moves_total" in response.text


class TestSetup:
    def test_creates_a_game(self):
        response = client.post("/games/setup", json={"numPlayers": 3, "seed": 42})
        assert response.status_code == 200
        body = response.json()
        assert len(body["players"]) == 3
        assert body["currentPhase"] == "buildingPhase"
        assert body["currentStage"] == "placeHotelStage"
        assert body["rngSeed"] == 42

    def test_same_seed_same_game(self):
        a = client.post("/games/setup", json={"numPlayers": 2, "seed": 5}).json()
        b = client.post("/games/setup", json={"numPlayers": 2, "seed": 5}).json()
        assert a == b

    def test_custom_options(self):
        response = client.post(
            "/games/setup",
            json={"numPlayers": 2, "seed": 1, "options": {"rackSize": 4}},
        )
        body = response.json()
        racks = [
            h for row in body["hotels"] for h in row if h["drawnByPlayer"] == "0"
        ]
        assert len(racks) == 4

    def test_bad_player_count_is_a_400(self):
        response = client.post("/games/setup", json={"numPlayers": 7})
        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "CONFIGURATION_ERROR"

    def test_out_of_range_seed_is_a_422(self):
        response = client.post(
            "/games/setup", json={"numPlayers": 2, "seed": 2**40}
        )
        assert response.status_code == 422


class TestApplyMove:
    def test_accepted_move_returns_next_state(self):
        state = make_state(
            ["T T T .", ". . 0 .", "L L L L"], stocks={"0": {Chain.TOWER: 3}}
        )
        response = client.post(
            "/rules/apply_move",
            json={
                "gameState": _encode(state),
                "move": {"type": "placeHotel", "player": "0", "hotel": "3-B"},
            },
        )
        assert response.status_code == 200
        body = response.json()
        assert body["valid"] is True
        assert body["stateHash"]
        assert body["nextState"]["currentPhase"] == "mergerPhase"
        assert body["nextState"]["merger"]["survivingChain"] == "Luxor"
        assert body["nextState"]["moveHistory"][0]["moveNumber"] == 1

    def test_rejected_move_is_reported_not_raised(self):
        state = make_state(["T T 0"])
        response = client.post(
            "/rules/apply_move",
            json={
                "gameState": _encode(state),
                "move": {"type": "buyStock", "player": "0"},
            },
        )
        assert response.status_code == 200
        body = response.json()
        assert body["valid"] is False
        assert body["errorCode"] == "INVALID_MOVE"
        assert body["nextState"] is None

    def test_rules_violation_carries_its_code(self):
        state = make_state(["0 1"])
        response = client.post(
            "/rules/apply_move",
            json={
                "gameState": _encode(state),
                "move": {"type": "placeHotel", "player": "0", "hotel": "2-A"},
            },
        )
        assert response.json()["errorCode"] == "RULES_VIOLATION"

    def test_inconsistent_state_is_a_400(self):
        state = make_state(["T T"], current_phase=GamePhase.MERGER)
        response = client.post(
            "/rules/apply_move",
            json={
                "gameState": _encode(state),
                "move": {"type": "swapAndSellStock", "player": "0"},
            },
        )
        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "INVALID_STATE"

    def test_malformed_move_is_a_422(self):
        state = make_state(["T T 0"])
        response = client.post(
            "/rules/apply_move",
            json={
                "gameState": _encode(state),
                "move": {"type": "teleport", "player": "0"},
            },
        )
        assert response.status_code == 422

    def test_sparse_stock_maps_are_filled_with_zero(self):
        state = make_state(["T T ."], current_stage=BuildingStage.BUY_STOCK)
        payload = _encode(state)
        for player in payload["players"]:
            player["stocks"] = {}
        payload["availableStocks"] = {"Tower": 25}
        response = client.post(
            "/rules/apply_move",
            json={
                "gameState": payload,
                "move": {"type": "buyStock", "player": "0", "order": {"Tower": 1}},
            },
        )
        assert response.status_code == 200
        body = response.json()
        assert body["valid"] is True
        stocks = body["nextState"]["players"][0]["stocks"]
        assert stocks["Tower"] == 1
        assert stocks["Imperial"] == 0
        assert body["nextState"]["availableStocks"]["Luxor"] == 0

    def test_missing_state_is_a_422(self):
        response = client.post(
            "/rules/apply_move",
            json={"move": {"type": "drawHotels", "player": "0"}},
        )
        assert response.status_code == 422


class TestReadEndpoints:
    def test_valid_moves(self):
        state = make_state(["T T"], current_stage=BuildingStage.BUY_STOCK)
        response = client.post(
            "/rules/valid_moves", json={"gameState": _encode(state), "player": "0"}
        )
        assert response.status_code == 200
        orders = [m["order"] for m in response.json()]
        assert orders == [{}, {"Tower": 1}, {"Tower": 2}, {"Tower": 3}]

    def test_valid_moves_for_a_waiting_player(self):
        state = make_state(["T T"])
        response = client.post(
            "/rules/valid_moves", json={"gameState": _encode(state), "player": "1"}
        )
        assert response.json() == []

    def test_view(self):
        state = make_state(["T T 0", "1 . ."])
        response = client.post(
            "/rules/view", json={"gameState": _encode(state), "viewer": "0"}
        )
        body = response.json()
        assert body["currentPlayer"] == "0"
        assert body["activePlayers"] == {"0": "placeHotelStage"}
        assert [h["id"] for h in body["rack"]] == ["3-A"]

    def test_view_of_a_state_with_empty_stock_maps(self):
        payload = _encode(make_state(["T T 0"]))
        payload["players"][1]["stocks"] = {}
        payload["availableStocks"] = {}
        response = client.post("/rules/view", json={"gameState": payload})
        assert response.status_code == 200
        assert all(c["available"] == 0 for c in response.json()["chains"])

    def test_price_guide(self):
        body = client.get("/rules/price_guide").json()
        assert len(body) == 9
        assert body[0]["tiers"][0]["majorityBonus"] == 2000
