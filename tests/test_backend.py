import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import pytest

from api import ui_bridge
from factory_sim import config
from factory_sim.game_state import InsufficientResourcesError, get_game_state
from factory_sim.resources import ResourceType


@pytest.fixture(autouse=True)
def reset_state():
    ui_bridge.init_game(force_reset=True)
    yield


@pytest.fixture
def client():
    from app import app

    app.config.update(TESTING=True)
    with app.test_client() as client:
        yield client


def _money() -> float:
    return get_game_state().ledger.get(ResourceType.MONEY)


def test_initial_layout_and_resources():
    state = get_game_state()
    assert sorted(state.buildings) == ["marketplace-2", "woodcutter-1"]
    assert [connection.to_snapshot() for connection in state.connections] == [
        {"id": "edge-1", "source": "woodcutter-1", "target": "marketplace-2", "resource": "wood"}
    ]
    assert state.resources_snapshot() == {"money": 100.0, "knowledge": 0.0, "food": 0.0}
    assert state.day == 0
    assert state.clock.paused is True


def test_starting_chain_earns_money_after_three_days():
    response = ui_bridge.advance_day(3)
    assert response["ok"] is True
    assert response["day"] == 3
    assert _money() == pytest.approx(100.0 + 2 * config.RESOURCE_VALUES[ResourceType.WOOD])
    assert response["statistics"]["day"] == 3
    assert response["statistics"]["earned"] == {"money": pytest.approx(2.0)}


def test_place_building_pays_cost():
    response = ui_bridge.place_building("sawmill")
    assert response["ok"] is True
    assert response["building"]["id"] == "sawmill-3"
    assert response["resources"]["money"] == pytest.approx(75.0)


def test_place_building_without_money_fails():
    assert ui_bridge.place_building("library")["ok"] is True
    assert ui_bridge.place_building("library")["ok"] is True
    response = ui_bridge.place_building("library")
    assert response["ok"] is False
    assert response["error_code"] == "insufficient_resources"
    assert response["requires"] == {"money": 50.0}
    assert _money() == pytest.approx(0.0)

    with pytest.raises(InsufficientResourcesError):
        get_game_state().place_building("library")


def test_unknown_building_type_is_reported():
    response = ui_bridge.place_building("castle")
    assert response["ok"] is False
    assert response["error_code"] == "invalid_building_type"
    assert response["http_status"] == 404


def test_connect_and_remove_building_drops_edges():
    saw = ui_bridge.place_building("sawmill")["building"]["id"]
    connected = ui_bridge.connect_buildings(saw, "woodcutter-1")
    assert connected["ok"] is True
    assert connected["connection"]["source"] == "woodcutter-1"
    assert connected["connection"]["target"] == saw

    duplicate = ui_bridge.connect_buildings("woodcutter-1", saw)
    assert duplicate["ok"] is False
    assert duplicate["error_code"] == "invalid_connection"

    again = ui_bridge.connect_buildings(saw, "woodcutter-1")
    assert again["error_code"] == "invalid_connection"
    quarry = ui_bridge.place_building("quarry")["building"]["id"]
    next_edge = ui_bridge.connect_buildings(quarry, "marketplace-2")
    assert next_edge["connection"]["id"] == "edge-3"
    ui_bridge.remove_building(quarry)

    removed = ui_bridge.remove_building(saw)
    assert removed["ok"] is True
    assert all(saw not in (edge["source"], edge["target"]) for edge in removed["connections"])
    assert len(removed["connections"]) == 1


def test_invalid_connections_are_rejected():
    quarry = ui_bridge.place_building("quarry")["building"]["id"]
    response = ui_bridge.connect_buildings(quarry, "woodcutter-1")
    assert response["error_code"] == "invalid_connection"

    response = ui_bridge.connect_buildings("woodcutter-1", "marketplace-2", "unobtainium")
    assert response["error_code"] == "invalid_resource"

    response = ui_bridge.connect_buildings("woodcutter-1", "nowhere")
    assert response["error_code"] == "building_not_found"


def test_disconnect_stops_deliveries():
    assert ui_bridge.disconnect_buildings("edge-1")["ok"] is True
    assert ui_bridge.disconnect_buildings("edge-1")["error_code"] == "connection_not_found"
    ui_bridge.advance_day(4)
    assert _money() == pytest.approx(100.0)


def test_set_production_method_resets_cycle():
    saw = ui_bridge.place_building("sawmill")["building"]["id"]
    response = ui_bridge.set_production_method(saw, "Bulk Planks")
    assert response["ok"] is True
    assert response["building"]["production_method"]["name"] == "Bulk Planks"
    assert response["building"]["production_state"] == {"progress": 0, "status": "idle"}

    response = ui_bridge.set_production_method(saw, "Nonsense")
    assert response["error_code"] == "invalid_method"


def test_tick_respects_pause_and_speed():
    assert ui_bridge.tick(config.DAY_DURATION)["days_advanced"] == 0
    ui_bridge.resume()
    assert ui_bridge.tick(config.DAY_DURATION)["days_advanced"] == 1
    assert ui_bridge.set_game_speed("fast")["clock"]["speed"] == "fast"
    response = ui_bridge.tick(config.DAY_DURATION)
    assert response["days_advanced"] == 5
    assert response["day"] == 6
    assert ui_bridge.set_game_speed("warp")["ok"] is False
    ui_bridge.pause()
    assert ui_bridge.tick(config.DAY_DURATION)["days_advanced"] == 0


def test_statistics_history_is_bounded():
    ui_bridge.advance_day(3)
    history = ui_bridge.get_statistics(limit=2)["history"]
    assert [entry["day"] for entry in history] == [2, 3]


def test_simulate_is_stateless():
    state = get_game_state()
    payload = {
        "buildings": state.snapshot_buildings(),
        "connections": state.snapshot_connections(),
        "resources": state.resources_snapshot(),
        "day": 1,
    }
    response = ui_bridge.simulate(payload)
    assert response["ok"] is True
    wood = next(entry for entry in response["buildings"] if entry["id"] == "woodcutter-1")
    assert wood["stockpile"][0]["amount"] == 2
    assert state.day == 0
    assert state.buildings["woodcutter-1"].stockpile.find(ResourceType.WOOD).amount == 0


def test_simulate_rejects_malformed_payload():
    response = ui_bridge.simulate({"buildings": [{"name": "no id"}]})
    assert response["ok"] is False
    assert response["error_code"] == "invalid_payload"


def _depot(breakdown, max_amount=10):
    return {
        "id": "depot",
        "type": "depot",
        "stockpile": [{"resource": "any", "max_amount": max_amount, "breakdown": breakdown}],
    }


def test_simulate_trims_overfull_pool_to_capacity():
    response = ui_bridge.simulate({"buildings": [_depot({"wood": 50, "stone": 4})]})
    assert response["ok"] is True
    pool = response["buildings"][0]["stockpile"][0]
    assert pool["breakdown"] == {"wood": 10}
    assert pool["amount"] == 10
    assert pool["amount"] <= pool["max_amount"]


def test_simulate_drops_negative_and_wildcard_pool_keys():
    response = ui_bridge.simulate({"buildings": [_depot({"wood": -5, "any": 3, "stone": 5})]})
    pool = response["buildings"][0]["stockpile"][0]
    assert pool["breakdown"] == {"stone": 5}
    assert pool["amount"] == 5


def test_simulate_sells_stock_hidden_behind_negative_entries():
    market = get_game_state().buildings["marketplace-2"].to_snapshot()
    market["stockpile"] = [
        {"resource": "any", "max_amount": 100, "breakdown": {"wood": -5, "stone": 5}}
    ]
    response = ui_bridge.simulate({"buildings": [market]})
    expected = 5 * config.RESOURCE_VALUES[ResourceType.STONE]
    assert response["global_outputs"] == {"money": pytest.approx(expected)}


def test_state_endpoint_sets_no_cache_headers(client):
    response = client.get("/api/state")
    assert response.status_code == 200
    assert response.headers["Cache-Control"].startswith("no-store")
    body = response.get_json()
    assert body["ok"] is True
    assert len(body["buildings"]) == 2
    assert "request_id" in body and "server_time" in body
    assert "http_status" not in body


def test_http_building_lifecycle(client):
    created = client.post("/api/buildings", json={"type": "kiln"})
    assert created.status_code == 201
    building_id = created.get_json()["building"]["id"]

    linked = client.post(
        "/api/connections", json={"source": "woodcutter-1", "target": building_id}
    )
    assert linked.status_code == 201
    assert linked.get_json()["connection"]["resource"] == "wood"

    missing = client.delete("/api/buildings/does-not-exist")
    assert missing.status_code == 404

    removed = client.delete(f"/api/buildings/{building_id}")
    assert removed.status_code == 200


def test_http_day_and_simulate(client):
    response = client.post("/api/day", json={"days": 2})
    assert response.status_code == 200
    assert response.get_json()["day"] == 2

    bad = client.post("/api/day", json={"days": 0})
    assert bad.status_code == 400

    simulated = client.post("/api/simulate", json={"buildings": [], "connections": []})
    assert simulated.status_code == 200
    assert simulated.get_json()["buildings"] == []


def test_day_clock_driver_starts_once():
    from factory_sim import scheduler

    scheduler.ensure_tick_loop()
    first = scheduler._driver_thread
    scheduler.ensure_tick_loop()
    assert scheduler._driver_thread is first
    assert first.is_alive()
    assert first.daemon is True
    assert get_game_state().day == 0
