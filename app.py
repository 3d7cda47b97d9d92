import logging
import uuid
from datetime import datetime, timezone

from flask import Flask, jsonify, request

from api import ui_bridge
from factory_sim.scheduler import ensure_tick_loop

app = Flask(__name__)
ensure_tick_loop()

logger = logging.getLogger(__name__)


def _generate_request_metadata() -> tuple[str, str]:
    request_id = str(uuid.uuid4())
    server_time = datetime.now(timezone.utc).isoformat()
    return request_id, server_time


def _enrich_payload(payload: dict, request_id: str, server_time: str) -> dict:
    body = dict(payload or {})
    body.pop("http_status", None)
    body["request_id"] = request_id
    body["server_time"] = server_time
    return body


def _json_response(payload: dict, status: int = 200, *, request_id: str, server_time: str):
    body = _enrich_payload(payload, request_id, server_time)
    response = jsonify(body)
    response.status_code = status
    response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, max-age=0"
    response.headers["Pragma"] = "no-cache"
    response.headers["Expires"] = "0"
    return response


def _respond(route: str, payload: dict):
    """Serialise a bridge payload, using its ``http_status`` hint when present."""

    request_id, server_time = _generate_request_metadata()
    status = int(payload.get("http_status") or (200 if payload.get("ok", False) else 400))
    if not payload.get("ok", False):
        logger.info(
            "%s failed request_id=%s status=%s error_code=%s",
            route,
            request_id,
            status,
            payload.get("error_code"),
        )
    return _json_response(payload, status, request_id=request_id, server_time=server_time)


@app.post("/api/init")
def api_init():
    """Initialise the game state, optionally forcing a reset."""

    reset_flag = request.args.get("reset")
    if reset_flag is None:
        payload = request.get_json(silent=True) or {}
        reset_flag = payload.get("reset") or payload.get("force_reset")
    return _respond("/api/init", ui_bridge.init_game(reset_flag))


@app.get("/api/state")
def api_state():
    """Return the current snapshot of the game state."""

    return _respond("/api/state", ui_bridge.get_state())


@app.post("/api/tick")
def api_tick():
    """Advance the day clock by ``dt`` seconds (defaults to 1)."""

    payload = request.get_json(silent=True) or {}
    return _respond("/api/tick", ui_bridge.tick(payload.get("dt", 1)))


@app.post("/api/day")
def api_day():
    """Simulate whole days immediately."""

    payload = request.get_json(silent=True) or {}
    response = ui_bridge.advance_day(payload.get("days", 1))
    if response.get("ok"):
        logger.info("Advanced to day %s", response.get("day"))
    return _respond("/api/day", response)


@app.get("/api/building-types")
def api_building_types():
    return _respond("/api/building-types", ui_bridge.list_building_types())


@app.post("/api/buildings")
def api_place_building():
    payload = request.get_json(silent=True) or {}
    response = ui_bridge.place_building(str(payload.get("type") or ""), payload.get("method"))
    if response.get("ok"):
        logger.info("Placed building id=%s", response["building"]["id"])
    return _respond("/api/buildings", response)


@app.delete("/api/buildings/<building_id>")
def api_remove_building(building_id: str):
    return _respond(f"/api/buildings/{building_id}", ui_bridge.remove_building(building_id))


@app.post("/api/buildings/<building_id>/method")
def api_set_method(building_id: str):
    payload = request.get_json(silent=True) or {}
    response = ui_bridge.set_production_method(building_id, payload.get("method"))
    return _respond(f"/api/buildings/{building_id}/method", response)


@app.post("/api/connections")
def api_connect():
    payload = request.get_json(silent=True) or {}
    response = ui_bridge.connect_buildings(
        str(payload.get("source") or ""),
        str(payload.get("target") or ""),
        payload.get("resource"),
    )
    return _respond("/api/connections", response)


@app.delete("/api/connections/<connection_id>")
def api_disconnect(connection_id: str):
    response = ui_bridge.disconnect_buildings(connection_id)
    return _respond(f"/api/connections/{connection_id}", response)


@app.post("/api/speed")
def api_speed():
    payload = request.get_json(silent=True) or {}
    return _respond("/api/speed", ui_bridge.set_game_speed(payload.get("speed")))


@app.post("/api/pause")
def api_pause():
    return _respond("/api/pause", ui_bridge.pause())


@app.post("/api/resume")
def api_resume():
    return _respond("/api/resume", ui_bridge.resume())


@app.get("/api/statistics")
def api_statistics():
    return _respond("/api/statistics", ui_bridge.get_statistics(request.args.get("limit")))


@app.post("/api/simulate")
def api_simulate():
    """Run one stateless day over the posted layout."""

    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        payload = {}
    return _respond("/api/simulate", ui_bridge.simulate(payload))


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    app.run(debug=True)
