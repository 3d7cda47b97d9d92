"""Public API between the UI layer and the backend logic."""
from __future__ import annotations

from typing import Dict, Mapping

from factory_sim import config
from factory_sim.building_models import BuildingInstance, Connection
from factory_sim.connections import InvalidConnectionError
from factory_sim.game_state import InsufficientResourcesError, get_game_state
from factory_sim.resources import normalise_mapping
from factory_sim.simulation import process_day


# ---------------------------------------------------------------------------
# Response helpers


def _success_response(**payload: object) -> Dict[str, object]:
    response: Dict[str, object] = {"ok": True}
    response.update(payload)
    return response


def _error_response(
    code: str, message: str, *, http_status: int | None = None
) -> Dict[str, object]:
    payload: Dict[str, object] = {
        "ok": False,
        "error_code": code,
        "error_message": message,
        "error": message,
    }
    if http_status is not None:
        payload["http_status"] = int(http_status)
    return payload


def _state_error(code: str, message: str, http_status: int) -> Dict[str, object]:
    error = _error_response(code, message, http_status=http_status)
    error.update(get_game_state().response_metadata())
    return error


def _should_reset(flag: object) -> bool:
    if flag is None:
        return True
    if isinstance(flag, str):
        return flag.strip().lower() not in {"0", "false", "no"}
    return bool(flag)


def _state_payload(state) -> Dict[str, object]:
    payload = state.snapshot_state()
    latest = state.latest_statistics()
    payload["statistics"] = latest.to_snapshot() if latest else None
    return payload


# ---------------------------------------------------------------------------
# Initialisation, days and ticking


def init_game(force_reset: object = None) -> Dict[str, object]:
    """Initialise or reset the global game state using configuration defaults."""

    state = get_game_state()
    if _should_reset(force_reset):
        state.reset()
    return _success_response(**_state_payload(state))


def get_state() -> Dict[str, object]:
    """Return a snapshot of the overall game state."""

    return _success_response(**_state_payload(get_game_state()))


def advance_day(days: object = 1) -> Dict[str, object]:
    """Simulate ``days`` whole days immediately, ignoring the clock."""

    try:
        count = int(days)
    except (TypeError, ValueError):
        return _state_error("invalid_days", "Day count must be an integer", 400)
    if count < 1:
        return _state_error("invalid_days", "Day count must be positive", 400)

    state = get_game_state()
    for _ in range(count):
        state.advance_day()
    return _success_response(days_advanced=count, **_state_payload(state))


def tick(dt: float) -> Dict[str, object]:
    """Advance the day clock by ``dt`` seconds."""

    state = get_game_state()
    try:
        seconds = max(0.0, float(dt))
    except (TypeError, ValueError):
        return _state_error("invalid_dt", "dt must be a number", 400)
    days = state.tick(seconds)
    return _success_response(days_advanced=days, **_state_payload(state))


def set_game_speed(speed: str) -> Dict[str, object]:
    state = get_game_state()
    try:
        state.clock.set_speed(speed)
    except ValueError as exc:
        return _state_error("invalid_speed", str(exc), 400)
    return _success_response(clock=state.clock.to_dict(), **state.response_metadata())


def pause() -> Dict[str, object]:
    state = get_game_state()
    state.clock.pause()
    return _success_response(clock=state.clock.to_dict(), **state.response_metadata())


def resume() -> Dict[str, object]:
    state = get_game_state()
    state.clock.resume()
    return _success_response(clock=state.clock.to_dict(), **state.response_metadata())


def get_statistics(limit: object = None) -> Dict[str, object]:
    state = get_game_state()
    try:
        window = int(limit) if limit is not None else None
    except (TypeError, ValueError):
        return _state_error("invalid_limit", "limit must be an integer", 400)
    history = state.statistics_snapshot(window)
    return _success_response(history=history, **state.response_metadata())


# ---------------------------------------------------------------------------
# Building interactions


def list_building_types() -> Dict[str, object]:
    catalogue = [
        building_class.to_dict() | {"type": type_key}
        for type_key, building_class in config.BUILDING_CLASSES.items()
    ]
    return _success_response(building_types=catalogue)


def place_building(type_key: str, method_name: str | None = None) -> Dict[str, object]:
    state = get_game_state()
    try:
        canonical_type = config.resolve_building_type(type_key)
    except ValueError as exc:
        return _state_error("invalid_building_type", str(exc), 404)

    try:
        building = state.place_building(canonical_type, method_name)
    except InsufficientResourcesError as exc:
        error = _state_error("insufficient_resources", "Not enough resources", 400)
        error["error"] = "INSUFFICIENT_RESOURCES"
        error["requires"] = {
            resource.value: float(amount) for resource, amount in exc.requirements.items()
        }
        return error
    except ValueError as exc:
        return _state_error("build_failed", str(exc), 400)

    payload: Dict[str, object] = {
        "building": building.to_snapshot(),
        "resources": state.resources_snapshot(),
        "http_status": 201,
    }
    payload.update(state.response_metadata())
    return _success_response(**payload)


def remove_building(building_id: str) -> Dict[str, object]:
    state = get_game_state()
    try:
        building = state.remove_building(building_id)
    except ValueError as exc:
        return _state_error("building_not_found", str(exc), 404)
    payload: Dict[str, object] = {
        "building": building.to_snapshot(),
        "connections": state.snapshot_connections(),
    }
    payload.update(state.response_metadata())
    return _success_response(**payload)


def set_production_method(building_id: str, method_name: str) -> Dict[str, object]:
    state = get_game_state()
    if state.get_building(building_id) is None:
        return _state_error("building_not_found", f"Unknown building: {building_id}", 404)
    try:
        building = state.set_production_method(building_id, str(method_name or ""))
    except ValueError as exc:
        return _state_error("invalid_method", str(exc), 400)
    payload: Dict[str, object] = {
        "building": building.to_snapshot(),
        "connections": state.snapshot_connections(),
    }
    payload.update(state.response_metadata())
    return _success_response(**payload)


# ---------------------------------------------------------------------------
# Wiring


def connect_buildings(
    source_id: str, target_id: str, resource: str | None = None
) -> Dict[str, object]:
    state = get_game_state()
    for building_id in (source_id, target_id):
        if state.get_building(building_id) is None:
            return _state_error("building_not_found", f"Unknown building: {building_id}", 404)
    try:
        connection = state.connect(source_id, target_id, resource)
    except KeyError as exc:
        return _state_error("invalid_resource", str(exc.args[0]), 400)
    except InvalidConnectionError as exc:
        return _state_error("invalid_connection", str(exc), 400)
    payload: Dict[str, object] = {"connection": connection.to_snapshot(), "http_status": 201}
    payload.update(state.response_metadata())
    return _success_response(**payload)


def disconnect_buildings(connection_id: str) -> Dict[str, object]:
    state = get_game_state()
    try:
        connection = state.disconnect(connection_id)
    except ValueError as exc:
        return _state_error("connection_not_found", str(exc), 404)
    payload: Dict[str, object] = {"connection": connection.to_snapshot()}
    payload.update(state.response_metadata())
    return _success_response(**payload)


# ---------------------------------------------------------------------------
# Stateless simulation


def simulate(payload: Mapping[str, object]) -> Dict[str, object]:
    """Run one day over posted building and connection snapshots.

    The global game state is neither read nor modified.
    """

    raw_buildings = payload.get("buildings") or []
    raw_connections = payload.get("connections") or []
    if not isinstance(raw_buildings, list) or not isinstance(raw_connections, list):
        return _error_response(
            "invalid_payload", "buildings and connections must be lists", http_status=400
        )
    try:
        buildings = [BuildingInstance.from_snapshot(entry) for entry in raw_buildings]
        connections = [Connection.from_snapshot(entry) for entry in raw_connections]
        resources = normalise_mapping(payload.get("resources") or {})
        day = int(payload.get("day") or 0)
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        return _error_response("invalid_payload", str(exc), http_status=400)

    result = process_day(buildings, connections, day, resources)
    return _success_response(
        buildings=[building.to_snapshot() for building in result.buildings],
        global_outputs={
            resource.value: amount for resource, amount in result.global_outputs.items()
        },
        statistics=result.statistics.to_snapshot(),
    )
