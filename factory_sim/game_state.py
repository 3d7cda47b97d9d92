"""Core singleton storing all game state."""

from __future__ import annotations

import logging
import threading
import uuid
from collections import deque
from datetime import datetime, timezone
from typing import Deque, Dict, List, Mapping, Optional

from . import config
from .building_models import BuildingInstance, Connection
from .buildings import build_from_config, switch_production_method
from .connections import InvalidConnectionError, create_connection, resolve_connection
from .resource_ledger import ResourceLedger
from .resources import ResourceType, normalise_resource
from .simulation import process_day
from .statistics import DayStatistics
from .timeclock import DayClock


logger = logging.getLogger(__name__)


class InsufficientResourcesError(Exception):
    """Raised when an action cannot be performed due to missing resources."""

    def __init__(self, requirements: Mapping[ResourceType, float]):
        self.requirements = dict(requirements)
        super().__init__("INSUFFICIENT_RESOURCES")


class GameState:
    """Central storage for all mutable game data.

    Days are committed under a lock so only one simulation step is ever in
    flight; the engine itself works on immutable snapshots.
    """

    _instance: Optional["GameState"] = None

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._state_version = 0
        self.notifications: Deque[str] = deque(maxlen=config.NOTIFICATION_QUEUE_LIMIT)
        self.statistics_history: Deque[DayStatistics] = deque(
            maxlen=config.STATISTICS_HISTORY_LIMIT
        )
        self._initialise_state()

    # ------------------------------------------------------------------
    @classmethod
    def get_instance(cls) -> "GameState":
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def reset(self) -> None:
        self._initialise_state()

    def _initialise_state(self) -> None:
        with self._lock:
            self._state_version = 0
            self._building_counter = 0
            self._connection_counter = 0
            self.day = 0
            self.notifications.clear()
            self.statistics_history.clear()
            self.clock = DayClock()
            self.ledger = ResourceLedger(config.STARTING_GLOBAL_RESOURCES)
            self.buildings: Dict[str, BuildingInstance] = {}
            self.connections: List[Connection] = []
            self._initialise_starting_layout()

    def _initialise_starting_layout(self) -> None:
        placed: Dict[str, str] = {}
        for entry in config.STARTING_BUILDINGS:
            type_key = entry.get("type")
            if not type_key or type_key not in config.BUILDING_CLASSES:
                continue
            building = self.place_building(type_key, free=True)
            placed[entry.get("key", type_key)] = building.id

        for entry in config.STARTING_CONNECTIONS:
            source_id = placed.get(entry.get("source", ""))
            target_id = placed.get(entry.get("target", ""))
            if source_id is None or target_id is None:
                logger.warning("Starting connection references unknown building: %s", entry)
                continue
            self.connect(source_id, target_id, entry.get("resource"))
        self.notifications.clear()

    # ------------------------------------------------------------------
    def add_notification(self, message: str) -> None:
        self.notifications.append(message)

    def list_notifications(self) -> List[str]:
        return list(self.notifications)

    # ------------------------------------------------------------------
    def _next_building_id(self, type_key: str) -> str:
        self._building_counter += 1
        return f"{type_key}-{self._building_counter}"

    def _next_connection_id(self) -> str:
        self._connection_counter += 1
        return f"edge-{self._connection_counter}"

    def get_building(self, building_id: str) -> Optional[BuildingInstance]:
        return self.buildings.get(str(building_id))

    def _require_building(self, building_id: str) -> BuildingInstance:
        building = self.get_building(building_id)
        if building is None:
            raise ValueError(f"Unknown building: {building_id}")
        return building

    def place_building(
        self,
        type_key: str,
        method_name: Optional[str] = None,
        *,
        free: bool = False,
    ) -> BuildingInstance:
        canonical_type = config.resolve_building_type(type_key)
        building_class = config.BUILDING_CLASSES[canonical_type]

        with self._lock:
            cost = {ResourceType.MONEY: float(building_class.cost)}
            if not free and building_class.cost > 0 and not self.ledger.consume(cost):
                raise InsufficientResourcesError(cost)

            building = build_from_config(
                canonical_type, self._next_building_id(canonical_type), method_name
            )
            self.buildings[building.id] = building
            self._state_version += 1

        self.add_notification(f"Built {building.name}")
        return building

    def remove_building(self, building_id: str) -> BuildingInstance:
        with self._lock:
            building = self._require_building(building_id)
            del self.buildings[building.id]
            self.connections = [
                connection
                for connection in self.connections
                if building.id not in (connection.source, connection.target)
            ]
            self._state_version += 1
        self.add_notification(f"{building.name} demolished")
        return building

    def set_production_method(self, building_id: str, method_name: str) -> BuildingInstance:
        with self._lock:
            building = switch_production_method(self._require_building(building_id), method_name)
            self.buildings[building.id] = building
            self._prune_connections(building)
            self._state_version += 1
        return building

    def _prune_connections(self, building: BuildingInstance) -> None:
        kept: List[Connection] = []
        for connection in self.connections:
            resource = connection.resource
            if resource is not None:
                if connection.source == building.id and not building.offers(resource):
                    continue
                if connection.target == building.id and not building.accepts(resource):
                    continue
            kept.append(connection)
        self.connections = kept

    # ------------------------------------------------------------------
    def connect(
        self,
        source_id: str,
        target_id: str,
        resource: ResourceType | str | None = None,
    ) -> Connection:
        with self._lock:
            source = self._require_building(source_id)
            target = self._require_building(target_id)
            requested = normalise_resource(resource) if resource else None
            source_key, target_key, carried = resolve_connection(source, target, requested)
            for existing in self.connections:
                if (
                    existing.source == source_key
                    and existing.target == target_key
                    and existing.resource is carried
                ):
                    raise InvalidConnectionError(source, target, "Buildings are already connected")
            connection = create_connection(self._next_connection_id(), source, target, carried)
            self.connections.append(connection)
            self._state_version += 1
            return connection

    def disconnect(self, connection_id: str) -> Connection:
        with self._lock:
            for index, connection in enumerate(self.connections):
                if connection.id == connection_id:
                    del self.connections[index]
                    self._state_version += 1
                    return connection
        raise ValueError(f"Unknown connection: {connection_id}")

    # ------------------------------------------------------------------
    def advance_day(self) -> DayStatistics:
        """Simulate one day and commit the resulting snapshot."""

        with self._lock:
            day = self.day + 1
            result = process_day(
                list(self.buildings.values()),
                list(self.connections),
                day,
                self.ledger.totals(),
            )
            self.buildings = {building.id: building for building in result.buildings}
            self.ledger.add(result.global_outputs)
            self.day = day
            self.statistics_history.append(result.statistics)
            self._state_version += 1

        for resource, amount in result.global_outputs.items():
            self.add_notification(f"Day {day}: +{amount:g} {resource.value}")
        logger.debug(
            "Day %s committed: money=%.1f knowledge=%.1f food=%.1f",
            day,
            self.ledger.get(ResourceType.MONEY),
            self.ledger.get(ResourceType.KNOWLEDGE),
            self.ledger.get(ResourceType.FOOD),
        )
        return result.statistics

    def tick(self, dt: float) -> int:
        """Advance the day clock by ``dt`` seconds, simulating each completed day."""

        with self._lock:
            days = self.clock.update(dt)
            for _ in range(days):
                self.advance_day()
        return days

    # ------------------------------------------------------------------
    def snapshot_buildings(self) -> List[Dict[str, object]]:
        with self._lock:
            return [building.to_snapshot() for building in self.buildings.values()]

    def snapshot_connections(self) -> List[Dict[str, object]]:
        with self._lock:
            return [connection.to_snapshot() for connection in self.connections]

    def resources_snapshot(self) -> Dict[str, float]:
        return {resource.value: amount for resource, amount in self.ledger.totals().items()}

    def latest_statistics(self) -> Optional[DayStatistics]:
        if not self.statistics_history:
            return None
        return self.statistics_history[-1]

    def statistics_snapshot(self, limit: Optional[int] = None) -> List[Dict[str, object]]:
        with self._lock:
            history = list(self.statistics_history)
        if limit is not None and limit > 0:
            history = history[-limit:]
        return [stats.to_snapshot() for stats in history]

    def snapshot_state(self) -> Dict[str, object]:
        with self._lock:
            payload: Dict[str, object] = {
                "day": self.day,
                "clock": self.clock.to_dict(),
                "resources": self.resources_snapshot(),
                "buildings": self.snapshot_buildings(),
                "connections": self.snapshot_connections(),
                "notifications": self.list_notifications(),
            }
            payload.update(self.response_metadata())
            return payload

    def response_metadata(self, version: Optional[int] = None) -> Dict[str, object]:
        if version is None:
            with self._lock:
                version_value = int(self._state_version)
        else:
            version_value = int(version)
        timestamp = (
            datetime.now(timezone.utc)
            .isoformat(timespec="milliseconds")
            .replace("+00:00", "Z")
        )
        return {
            "request_id": uuid.uuid4().hex,
            "server_time": timestamp,
            "version": version_value,
        }


def get_game_state() -> GameState:
    return GameState.get_instance()
