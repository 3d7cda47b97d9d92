"""Per-day statistics collected while the simulation runs.

These records feed UI feedback (toasts, progress displays). The next day
never reads them back.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional

from .resources import ResourceType


@dataclass(slots=True)
class StockpileChange:
    resource: ResourceType
    added: int = 0
    removed: int = 0

    @property
    def net(self) -> int:
        return self.added - self.removed

    def to_snapshot(self) -> Dict[str, object]:
        return {
            "resource": self.resource.value,
            "added": self.added,
            "removed": self.removed,
            "net": self.net,
        }


@dataclass(slots=True)
class BuildingStatistics:
    stockpile_changes: List[StockpileChange] = field(default_factory=list)
    produced: Dict[ResourceType, float] = field(default_factory=dict)

    def change_for(self, resource: ResourceType) -> Optional[StockpileChange]:
        for change in self.stockpile_changes:
            if change.resource is resource:
                return change
        return None

    def to_snapshot(self) -> Dict[str, object]:
        return {
            "stockpile_changes": [change.to_snapshot() for change in self.stockpile_changes],
            "produced": {key.value: amount for key, amount in self.produced.items()},
        }


@dataclass(slots=True)
class EdgeStatistics:
    resource: ResourceType
    transferred: int

    def to_snapshot(self) -> Dict[str, object]:
        return {"resource": self.resource.value, "transferred": self.transferred}


@dataclass(slots=True)
class DayStatistics:
    """Everything observed during one simulated day."""

    day: int
    resources: Dict[ResourceType, float]
    earned: Dict[ResourceType, float]
    buildings: Dict[str, BuildingStatistics]
    edges: Dict[str, EdgeStatistics]

    def to_snapshot(self) -> Dict[str, object]:
        return {
            "day": self.day,
            "resources": {key.value: amount for key, amount in self.resources.items()},
            "earned": {key.value: amount for key, amount in self.earned.items()},
            "buildings": {
                building_id: stats.to_snapshot() for building_id, stats in self.buildings.items()
            },
            "edges": {edge_key: stats.to_snapshot() for edge_key, stats in self.edges.items()},
        }


class StatisticsRecorder:
    """Accumulates building and edge statistics during a single tick."""

    def __init__(self) -> None:
        self.buildings: Dict[str, BuildingStatistics] = {}
        self.edges: Dict[str, EdgeStatistics] = {}

    def for_building(self, building_id: str) -> BuildingStatistics:
        stats = self.buildings.get(building_id)
        if stats is None:
            stats = BuildingStatistics()
            self.buildings[building_id] = stats
        return stats

    def track_change(
        self,
        building_id: str,
        resource: ResourceType,
        *,
        added: int = 0,
        removed: int = 0,
    ) -> None:
        stats = self.for_building(building_id)
        change = stats.change_for(resource)
        if change is None:
            change = StockpileChange(resource=resource)
            stats.stockpile_changes.append(change)
        change.added += added
        change.removed += removed

    def track_produced(self, building_id: str, resource: ResourceType, amount: float) -> None:
        if amount <= 0:
            return
        produced = self.for_building(building_id).produced
        produced[resource] = produced.get(resource, 0) + amount

    def track_edge(self, edge_key: str, resource: ResourceType, transferred: int) -> None:
        existing = self.edges.get(edge_key)
        if existing is not None:
            existing.transferred += transferred
            return
        self.edges[edge_key] = EdgeStatistics(resource=resource, transferred=transferred)

    def finalise(
        self,
        day: int,
        resources: Mapping[ResourceType, float],
        earned: Mapping[ResourceType, float],
    ) -> DayStatistics:
        return DayStatistics(
            day=day,
            resources=dict(resources),
            earned=dict(earned),
            buildings=dict(self.buildings),
            edges=dict(self.edges),
        )
