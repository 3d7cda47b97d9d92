"""One simulated day over the building graph."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from .building_models import BuildingInstance, Connection
from .graph import build_adjacency, build_processing_order, classify_sinks
from .production import advance_production
from .resource_ledger import ResourceLedger
from .resources import ResourceType
from .special import is_special, process_special_building
from .statistics import DayStatistics, StatisticsRecorder
from .transfer import push_downstream

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DayResult:
    """Outcome of :func:`process_day`.

    ``buildings`` keeps the input order. ``global_outputs`` is the ledger
    delta earned during the day; the caller merges it into its totals.
    """

    buildings: List[BuildingInstance]
    global_outputs: Dict[ResourceType, float]
    statistics: DayStatistics

    def building(self, building_id: str) -> Optional[BuildingInstance]:
        for building in self.buildings:
            if building.id == building_id:
                return building
        return None


def process_day(
    buildings: Iterable[BuildingInstance],
    connections: Sequence[Connection],
    day: int = 0,
    current_resources: Mapping[ResourceType, float] | None = None,
) -> DayResult:
    """Simulate one day and return the new building set.

    Neither ``buildings`` nor ``connections`` is modified: the day runs on a
    private arena of building records which are replaced as they change.
    """

    arena: Dict[str, BuildingInstance] = {}
    for building in buildings:
        if not isinstance(building, BuildingInstance):
            logger.debug("Skipping malformed building entry %r", building)
            continue
        arena[building.id] = building
    connections = list(connections)

    earned = ResourceLedger()
    recorder = StatisticsRecorder()
    index = build_adjacency(arena, connections)

    outgoing: Dict[str, List[Connection]] = {}
    for connection in connections:
        outgoing.setdefault(connection.source, []).append(connection)

    sinks = classify_sinks(arena.values())
    for sink_id in sinks:
        building = arena[sink_id]
        if is_special(building):
            arena[sink_id] = process_special_building(building, earned, recorder)
        else:
            arena[sink_id] = advance_production(building, earned, recorder)

    order, visited = build_processing_order(sinks, index)

    for building_id in order:
        push_downstream(arena, building_id, outgoing.get(building_id, []), recorder)

    for building_id in order:
        arena[building_id] = advance_production(arena[building_id], earned, recorder)

    # Buildings that feed no sink still move goods and produce.
    for building_id in list(arena):
        if building_id in visited:
            continue
        push_downstream(arena, building_id, outgoing.get(building_id, []), recorder)
        arena[building_id] = advance_production(arena[building_id], earned, recorder)
        visited.add(building_id)

    global_outputs = earned.snapshot()
    resources: Dict[ResourceType, float] = dict(current_resources or {})
    for resource, amount in global_outputs.items():
        resources[resource] = resources.get(resource, 0.0) + amount

    logger.debug(
        "Day %s processed: buildings=%s sinks=%s ordered=%s earned=%s",
        day,
        len(arena),
        len(sinks),
        len(order),
        {key.value: amount for key, amount in global_outputs.items()},
    )

    return DayResult(
        buildings=list(arena.values()),
        global_outputs=global_outputs,
        statistics=recorder.finalise(day, resources, global_outputs),
    )


__all__ = ["DayResult", "process_day"]
