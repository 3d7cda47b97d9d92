"""Graph helpers for the day simulation: adjacency, sinks and ordering."""
from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import Deque, Dict, Iterable, List, Mapping, Sequence, Set, Tuple

from .building_models import BuildingInstance, Connection

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GraphIndex:
    """Forward (source -> targets) and reverse (target -> sources) adjacency."""

    forward: Dict[str, List[str]]
    reverse: Dict[str, List[str]]

    def downstream(self, building_id: str) -> List[str]:
        return self.forward.get(building_id, [])

    def upstream(self, building_id: str) -> List[str]:
        return self.reverse.get(building_id, [])


def build_adjacency(
    buildings: Mapping[str, BuildingInstance],
    connections: Iterable[Connection],
) -> GraphIndex:
    """Index ``connections`` by building.

    Every building gets an entry, so unconnected buildings map to empty
    lists. Connections pointing at unknown buildings are ignored.
    """

    forward: Dict[str, List[str]] = {building_id: [] for building_id in buildings}
    reverse: Dict[str, List[str]] = {building_id: [] for building_id in buildings}
    for connection in connections:
        if connection.source not in buildings or connection.target not in buildings:
            logger.debug(
                "Ignoring connection %s: unknown endpoint %s -> %s",
                connection.id,
                connection.source,
                connection.target,
            )
            continue
        forward[connection.source].append(connection.target)
        reverse[connection.target].append(connection.source)
    return GraphIndex(forward=forward, reverse=reverse)


def is_sink(building: BuildingInstance) -> bool:
    """A sink's active method credits at least one output to the global ledger."""

    return building.method is not None and building.method.has_global_outputs


def classify_sinks(buildings: Iterable[BuildingInstance]) -> List[str]:
    return [building.id for building in buildings if is_sink(building)]


def build_processing_order(
    sinks: Sequence[str],
    index: GraphIndex,
) -> Tuple[List[str], Set[str]]:
    """Breadth-first walk upstream from ``sinks``.

    Returns the non-sink buildings reachable from a sink, ordered by
    increasing distance from the nearest one, plus the visited set (sinks
    included).
    """

    visited: Set[str] = set(sinks)
    order: List[str] = []
    queue: Deque[str] = deque(sinks)
    while queue:
        building_id = queue.popleft()
        for upstream_id in index.upstream(building_id):
            if upstream_id in visited:
                continue
            visited.add(upstream_id)
            order.append(upstream_id)
            queue.append(upstream_id)
    return order, visited


__all__ = [
    "GraphIndex",
    "build_adjacency",
    "build_processing_order",
    "classify_sinks",
    "is_sink",
]
