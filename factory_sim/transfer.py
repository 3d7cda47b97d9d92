"""Resource movement along connections.

All helpers operate on an *arena*: a mutable mapping from building id to
:class:`BuildingInstance` owned by the running day. Buildings are replaced in
the arena, never mutated, so the caller's snapshot stays intact.
"""
from __future__ import annotations

import logging
from typing import Dict, Iterable, List, MutableMapping, Optional, Sequence

from .building_models import BuildingInstance, Connection
from .resources import ResourceType
from .statistics import StatisticsRecorder

logger = logging.getLogger(__name__)

Arena = MutableMapping[str, BuildingInstance]


def transfer_single_resource(
    arena: Arena,
    source_id: str,
    target_id: str,
    resource: ResourceType,
    max_amount: Optional[int] = None,
) -> int:
    """Move up to ``max_amount`` of ``resource`` (everything when ``None``).

    Returns the quantity moved. Nothing changes when the request, the
    availability or the capacity is not positive.
    """

    if max_amount is not None and max_amount <= 0:
        return 0
    source = arena.get(source_id)
    target = arena.get(target_id)
    if source is None or target is None:
        return 0

    available, from_pool = source.stockpile.available(resource)
    space, into_pool = target.stockpile.space(resource)
    requested = available if max_amount is None else max_amount
    amount = min(requested, available, space)
    if amount <= 0:
        return 0

    arena[source_id] = source.with_stockpile(source.stockpile.apply(resource, -amount, from_pool))
    target = arena[target_id]
    arena[target_id] = target.with_stockpile(target.stockpile.apply(resource, amount, into_pool))
    return amount


def transfer_resources(
    arena: Arena,
    source_id: str,
    target_id: str,
    connections: Iterable[Connection],
    recorder: StatisticsRecorder,
    amount: Optional[int] = None,
) -> int:
    """Push resources across every connection from ``source_id`` to ``target_id``.

    Concrete connections move up to ``amount`` of their resource. Wildcard
    connections move everything held in the source pool, per resource.
    """

    total = 0
    for connection in connections:
        if connection.source != source_id or connection.target != target_id:
            continue
        if connection.resource is None:
            logger.debug("Skipping connection %s with unresolved resource", connection.id)
            continue
        source = arena.get(source_id)
        if source is None or target_id not in arena:
            return total

        if connection.resource is ResourceType.ANY:
            pooled = source.stockpile.pooled
            for resource in list(pooled.breakdown) if pooled else []:
                moved = transfer_single_resource(arena, source_id, target_id, resource)
                if moved:
                    _record(recorder, connection, f"{connection.id}-{resource.value}", resource, moved)
                    total += moved
            continue

        moved = transfer_single_resource(
            arena, source_id, target_id, connection.resource, amount
        )
        if moved:
            _record(recorder, connection, connection.id, connection.resource, moved)
            total += moved
    return total


def _record(
    recorder: StatisticsRecorder,
    connection: Connection,
    edge_key: str,
    resource: ResourceType,
    moved: int,
) -> None:
    recorder.track_edge(edge_key, resource, moved)
    recorder.track_change(connection.source, resource, removed=moved)
    recorder.track_change(connection.target, resource, added=moved)


def allocate_evenly(available: int, capacities: Sequence[int]) -> List[int]:
    """Split ``available`` units across targets with the given spare capacities.

    Each target gets ``available // n``; the first ``available % n`` targets
    get one extra. Shares are clipped to capacity and the shortfall is handed
    out greedily, in order, to targets that still have room.
    """

    count = len(capacities)
    if count == 0 or available <= 0:
        return [0] * count
    base, remainder = divmod(available, count)
    allocations = [
        min(base + (1 if index < remainder else 0), max(0, capacity))
        for index, capacity in enumerate(capacities)
    ]

    leftover = available - sum(allocations)
    for index, capacity in enumerate(capacities):
        if leftover <= 0:
            break
        extra = min(max(0, capacity) - allocations[index], leftover)
        if extra > 0:
            allocations[index] += extra
            leftover -= extra
    return allocations


def distribute_evenly(
    arena: Arena,
    source_id: str,
    connections: Sequence[Connection],
    recorder: StatisticsRecorder,
) -> None:
    """Share the source's stock of each resource across its downstream connections."""

    groups: Dict[ResourceType, List[Connection]] = {}
    for connection in connections:
        if connection.source != source_id or connection.resource is None:
            continue
        groups.setdefault(connection.resource, []).append(connection)

    for resource, group in groups.items():
        source = arena.get(source_id)
        if source is None:
            return
        if resource is ResourceType.ANY:
            # Wildcard edges carry whole pools; they are not split.
            for connection in group:
                transfer_resources(arena, source_id, connection.target, [connection], recorder)
            continue

        available, _ = source.stockpile.available(resource)
        if available <= 0:
            continue
        capacities = [_capacity(arena, connection.target, resource) for connection in group]
        allocations = allocate_evenly(available, capacities)
        for connection, allocation in zip(group, allocations):
            if allocation > 0:
                transfer_resources(
                    arena,
                    source_id,
                    connection.target,
                    [connection],
                    recorder,
                    amount=allocation,
                )


def _capacity(arena: Arena, building_id: str, resource: ResourceType) -> int:
    building = arena.get(building_id)
    if building is None:
        return 0
    space, _ = building.stockpile.space(resource)
    return space


def push_downstream(
    arena: Arena,
    source_id: str,
    connections: Sequence[Connection],
    recorder: StatisticsRecorder,
) -> None:
    """Send the source's outputs to every downstream neighbour.

    A resource with a single outgoing connection moves pairwise; several
    connections carrying the same resource share it through
    :func:`distribute_evenly`.
    """

    outgoing = [
        connection
        for connection in connections
        if connection.source == source_id and connection.target in arena
    ]
    if not outgoing:
        return

    by_resource: Dict[Optional[ResourceType], List[Connection]] = {}
    for connection in outgoing:
        by_resource.setdefault(connection.resource, []).append(connection)

    for resource, group in by_resource.items():
        if resource is None:
            for connection in group:
                logger.debug("Skipping connection %s with unresolved resource", connection.id)
            continue
        if len(group) == 1:
            connection = group[0]
            transfer_resources(arena, source_id, connection.target, group, recorder)
        else:
            distribute_evenly(arena, source_id, group, recorder)


__all__ = [
    "Arena",
    "allocate_evenly",
    "distribute_evenly",
    "push_downstream",
    "transfer_resources",
    "transfer_single_resource",
]
