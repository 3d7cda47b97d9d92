"""Wiring helpers: validate and infer the resource carried by a connection."""
from __future__ import annotations

import logging
from typing import Optional, Tuple

from .building_models import BuildingInstance, Connection
from .resources import ResourceType

logger = logging.getLogger(__name__)


class InvalidConnectionError(ValueError):
    """Raised when two buildings cannot be wired together."""

    def __init__(self, source: BuildingInstance, target: BuildingInstance, detail: str):
        self.source_id = source.id
        self.target_id = target.id
        super().__init__(detail)


def _matches(output: ResourceType, target: BuildingInstance) -> bool:
    return any(point is output or point is ResourceType.ANY for point in target.inputs)


def resolve_connection(
    source: BuildingInstance,
    target: BuildingInstance,
    resource: Optional[ResourceType] = None,
) -> Tuple[str, str, ResourceType]:
    """Return ``(source_id, target_id, resource)`` for a new connection.

    A requested ``resource`` is validated, swapping the direction when the
    buildings were picked in reverse. Without one, the first output of
    ``source`` that ``target`` accepts is used, then the reverse direction.
    """

    if source.id == target.id:
        raise InvalidConnectionError(source, target, "A building cannot feed itself")

    if resource is not None:
        if source.offers(resource) and target.accepts(resource):
            return source.id, target.id, resource
        if target.offers(resource) and source.accepts(resource):
            return target.id, source.id, resource
        raise InvalidConnectionError(
            source,
            target,
            f"Invalid resource {resource.value} between {source.name or source.id} "
            f"and {target.name or target.id}",
        )

    for output in source.outputs:
        if _matches(output, target):
            return source.id, target.id, output
    for output in target.outputs:
        if _matches(output, source):
            return target.id, source.id, output

    raise InvalidConnectionError(
        source,
        target,
        f"Could not determine resource type between {source.name or source.id} "
        f"and {target.name or target.id}",
    )


def create_connection(
    connection_id: str,
    source: BuildingInstance,
    target: BuildingInstance,
    resource: Optional[ResourceType] = None,
) -> Connection:
    source_id, target_id, carried = resolve_connection(source, target, resource)
    logger.debug("Wiring %s: %s -> %s carrying %s", connection_id, source_id, target_id, carried.value)
    return Connection(id=connection_id, source=source_id, target=target_id, resource=carried)
