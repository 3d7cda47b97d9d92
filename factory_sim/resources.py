"""Resource definitions for the factory simulation backend."""
from __future__ import annotations

from enum import Enum
from typing import Dict, FrozenSet, List, Mapping


class ResourceType(str, Enum):
    """Enumeration of all resource keys used in the game."""

    MONEY = "money"
    KNOWLEDGE = "knowledge"
    FOOD = "food"
    WOOD = "wood"
    STONE = "stone"
    WHEAT = "wheat"
    PLANKS = "planks"
    PAPER = "paper"
    BOOKS = "books"
    LIVESTOCK = "livestock"
    LEATHER = "leather"
    MEAT = "meat"
    COAL = "coal"
    FLOUR = "flour"
    BREAD = "bread"
    ANY = "any"


ALL_RESOURCES: List[ResourceType] = list(ResourceType)

GLOBAL_RESOURCES: FrozenSet[ResourceType] = frozenset(
    {
        ResourceType.MONEY,
        ResourceType.KNOWLEDGE,
        ResourceType.FOOD,
    }
)

_RESOURCE_LOOKUP: Dict[str, ResourceType] = {}
for _resource in ALL_RESOURCES:
    _RESOURCE_LOOKUP[_resource.value.lower()] = _resource
    _RESOURCE_LOOKUP[_resource.name.lower()] = _resource


def resource_from_id(identifier: str) -> ResourceType:
    """Return the resource associated with ``identifier``.

    The lookup accepts either the stored value or the enum name regardless of
    capitalisation. A :class:`KeyError` is raised if the identifier is unknown.
    """

    resource = _RESOURCE_LOOKUP.get(str(identifier).strip().lower())
    if resource is None:
        raise KeyError(f"Unknown resource: {identifier}")
    return resource


def normalise_resource(value: ResourceType | str) -> ResourceType:
    """Coerce ``value`` into a :class:`ResourceType` instance."""

    if isinstance(value, ResourceType):
        return value
    return resource_from_id(value)


def normalise_mapping(mapping: Mapping[ResourceType | str, float]) -> Dict[ResourceType, float]:
    """Return a new mapping with normalised resource keys."""

    return {normalise_resource(key): amount for key, amount in mapping.items()}


def is_global_resource(resource: ResourceType | str) -> bool:
    """Return whether ``resource`` is tracked in the account-wide ledger."""

    try:
        return normalise_resource(resource) in GLOBAL_RESOURCES
    except KeyError:
        return False


__all__ = [
    "ALL_RESOURCES",
    "GLOBAL_RESOURCES",
    "ResourceType",
    "is_global_resource",
    "normalise_mapping",
    "normalise_resource",
    "resource_from_id",
]
