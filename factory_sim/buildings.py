"""Building construction and production method configuration."""
from __future__ import annotations

from dataclasses import replace
from typing import Dict, List, Optional, Tuple

from . import config
from .building_models import BuildingInstance, ProductionMethod, ProductionState
from .resources import ResourceType
from .stockpile import PooledStock, SimpleStock, StockEntry, Stockpile


def connection_points(
    method: ProductionMethod,
) -> Tuple[Tuple[ResourceType, ...], Tuple[ResourceType, ...]]:
    """Return the typed input and output handles for ``method``.

    Global resources never travel along connections, so they get no handle.
    """

    inputs = tuple(line.resource for line in method.inputs if not line.is_global)
    outputs = tuple(line.resource for line in method.outputs if not line.is_global)
    return inputs, outputs


def configure_stockpile(
    method: ProductionMethod,
    existing: Optional[Stockpile] = None,
) -> Stockpile:
    """Derive stock entries for ``method``.

    Each local resource gets room for ``STOCKPILE_MULTIPLIER`` batches; the
    first line mentioning a resource sets its capacity. Amounts already held
    in ``existing`` are kept, capped at the new maximum.
    """

    capacities: Dict[ResourceType, int] = {}
    for line in list(method.inputs) + list(method.local_outputs):
        if line.is_global or line.resource in capacities:
            continue
        capacities[line.resource] = line.amount * config.STOCKPILE_MULTIPLIER

    entries: List[StockEntry] = []
    for resource, max_amount in capacities.items():
        if resource is ResourceType.ANY:
            previous = existing.pooled if existing is not None else None
            entries.append(PooledStock.fitted(max_amount, previous.breakdown if previous else {}))
            continue
        previous_entry = existing.find(resource) if existing is not None else None
        amount = min(previous_entry.amount, max_amount) if previous_entry else 0
        entries.append(SimpleStock(resource=resource, amount=amount, max_amount=max_amount))
    return Stockpile(tuple(entries))


def configure_building_for_method(
    building: BuildingInstance,
    method: ProductionMethod,
) -> BuildingInstance:
    """Return ``building`` reconfigured to run ``method`` from an idle state."""

    inputs, outputs = connection_points(method)
    return replace(
        building,
        method=method,
        state=ProductionState(),
        stockpile=configure_stockpile(method, building.stockpile),
        inputs=inputs,
        outputs=outputs,
    )


def build_from_config(
    type_key: str,
    building_id: str,
    method_name: Optional[str] = None,
) -> BuildingInstance:
    """Create a fresh building of ``type_key`` running its first (or named) method."""

    building_class = config.BUILDING_CLASSES[type_key]
    method = (
        building_class.get_method(method_name)
        if method_name is not None
        else building_class.methods[0]
    )
    inputs, outputs = connection_points(method)
    return BuildingInstance(
        id=building_id,
        type=type_key,
        name=building_class.name,
        category=building_class.category,
        icon=building_class.icon,
        cost=float(building_class.cost),
        method=method,
        state=ProductionState(),
        stockpile=configure_stockpile(method),
        inputs=inputs,
        outputs=outputs,
    )


def switch_production_method(building: BuildingInstance, method_name: str) -> BuildingInstance:
    """Swap the active method for another one of the same building type."""

    building_class = config.BUILDING_CLASSES.get(building.type)
    if building_class is None:
        raise ValueError(f"Unknown building type: {building.type}")
    return configure_building_for_method(building, building_class.get_method(method_name))
