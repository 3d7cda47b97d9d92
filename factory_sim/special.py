"""Special sink buildings that liquidate stock into global resources."""
from __future__ import annotations

import logging

from . import config
from .building_models import BuildingInstance, ProductionState, ProductionStatus
from .resource_ledger import ResourceLedger
from .resources import ResourceType
from .statistics import StatisticsRecorder
from .stockpile import SimpleStock

logger = logging.getLogger(__name__)

_IDLE = ProductionState(progress=0, status=ProductionStatus.IDLE)
_COMPLETE = ProductionState(progress=1, status=ProductionStatus.COMPLETE)


def is_special(building: BuildingInstance) -> bool:
    return building.type in config.SPECIAL_BUILDING_TYPES


def process_special_building(
    building: BuildingInstance,
    earned: ResourceLedger,
    recorder: StatisticsRecorder,
) -> BuildingInstance:
    """Run the day for a special building and return its replacement."""

    if building.type == config.MARKETPLACE:
        return _process_marketplace(building, earned, recorder)
    if building.type in (config.FIREPIT, config.GRANARY):
        return _process_food_store(building, earned, recorder)
    return building


def _process_marketplace(
    building: BuildingInstance,
    earned: ResourceLedger,
    recorder: StatisticsRecorder,
) -> BuildingInstance:
    """Sell the whole wildcard pool for money.

    Each resource is worth ``amount * value * multiplier`` where the
    multiplier is the amount of money the active method outputs.
    """

    pooled = building.stockpile.pooled
    if pooled is None or pooled.amount == 0:
        return building.with_state(_IDLE)

    multiplier = 1
    if building.method is not None:
        multiplier = building.method.output_amount(ResourceType.MONEY) or 1

    total = 0.0
    for resource, amount in pooled.breakdown.items():
        if amount <= 0:
            continue
        value = config.RESOURCE_VALUES.get(resource, config.DEFAULT_RESOURCE_VALUE)
        total += amount * value * multiplier
        recorder.track_change(building.id, resource, removed=amount)

    if total > 0:
        earned.credit(ResourceType.MONEY, total)
        recorder.track_produced(building.id, ResourceType.MONEY, total)
    logger.debug("Marketplace %s sold %s units for %.1f", building.id, pooled.amount, total)

    return building.with_stockpile(building.stockpile.drain_pool()).with_state(_COMPLETE)


def _process_food_store(
    building: BuildingInstance,
    earned: ResourceLedger,
    recorder: StatisticsRecorder,
) -> BuildingInstance:
    """Turn every food-producing entry into food; the fire pit also yields knowledge."""

    stockpile = building.stockpile
    total_food = 0.0
    for entry in building.stockpile:
        if not isinstance(entry, SimpleStock) or entry.amount <= 0:
            continue
        food_value = config.FOOD_VALUES.get(entry.resource)
        if food_value is None:
            continue
        total_food += entry.amount * food_value
        recorder.track_change(building.id, entry.resource, removed=entry.amount)
        stockpile = stockpile.empty(entry.resource)

    if total_food <= 0:
        return building.with_state(_IDLE)

    earned.credit(ResourceType.FOOD, total_food)
    recorder.track_produced(building.id, ResourceType.FOOD, total_food)
    if building.type == config.FIREPIT:
        earned.credit(ResourceType.KNOWLEDGE, config.FIREPIT_KNOWLEDGE_PER_DAY)
        recorder.track_produced(
            building.id, ResourceType.KNOWLEDGE, config.FIREPIT_KNOWLEDGE_PER_DAY
        )

    return building.with_stockpile(stockpile).with_state(_COMPLETE)
