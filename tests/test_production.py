"""Tests for the per-building production cycle."""
from __future__ import annotations

import pytest

from factory_sim.building_models import (
    BuildingInstance,
    MethodResource,
    ProductionMethod,
    ProductionState,
    ProductionStatus,
)
from factory_sim.production import advance_production
from factory_sim.resource_ledger import ResourceLedger
from factory_sim.resources import ResourceType
from factory_sim.statistics import StatisticsRecorder
from factory_sim.stockpile import SimpleStock, Stockpile

WOOD = ResourceType.WOOD
PLANKS = ResourceType.PLANKS


def _sawmill(wood: int, planks: int = 0, *, days: int = 3, planks_cap: int = 10) -> BuildingInstance:
    method = ProductionMethod(
        name="Slow Planks",
        inputs=(MethodResource(WOOD, 2),),
        outputs=(MethodResource(PLANKS, 1),),
        days=days,
    )
    stockpile = Stockpile(
        (SimpleStock(WOOD, wood, 20), SimpleStock(PLANKS, planks, planks_cap))
    )
    return BuildingInstance(id="saw", type="sawmill", method=method, stockpile=stockpile)


def _step(building: BuildingInstance, ledger: ResourceLedger | None = None) -> BuildingInstance:
    return advance_production(building, ledger or ResourceLedger(), StatisticsRecorder())


def test_three_day_cycle_walks_every_state():
    building = _sawmill(wood=2)

    building = _step(building)
    assert building.state == ProductionState(1, ProductionStatus.ACTIVE)
    assert building.stockpile.find(WOOD).amount == 0

    building = _step(building)
    assert building.state == ProductionState(2, ProductionStatus.ACTIVE)

    building = _step(building)
    assert building.state == ProductionState(3, ProductionStatus.COMPLETE)
    assert building.stockpile.find(PLANKS).amount == 1

    building = _step(building)
    assert building.state == ProductionState(0, ProductionStatus.IDLE)


def test_idle_building_waits_for_inputs():
    building = _sawmill(wood=1)
    assert _step(building) is building


def test_idle_building_waits_for_output_room():
    building = _sawmill(wood=4, planks=10)
    stepped = _step(building)
    assert stepped.state.status is ProductionStatus.IDLE
    assert stepped.stockpile.find(WOOD).amount == 4


def test_full_output_pauses_and_resumes_at_same_progress():
    building = _sawmill(wood=0, planks=10)
    building = building.with_state(ProductionState(1, ProductionStatus.ACTIVE))

    paused = _step(building)
    assert paused.state == ProductionState(1, ProductionStatus.PAUSED)

    freed = paused.with_stockpile(paused.stockpile.empty(PLANKS))
    resumed = _step(freed)
    assert resumed.state.status is ProductionStatus.ACTIVE
    assert resumed.state.progress == 2


def test_building_without_method_is_untouched():
    building = BuildingInstance(id="empty", type="test")
    assert _step(building) is building


def test_global_outputs_are_credited_to_the_ledger():
    method = ProductionMethod(
        name="Study",
        inputs=(MethodResource(ResourceType.BOOKS, 1),),
        outputs=(MethodResource(ResourceType.KNOWLEDGE, 2),),
        days=1,
    )
    building = BuildingInstance(
        id="library",
        type="library",
        method=method,
        stockpile=Stockpile((SimpleStock(ResourceType.BOOKS, 3, 10),)),
    )
    ledger = ResourceLedger()
    recorder = StatisticsRecorder()

    stepped = advance_production(building, ledger, recorder)

    assert stepped.state.status is ProductionStatus.COMPLETE
    assert ledger.get(ResourceType.KNOWLEDGE) == pytest.approx(2.0)
    assert recorder.for_building("library").produced[ResourceType.KNOWLEDGE] == 2
    assert recorder.for_building("library").change_for(ResourceType.BOOKS).removed == 1
