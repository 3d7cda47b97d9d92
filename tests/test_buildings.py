"""Tests for the building catalogue and method configuration."""
from __future__ import annotations

import pytest

from factory_sim import config
from factory_sim.building_models import ProductionState, ProductionStatus
from factory_sim.buildings import (
    build_from_config,
    configure_stockpile,
    connection_points,
    switch_production_method,
)
from factory_sim.resources import ResourceType
from factory_sim.stockpile import PooledStock


def test_every_catalogue_entry_builds():
    for type_key, building_class in config.BUILDING_CLASSES.items():
        building = build_from_config(type_key, f"{type_key}-1")
        assert building.type == type_key
        assert building.name == building_class.name
        assert building.method == building_class.methods[0]
        assert building.state == ProductionState()


def test_stock_capacity_scales_with_method_amounts():
    sawmill = build_from_config(config.SAWMILL, "saw")
    assert sawmill.stockpile.find(ResourceType.WOOD).max_amount == 2 * config.STOCKPILE_MULTIPLIER
    assert sawmill.stockpile.find(ResourceType.PLANKS).max_amount == 1 * config.STOCKPILE_MULTIPLIER


def test_global_resources_get_no_stock_or_handles():
    library = build_from_config(config.LIBRARY, "library")
    assert library.stockpile.find(ResourceType.KNOWLEDGE) is None
    assert library.outputs == ()
    assert library.inputs == (ResourceType.BOOKS,)


def test_wildcard_inputs_become_a_pool():
    market = build_from_config(config.MARKETPLACE, "market")
    pooled = market.stockpile.pooled
    assert isinstance(pooled, PooledStock)
    assert pooled.max_amount == 100
    assert market.inputs == (ResourceType.ANY,)


def test_switching_method_keeps_stock_within_new_capacity():
    sawmill = build_from_config(config.SAWMILL, "saw", "Bulk Planks")
    stockpile, _ = sawmill.stockpile.add(ResourceType.WOOD, 50)
    sawmill = sawmill.with_stockpile(stockpile).with_state(
        ProductionState(2, ProductionStatus.ACTIVE)
    )

    switched = switch_production_method(sawmill, "Saw Planks")

    assert switched.method.name == "Saw Planks"
    assert switched.stockpile.find(ResourceType.WOOD).amount == 20
    assert switched.state == ProductionState()


def test_unknown_method_is_rejected():
    sawmill = build_from_config(config.SAWMILL, "saw")
    with pytest.raises(ValueError):
        switch_production_method(sawmill, "Carve Statues")


def test_pool_is_trimmed_when_capacity_shrinks():
    market = build_from_config(config.MARKETPLACE, "market")
    stockpile = market.stockpile
    stockpile = stockpile.apply(ResourceType.WOOD, 80, pooled=True)
    stockpile = stockpile.apply(ResourceType.STONE, 15, pooled=True)

    haggle = config.BUILDING_CLASSES[config.MARKETPLACE].get_method("Haggle")
    resized = configure_stockpile(haggle, stockpile)

    assert resized.pooled.max_amount == 50
    assert resized.pooled.breakdown == {ResourceType.WOOD: 50}


def test_connection_points_follow_method():
    butcher = config.BUILDING_CLASSES[config.BUTCHERY].methods[0]
    assert connection_points(butcher) == (
        (ResourceType.LIVESTOCK,),
        (ResourceType.MEAT, ResourceType.LEATHER),
    )


def test_building_types_resolve_loosely():
    assert config.resolve_building_type(" Marketplace ") == config.MARKETPLACE
    with pytest.raises(ValueError):
        config.resolve_building_type("castle")


def test_buildings_and_pools_are_unhashable():
    market = build_from_config(config.MARKETPLACE, "market")
    for value in (market, market.stockpile, market.stockpile.pooled):
        with pytest.raises(TypeError):
            hash(value)
    assert market == build_from_config(config.MARKETPLACE, "market")


def test_fitted_pool_keeps_only_positive_concrete_stock():
    pool = PooledStock.fitted(
        6, {ResourceType.ANY: 4, ResourceType.WOOD: 0, ResourceType.STONE: 5, ResourceType.COAL: 3}
    )
    assert pool.breakdown == {ResourceType.STONE: 5, ResourceType.COAL: 1}
    assert pool.amount == pool.max_amount
