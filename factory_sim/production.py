"""Per-building production cycle."""
from __future__ import annotations

from .building_models import (
    BuildingInstance,
    ProductionMethod,
    ProductionState,
    ProductionStatus,
)
from .resource_ledger import ResourceLedger
from .statistics import StatisticsRecorder
from .stockpile import Stockpile


def has_enough_inputs(method: ProductionMethod, stockpile: Stockpile) -> bool:
    return all(
        stockpile.available(line.resource)[0] >= line.amount for line in method.inputs
    )


def has_output_space(method: ProductionMethod, stockpile: Stockpile) -> bool:
    """Every local output needs an entry with room for a full batch.

    Global outputs go to the ledger and never block production.
    """

    for line in method.local_outputs:
        entry = stockpile.find(line.resource)
        if entry is None or entry.amount + line.amount > entry.max_amount:
            return False
    return True


def advance_production(
    building: BuildingInstance,
    earned: ResourceLedger,
    recorder: StatisticsRecorder,
) -> BuildingInstance:
    """Advance ``building`` by one day and return its replacement.

    ``complete`` resets to ``idle`` and falls through, ``idle`` starts a cycle
    (consuming inputs) once inputs and output room are available, ``paused``
    resumes when room frees up and ``active`` either pauses or gains one day
    of progress, applying outputs once the method's duration is reached.
    Buildings without a method are returned untouched.
    """

    method = building.method
    if method is None:
        return building

    state = building.state
    stockpile = building.stockpile

    if state.status is ProductionStatus.COMPLETE:
        state = ProductionState(progress=0, status=ProductionStatus.IDLE)

    if state.status is ProductionStatus.IDLE:
        if has_enough_inputs(method, stockpile) and has_output_space(method, stockpile):
            for line in method.inputs:
                stockpile, removed = stockpile.remove(line.resource, line.amount)
                for resource, amount in removed.items():
                    recorder.track_change(building.id, resource, removed=amount)
            state = ProductionState(progress=0, status=ProductionStatus.ACTIVE)

    if state.status is ProductionStatus.PAUSED:
        if has_output_space(method, stockpile):
            state = ProductionState(progress=state.progress, status=ProductionStatus.ACTIVE)

    if state.status is ProductionStatus.ACTIVE:
        if not has_output_space(method, stockpile):
            state = ProductionState(progress=state.progress, status=ProductionStatus.PAUSED)
        else:
            progress = state.progress + 1
            if progress >= method.days:
                for line in method.global_outputs:
                    earned.credit(line.resource, line.amount)
                    recorder.track_produced(building.id, line.resource, line.amount)
                for line in method.local_outputs:
                    stockpile, added = stockpile.add(line.resource, line.amount)
                    if added:
                        recorder.track_change(building.id, line.resource, added=added)
                state = ProductionState(progress=progress, status=ProductionStatus.COMPLETE)
            else:
                state = ProductionState(progress=progress, status=ProductionStatus.ACTIVE)

    if state == building.state and stockpile is building.stockpile:
        return building
    return building.with_stockpile(stockpile).with_state(state)
