"""Account-wide ledger for global resources (money, knowledge, food)."""

from __future__ import annotations

from collections import defaultdict
from typing import Dict, Mapping

from .resources import GLOBAL_RESOURCES, ResourceType, normalise_resource


class ResourceLedger:
    """Accumulator for globally tracked resources with no capacity limits.

    A ledger is passed explicitly through each simulated day, so independent
    simulations never share totals.
    """

    def __init__(self, initial: Mapping[ResourceType | str, float] | None = None) -> None:
        self._amounts: Dict[ResourceType, float] = defaultdict(float)
        if initial:
            for resource, amount in initial.items():
                self._amounts[normalise_resource(resource)] = float(amount)

    # ------------------------------------------------------------------
    def snapshot(self) -> Dict[ResourceType, float]:
        return {key: float(amount) for key, amount in self._amounts.items() if amount}

    def totals(self) -> Dict[ResourceType, float]:
        """Return every global resource, including the ones still at zero."""

        totals = {resource: 0.0 for resource in GLOBAL_RESOURCES}
        totals.update(self.snapshot())
        return totals

    def get(self, resource: ResourceType) -> float:
        return float(self._amounts.get(resource, 0.0))

    def credit(self, resource: ResourceType, amount: float) -> None:
        if amount == 0:
            return
        self._amounts[resource] = self.get(resource) + float(amount)

    def add(self, delta: Mapping[ResourceType, float]) -> None:
        for resource, amount in delta.items():
            self.credit(resource, amount)

    def has(self, requirements: Mapping[ResourceType, float]) -> bool:
        return all(self.get(res) + 1e-9 >= amount for res, amount in requirements.items())

    def consume(self, requirements: Mapping[ResourceType, float]) -> bool:
        if not self.has(requirements):
            return False
        for resource, amount in requirements.items():
            if amount == 0:
                continue
            self._amounts[resource] = max(0.0, self.get(resource) - float(amount))
        return True
