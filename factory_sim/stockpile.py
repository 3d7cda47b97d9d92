"""Stockpile handling for building-local resources."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Mapping, Optional, Tuple, Union

from .resources import ResourceType


@dataclass(frozen=True, slots=True)
class SimpleStock:
    """Bounded quantity of one concrete resource."""

    resource: ResourceType
    amount: int
    max_amount: int

    @property
    def space(self) -> int:
        return max(0, self.max_amount - self.amount)

    def with_amount(self, amount: int) -> "SimpleStock":
        clamped = min(max(0, amount), self.max_amount)
        return SimpleStock(resource=self.resource, amount=clamped, max_amount=self.max_amount)

    def snapshot(self) -> Dict[str, object]:
        return {
            "resource": self.resource.value,
            "amount": self.amount,
            "max_amount": self.max_amount,
        }


@dataclass(frozen=True, slots=True)
class PooledStock:
    """Wildcard stock pooling several concrete resources.

    The entry amount is always the sum of the breakdown, and keys are
    dropped as soon as they reach zero.
    """

    max_amount: int
    breakdown: Mapping[ResourceType, int] = field(default_factory=dict)

    # The breakdown is a dict, so pools are unhashable.
    __hash__ = None

    @classmethod
    def fitted(cls, max_amount: int, breakdown: Mapping[ResourceType, int]) -> "PooledStock":
        """Build a pool from an untrusted breakdown.

        Wildcard and non-positive keys are dropped, then sub-quantities are
        kept in order until ``max_amount`` is reached.
        """

        kept: Dict[ResourceType, int] = {}
        room = max(0, max_amount)
        for resource, amount in breakdown.items():
            if resource is ResourceType.ANY or amount <= 0:
                continue
            taken = min(amount, room)
            if taken <= 0:
                break
            kept[resource] = taken
            room -= taken
        return cls(max_amount=max(0, max_amount), breakdown=kept)

    @property
    def resource(self) -> ResourceType:
        return ResourceType.ANY

    @property
    def amount(self) -> int:
        return sum(self.breakdown.values())

    @property
    def space(self) -> int:
        return max(0, self.max_amount - self.amount)

    def get(self, resource: ResourceType) -> int:
        return self.breakdown.get(resource, 0)

    def with_delta(self, resource: ResourceType, delta: int) -> "PooledStock":
        breakdown = dict(self.breakdown)
        updated = breakdown.get(resource, 0) + delta
        if updated <= 0:
            breakdown.pop(resource, None)
        else:
            breakdown[resource] = updated
        return PooledStock(max_amount=self.max_amount, breakdown=breakdown)

    def cleared(self) -> "PooledStock":
        return PooledStock(max_amount=self.max_amount, breakdown={})

    def snapshot(self) -> Dict[str, object]:
        return {
            "resource": ResourceType.ANY.value,
            "amount": self.amount,
            "max_amount": self.max_amount,
            "breakdown": {key.value: amount for key, amount in self.breakdown.items()},
        }


StockEntry = Union[SimpleStock, PooledStock]


@dataclass(frozen=True, slots=True)
class Stockpile:
    """Ordered, immutable collection of stock entries held by a building."""

    entries: Tuple[StockEntry, ...] = ()

    __hash__ = None

    def __iter__(self) -> Iterator[StockEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    # Lookups ---------------------------------------------------------
    def find(self, resource: ResourceType) -> Optional[SimpleStock]:
        for entry in self.entries:
            if isinstance(entry, SimpleStock) and entry.resource is resource:
                return entry
        return None

    @property
    def pooled(self) -> Optional[PooledStock]:
        for entry in self.entries:
            if isinstance(entry, PooledStock):
                return entry
        return None

    def available(self, resource: ResourceType) -> Tuple[int, bool]:
        """Return ``(amount, from_pool)`` of ``resource`` that can leave the stockpile."""

        pooled = self.pooled
        if resource is ResourceType.ANY:
            return (pooled.amount, True) if pooled else (0, False)
        direct = self.find(resource)
        if direct is not None and direct.amount > 0:
            return direct.amount, False
        if pooled is not None and pooled.get(resource) > 0:
            return pooled.get(resource), True
        return 0, False

    def space(self, resource: ResourceType) -> Tuple[int, bool]:
        """Return ``(headroom, into_pool)`` for receiving ``resource``."""

        direct = self.find(resource)
        if direct is not None:
            return direct.space, False
        pooled = self.pooled
        if pooled is not None:
            return pooled.space, True
        return 0, False

    # Updates ---------------------------------------------------------
    def _replace(self, index: int, entry: StockEntry) -> "Stockpile":
        entries = list(self.entries)
        entries[index] = entry
        return Stockpile(tuple(entries))

    def apply(self, resource: ResourceType, delta: int, pooled: bool) -> "Stockpile":
        """Return a stockpile with ``delta`` applied to the direct or pooled entry."""

        for index, entry in enumerate(self.entries):
            if pooled and isinstance(entry, PooledStock):
                return self._replace(index, entry.with_delta(resource, delta))
            if not pooled and isinstance(entry, SimpleStock) and entry.resource is resource:
                return self._replace(index, entry.with_amount(entry.amount + delta))
        return self

    def add(self, resource: ResourceType, amount: int) -> Tuple["Stockpile", int]:
        """Add ``amount`` to the direct entry, capped at its maximum."""

        direct = self.find(resource)
        if direct is None or amount <= 0:
            return self, 0
        added = min(amount, direct.space)
        if added <= 0:
            return self, 0
        return self.apply(resource, added, pooled=False), added

    def remove(self, resource: ResourceType, amount: int) -> Tuple["Stockpile", Dict[ResourceType, int]]:
        """Remove up to ``amount`` of ``resource`` and report what left, per type.

        Removing the wildcard resource drains the pool in breakdown order.
        """

        removed: Dict[ResourceType, int] = {}
        if amount <= 0:
            return self, removed
        if resource is ResourceType.ANY:
            pooled = self.pooled
            if pooled is None:
                return self, removed
            remaining = amount
            stockpile = self
            for concrete, held in list(pooled.breakdown.items()):
                if remaining <= 0:
                    break
                taken = min(held, remaining)
                stockpile = stockpile.apply(concrete, -taken, pooled=True)
                removed[concrete] = taken
                remaining -= taken
            return stockpile, removed

        available, from_pool = self.available(resource)
        taken = min(available, amount)
        if taken <= 0:
            return self, removed
        removed[resource] = taken
        return self.apply(resource, -taken, pooled=from_pool), removed

    def drain_pool(self) -> "Stockpile":
        for index, entry in enumerate(self.entries):
            if isinstance(entry, PooledStock):
                return self._replace(index, entry.cleared())
        return self

    def empty(self, resource: ResourceType) -> "Stockpile":
        direct = self.find(resource)
        if direct is None:
            return self
        return self.apply(resource, -direct.amount, pooled=False)

    def snapshot(self) -> List[Dict[str, object]]:
        return [entry.snapshot() for entry in self.entries]
