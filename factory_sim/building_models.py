"""Data models for buildings, production methods and connections."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from .resources import ResourceType, is_global_resource, normalise_resource
from .stockpile import PooledStock, SimpleStock, Stockpile


class ProductionStatus(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETE = "complete"


@dataclass(frozen=True, slots=True)
class MethodResource:
    """Single ``(resource, amount)`` line of a production method."""

    resource: ResourceType
    amount: int

    @property
    def is_global(self) -> bool:
        return is_global_resource(self.resource)

    def to_snapshot(self) -> Dict[str, object]:
        return {"resource": self.resource.value, "amount": self.amount}


@dataclass(frozen=True, slots=True)
class ProductionMethod:
    """Named recipe a building runs repeatedly.

    Outputs whose resource is global are credited to the account-wide ledger
    instead of the building stockpile.
    """

    name: str
    inputs: Tuple[MethodResource, ...] = ()
    outputs: Tuple[MethodResource, ...] = ()
    days: int = 1

    @property
    def global_outputs(self) -> Tuple[MethodResource, ...]:
        return tuple(output for output in self.outputs if output.is_global)

    @property
    def local_outputs(self) -> Tuple[MethodResource, ...]:
        return tuple(output for output in self.outputs if not output.is_global)

    @property
    def has_global_outputs(self) -> bool:
        return any(output.is_global for output in self.outputs)

    def output_amount(self, resource: ResourceType) -> Optional[int]:
        for output in self.outputs:
            if output.resource is resource:
                return output.amount
        return None

    def to_snapshot(self) -> Dict[str, object]:
        return {
            "name": self.name,
            "inputs": [entry.to_snapshot() for entry in self.inputs],
            "outputs": [entry.to_snapshot() for entry in self.outputs],
            "days": self.days,
        }

    @classmethod
    def from_snapshot(cls, payload: Mapping[str, object]) -> "ProductionMethod":
        return cls(
            name=str(payload.get("name") or ""),
            inputs=_method_lines(payload.get("inputs") or ()),
            outputs=_method_lines(payload.get("outputs") or ()),
            days=max(1, int(payload.get("days", 1))),
        )


def _method_lines(raw: Iterable[Mapping[str, object]]) -> Tuple[MethodResource, ...]:
    return tuple(
        MethodResource(
            resource=normalise_resource(str(line["resource"])),
            amount=int(line.get("amount", 0)),
        )
        for line in raw
    )


@dataclass(frozen=True, slots=True)
class ProductionState:
    progress: int = 0
    status: ProductionStatus = ProductionStatus.IDLE

    def to_snapshot(self) -> Dict[str, object]:
        return {"progress": self.progress, "status": self.status.value}


@dataclass(frozen=True, slots=True)
class BuildingInstance:
    """Single building placed on the factory floor.

    Instances are never mutated: each simulation step returns replacements
    built with :meth:`with_stockpile` and :meth:`with_state`.
    """

    id: str
    type: str
    name: str = ""
    category: str = "production"
    icon: str = ""
    cost: float = 0.0
    method: Optional[ProductionMethod] = None
    state: ProductionState = field(default_factory=ProductionState)
    stockpile: Stockpile = field(default_factory=Stockpile)
    inputs: Tuple[ResourceType, ...] = ()
    outputs: Tuple[ResourceType, ...] = ()

    __hash__ = None

    def with_stockpile(self, stockpile: Stockpile) -> "BuildingInstance":
        return replace(self, stockpile=stockpile)

    def with_state(self, state: ProductionState) -> "BuildingInstance":
        return replace(self, state=state)

    def accepts(self, resource: ResourceType) -> bool:
        return any(point is resource or point is ResourceType.ANY for point in self.inputs)

    def offers(self, resource: ResourceType) -> bool:
        return any(point is resource or point is ResourceType.ANY for point in self.outputs)

    def to_snapshot(self) -> Dict[str, object]:
        return {
            "id": self.id,
            "type": self.type,
            "name": self.name,
            "category": self.category,
            "icon": self.icon,
            "cost": self.cost,
            "production_method": self.method.to_snapshot() if self.method else None,
            "production_state": self.state.to_snapshot(),
            "stockpile": self.stockpile.snapshot(),
            "inputs": [point.value for point in self.inputs],
            "outputs": [point.value for point in self.outputs],
        }

    @classmethod
    def from_snapshot(cls, payload: Mapping[str, object]) -> "BuildingInstance":
        method_payload = payload.get("production_method")
        state_payload = payload.get("production_state") or {}
        if not isinstance(state_payload, Mapping):
            raise ValueError("production_state must be an object")
        return cls(
            id=str(payload["id"]),
            type=str(payload.get("type") or ""),
            name=str(payload.get("name") or ""),
            category=str(payload.get("category") or "production"),
            icon=str(payload.get("icon") or ""),
            cost=float(payload.get("cost") or 0.0),
            method=ProductionMethod.from_snapshot(method_payload)
            if isinstance(method_payload, Mapping)
            else None,
            state=ProductionState(
                progress=max(0, int(state_payload.get("progress", 0))),
                status=ProductionStatus(str(state_payload.get("status", "idle"))),
            ),
            stockpile=_stockpile_from_snapshot(payload.get("stockpile") or ()),
            inputs=tuple(normalise_resource(str(key)) for key in payload.get("inputs") or ()),
            outputs=tuple(normalise_resource(str(key)) for key in payload.get("outputs") or ()),
        )


def _stockpile_from_snapshot(raw: Iterable[Mapping[str, object]]) -> Stockpile:
    entries: List[SimpleStock | PooledStock] = []
    for item in raw:
        resource = normalise_resource(str(item["resource"]))
        max_amount = max(0, int(item.get("max_amount", 0)))
        if resource is ResourceType.ANY:
            breakdown = {
                normalise_resource(str(key)): int(amount)
                for key, amount in (item.get("breakdown") or {}).items()
            }
            entries.append(PooledStock.fitted(max_amount, breakdown))
        else:
            amount = min(max(0, int(item.get("amount", 0))), max_amount)
            entries.append(SimpleStock(resource=resource, amount=amount, max_amount=max_amount))
    return Stockpile(tuple(entries))


@dataclass(frozen=True, slots=True)
class Connection:
    """Typed resource edge between two buildings.

    ``resource`` is ``None`` when the wiring layer could not resolve a type;
    the simulation skips such edges.
    """

    id: str
    source: str
    target: str
    resource: Optional[ResourceType] = None

    def to_snapshot(self) -> Dict[str, object]:
        return {
            "id": self.id,
            "source": self.source,
            "target": self.target,
            "resource": self.resource.value if self.resource else None,
        }

    @classmethod
    def from_snapshot(cls, payload: Mapping[str, object]) -> "Connection":
        raw_resource = payload.get("resource")
        try:
            resource = normalise_resource(str(raw_resource)) if raw_resource else None
        except KeyError:
            resource = None
        source = str(payload["source"])
        target = str(payload["target"])
        return cls(
            id=str(payload.get("id") or f"{source}->{target}"),
            source=source,
            target=target,
            resource=resource,
        )
