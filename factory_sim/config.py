"""Centralised configuration for the factory simulation backend."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, FrozenSet, Mapping, Tuple

from .building_models import MethodResource, ProductionMethod
from .resources import ResourceType, normalise_mapping

# ---------------------------------------------------------------------------
# Building identifiers and normalisation helpers

WOODCUTTER = "woodcutter"
QUARRY = "quarry"
FARM = "farm"
PASTURE = "pasture"
SAWMILL = "sawmill"
PAPERMILL = "papermill"
KILN = "kiln"
MILL = "mill"
BAKERY = "bakery"
BUTCHERY = "butchery"
BOOKBINDER = "bookbinder"
LIBRARY = "library"
MARKETPLACE = "marketplace"
FIREPIT = "firepit"
GRANARY = "granary"


def normalise_building_key(value: str) -> str:
    if not isinstance(value, str):
        raise ValueError("Building identifier must be a string")
    key = value.strip().lower().replace("-", "_").replace(" ", "_")
    if not key:
        raise ValueError("Building identifier is empty")
    return key


def resolve_building_type(value: str) -> str:
    key = normalise_building_key(value)
    if key in BUILDING_CLASSES:
        return key
    raise ValueError(f"Unknown building type: {value}")


# ---------------------------------------------------------------------------
# Building catalogue

@dataclass(frozen=True)
class BuildingClass:
    """Catalogue entry describing a placeable building type."""

    name: str
    icon: str
    description: str
    cost: float
    category: str
    methods: Tuple[ProductionMethod, ...]

    def get_method(self, name: str) -> ProductionMethod:
        for method in self.methods:
            if method.name == name:
                return method
        raise ValueError(f"{self.name} has no production method named {name!r}")

    def to_dict(self) -> Dict[str, object]:
        return {
            "name": self.name,
            "icon": self.icon,
            "description": self.description,
            "cost": self.cost,
            "category": self.category,
            "methods": [method.to_snapshot() for method in self.methods],
        }


def _lines(mapping: Mapping[ResourceType | str, int] | None) -> Tuple[MethodResource, ...]:
    return tuple(
        MethodResource(resource=resource, amount=int(amount))
        for resource, amount in normalise_mapping(mapping or {}).items()
    )


def _method(
    name: str,
    *,
    inputs: Mapping[ResourceType | str, int] | None = None,
    outputs: Mapping[ResourceType | str, int],
    days: int,
) -> ProductionMethod:
    return ProductionMethod(
        name=name,
        inputs=_lines(inputs),
        outputs=_lines(outputs),
        days=int(days),
    )


BUILDING_CLASSES: Dict[str, BuildingClass] = {
    WOODCUTTER: BuildingClass(
        name="Woodcutter",
        icon="🪓",
        description="Fells trees for wood.",
        cost=10,
        category="production",
        methods=(_method("Chop Wood", outputs={"wood": 2}, days=1),),
    ),
    QUARRY: BuildingClass(
        name="Quarry",
        icon="⛏️",
        description="Cuts stone from the hillside.",
        cost=15,
        category="production",
        methods=(_method("Cut Stone", outputs={"stone": 1}, days=2),),
    ),
    FARM: BuildingClass(
        name="Farm",
        icon="🌾",
        description="Grows wheat.",
        cost=15,
        category="production",
        methods=(_method("Grow Wheat", outputs={"wheat": 4}, days=3),),
    ),
    PASTURE: BuildingClass(
        name="Pasture",
        icon="🐄",
        description="Raises livestock.",
        cost=20,
        category="production",
        methods=(_method("Raise Livestock", outputs={"livestock": 1}, days=3),),
    ),
    SAWMILL: BuildingClass(
        name="Sawmill",
        icon="🪚",
        description="Saws wood into planks.",
        cost=25,
        category="refining",
        methods=(
            _method("Saw Planks", inputs={"wood": 2}, outputs={"planks": 1}, days=1),
            _method("Bulk Planks", inputs={"wood": 6}, outputs={"planks": 4}, days=3),
        ),
    ),
    PAPERMILL: BuildingClass(
        name="Paper Mill",
        icon="📄",
        description="Pulps wood into paper.",
        cost=30,
        category="refining",
        methods=(_method("Press Paper", inputs={"wood": 2}, outputs={"paper": 2}, days=2),),
    ),
    KILN: BuildingClass(
        name="Kiln",
        icon="🔥",
        description="Burns wood down to coal.",
        cost=20,
        category="refining",
        methods=(_method("Burn Coal", inputs={"wood": 3}, outputs={"coal": 1}, days=2),),
    ),
    MILL: BuildingClass(
        name="Mill",
        icon="🌀",
        description="Grinds wheat into flour.",
        cost=25,
        category="refining",
        methods=(_method("Grind Flour", inputs={"wheat": 2}, outputs={"flour": 1}, days=1),),
    ),
    BAKERY: BuildingClass(
        name="Bakery",
        icon="🍞",
        description="Bakes flour into bread.",
        cost=30,
        category="refining",
        methods=(_method("Bake Bread", inputs={"flour": 2}, outputs={"bread": 3}, days=2),),
    ),
    BUTCHERY: BuildingClass(
        name="Butchery",
        icon="🔪",
        description="Processes livestock into meat and leather.",
        cost=30,
        category="refining",
        methods=(
            _method(
                "Butcher",
                inputs={"livestock": 1},
                outputs={"meat": 2, "leather": 1},
                days=2,
            ),
        ),
    ),
    BOOKBINDER: BuildingClass(
        name="Bookbinder",
        icon="📚",
        description="Binds paper and leather into books.",
        cost=40,
        category="refining",
        methods=(
            _method("Bind Books", inputs={"paper": 2, "leather": 1}, outputs={"books": 1}, days=2),
        ),
    ),
    LIBRARY: BuildingClass(
        name="Library",
        icon="🏛️",
        description="Studies books to produce knowledge.",
        cost=50,
        category="services",
        methods=(_method("Study", inputs={"books": 1}, outputs={"knowledge": 2}, days=1),),
    ),
    MARKETPLACE: BuildingClass(
        name="Marketplace",
        icon="🏪",
        description="Sells any resource for money.",
        cost=20,
        category="special",
        methods=(
            _method("Sell Goods", inputs={"any": 10}, outputs={"money": 1}, days=1),
            _method("Haggle", inputs={"any": 5}, outputs={"money": 2}, days=1),
        ),
    ),
    FIREPIT: BuildingClass(
        name="Fire Pit",
        icon="🔥",
        description="Cooks food for the settlement and shares stories around the fire.",
        cost=10,
        category="special",
        methods=(
            _method(
                "Cook",
                inputs={"wheat": 2, "meat": 1},
                outputs={"food": 1, "knowledge": 1},
                days=1,
            ),
        ),
    ),
    GRANARY: BuildingClass(
        name="Granary",
        icon="🏚️",
        description="Stores grain and bread as food for the settlement.",
        cost=25,
        category="storage",
        methods=(
            _method("Store Food", inputs={"wheat": 5, "bread": 5}, outputs={"food": 1}, days=1),
        ),
    ),
}

# Buildings driven by the special processor rather than the production cycle.
SPECIAL_BUILDING_TYPES: FrozenSet[str] = frozenset({MARKETPLACE, FIREPIT, GRANARY})

# ---------------------------------------------------------------------------
# Economy

STOCKPILE_MULTIPLIER = 10

RESOURCE_VALUES: Dict[ResourceType, float] = {
    ResourceType.WOOD: 1,
    ResourceType.STONE: 2,
    ResourceType.WHEAT: 1,
    ResourceType.PLANKS: 3,
    ResourceType.PAPER: 3,
    ResourceType.BOOKS: 8,
    ResourceType.LIVESTOCK: 4,
    ResourceType.LEATHER: 4,
    ResourceType.MEAT: 3,
    ResourceType.COAL: 3,
    ResourceType.FLOUR: 2,
    ResourceType.BREAD: 4,
}

DEFAULT_RESOURCE_VALUE = 1

FOOD_VALUES: Dict[ResourceType, float] = {
    ResourceType.WHEAT: 1,
    ResourceType.FLOUR: 2,
    ResourceType.MEAT: 3,
    ResourceType.BREAD: 4,
}

FIREPIT_KNOWLEDGE_PER_DAY = 1

STARTING_GLOBAL_RESOURCES: Dict[ResourceType, float] = {
    ResourceType.MONEY: 100.0,
    ResourceType.KNOWLEDGE: 0.0,
    ResourceType.FOOD: 0.0,
}

# Placed free of charge on reset. Connections refer to the layout keys.
STARTING_BUILDINGS: Tuple[Mapping[str, str], ...] = (
    {"key": "woodcutter", "type": WOODCUTTER},
    {"key": "marketplace", "type": MARKETPLACE},
)

STARTING_CONNECTIONS: Tuple[Mapping[str, str], ...] = (
    {"source": "woodcutter", "target": "marketplace", "resource": "wood"},
)

# ---------------------------------------------------------------------------
# Time

DAY_DURATION: float = 5.0

GAME_SPEEDS: Dict[str, float] = {
    "slow": 1.0,
    "medium": 2.0,
    "fast": 5.0,
}

DEFAULT_GAME_SPEED = "slow"

NOTIFICATION_QUEUE_LIMIT = 50
STATISTICS_HISTORY_LIMIT = 100
