from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List

from terrain import BuildingType


@dataclass(frozen=True)
class BuildingConfig:
    """Static attributes of one building kind."""

    type: BuildingType
    name: str
    description: str
    cost: int
    color: tuple[int, int, int, int]
    width: int = 1
    height: int = 1
    pop_gen: int = 0
    income_gen: int = 0
    science_gen: int = 0
    # Positive for production, negative for consumption
    power_gen: int = 0
    food_gen: int = 0
    oxygen_gen: float = 0.0
    # Negative values scrub CO2 from the atmosphere
    co2_gen: float = 0.0

    @property
    def produces_power(self) -> bool:
        return self.power_gen > 0


BUILDINGS: Dict[BuildingType, BuildingConfig] = {
    BuildingType.NONE: BuildingConfig(
        type=BuildingType.NONE,
        name="Recycle",
        description="Clear module",
        cost=0,
        color=(239, 68, 68, 255),
    ),
    BuildingType.ROAD: BuildingConfig(
        type=BuildingType.ROAD,
        name="Corridor",
        description="Connects modules.",
        cost=15,
        color=(75, 85, 99, 255),
    ),
    BuildingType.GREEN_ROAD: BuildingConfig(
        type=BuildingType.GREEN_ROAD,
        name="Green Corridor",
        description="Moss-lined corridor. Scrubs a little CO2.",
        cost=40,
        color=(59, 130, 246, 255),
        oxygen_gen=0.2,
        co2_gen=-2.0,
    ),
    BuildingType.RESIDENTIAL: BuildingConfig(
        type=BuildingType.RESIDENTIAL,
        name="Habitation",
        description="+5 Crew/sol",
        cost=150,
        color=(229, 231, 235, 255),
        pop_gen=5,
        power_gen=-5,
    ),
    BuildingType.COMMERCIAL: BuildingConfig(
        type=BuildingType.COMMERCIAL,
        name="Comms Hub",
        description="+15 Credits/sol",
        cost=300,
        color=(59, 130, 246, 255),
        income_gen=15,
        power_gen=-10,
    ),
    BuildingType.INDUSTRIAL: BuildingConfig(
        type=BuildingType.INDUSTRIAL,
        name="He3 Deep Mine",
        description="+40 Credits/sol",
        cost=500,
        color=(245, 158, 11, 255),
        width=2,
        height=2,
        income_gen=40,
        power_gen=-25,
        co2_gen=20.0,
    ),
    BuildingType.AGRICULTURE: BuildingConfig(
        type=BuildingType.AGRICULTURE,
        name="Hydroponics Bay",
        description="+25 Food/sol",
        cost=250,
        color=(132, 204, 22, 255),
        width=2,
        height=1,
        food_gen=25,
        power_gen=-8,
        oxygen_gen=0.5,
        co2_gen=-5.0,
    ),
    BuildingType.PARK: BuildingConfig(
        type=BuildingType.PARK,
        name="Bio-Dome",
        description="Oxygen & Sanity.",
        cost=100,
        color=(16, 185, 129, 255),
        width=2,
        height=2,
        pop_gen=1,
        oxygen_gen=2.0,
        co2_gen=-15.0,
    ),
    BuildingType.SOLAR_PANEL: BuildingConfig(
        type=BuildingType.SOLAR_PANEL,
        name="Solar Array",
        description="+20 MW",
        cost=200,
        color=(30, 64, 175, 255),
        power_gen=20,
    ),
    BuildingType.FUSION_REACTOR: BuildingConfig(
        type=BuildingType.FUSION_REACTOR,
        name="Fusion Reactor",
        description="+150 MW",
        cost=1200,
        color=(168, 85, 247, 255),
        width=2,
        height=2,
        power_gen=150,
        co2_gen=5.0,
    ),
    BuildingType.RESEARCH_LAB: BuildingConfig(
        type=BuildingType.RESEARCH_LAB,
        name="Research Lab",
        description="+5 Science/sol",
        cost=600,
        color=(192, 132, 252, 255),
        width=2,
        height=1,
        science_gen=5,
        power_gen=-15,
    ),
}

# Placing the second kind over the first is an upgrade, not an overlap
UPGRADE_PAIRS: Dict[BuildingType, BuildingType] = {
    BuildingType.GREEN_ROAD: BuildingType.ROAD,
}

# Kinds the auto-builder never picks in its economic fallback
INFRASTRUCTURE: frozenset[BuildingType] = frozenset(
    {BuildingType.NONE, BuildingType.ROAD, BuildingType.GREEN_ROAD}
)


def get_config(building: BuildingType) -> BuildingConfig:
    return BUILDINGS[building]


def power_producers() -> List[BuildingConfig]:
    """Power producing kinds, highest output first."""
    return sorted(
        (cfg for cfg in BUILDINGS.values() if cfg.produces_power),
        key=lambda cfg: cfg.power_gen,
        reverse=True,
    )


__all__ = [
    "BUILDINGS",
    "BuildingConfig",
    "BuildingType",
    "INFRASTRUCTURE",
    "UPGRADE_PAIRS",
    "get_config",
    "power_producers",
]
