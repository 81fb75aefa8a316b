from __future__ import annotations

"""
Placement validation and the build/demolish transitions.

Validation never raises: a failed check is reported as a ``Rejection`` value
and leaves the grid and stats untouched. Only footprints that passed
validation reach ``Grid.apply_footprint`` / ``Grid.clear_footprint``.
"""

import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import AbstractSet, Optional

from terrain import BuildingType, Grid
from .buildings import BUILDINGS, UPGRADE_PAIRS, BuildingConfig
from .models import CityStats
from . import settings

logger = logging.getLogger("colony.placement")
logger.addHandler(logging.NullHandler())


class Rejection(Enum):
    NOT_UNLOCKED = "Technology not yet researched."
    OUT_OF_BOUNDS = "Cannot place here: Outside colony bounds."
    OCCUPIED = "Sector occupied. Demolish existing structures first."
    UNEVEN = "Cannot place here: Terrain is not level."
    INSUFFICIENT_FUNDS = "Insufficient credits for {name}."
    NOTHING_TO_DEMOLISH = "Nothing to demolish here."
    DEMOLITION_FUNDS = "Insufficient credits for demolition crews."

    def message(self, config: Optional[BuildingConfig] = None) -> str:
        name = config.name if config else "construction"
        return self.value.format(name=name)


@dataclass
class PlacementResult:
    """Outcome of a build or demolish request."""

    building: BuildingType
    x: int
    y: int
    rejection: Optional[Rejection] = None
    variant: Optional[int] = None
    cost: int = 0

    @property
    def ok(self) -> bool:
        return self.rejection is None

    @property
    def message(self) -> str:
        if self.rejection is None:
            return ""
        return self.rejection.message(BUILDINGS.get(self.building))


def is_compatible(existing: BuildingType, incoming: Optional[BuildingType]) -> bool:
    """True if ``incoming`` may be placed on a tile currently holding ``existing``."""
    if existing is BuildingType.NONE:
        return True
    return incoming is not None and UPGRADE_PAIRS.get(incoming) is existing


def check_site(
    grid: Grid,
    origin_x: int,
    origin_y: int,
    width: int,
    height: int,
    map_size: int,
    building: Optional[BuildingType] = None,
) -> Optional[Rejection]:
    """Bounds, occupancy and flatness checks for a footprint."""
    if (
        origin_x < 0
        or origin_y < 0
        or origin_x + width > map_size
        or origin_y + height > map_size
        or not grid.fits(origin_x, origin_y, width, height)
    ):
        return Rejection.OUT_OF_BOUNDS

    tiles = grid.footprint(origin_x, origin_y, width, height)
    if any(not is_compatible(tile.building, building) for tile in tiles):
        return Rejection.OCCUPIED

    base_height = grid.rows[origin_y][origin_x].height
    if any(tile.height != base_height for tile in tiles):
        return Rejection.UNEVEN
    return None


def can_place(
    grid: Grid,
    origin_x: int,
    origin_y: int,
    width: int,
    height: int,
    map_size: int,
    building: Optional[BuildingType] = None,
) -> bool:
    return check_site(grid, origin_x, origin_y, width, height, map_size, building) is None


def check_placement(
    grid: Grid,
    stats: CityStats,
    unlocked: AbstractSet[BuildingType],
    building: BuildingType,
    x: int,
    y: int,
) -> Optional[Rejection]:
    """Every check a player placement must pass, in the order they are reported."""
    config = BUILDINGS[building]
    if building not in unlocked:
        return Rejection.NOT_UNLOCKED
    rejection = check_site(grid, x, y, config.width, config.height, grid.size, building)
    if rejection is not None:
        return rejection
    if stats.money < config.cost:
        return Rejection.INSUFFICIENT_FUNDS
    return None


def apply_placement(
    grid: Grid,
    stats: CityStats,
    building: BuildingType,
    x: int,
    y: int,
    rng: random.Random,
) -> PlacementResult:
    """Write an already validated footprint and debit its cost."""
    config = BUILDINGS[building]
    variant = rng.randrange(settings.VARIANT_COUNT)
    grid.apply_footprint(x, y, config.width, config.height, building, variant)
    stats.money -= config.cost
    return PlacementResult(building, x, y, variant=variant, cost=config.cost)


def place_building(
    grid: Grid,
    stats: CityStats,
    unlocked: AbstractSet[BuildingType],
    building: BuildingType,
    x: int,
    y: int,
    rng: Optional[random.Random] = None,
) -> PlacementResult:
    if building is BuildingType.NONE:
        raise ValueError("Use demolish() to clear tiles")
    rejection = check_placement(grid, stats, unlocked, building, x, y)
    if rejection is not None:
        logger.debug("Rejected %s at (%d, %d): %s", building.value, x, y, rejection.name)
        return PlacementResult(building, x, y, rejection=rejection)
    result = apply_placement(grid, stats, building, x, y, rng or random.Random())
    logger.info(
        "Placed %s at (%d, %d) for %d credits", building.value, x, y, result.cost
    )
    return result


def demolish(grid: Grid, stats: CityStats, x: int, y: int) -> PlacementResult:
    """Clear the whole footprint under (x, y) for a flat fee."""
    tile = grid.get(x, y)
    if tile is None or tile.is_empty:
        return PlacementResult(BuildingType.NONE, x, y, rejection=Rejection.NOTHING_TO_DEMOLISH)
    if stats.money < settings.DEMOLISH_COST:
        return PlacementResult(tile.building, x, y, rejection=Rejection.DEMOLITION_FUNDS)

    root_x, root_y = tile.root
    root = grid.rows[root_y][root_x]
    config = BUILDINGS[root.building]
    grid.clear_footprint(root_x, root_y, config.width, config.height)
    stats.money -= settings.DEMOLISH_COST
    logger.info("Demolished %s rooted at (%d, %d)", config.type.value, root_x, root_y)
    return PlacementResult(config.type, root_x, root_y, cost=settings.DEMOLISH_COST)


__all__ = [
    "PlacementResult",
    "Rejection",
    "apply_placement",
    "can_place",
    "check_placement",
    "check_site",
    "demolish",
    "is_compatible",
    "place_building",
]
