from __future__ import annotations

"""
autobuild.py

The "Auto-Gov" planner: at most one construction per tick, chosen by a
fixed list of priorities and placed through the regular validator.
"""

import logging
import math
import random
from typing import AbstractSet, Dict, List, Optional

from terrain import BuildingType, Grid
from .buildings import BUILDINGS, INFRASTRUCTURE, BuildingConfig, power_producers
from .models import CityStats
from .placement import PlacementResult, apply_placement, can_place
from . import settings

logger = logging.getLogger("colony.autobuild")
logger.addHandler(logging.NullHandler())


# --------------------------------------------------------------------
# What to build
# --------------------------------------------------------------------
def _life_support_critical(stats: CityStats) -> bool:
    return (
        stats.oxygen < settings.AUTO_BUILD_LOW_OXYGEN
        or stats.food < stats.population * settings.AUTO_BUILD_FOOD_PER_COLONIST
    )


def _power_strained(stats: CityStats) -> bool:
    if stats.power_supply <= 0:
        return stats.power_demand > 0
    return stats.power_demand / stats.power_supply > settings.AUTO_BUILD_POWER_UTILIZATION


def _housing_strained(stats: CityStats, counts: Dict[BuildingType, int]) -> bool:
    capacity = counts.get(BuildingType.RESIDENTIAL, 0) * settings.HOUSING_CAPACITY
    if capacity == 0:
        return True
    return stats.population / capacity > settings.AUTO_BUILD_HOUSING_UTILIZATION


def _pick_power_plant(
    stats: CityStats, unlocked: AbstractSet[BuildingType]
) -> Optional[BuildingType]:
    producers = [config for config in power_producers() if config.type in unlocked]
    if not producers:
        return None
    for config in producers:
        if config.cost <= stats.money:
            return config.type
    return min(producers, key=lambda config: config.cost).type


def _pick_default(
    stats: CityStats, unlocked: AbstractSet[BuildingType], rng: random.Random
) -> Optional[BuildingType]:
    candidates: List[BuildingType] = [
        kind for kind in BuildingType if kind in unlocked and kind not in INFRASTRUCTURE
    ]
    if stats.money <= settings.AUTO_BUILD_FUSION_MIN_MONEY:
        candidates = [k for k in candidates if k is not BuildingType.FUSION_REACTOR]
    if (
        BuildingType.RESEARCH_LAB in candidates
        and rng.random() >= settings.AUTO_BUILD_RESEARCH_CHANCE
    ):
        candidates.remove(BuildingType.RESEARCH_LAB)
    if not candidates:
        return None
    return rng.choice(candidates)


def choose_building(
    stats: CityStats,
    counts: Dict[BuildingType, int],
    unlocked: AbstractSet[BuildingType],
    rng: random.Random,
    life_support: bool = True,
) -> Optional[BuildingType]:
    """First matching priority wins: life support, power, housing, then anything productive."""
    if life_support and _life_support_critical(stats):
        if BuildingType.AGRICULTURE in unlocked:
            return BuildingType.AGRICULTURE
        if BuildingType.PARK in unlocked:
            return BuildingType.PARK

    if _power_strained(stats):
        plant = _pick_power_plant(stats, unlocked)
        if plant is not None:
            return plant

    if _housing_strained(stats, counts) and BuildingType.RESIDENTIAL in unlocked:
        return BuildingType.RESIDENTIAL

    return _pick_default(stats, unlocked, rng)


# --------------------------------------------------------------------
# Where to build it
# --------------------------------------------------------------------
def _hub(grid: Grid, rng: random.Random) -> tuple[int, int]:
    occupied = grid.occupied_tiles()
    if not occupied:
        return grid.size // 2, grid.size // 2
    tile = rng.choice(occupied)
    return tile.x, tile.y


def find_site(
    grid: Grid,
    config: BuildingConfig,
    rng: random.Random,
    organic: bool = True,
    attempts: int = settings.AUTO_BUILD_ATTEMPTS,
) -> Optional[tuple[int, int]]:
    """
    Sample up to ``attempts`` origins and return the first one the validator
    accepts. Organic sampling clusters around an existing building, widening
    the search radius with every failed attempt.
    """
    hub = _hub(grid, rng) if organic else None
    for attempt in range(attempts):
        if hub is None:
            x = rng.randrange(grid.size)
            y = rng.randrange(grid.size)
        else:
            angle = rng.random() * 2 * math.pi
            distance = 1 + rng.random() * (2 + attempt * 0.5)
            x = int(round(hub[0] + math.cos(angle) * distance))
            y = int(round(hub[1] + math.sin(angle) * distance))
        if can_place(grid, x, y, config.width, config.height, grid.size, config.type):
            return x, y
    return None


def attempt_auto_build(
    grid: Grid,
    stats: CityStats,
    unlocked: AbstractSet[BuildingType],
    map_size: int,
    counts: Optional[Dict[BuildingType, int]] = None,
    rng: Optional[random.Random] = None,
    life_support: bool = True,
    organic: bool = True,
) -> Optional[PlacementResult]:
    """
    Place one building if the treasury allows it. Mutates ``grid`` and debits
    ``stats.money`` on success. Returns ``None`` when nothing was built.
    """
    rng = rng or random.Random()
    if stats.money <= settings.AUTO_BUILD_SAFETY_BUFFER:
        return None
    if map_size != grid.size:
        raise ValueError(f"Map size {map_size} does not match grid size {grid.size}")

    if counts is None:
        counts = grid.building_counts()
    building = choose_building(stats, counts, unlocked, rng, life_support)
    if building is None:
        logger.debug("Auto-build: no candidate")
        return None

    config = BUILDINGS[building]
    if config.cost > stats.money:
        logger.debug("Auto-build: cannot afford %s", building.value)
        return None

    site = find_site(grid, config, rng, organic)
    if site is None:
        logger.debug(
            "Auto-build: no site for %s after %d attempts",
            building.value,
            settings.AUTO_BUILD_ATTEMPTS,
        )
        return None

    result = apply_placement(grid, stats, building, site[0], site[1], rng)
    logger.info("Auto-build placed %s at (%d, %d)", building.value, site[0], site[1])
    return result


__all__ = ["attempt_auto_build", "choose_building", "find_site"]
