from __future__ import annotations

"""
engine.py

One simulation tick (one sol).

``run_tick`` never mutates the stats it is given. It computes a complete new
``CityStats`` which the caller commits in a single assignment, so readers
only ever see the state before or after a whole tick.

Order of work:
  1) Aggregate yields over unique footprint roots.
  2) Derive the power ratio and throttle yields when supply falls short.
  3) Housing cap from residential modules.
  4) Food, oxygen and CO2 balances plus the death toll (life support only).
  5) Population growth, deaths, housing clamp and evacuation.
  6) Auto-build against the already computed aggregates.
  7) Money, science and day counters.
  8) Goal evaluation.
  9) Warning headlines.
"""

import logging
import math
import random
from dataclasses import dataclass, field, replace
from typing import AbstractSet, Dict, List, Optional

from terrain import BuildingType, Grid
from .alerts import raise_alerts
from .autobuild import attempt_auto_build
from .buildings import BUILDINGS
from .models import AIGoal, CityStats, NewsItem
from .placement import PlacementResult
from . import settings

logger = logging.getLogger("colony.engine")
logger.addHandler(logging.NullHandler())


@dataclass
class Aggregate:
    """Summed per-tick yields of every building on the grid."""

    income: int = 0
    pop_growth: int = 0
    science: int = 0
    power_gen: int = 0
    power_drain: int = 0
    food: int = 0
    oxygen: float = 0.0
    co2: float = 0.0
    counts: Dict[BuildingType, int] = field(default_factory=dict)

    @property
    def building_total(self) -> int:
        return sum(self.counts.values())


@dataclass
class LifeSupport:
    food: float
    oxygen: float
    co2: float
    starvation: float = 0.0
    starvation_deaths: int = 0
    suffocation_deaths: int = 0
    toxicity_deaths: int = 0

    @property
    def death_toll(self) -> int:
        return self.starvation_deaths + self.suffocation_deaths + self.toxicity_deaths


@dataclass
class TickReport:
    """Everything one tick computed, for logging, alerts and tests."""

    stats: CityStats
    aggregate: Aggregate
    power_ratio: float
    max_population: int
    life_support: bool
    life: Optional[LifeSupport] = None
    auto_build: Optional[PlacementResult] = None
    goal_completed: bool = False
    alerts: List[NewsItem] = field(default_factory=list)

    @property
    def low_power(self) -> bool:
        return self.power_ratio < 1

    @property
    def death_toll(self) -> int:
        return self.life.death_toll if self.life else 0

    @property
    def starvation(self) -> float:
        return self.life.starvation if self.life else 0.0


# --------------------------------------------------------------------
# Individual steps
# --------------------------------------------------------------------
def aggregate(grid: Grid) -> Aggregate:
    """Sum catalog yields once per footprint root. Traversal order does not matter."""
    agg = Aggregate()
    for building in grid.unique_roots().values():
        config = BUILDINGS[building]
        if config.power_gen > 0:
            agg.power_gen += config.power_gen
        else:
            agg.power_drain += abs(config.power_gen)
        agg.income += config.income_gen
        agg.pop_growth += config.pop_gen
        agg.science += config.science_gen
        agg.food += config.food_gen
        agg.oxygen += config.oxygen_gen
        agg.co2 += config.co2_gen
        agg.counts[building] = agg.counts.get(building, 0) + 1
    return agg


def power_ratio(power_gen: int, power_drain: int) -> float:
    if power_drain <= 0:
        return 1.0
    return min(1.0, power_gen / power_drain)


def apply_power_penalty(agg: Aggregate, ratio: float) -> Aggregate:
    """Throttle yields when demand exceeds supply.

    Income, science and food are floored after scaling. Oxygen is scaled
    without flooring. Growth stops entirely.
    """
    if ratio >= 1:
        return agg
    return replace(
        agg,
        income=math.floor(agg.income * ratio),
        science=math.floor(agg.science * ratio),
        food=math.floor(agg.food * ratio),
        oxygen=agg.oxygen * ratio,
        pop_growth=0,
        counts=dict(agg.counts),
    )


def housing_capacity(counts: Dict[BuildingType, int]) -> int:
    return counts.get(BuildingType.RESIDENTIAL, 0) * settings.HOUSING_CAPACITY


def simulate_life_support(prev: CityStats, agg: Aggregate) -> LifeSupport:
    population = prev.population

    food = prev.food + agg.food - population * settings.FOOD_PER_COLONIST
    starvation = 0.0
    if food < 0:
        starvation = -food
        food = 0.0

    oxygen = prev.oxygen + agg.oxygen - population * settings.OXYGEN_PER_COLONIST
    oxygen = max(0.0, min(settings.MAX_OXYGEN, oxygen))

    co2 = prev.co2 + population * settings.CO2_PER_COLONIST + agg.co2
    co2 = max(settings.MIN_CO2, co2)

    if population == 0 and agg.building_total == 0:
        oxygen = settings.BASELINE_OXYGEN
        co2 = settings.BASELINE_CO2

    starvation_deaths = math.floor(starvation * settings.STARVATION_DEATH_RATE)
    if oxygen < settings.CRITICAL_OXYGEN_THRESHOLD:
        suffocation_deaths = math.floor(population * settings.CRITICAL_SUFFOCATION_DEATH_RATE)
    elif oxygen < settings.SUFFOCATION_THRESHOLD:
        suffocation_deaths = math.floor(population * settings.SUFFOCATION_DEATH_RATE)
    else:
        suffocation_deaths = 0
    toxicity_deaths = 0
    if co2 > settings.TOXIC_CO2_THRESHOLD:
        toxicity_deaths = math.floor(population * settings.TOXIC_CO2_DEATH_RATE)

    return LifeSupport(
        food=food,
        oxygen=oxygen,
        co2=co2,
        starvation=starvation,
        starvation_deaths=starvation_deaths,
        suffocation_deaths=suffocation_deaths,
        toxicity_deaths=toxicity_deaths,
    )


def next_population(
    prev_population: int, growth: int, death_toll: int, residential_count: int
) -> int:
    max_pop = residential_count * settings.HOUSING_CAPACITY
    if residential_count == 0 and prev_population > 0:
        # Evacuation: no housing left, colonists leave at a flat rate.
        return max(0, prev_population - settings.EVACUATION_RATE)
    return max(0, min(max_pop, prev_population + growth - death_toll))


def evaluate_goal(
    goal: Optional[AIGoal], stats: CityStats, counts: Dict[BuildingType, int]
) -> bool:
    """Mark ``goal`` completed in place when its threshold is reached. No reward is paid here."""
    if goal is None or goal.completed:
        return False
    if goal.is_met(stats, counts):
        goal.completed = True
        return True
    return False


# --------------------------------------------------------------------
# Whole tick
# --------------------------------------------------------------------
def run_tick(
    grid: Grid,
    stats: CityStats,
    *,
    unlocked: AbstractSet[BuildingType],
    goal: Optional[AIGoal] = None,
    rng: Optional[random.Random] = None,
    life_support: bool = True,
    auto_growth: bool = False,
    organic_growth: bool = True,
) -> TickReport:
    """Advance the colony by one sol and return the new stats inside a report."""
    rng = rng or random.Random()

    # 1-2) Aggregation and power throttling
    raw = aggregate(grid)
    ratio = power_ratio(raw.power_gen, raw.power_drain)
    agg = apply_power_penalty(raw, ratio)

    # 3) Housing cap
    residential = agg.counts.get(BuildingType.RESIDENTIAL, 0)
    max_pop = housing_capacity(agg.counts)

    # 4) Atmosphere and food
    life = simulate_life_support(stats, agg) if life_support else None
    death_toll = life.death_toll if life else 0

    # 5) Population
    population = next_population(stats.population, agg.pop_growth, death_toll, residential)

    # 6) Auto-build works on a copy; its debit lands in this tick's money.
    working = replace(stats, power_supply=raw.power_gen, power_demand=raw.power_drain)
    auto_result = None
    if auto_growth:
        auto_result = attempt_auto_build(
            grid,
            working,
            unlocked,
            grid.size,
            counts=agg.counts,
            rng=rng,
            life_support=life_support,
            organic=organic_growth,
        )

    # 7) Counters
    new_stats = replace(
        working,
        money=working.money + agg.income,
        population=population,
        day=stats.day + 1,
        science=stats.science + agg.science,
        oxygen=life.oxygen if life else stats.oxygen,
        co2=life.co2 if life else stats.co2,
        food=life.food if life else stats.food,
    )

    # 8) Goal
    completed = evaluate_goal(goal, new_stats, agg.counts)

    report = TickReport(
        stats=new_stats,
        aggregate=agg,
        power_ratio=ratio,
        max_population=max_pop,
        life_support=life_support,
        life=life,
        auto_build=auto_result,
        goal_completed=completed,
    )

    # 9) Headlines
    report.alerts = raise_alerts(report, rng)

    logger.debug(
        "Sol %d: money=%d (+%d) pop=%d/%d science=%d power=%d/%d ratio=%.2f deaths=%d",
        new_stats.day,
        new_stats.money,
        agg.income,
        new_stats.population,
        max_pop,
        new_stats.science,
        raw.power_gen,
        raw.power_drain,
        ratio,
        death_toll,
    )
    return report


__all__ = [
    "Aggregate",
    "LifeSupport",
    "TickReport",
    "aggregate",
    "apply_power_penalty",
    "evaluate_goal",
    "housing_capacity",
    "next_population",
    "power_ratio",
    "run_tick",
]
