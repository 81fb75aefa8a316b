from __future__ import annotations

import itertools
import time
from collections import deque
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Deque, Dict, Iterator, List, Optional

from terrain import BuildingType
from . import settings

_news_ids = itertools.count(1)


@dataclass
class CityStats:
    """Global colony state recomputed every tick."""

    money: int = settings.INITIAL_MONEY
    population: int = 0
    day: int = settings.INITIAL_DAY
    science: int = 0
    power_supply: int = 0
    power_demand: int = 0
    oxygen: float = settings.BASELINE_OXYGEN
    co2: float = settings.BASELINE_CO2
    food: float = settings.INITIAL_FOOD

    def to_json(self) -> Dict[str, Any]:
        return {
            "money": self.money,
            "population": self.population,
            "day": self.day,
            "science": self.science,
            "powerSupply": self.power_supply,
            "powerDemand": self.power_demand,
            "oxygen": round(self.oxygen, 1),
            "co2": round(self.co2),
            "food": round(self.food),
        }


class GoalMetric(Enum):
    POPULATION = "population"
    MONEY = "money"
    SCIENCE = "science"
    BUILDING_COUNT = "building_count"


@dataclass
class AIGoal:
    description: str
    target_type: GoalMetric
    target_value: int
    reward: int
    building_type: Optional[BuildingType] = None
    completed: bool = False

    def __post_init__(self) -> None:
        if self.target_type is GoalMetric.BUILDING_COUNT and self.building_type is None:
            raise ValueError("building_count goals need a building_type")
        if self.target_type is not GoalMetric.BUILDING_COUNT:
            self.building_type = None

    def is_met(self, stats: CityStats, counts: Dict[BuildingType, int]) -> bool:
        if self.target_type is GoalMetric.MONEY:
            current = stats.money
        elif self.target_type is GoalMetric.POPULATION:
            current = stats.population
        elif self.target_type is GoalMetric.SCIENCE:
            current = stats.science
        else:
            current = counts.get(self.building_type, 0)
        return current >= self.target_value


class Sentiment(Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


@dataclass
class NewsItem:
    text: str
    type: Sentiment = Sentiment.NEUTRAL
    id: str = field(default_factory=lambda: f"{time.time_ns()}-{next(_news_ids)}")


@dataclass
class HistoryEntry:
    day: int
    money: int
    population: int
    science: int
    power_supply: int
    power_demand: int
    oxygen: float
    co2: float
    food: float

    @classmethod
    def from_stats(cls, stats: CityStats) -> "HistoryEntry":
        return cls(
            day=stats.day,
            money=stats.money,
            population=stats.population,
            science=stats.science,
            power_supply=stats.power_supply,
            power_demand=stats.power_demand,
            oxygen=stats.oxygen,
            co2=stats.co2,
            food=stats.food,
        )

    def to_json(self) -> Dict[str, Any]:
        return asdict(self)


class RingBuffer:
    """Keeps only the most recent ``limit`` entries."""

    def __init__(self, limit: int):
        self.limit = limit
        self._items: Deque[Any] = deque(maxlen=limit)

    def append(self, item: Any) -> None:
        self._items.append(item)

    def clear(self) -> None:
        self._items.clear()

    def latest(self) -> Optional[Any]:
        return self._items[-1] if self._items else None

    def __iter__(self) -> Iterator[Any]:
        return iter(list(self._items))

    def __len__(self) -> int:
        return len(self._items)

    def to_list(self) -> List[Any]:
        return list(self._items)


@dataclass
class ColonySnapshot:
    """Read-only view handed to the narrative service."""

    stats: CityStats
    building_counts: Dict[BuildingType, int]

    def describe(self) -> str:
        counts = {k.value: v for k, v in self.building_counts.items() if v}
        return (
            f"Sol: {self.stats.day}\n"
            f"Credits: {self.stats.money}\n"
            f"Colonists: {self.stats.population}\n"
            f"Science: {self.stats.science}\n"
            f"Oxygen: {self.stats.oxygen:.1f}% | CO2: {round(self.stats.co2)}ppm | Food: {round(self.stats.food)}\n"
            f"Modules Built: {counts}"
        )
