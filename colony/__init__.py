from .buildings import BUILDINGS, BuildingConfig
from .colony import Colony
from .engine import TickReport, run_tick
from .models import AIGoal, CityStats, GoalMetric, NewsItem, Sentiment
from .settings import StartConfig

__all__ = [
    "AIGoal",
    "BUILDINGS",
    "BuildingConfig",
    "CityStats",
    "Colony",
    "GoalMetric",
    "NewsItem",
    "Sentiment",
    "StartConfig",
    "TickReport",
    "run_tick",
]
