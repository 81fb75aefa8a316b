from __future__ import annotations

"""Probabilistic warning headlines raised by the tick engine."""

import random
from dataclasses import dataclass
from typing import Callable, List, Optional, TYPE_CHECKING

from .models import NewsItem, Sentiment
from . import settings

if TYPE_CHECKING:  # pragma: no cover - type checking only
    from .engine import TickReport


@dataclass
class Alert:
    """A warning that may fire once per tick while its condition holds."""

    name: str
    text: str
    chance: float
    condition: Callable[[TickReport], bool]
    sentiment: Sentiment = Sentiment.NEGATIVE

    def roll(self, report: TickReport, rng: random.Random) -> Optional[NewsItem]:
        if not self.condition(report):
            return None
        if rng.random() >= self.chance:
            return None
        return NewsItem(text=self.text.format(report=report), type=self.sentiment)


LOW_POWER = Alert(
    name="low_power",
    text="WARNING: Power grid insufficient. Systems failing.",
    chance=settings.LOW_POWER_ALERT_CHANCE,
    condition=lambda r: r.low_power,
)

HIGH_CO2 = Alert(
    name="high_co2",
    text="HAZARD: CO2 at {report.stats.co2:.0f}ppm. Scrubbers overwhelmed.",
    chance=settings.HIGH_CO2_ALERT_CHANCE,
    condition=lambda r: r.life_support and r.stats.co2 > settings.HIGH_CO2_ALERT_THRESHOLD,
)

LOW_OXYGEN = Alert(
    name="low_oxygen",
    text="CRITICAL: Oxygen reserves at {report.stats.oxygen:.1f}%. Expand bio-domes.",
    chance=settings.LOW_OXYGEN_ALERT_CHANCE,
    condition=lambda r: r.life_support and r.stats.oxygen < settings.LOW_OXYGEN_ALERT_THRESHOLD,
)

STARVATION = Alert(
    name="starvation",
    text="FAMINE: Food stores depleted. Rations cut across all decks.",
    chance=settings.STARVATION_ALERT_CHANCE,
    condition=lambda r: r.starvation > 0,
)

CASUALTIES = Alert(
    name="casualties",
    text="ALERT: {report.death_toll} colonists lost to life support failure.",
    chance=settings.DEATH_ALERT_CHANCE,
    condition=lambda r: r.death_toll > 0,
)

ALL_ALERTS: List[Alert] = [LOW_POWER, HIGH_CO2, LOW_OXYGEN, STARVATION, CASUALTIES]


def raise_alerts(report: TickReport, rng: random.Random) -> List[NewsItem]:
    """Roll every alert once, independently."""
    items: List[NewsItem] = []
    for alert in ALL_ALERTS:
        item = alert.roll(report, rng)
        if item is not None:
            items.append(item)
    return items


__all__ = ["Alert", "ALL_ALERTS", "raise_alerts"]
