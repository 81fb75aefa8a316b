# Settings for the colony simulation

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional

from terrain import TerrainSettings

# Map sizes offered at start (tiles per side)
MAP_SIZES: Dict[str, int] = {
    "Small": 10,
    "Medium": 15,
    "Large": 20,
}
DEFAULT_MAP_SIZE = MAP_SIZES["Medium"]

# Duration of one game tick (one sol) in seconds
TICK_SECONDS = 2.0

INITIAL_MONEY = 2000
INITIAL_FOOD = 100.0
INITIAL_DAY = 1

# Flat fee for demolition crews, independent of building size
DEMOLISH_COST = 50

# Colonists housed per residential module
HOUSING_CAPACITY = 50

# Colonists leaving per sol when no housing remains
EVACUATION_RATE = 5

# Number of cosmetic variants a footprint can be drawn with
VARIANT_COUNT = 4

# --------------------------------------------------------------------
# Life support
# --------------------------------------------------------------------
BASELINE_OXYGEN = 100.0
BASELINE_CO2 = 400.0
MIN_CO2 = 300.0
MAX_OXYGEN = 100.0

FOOD_PER_COLONIST = 0.5
OXYGEN_PER_COLONIST = 0.1
CO2_PER_COLONIST = 1.5

STARVATION_DEATH_RATE = 0.10
SUFFOCATION_THRESHOLD = 10.0
SUFFOCATION_DEATH_RATE = 0.05
CRITICAL_OXYGEN_THRESHOLD = 5.0
CRITICAL_SUFFOCATION_DEATH_RATE = 0.20
TOXIC_CO2_THRESHOLD = 2000.0
TOXIC_CO2_DEATH_RATE = 0.02

# --------------------------------------------------------------------
# Alerts (probability rolled once per tick per qualifying condition)
# --------------------------------------------------------------------
LOW_POWER_ALERT_CHANCE = 0.1
HIGH_CO2_ALERT_THRESHOLD = 1500.0
HIGH_CO2_ALERT_CHANCE = 0.1
LOW_OXYGEN_ALERT_THRESHOLD = 20.0
LOW_OXYGEN_ALERT_CHANCE = 0.1
STARVATION_ALERT_CHANCE = 0.1
DEATH_ALERT_CHANCE = 0.3

# --------------------------------------------------------------------
# Auto-builder
# --------------------------------------------------------------------
AUTO_BUILD_SAFETY_BUFFER = 500
AUTO_BUILD_ATTEMPTS = 20
AUTO_BUILD_LOW_OXYGEN = 30.0
AUTO_BUILD_FOOD_PER_COLONIST = 2.0
AUTO_BUILD_POWER_UTILIZATION = 0.9
AUTO_BUILD_HOUSING_UTILIZATION = 0.8
AUTO_BUILD_FUSION_MIN_MONEY = 3000
AUTO_BUILD_RESEARCH_CHANCE = 0.5

# --------------------------------------------------------------------
# Narrative feed and external text service
# --------------------------------------------------------------------
NEWS_FEED_LIMIT = 13
HISTORY_LIMIT = 60
NEWS_REQUEST_CHANCE = 0.15
GOAL_RETRY_SECONDS = 5.0
SERVICE_COOLDOWN_SECONDS = 60.0
SERVICE_MAX_FAILURES = 3
SERVICE_TIMEOUT_SECONDS = 15.0
GEMINI_MODEL = "gemini-2.5-flash"
GEMINI_ENDPOINT = "https://generativelanguage.googleapis.com/v1beta/models"


@dataclass
class StartConfig:
    """Options chosen once at game start."""

    map_size: int = DEFAULT_MAP_SIZE
    ai_enabled: bool = True
    # Extended variant: atmosphere/food simulation
    life_support: bool = True
    # Extended variant: uneven terrain that buildings must be flat on
    rough_terrain: bool = True
    # Extended variant: auto-builder clusters around existing development
    organic_growth: bool = True
    auto_growth: bool = False
    seed: Optional[int] = None
    terrain: TerrainSettings = field(default_factory=TerrainSettings)

    def __post_init__(self) -> None:
        if self.map_size not in MAP_SIZES.values():
            raise ValueError(
                f"map_size must be one of {sorted(MAP_SIZES.values())}, got {self.map_size}"
            )

    @classmethod
    def basic(cls, **kwargs) -> "StartConfig":
        """Economy/power/population only, flat ground, uniform auto-build sites."""
        kwargs.setdefault("life_support", False)
        kwargs.setdefault("rough_terrain", False)
        kwargs.setdefault("organic_growth", False)
        return cls(**kwargs)
