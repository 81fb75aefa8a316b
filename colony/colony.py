from __future__ import annotations

import logging
import random
import time
from dataclasses import replace
from typing import Dict, FrozenSet, List, Optional

from terrain import BuildingType, Grid
from .buildings import BUILDINGS
from .engine import TickReport, run_tick
from .models import (
    AIGoal,
    CityStats,
    ColonySnapshot,
    HistoryEntry,
    NewsItem,
    RingBuffer,
    Sentiment,
)
from .narrative import GeminiNarrativeService, NarrativeDirector, TemplateNarrator
from .placement import PlacementResult, demolish, place_building
from .technology import (
    INITIAL_UNLOCKED_TECHS,
    ResearchOutcome,
    ResearchResult,
    TechNode,
    available_techs,
    check_research,
    unlocked_buildings,
)
from .settings import StartConfig
from . import settings

logger = logging.getLogger("colony.colony")
logger.addHandler(logging.NullHandler())

WELCOME_MESSAGE = "Colony initialization complete. Life support systems active."


class Colony:
    """
    Owns every piece of mutable game state and is the only thing that writes it:
      - the grid and the global stats
      - researched techs and the derived set of buildable kinds
      - the active goal, the news feed and the stats history
      - the narrative director that produces goals and headlines
    The renderer and the headless loop only call methods on this class.
    """

    def __init__(
        self,
        config: Optional[StartConfig] = None,
        rng: Optional[random.Random] = None,
        director: Optional[NarrativeDirector] = None,
    ):
        self.config = config or StartConfig()
        self.rng = rng or random.Random(self.config.seed)
        if director is None:
            director = NarrativeDirector(
                service=self._narrative_service(),
                fallback=TemplateNarrator(random.Random(self.rng.random())),
                enabled=self.config.ai_enabled,
            )
        self.director = director

        self.news = RingBuffer(settings.NEWS_FEED_LIMIT)
        self.history = RingBuffer(settings.HISTORY_LIMIT)
        self.selected_tool: BuildingType = BuildingType.ROAD
        self.auto_growth = self.config.auto_growth
        self.running = False
        self.last_report: Optional[TickReport] = None
        self._ticking = False
        self._last_tick: Optional[float] = None
        self._recent_action: Optional[str] = None

        self.grid: Grid
        self.stats: CityStats
        self.unlocked_techs: List[str]
        self.unlocked: FrozenSet[BuildingType]
        self.goal: Optional[AIGoal]
        self._reset_state()

    # ---------------- Lifecycle ----------------
    def _reset_state(self) -> None:
        terrain = None
        if self.config.rough_terrain:
            terrain = replace(self.config.terrain, seed=self.rng.randrange(2**31))
        self.grid = Grid.create(self.config.map_size, terrain)
        self.stats = CityStats()
        self.unlocked_techs = list(INITIAL_UNLOCKED_TECHS)
        self.unlocked = unlocked_buildings(self.unlocked_techs)
        self.goal = None
        self.news.clear()
        self.history.clear()
        self.last_report = None
        self._recent_action = None

    def start(self, now: Optional[float] = None) -> None:
        """Begin ticking with a fresh session. Narrative results from earlier sessions are ignored."""
        self.director.new_session()
        self.running = True
        self._last_tick = time.monotonic() if now is None else now
        self.add_news(WELCOME_MESSAGE, Sentiment.POSITIVE)
        self._request_goal()
        logger.info(
            "Colony started: %dx%d, ai=%s, life_support=%s",
            self.config.map_size,
            self.config.map_size,
            self.config.ai_enabled,
            self.config.life_support,
        )

    def _narrative_service(self) -> Optional[GeminiNarrativeService]:
        if not self.config.ai_enabled:
            return None
        return GeminiNarrativeService.from_env()

    def restart(self, config: Optional[StartConfig] = None, now: Optional[float] = None) -> None:
        if config is not None:
            self.config = config
            self.director.enabled = config.ai_enabled
            if config.ai_enabled and self.director.service is None:
                self.director.service = self._narrative_service()
            self.auto_growth = config.auto_growth
        self.stop()
        self._reset_state()
        self.start(now)

    def stop(self) -> None:
        self.running = False
        self.director.stop()

    def close(self) -> None:
        self.running = False
        self.director.close()

    # ---------------- Ticking ----------------
    def update(self, now: Optional[float] = None) -> Optional[TickReport]:
        """Called every frame; runs a tick once ``TICK_SECONDS`` have passed."""
        if not self.running or self._ticking:
            return None
        now = time.monotonic() if now is None else now
        if self._last_tick is not None and now - self._last_tick < settings.TICK_SECONDS:
            return None
        self._last_tick = now
        return self.tick()

    def tick(self) -> TickReport:
        self._ticking = True
        try:
            self._apply_narrative()
            report = run_tick(
                self.grid,
                self.stats,
                unlocked=self.unlocked,
                goal=self.goal,
                rng=self.rng,
                life_support=self.config.life_support,
                auto_growth=self.auto_growth,
                organic_growth=self.config.organic_growth,
            )
            # Commit point
            self.stats = report.stats
            self.history.append(HistoryEntry.from_stats(self.stats))
            self.last_report = report

            if report.goal_completed:
                logger.info("Goal completed: %s", self.goal.description if self.goal else "")
            if report.auto_build is not None:
                self._recent_action = (
                    f"Auto-Gov built {BUILDINGS[report.auto_build.building].name}"
                )
            for item in report.alerts:
                self.news.append(item)

            self._request_goal()
            self.director.maybe_request_news(self.snapshot(), self.rng, self._recent_action)
            self._recent_action = None
            return report
        finally:
            self._ticking = False

    def run(self, ticks: int) -> List[TickReport]:
        """Headless loop: ``ticks`` consecutive ticks without waiting on the clock."""
        if not self.running:
            self.start()
        reports = [self.tick() for _ in range(ticks)]
        self._apply_narrative()
        return reports

    def _apply_narrative(self) -> None:
        delivery = self.director.drain()
        if delivery.goal is not None and self.goal is None:
            self.goal = delivery.goal
            logger.info("New goal: %s", self.goal.description)
        for item in delivery.news:
            self.news.append(item)

    def _request_goal(self) -> None:
        if self.goal is None:
            self.director.request_goal(self.snapshot())

    # ---------------- Player actions ----------------
    def select_tool(self, building: BuildingType) -> None:
        self.selected_tool = building

    def handle_tile_click(self, x: int, y: int) -> Optional[PlacementResult]:
        if not self.running:
            return None
        if self.selected_tool is BuildingType.NONE:
            return self.demolish(x, y)
        return self.place(self.selected_tool, x, y)

    def place(self, building: BuildingType, x: int, y: int) -> PlacementResult:
        result = place_building(self.grid, self.stats, self.unlocked, building, x, y, self.rng)
        if not result.ok:
            self.add_news(result.message, Sentiment.NEGATIVE)
        else:
            self._recent_action = f"Built {BUILDINGS[building].name}"
        return result

    def demolish(self, x: int, y: int) -> PlacementResult:
        result = demolish(self.grid, self.stats, x, y)
        # Empty tiles are a silent no-op
        if result.rejection is not None and result.building is not BuildingType.NONE:
            self.add_news(result.message, Sentiment.NEGATIVE)
        elif result.ok:
            self._recent_action = f"Demolished {BUILDINGS[result.building].name}"
        return result

    def research(self, tech_id: str) -> ResearchResult:
        result = check_research(tech_id, self.unlocked_techs, self.stats.science)
        if result.outcome in (ResearchOutcome.UNKNOWN, ResearchOutcome.ALREADY_UNLOCKED):
            return result
        node = result.node
        if node is None:
            return result
        if result.outcome is ResearchOutcome.MISSING_PREREQUISITES:
            self.add_news(f"Prerequisites missing for {node.name}", Sentiment.NEGATIVE)
        elif result.outcome is ResearchOutcome.INSUFFICIENT_SCIENCE:
            self.add_news(f"Insufficient Science for {node.name}", Sentiment.NEGATIVE)
        else:
            self.stats.science -= result.science_spent
            self.unlocked_techs.append(node.id)
            self.unlocked = unlocked_buildings(self.unlocked_techs)
            self.add_news(f"Research Completed: {node.name}", Sentiment.POSITIVE)
            logger.info("Researched %s for %d science", node.id, result.science_spent)
        return result

    def available_research(self) -> List[TechNode]:
        return available_techs(self.unlocked_techs)

    def claim_reward(self) -> bool:
        """Credit a completed goal once, then ask for the next one."""
        goal = self.goal
        if goal is None or not goal.completed:
            return False
        self.stats.money += goal.reward
        self.add_news(f"Contract fulfilled. {goal.reward} deposited.", Sentiment.POSITIVE)
        self.goal = None
        self._request_goal()
        return True

    def toggle_auto_growth(self) -> bool:
        self.auto_growth = not self.auto_growth
        logger.info("Auto-Gov %s", "engaged" if self.auto_growth else "disengaged")
        return self.auto_growth

    # ---------------- Views ----------------
    def add_news(self, text: str, sentiment: Sentiment = Sentiment.NEUTRAL) -> NewsItem:
        item = NewsItem(text=text, type=sentiment)
        self.news.append(item)
        return item

    def building_counts(self) -> Dict[BuildingType, int]:
        return self.grid.building_counts()

    def snapshot(self) -> ColonySnapshot:
        return ColonySnapshot(stats=replace(self.stats), building_counts=self.building_counts())

    def history_series(self, name: str) -> List[float]:
        """Oldest-first values of one ``HistoryEntry`` field, for the trend plots."""
        return [float(getattr(entry, name)) for entry in self.history]


__all__ = ["Colony", "WELCOME_MESSAGE"]
