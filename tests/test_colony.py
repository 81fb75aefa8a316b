import os
import random
import sys

sys.path.append(os.path.join(os.path.dirname(__file__), ".."))

from terrain import BuildingType
from colony import Colony, StartConfig
from colony.colony import WELCOME_MESSAGE
from colony.models import AIGoal, GoalMetric, Sentiment
from colony import colony as colony_module
from colony.narrative import NarrativeDirector, NarrativeService, TemplateNarrator
from colony import settings


def run_now(target, *args):
    target(*args)


def make_colony(ai=False, **kwargs):
    config = StartConfig.basic(map_size=10, ai_enabled=ai, seed=1, **kwargs)
    director = NarrativeDirector(
        service=None,
        fallback=TemplateNarrator(random.Random(2)),
        enabled=ai,
        spawn=run_now,
    )
    colony = Colony(config, rng=random.Random(3), director=director)
    colony.start(now=0.0)
    return colony


def test_start_announces_colony():
    colony = make_colony()
    assert colony.running
    latest = colony.news.latest()
    assert latest.text == WELCOME_MESSAGE
    assert latest.type is Sentiment.POSITIVE


def test_click_with_tool_places_and_recycle_demolishes():
    colony = make_colony()
    colony.select_tool(BuildingType.RESIDENTIAL)
    assert colony.handle_tile_click(2, 2).ok
    colony.select_tool(BuildingType.NONE)
    assert colony.handle_tile_click(2, 2).ok
    colony.select_tool(BuildingType.RESIDENTIAL)
    assert colony.handle_tile_click(2, 2).ok
    # 2000 - 150 - 50 - 150
    assert colony.stats.money == 1650


def test_rejection_becomes_negative_news():
    colony = make_colony()
    colony.place(BuildingType.ROAD, 0, 0)
    result = colony.place(BuildingType.ROAD, 0, 0)
    assert not result.ok
    item = colony.news.latest()
    assert item.type is Sentiment.NEGATIVE
    assert item.text == "Sector occupied. Demolish existing structures first."


def test_demolishing_empty_ground_is_silent():
    colony = make_colony()
    before = len(colony.news)
    colony.demolish(5, 5)
    assert len(colony.news) == before
    assert colony.stats.money == settings.INITIAL_MONEY


def test_clicks_ignored_when_stopped():
    colony = make_colony()
    colony.stop()
    assert colony.handle_tile_click(1, 1) is None
    assert not colony.grid.has_buildings()


def test_update_respects_tick_interval():
    colony = make_colony()
    assert colony.update(1.0) is None
    report = colony.update(settings.TICK_SECONDS)
    assert report is not None
    assert colony.stats.day == settings.INITIAL_DAY + 1
    assert colony.update(settings.TICK_SECONDS + 0.5) is None
    assert len(colony.history) == 1


def test_tick_commits_stats_and_history():
    colony = make_colony()
    colony.place(BuildingType.SOLAR_PANEL, 0, 0)
    colony.place(BuildingType.COMMERCIAL, 1, 0)
    money = colony.stats.money
    colony.run(3)
    assert colony.stats.money == money + 3 * 15
    assert [entry.day for entry in colony.history] == [2, 3, 4]


def test_news_feed_keeps_latest_thirteen():
    colony = make_colony()
    for i in range(20):
        colony.add_news(f"item {i}")
    items = colony.news.to_list()
    assert len(items) == settings.NEWS_FEED_LIMIT
    assert items[-1].text == "item 19"
    assert items[0].text == "item 7"


def test_claim_reward_pays_once():
    colony = make_colony()
    colony.goal = AIGoal("Cash", GoalMetric.MONEY, 100, reward=300, completed=True)
    assert colony.claim_reward()
    assert colony.stats.money == settings.INITIAL_MONEY + 300
    assert colony.goal is None
    assert not colony.claim_reward()
    assert colony.stats.money == settings.INITIAL_MONEY + 300


def test_unfinished_goal_cannot_be_claimed():
    colony = make_colony()
    colony.goal = AIGoal("Cash", GoalMetric.MONEY, 1_000_000, reward=300)
    assert not colony.claim_reward()
    assert colony.goal is not None


def test_research_debits_science_and_unlocks():
    colony = make_colony()
    colony.stats.science = 100
    result = colony.research("regolith_mining")
    assert result.ok
    assert colony.stats.science == 60
    assert BuildingType.INDUSTRIAL in colony.unlocked
    assert colony.news.latest().text == "Research Completed: Regolith Mining"

    # Second purchase is a no-op
    colony.research("regolith_mining")
    assert colony.stats.science == 60


def test_research_without_science_is_reported():
    colony = make_colony()
    result = colony.research("bio_engineering")
    assert not result.ok
    assert colony.news.latest().type is Sentiment.NEGATIVE
    assert BuildingType.GREEN_ROAD not in colony.unlocked


def test_goal_arrives_from_narrator_at_tick_boundary():
    colony = make_colony(ai=True)
    assert colony.goal is None
    colony.tick()
    assert colony.goal is not None
    assert not colony.goal.completed


def test_disabled_ai_never_sets_goal():
    colony = make_colony(ai=False)
    colony.run(5)
    assert colony.goal is None


def test_auto_growth_toggle_builds():
    colony = make_colony()
    assert colony.toggle_auto_growth()
    colony.tick()
    assert colony.grid.has_buildings()
    assert colony.stats.money < settings.INITIAL_MONEY


def test_restart_resets_state():
    colony = make_colony()
    colony.place(BuildingType.ROAD, 0, 0)
    colony.run(2)
    colony.restart(now=0.0)
    assert not colony.grid.has_buildings()
    assert colony.stats.day == settings.INITIAL_DAY
    assert colony.stats.money == settings.INITIAL_MONEY
    assert len(colony.history) == 0
    assert colony.news.latest().text == WELCOME_MESSAGE


def test_rough_terrain_is_seeded():
    config = StartConfig(map_size=10, ai_enabled=False, seed=9)
    colonies = [
        Colony(config, director=NarrativeDirector(enabled=False, spawn=run_now))
        for _ in range(2)
    ]
    first, second = ([[t.height for t in row] for row in c.grid.rows] for c in colonies)
    assert first == second


def test_restart_with_ai_connects_the_service(monkeypatch):
    class Remote(NarrativeService):
        remote = True

        def generate_goal(self, snapshot):
            return AIGoal("Remote directive", GoalMetric.SCIENCE, 50, 100)

    remote = Remote()
    monkeypatch.setattr(colony_module.GeminiNarrativeService, "from_env", classmethod(lambda cls: remote))
    colony = make_colony(ai=False)
    assert colony.director.service is None

    colony.restart(StartConfig.basic(map_size=10, ai_enabled=True, seed=1), now=0.0)

    assert colony.director.service is remote
    colony.tick()
    assert colony.goal.description == "Remote directive"


def test_history_series_follows_ticks():
    colony = make_colony()
    colony.place(BuildingType.COMMERCIAL, 0, 0)
    colony.place(BuildingType.SOLAR_PANEL, 3, 0)
    colony.run(3)
    money = colony.history_series("money")
    assert len(money) == 3
    assert money == sorted(money)
    assert money[-1] == colony.stats.money
    assert colony.history_series("population") == [0.0, 0.0, 0.0]
