import os
import random
import sys
import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), ".."))

from terrain import BuildingType, Grid
from colony.autobuild import attempt_auto_build, choose_building, find_site
from colony.buildings import BUILDINGS, INFRASTRUCTURE
from colony.models import CityStats
from colony.placement import can_place
from colony.technology import INITIAL_UNLOCKED_TECHS, unlocked_buildings

BASICS = unlocked_buildings(INITIAL_UNLOCKED_TECHS)
EVERYTHING = frozenset(BuildingType)

# Healthy colony with spare housing and power
CALM = dict(population=10, oxygen=100.0, food=500.0, power_supply=100, power_demand=10)
HOUSED = {BuildingType.RESIDENTIAL: 2}


def test_nothing_happens_at_or_below_safety_buffer():
    grid = Grid(10)
    stats = CityStats(money=500)
    assert attempt_auto_build(grid, stats, BASICS, 10, rng=random.Random(1)) is None
    assert stats.money == 500
    assert not grid.has_buildings()


def test_life_support_first():
    stats = CityStats(money=5000, **dict(CALM, oxygen=25.0))
    assert choose_building(stats, HOUSED, BASICS, random.Random(1)) is BuildingType.AGRICULTURE

    stats = CityStats(money=5000, **dict(CALM, food=10.0, population=10))
    assert choose_building(stats, HOUSED, BASICS, random.Random(1)) is BuildingType.AGRICULTURE

    no_farms = BASICS - {BuildingType.AGRICULTURE}
    assert choose_building(stats, HOUSED, no_farms, random.Random(1)) is BuildingType.PARK


def test_life_support_rule_ignored_in_basic_mode():
    stats = CityStats(money=5000, **dict(CALM, oxygen=0.0))
    unlocked = frozenset({BuildingType.NONE, BuildingType.PARK, BuildingType.RESIDENTIAL})
    assert choose_building(stats, {}, unlocked, random.Random(1)) is BuildingType.PARK
    # Without life support the housing rule is next in line
    choice = choose_building(stats, {}, unlocked, random.Random(1), life_support=False)
    assert choice is BuildingType.RESIDENTIAL


def test_power_rule_prefers_biggest_affordable_plant():
    strained = dict(CALM, power_supply=100, power_demand=95)
    stats = CityStats(money=5000, **strained)
    assert choose_building(stats, HOUSED, EVERYTHING, random.Random(1)) is BuildingType.FUSION_REACTOR

    stats = CityStats(money=1000, **strained)
    assert choose_building(stats, HOUSED, EVERYTHING, random.Random(1)) is BuildingType.SOLAR_PANEL

    stats = CityStats(money=5000, **strained)
    assert choose_building(stats, HOUSED, BASICS, random.Random(1)) is BuildingType.SOLAR_PANEL


def test_zero_supply_with_demand_counts_as_strained():
    stats = CityStats(money=1000, **dict(CALM, power_supply=0, power_demand=5))
    assert choose_building(stats, HOUSED, BASICS, random.Random(1)) is BuildingType.SOLAR_PANEL


def test_housing_rule():
    stats = CityStats(money=1000, **dict(CALM, population=90))
    assert choose_building(stats, HOUSED, BASICS, random.Random(1)) is BuildingType.RESIDENTIAL
    # No habitation at all counts as full
    stats = CityStats(money=1000, **dict(CALM, population=0))
    assert choose_building(stats, {}, BASICS, random.Random(1)) is BuildingType.RESIDENTIAL


def test_default_never_picks_infrastructure_or_cheap_fusion():
    stats = CityStats(money=2500, **CALM)
    rng = random.Random(7)
    picks = {choose_building(stats, HOUSED, EVERYTHING, rng) for _ in range(200)}
    assert picks
    assert not picks & INFRASTRUCTURE
    assert BuildingType.FUSION_REACTOR not in picks
    assert BuildingType.RESEARCH_LAB in picks

    stats = CityStats(money=3500, **CALM)
    picks = {choose_building(stats, HOUSED, EVERYTHING, rng) for _ in range(200)}
    assert BuildingType.FUSION_REACTOR in picks


def test_find_site_returns_valid_origin():
    grid = Grid(10)
    config = BUILDINGS[BuildingType.PARK]
    for organic in (True, False):
        site = find_site(grid, config, random.Random(2), organic=organic)
        assert site is not None
        assert can_place(grid, site[0], site[1], 2, 2, 10, BuildingType.PARK)


def test_organic_growth_stays_near_existing_buildings():
    grid = Grid(20)
    grid.apply_footprint(10, 10, 1, 1, BuildingType.ROAD, variant=0)
    config = BUILDINGS[BuildingType.SOLAR_PANEL]
    rng = random.Random(11)
    for _ in range(20):
        x, y = find_site(grid, config, rng, organic=True)
        assert abs(x - 10) <= 13 and abs(y - 10) <= 13
        assert (x, y) != (10, 10)


def test_full_grid_is_a_silent_noop():
    grid = Grid(4)
    for y in range(4):
        for x in range(4):
            grid.apply_footprint(x, y, 1, 1, BuildingType.ROAD, variant=0)
    stats = CityStats(money=1000, **CALM)
    assert attempt_auto_build(grid, stats, BASICS, 4, counts=HOUSED, rng=random.Random(3)) is None
    assert stats.money == 1000


def test_successful_build_debits_and_places():
    grid = Grid(10)
    stats = CityStats(money=1000, **dict(CALM, population=0))
    result = attempt_auto_build(grid, stats, BASICS, 10, counts={}, rng=random.Random(5))
    assert result is not None and result.ok
    assert result.building is BuildingType.RESIDENTIAL
    assert stats.money == 850
    assert grid.get(result.x, result.y).building is BuildingType.RESIDENTIAL


def test_unaffordable_choice_is_skipped():
    grid = Grid(10)
    # Strained power, only a fusion reactor unlocked and not affordable
    unlocked = frozenset({BuildingType.NONE, BuildingType.FUSION_REACTOR})
    stats = CityStats(money=800, **dict(CALM, power_supply=0, power_demand=50))
    assert attempt_auto_build(grid, stats, unlocked, 10, counts=HOUSED, rng=random.Random(1)) is None
    assert stats.money == 800


def test_map_size_mismatch_is_rejected():
    with pytest.raises(ValueError):
        attempt_auto_build(Grid(10), CityStats(money=1000), BASICS, 15, rng=random.Random(1))
