import os
import random
import sys
import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), ".."))

from terrain import BuildingType, Grid
from colony.models import CityStats
from colony.placement import (
    Rejection,
    can_place,
    check_placement,
    demolish,
    place_building,
)
from colony.technology import INITIAL_UNLOCKED_TECHS, unlocked_buildings
from colony.buildings import BUILDINGS
from colony import settings

BASICS = unlocked_buildings(INITIAL_UNLOCKED_TECHS)
EVERYTHING = frozenset(BuildingType)


def test_road_then_habitation_leaves_1835():
    grid = Grid(10)
    stats = CityStats()
    assert place_building(grid, stats, BASICS, BuildingType.ROAD, 0, 0).ok
    assert place_building(grid, stats, BASICS, BuildingType.RESIDENTIAL, 1, 0).ok
    assert stats.money == 1835


def test_locked_building_rejected_without_mutation():
    grid = Grid(10)
    stats = CityStats()
    result = place_building(grid, stats, BASICS, BuildingType.INDUSTRIAL, 0, 0)
    assert result.rejection is Rejection.NOT_UNLOCKED
    assert result.message == "Technology not yet researched."
    assert stats.money == settings.INITIAL_MONEY
    assert not grid.has_buildings()


def test_footprint_past_edge_rejected():
    grid = Grid(10)
    stats = CityStats()
    result = place_building(grid, stats, BASICS, BuildingType.PARK, 9, 9)
    assert result.rejection is Rejection.OUT_OF_BOUNDS
    assert not can_place(grid, -1, 0, 1, 1, 10)
    assert can_place(grid, 8, 8, 2, 2, 10)


def test_overlap_rejected():
    grid = Grid(10)
    stats = CityStats()
    place_building(grid, stats, BASICS, BuildingType.PARK, 2, 2)
    money = stats.money
    result = place_building(grid, stats, BASICS, BuildingType.SOLAR_PANEL, 3, 3)
    assert result.rejection is Rejection.OCCUPIED
    assert stats.money == money


def test_green_corridor_upgrades_plain_corridor():
    grid = Grid(10)
    stats = CityStats()
    place_building(grid, stats, EVERYTHING, BuildingType.ROAD, 4, 4)
    result = place_building(grid, stats, EVERYTHING, BuildingType.GREEN_ROAD, 4, 4)
    assert result.ok
    assert grid.get(4, 4).building is BuildingType.GREEN_ROAD
    assert stats.money == settings.INITIAL_MONEY - 15 - 40
    # The reverse is an ordinary overlap
    assert (
        place_building(grid, stats, EVERYTHING, BuildingType.ROAD, 4, 4).rejection
        is Rejection.OCCUPIED
    )


def test_uneven_ground_rejected():
    heights = [[0] * 5 for _ in range(5)]
    heights[1][1] = 1
    grid = Grid(5, heights=heights)
    stats = CityStats()
    result = place_building(grid, stats, BASICS, BuildingType.PARK, 0, 0)
    assert result.rejection is Rejection.UNEVEN
    # A flat 2x2 elsewhere is fine
    assert place_building(grid, stats, BASICS, BuildingType.PARK, 2, 2).ok


def test_insufficient_credits_message_names_building():
    grid = Grid(10)
    stats = CityStats(money=100)
    result = place_building(grid, stats, BASICS, BuildingType.AGRICULTURE, 0, 0)
    assert result.rejection is Rejection.INSUFFICIENT_FUNDS
    assert result.message == "Insufficient credits for Hydroponics Bay."
    assert stats.money == 100


def test_checks_report_in_order():
    grid = Grid(10)
    stats = CityStats(money=0)
    # Locked wins over funds, bounds win over funds
    assert check_placement(grid, stats, BASICS, BuildingType.INDUSTRIAL, 9, 9) is Rejection.NOT_UNLOCKED
    assert check_placement(grid, stats, BASICS, BuildingType.PARK, 9, 9) is Rejection.OUT_OF_BOUNDS


def test_variant_drawn_once_per_footprint():
    grid = Grid(10)
    stats = CityStats()
    result = place_building(grid, stats, BASICS, BuildingType.PARK, 0, 0, rng=random.Random(3))
    variants = {t.variant for t in grid.footprint(0, 0, 2, 2)}
    assert variants == {result.variant}
    assert 0 <= result.variant < settings.VARIANT_COUNT


def test_place_none_is_a_programming_error():
    with pytest.raises(ValueError):
        place_building(Grid(4), CityStats(), BASICS, BuildingType.NONE, 0, 0)


def test_demolish_from_any_tile_clears_whole_footprint():
    grid = Grid(10)
    stats = CityStats()
    place_building(grid, stats, BASICS, BuildingType.PARK, 4, 4)
    money = stats.money
    result = demolish(grid, stats, 5, 5)
    assert result.ok
    assert (result.x, result.y) == (4, 4)
    assert all(t.is_empty for t in grid.footprint(4, 4, 2, 2))
    assert stats.money == money - settings.DEMOLISH_COST


def test_demolish_empty_tile_is_noop():
    grid = Grid(10)
    stats = CityStats()
    result = demolish(grid, stats, 0, 0)
    assert result.rejection is Rejection.NOTHING_TO_DEMOLISH
    assert stats.money == settings.INITIAL_MONEY


def test_demolish_without_funds_changes_nothing():
    grid = Grid(10)
    stats = CityStats()
    place_building(grid, stats, BASICS, BuildingType.ROAD, 0, 0)
    stats.money = 49
    result = demolish(grid, stats, 0, 0)
    assert result.rejection is Rejection.DEMOLITION_FUNDS
    assert grid.get(0, 0).building is BuildingType.ROAD
    assert stats.money == 49


def test_demolish_fee_is_flat():
    grid = Grid(10)
    stats = CityStats(money=5000)
    place_building(grid, stats, EVERYTHING, BuildingType.FUSION_REACTOR, 0, 0)
    place_building(grid, stats, EVERYTHING, BuildingType.ROAD, 5, 5)
    before = stats.money
    demolish(grid, stats, 1, 1)
    demolish(grid, stats, 5, 5)
    assert stats.money == before - 2 * settings.DEMOLISH_COST
    assert BUILDINGS[BuildingType.FUSION_REACTOR].cost > settings.DEMOLISH_COST
