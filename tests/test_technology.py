import os
import sys

sys.path.append(os.path.join(os.path.dirname(__file__), ".."))

from terrain import BuildingType
from colony.technology import (
    INITIAL_UNLOCKED_TECHS,
    ResearchOutcome,
    TECH_TREE,
    available_techs,
    check_research,
    unlocked_buildings,
)


def test_initial_unlocks():
    unlocked = unlocked_buildings(INITIAL_UNLOCKED_TECHS)
    assert BuildingType.NONE in unlocked
    assert BuildingType.ROAD in unlocked
    assert BuildingType.RESIDENTIAL in unlocked
    assert BuildingType.INDUSTRIAL not in unlocked
    assert BuildingType.FUSION_REACTOR not in unlocked


def test_unknown_ids_are_ignored():
    assert unlocked_buildings(["no_such_tech"]) == frozenset({BuildingType.NONE})


def test_every_kind_reachable_through_tree():
    everything = unlocked_buildings(node.id for node in TECH_TREE)
    assert everything == frozenset(BuildingType)


def test_available_respects_prerequisites():
    ids = {node.id for node in available_techs(["colony_basics"])}
    assert ids == {"regolith_mining", "bio_engineering"}
    ids = {node.id for node in available_techs(["colony_basics", "regolith_mining"])}
    assert "fusion_power" in ids
    assert "regolith_mining" not in ids


def test_research_outcomes():
    owned = ["colony_basics"]
    assert check_research("nope", owned, 1000).outcome is ResearchOutcome.UNKNOWN
    assert check_research("colony_basics", owned, 1000).outcome is ResearchOutcome.ALREADY_UNLOCKED
    assert check_research("fusion_power", owned, 1000).outcome is ResearchOutcome.MISSING_PREREQUISITES
    assert check_research("regolith_mining", owned, 39).outcome is ResearchOutcome.INSUFFICIENT_SCIENCE

    result = check_research("regolith_mining", owned, 40)
    assert result.ok
    assert result.science_spent == 40
    # Pure: the caller's list is untouched
    assert owned == ["colony_basics"]
