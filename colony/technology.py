from __future__ import annotations

"""Research tree and the set of building kinds it unlocks."""

import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import Dict, FrozenSet, Iterable, List, Optional, Set

from terrain import BuildingType

logger = logging.getLogger("colony.technology")
logger.addHandler(logging.NullHandler())


@dataclass(frozen=True)
class TechNode:
    id: str
    name: str
    description: str
    cost: int
    unlocks: tuple[BuildingType, ...] = ()
    prerequisites: tuple[str, ...] = ()


TECH_TREE: List[TechNode] = [
    TechNode(
        id="colony_basics",
        name="Landing Protocols",
        description="Corridors, habitation, hydroponics and solar power.",
        cost=0,
        unlocks=(
            BuildingType.ROAD,
            BuildingType.RESIDENTIAL,
            BuildingType.COMMERCIAL,
            BuildingType.AGRICULTURE,
            BuildingType.PARK,
            BuildingType.SOLAR_PANEL,
            BuildingType.RESEARCH_LAB,
        ),
    ),
    TechNode(
        id="regolith_mining",
        name="Regolith Mining",
        description="He3 deep mines for serious credit yields.",
        cost=40,
        unlocks=(BuildingType.INDUSTRIAL,),
        prerequisites=("colony_basics",),
    ),
    TechNode(
        id="bio_engineering",
        name="Bio-Engineering",
        description="Moss-lined corridors that scrub the air.",
        cost=60,
        unlocks=(BuildingType.GREEN_ROAD,),
        prerequisites=("colony_basics",),
    ),
    TechNode(
        id="fusion_power",
        name="Fusion Power",
        description="Compact reactors fed by mined helium-3.",
        cost=150,
        unlocks=(BuildingType.FUSION_REACTOR,),
        prerequisites=("regolith_mining",),
    ),
]

TECH_BY_ID: Dict[str, TechNode] = {node.id: node for node in TECH_TREE}

INITIAL_UNLOCKED_TECHS: tuple[str, ...] = ("colony_basics",)


class ResearchOutcome(Enum):
    UNLOCKED = auto()
    UNKNOWN = auto()
    ALREADY_UNLOCKED = auto()
    MISSING_PREREQUISITES = auto()
    INSUFFICIENT_SCIENCE = auto()


@dataclass
class ResearchResult:
    outcome: ResearchOutcome
    node: Optional[TechNode] = None
    science_spent: int = 0

    @property
    def ok(self) -> bool:
        return self.outcome is ResearchOutcome.UNLOCKED


def unlocked_buildings(unlocked_techs: Iterable[str]) -> FrozenSet[BuildingType]:
    """Union of ``NONE`` and every kind unlocked by the given tech ids."""
    buildings: Set[BuildingType] = {BuildingType.NONE}
    for tech_id in unlocked_techs:
        node = TECH_BY_ID.get(tech_id)
        if node is None:
            logger.warning("Ignoring unknown tech id %r", tech_id)
            continue
        buildings.update(node.unlocks)
    return frozenset(buildings)


def prerequisites_met(node: TechNode, unlocked_techs: Iterable[str]) -> bool:
    owned = set(unlocked_techs)
    return all(pre in owned for pre in node.prerequisites)


def available_techs(unlocked_techs: Iterable[str]) -> List[TechNode]:
    """Nodes not yet researched whose prerequisites are all researched."""
    owned = set(unlocked_techs)
    return [
        node
        for node in TECH_TREE
        if node.id not in owned and prerequisites_met(node, owned)
    ]


def check_research(tech_id: str, unlocked_techs: Iterable[str], science: int) -> ResearchResult:
    """Decide whether ``tech_id`` can be bought now. Pure; the caller applies the debit."""
    node = TECH_BY_ID.get(tech_id)
    if node is None:
        return ResearchResult(ResearchOutcome.UNKNOWN)
    owned = set(unlocked_techs)
    if node.id in owned:
        return ResearchResult(ResearchOutcome.ALREADY_UNLOCKED, node)
    if not prerequisites_met(node, owned):
        return ResearchResult(ResearchOutcome.MISSING_PREREQUISITES, node)
    if science < node.cost:
        return ResearchResult(ResearchOutcome.INSUFFICIENT_SCIENCE, node)
    return ResearchResult(ResearchOutcome.UNLOCKED, node, science_spent=node.cost)


__all__ = [
    "INITIAL_UNLOCKED_TECHS",
    "ResearchOutcome",
    "ResearchResult",
    "TECH_BY_ID",
    "TECH_TREE",
    "TechNode",
    "available_techs",
    "check_research",
    "prerequisites_met",
    "unlocked_buildings",
]
