from __future__ import annotations

"""Closed set of structure kinds that can occupy a tile."""

from enum import Enum


class BuildingType(Enum):
    NONE = "None"
    ROAD = "Road"
    GREEN_ROAD = "GreenRoad"
    RESIDENTIAL = "Residential"
    COMMERCIAL = "Commercial"
    INDUSTRIAL = "Industrial"
    AGRICULTURE = "Agriculture"
    PARK = "Park"
    SOLAR_PANEL = "SolarPanel"
    FUSION_REACTOR = "FusionReactor"
    RESEARCH_LAB = "ResearchLab"


__all__ = ["BuildingType"]
