from __future__ import annotations

from .building_types import BuildingType
from .generation import HeightMap, generate_heights, perlin_noise
from .grid import Grid, InvalidFootprintError
from .settings import TerrainSettings
from .tile import Coordinate, Tile

__all__ = [
    "BuildingType",
    "Coordinate",
    "Grid",
    "HeightMap",
    "InvalidFootprintError",
    "TerrainSettings",
    "Tile",
    "generate_heights",
    "perlin_noise",
]
