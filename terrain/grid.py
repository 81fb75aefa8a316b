from __future__ import annotations

"""
grid.py

Square tile store for the colony map.

The grid is created once per game and never resized. Tiles change only
through ``apply_footprint`` and ``clear_footprint``; both expect a footprint
that has already been validated and raise ``InvalidFootprintError`` when it
is not fully on the map.
"""

import copy
import logging
from collections import Counter
from typing import Dict, Iterator, List, Optional, Set

from .building_types import BuildingType
from .generation import HeightMap, generate_heights
from .settings import TerrainSettings
from .tile import Coordinate, Tile

logger = logging.getLogger("colony.grid")
logger.addHandler(logging.NullHandler())


class InvalidFootprintError(ValueError):
    """Raised when a footprint reaching the mutation step is not fully on the grid."""


class Grid:
    """N x N matrix of tiles indexed as ``rows[y][x]``."""

    def __init__(self, size: int, heights: Optional[HeightMap] = None):
        if size <= 0:
            raise ValueError(f"Grid size must be positive, got {size}")
        if heights is not None and (
            len(heights) != size or any(len(row) != size for row in heights)
        ):
            raise ValueError("Height map dimensions do not match grid size")
        self.size = size
        self.rows: List[List[Tile]] = [
            [Tile(x, y, height=heights[y][x] if heights else 0) for x in range(size)]
            for y in range(size)
        ]

    @classmethod
    def create(cls, size: int, settings: Optional[TerrainSettings] = None) -> "Grid":
        """Create an empty grid, with generated terrain heights when ``settings`` is given."""
        heights = generate_heights(size, settings) if settings is not None else None
        grid = cls(size, heights)
        logger.debug("Created %dx%d grid (terrain=%s)", size, size, settings)
        return grid

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------
    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.size and 0 <= y < self.size

    def fits(self, x: int, y: int, width: int, height: int) -> bool:
        """True if the whole ``width`` x ``height`` footprint anchored at (x, y) is on the map."""
        return (
            width >= 1
            and height >= 1
            and x >= 0
            and y >= 0
            and x + width <= self.size
            and y + height <= self.size
        )

    def get(self, x: int, y: int) -> Optional[Tile]:
        if not self.in_bounds(x, y):
            return None
        return self.rows[y][x]

    def __iter__(self) -> Iterator[Tile]:
        for row in self.rows:
            yield from row

    def footprint(self, x: int, y: int, width: int, height: int) -> List[Tile]:
        if not self.fits(x, y, width, height):
            raise InvalidFootprintError(
                f"Footprint {width}x{height} at ({x}, {y}) exceeds {self.size}x{self.size} grid"
            )
        return [self.rows[y + j][x + i] for j in range(height) for i in range(width)]

    def root_of(self, x: int, y: int) -> Optional[Tile]:
        """Return the root tile of the footprint covering (x, y)."""
        tile = self.get(x, y)
        if tile is None:
            return None
        rx, ry = tile.root
        return self.get(rx, ry)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------
    def apply_footprint(
        self,
        x: int,
        y: int,
        width: int,
        height: int,
        building: BuildingType,
        variant: int,
    ) -> List[Tile]:
        tiles = self.footprint(x, y, width, height)
        for tile in tiles:
            tile.occupy(building, (x, y), variant)
        return tiles

    def clear_footprint(self, x: int, y: int, width: int, height: int) -> List[Tile]:
        tiles = self.footprint(x, y, width, height)
        for tile in tiles:
            tile.clear()
        return tiles

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def occupied_tiles(self) -> List[Tile]:
        return [tile for tile in self if not tile.is_empty]

    def has_buildings(self) -> bool:
        return any(not tile.is_empty for tile in self)

    def unique_roots(self) -> Dict[Coordinate, BuildingType]:
        """Map each footprint root to its kind, counting multi-tile buildings once."""
        roots: Dict[Coordinate, BuildingType] = {}
        seen: Set[Coordinate] = set()
        for tile in self:
            if tile.is_empty:
                continue
            root = tile.root
            if root in seen:
                continue
            seen.add(root)
            roots[root] = tile.building
        return roots

    def building_counts(self) -> Dict[BuildingType, int]:
        return dict(Counter(self.unique_roots().values()))

    def snapshot(self) -> "Grid":
        """Independent copy for readers that must not observe later mutation."""
        return copy.deepcopy(self)


__all__ = ["Grid", "InvalidFootprintError"]
