from __future__ import annotations

"""
Data model for a single square tile of the colony grid.
"""

from dataclasses import dataclass
from typing import Dict, Optional, Tuple, Union

from .building_types import BuildingType

Coordinate = Tuple[int, int]


@dataclass
class Tile:
    """
    Represents a single tile of the colony grid.

    Core Attributes:
      x, y: Grid coordinate of this tile.
      building: Kind of structure covering the tile (``BuildingType.NONE`` when empty).
      owner_x, owner_y: Coordinate of the root (top-left) tile of the footprint
        this tile belongs to. ``None`` means the tile is its own root.
      variant: Cosmetic variant index shared by the whole footprint.
      height: Integer terrain height. Buildings need a flat footprint.
    """

    x: int
    y: int
    building: BuildingType = BuildingType.NONE
    owner_x: Optional[int] = None
    owner_y: Optional[int] = None
    variant: Optional[int] = None
    height: int = 0

    def __post_init__(self):
        if not isinstance(self.building, BuildingType):
            raise TypeError(f"building must be a BuildingType, not {type(self.building)}")
        if (self.owner_x is None) != (self.owner_y is None):
            raise ValueError("owner_x and owner_y must be set together")

    @property
    def coord(self) -> Coordinate:
        return self.x, self.y

    @property
    def root(self) -> Coordinate:
        """Coordinate of the footprint root, falling back to this tile."""
        if self.owner_x is not None and self.owner_y is not None:
            return self.owner_x, self.owner_y
        return self.x, self.y

    @property
    def is_empty(self) -> bool:
        return self.building is BuildingType.NONE

    @property
    def is_root(self) -> bool:
        return not self.is_empty and self.root == self.coord

    def occupy(self, building: BuildingType, origin: Coordinate, variant: int) -> None:
        self.building = building
        self.owner_x, self.owner_y = origin
        self.variant = variant

    def clear(self) -> None:
        """Reset the tile to empty ground. Terrain height is kept."""
        self.building = BuildingType.NONE
        self.owner_x = None
        self.owner_y = None
        self.variant = None

    def __repr__(self) -> str:
        base = f"Tile({self.x}, {self.y}, {self.building.value}"
        if not self.is_empty:
            base += f", root={self.root}"
        if self.height:
            base += f", h={self.height}"
        return base + ")"

    def to_json(self) -> Dict[str, Union[int, str, None]]:
        """Serializes the tile to a JSON-friendly dict."""
        return {
            "x": self.x,
            "y": self.y,
            "buildingType": self.building.value,
            "ownerX": self.owner_x,
            "ownerY": self.owner_y,
            "variant": self.variant,
            "height": self.height,
        }


__all__ = ["Tile", "Coordinate"]
