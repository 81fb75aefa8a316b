from __future__ import annotations

"""Configuration dataclass for terrain generation."""

from dataclasses import dataclass


@dataclass
class TerrainSettings:
    seed: int = 0
    # Number of discrete height steps. 1 produces a perfectly flat map.
    levels: int = 3
    scale: float = 0.12
    octaves: int = 3
    persistence: float = 0.5
    # Fraction of the noise range (from the bottom) flattened to level 0.
    lowland: float = 0.4


__all__ = ["TerrainSettings"]
