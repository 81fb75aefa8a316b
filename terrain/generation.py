from __future__ import annotations

"""Perlin-noise terrain heights for the colony grid."""

import math
import random
from functools import lru_cache
from typing import List, Tuple

from .settings import TerrainSettings

HeightMap = List[List[int]]

# Lattice gradients, indexed by the low three bits of the permutation hash
_GRADIENTS: Tuple[Tuple[float, float], ...] = (
    (1.0, 0.0), (-1.0, 0.0), (0.0, 1.0), (0.0, -1.0),
    (0.7071, 0.7071), (-0.7071, 0.7071), (0.7071, -0.7071), (-0.7071, -0.7071),
)


@lru_cache(maxsize=32)
def _permutation(seed: int) -> Tuple[int, ...]:
    """Seeded shuffle of 0..255, doubled so lookups never wrap."""
    table = list(range(256))
    random.Random(seed).shuffle(table)
    return tuple(table * 2)


def _smoothstep(t: float) -> float:
    return t * t * t * (t * (t * 6 - 15) + 10)


def _corner(perm: Tuple[int, ...], cx: int, cy: int, dx: float, dy: float) -> float:
    gx, gy = _GRADIENTS[perm[perm[cx & 255] + (cy & 255)] & 7]
    return gx * dx + gy * dy


def _octave(x: float, y: float, seed: int) -> float:
    """One layer of gradient noise in roughly [0, 1]."""
    perm = _permutation(seed)
    cx, cy = math.floor(x), math.floor(y)
    fx, fy = x - cx, y - cy
    u, v = _smoothstep(fx), _smoothstep(fy)

    top = _corner(perm, cx, cy, fx, fy)
    top += u * (_corner(perm, cx + 1, cy, fx - 1, fy) - top)
    bottom = _corner(perm, cx, cy + 1, fx, fy - 1)
    bottom += u * (_corner(perm, cx + 1, cy + 1, fx - 1, fy - 1) - bottom)
    return (top + v * (bottom - top) + 1.0) / 2.0


def perlin_noise(
    x: float,
    y: float,
    seed: int,
    octaves: int = 3,
    persistence: float = 0.5,
    lacunarity: float = 2.0,
    scale: float = 0.12,
) -> float:
    """
    Fractal noise at (x, y): ``octaves`` layers, each at ``lacunarity`` times
    the previous frequency and ``persistence`` times its weight. Normalized
    by the total weight, so the result stays in [0, 1].
    """
    total = weight = 0.0
    amplitude, frequency = 1.0, scale
    for layer in range(octaves):
        total += amplitude * _octave(x * frequency, y * frequency, seed * 31 + layer)
        weight += amplitude
        amplitude *= persistence
        frequency *= lacunarity
    return total / weight if weight else 0.0


def generate_heights(size: int, settings: TerrainSettings) -> HeightMap:
    """
    Build a ``size`` x ``size`` map of integer heights in ``[0, settings.levels)``.

    Noise is normalized over the whole map so every level is reachable, and
    the bottom ``settings.lowland`` share of the range collapses to level 0,
    leaving broad flat areas to build on.
    """
    if settings.levels <= 1:
        return [[0] * size for _ in range(size)]

    raw = [
        [
            perlin_noise(
                x,
                y,
                settings.seed,
                octaves=settings.octaves,
                persistence=settings.persistence,
                scale=settings.scale,
            )
            for x in range(size)
        ]
        for y in range(size)
    ]
    lo = min(min(row) for row in raw)
    hi = max(max(row) for row in raw)
    span = (hi - lo) or 1.0

    heights: HeightMap = []
    for row in raw:
        out: List[int] = []
        for value in row:
            norm = (value - lo) / span
            if norm <= settings.lowland:
                out.append(0)
                continue
            upland = (norm - settings.lowland) / (1.0 - settings.lowland)
            out.append(min(settings.levels - 1, 1 + int(upland * (settings.levels - 1))))
        heights.append(out)
    return heights


__all__ = ["HeightMap", "generate_heights", "perlin_noise"]
