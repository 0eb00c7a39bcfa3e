"""Initial conditions: noise terrain plus circular proto-cores."""
from __future__ import annotations

from typing import Optional

import numpy as np

from ..config import rng_from_key
from ..errors import NumericInstability
from .grid import FIELD_NAMES, FieldGrid
from .noise import hash_noise

__all__ = ["seed_fields", "stamp_core"]

CORE_COUNT_RANGE = (6, 10)  # inclusive
CORE_RADIUS_RANGE = (3, 9)  # upper bound exclusive


def seed_fields(grid: FieldGrid, rng_seed: int, rng: Optional[np.random.Generator] = None) -> int:
    """Reset ``grid`` to fresh terrain and proto-cores.

    Parameters
    ----------
    grid
        Grid to overwrite; both buffers are cleared first.
    rng_seed
        Seed key.  Drives the terrain noise and, unless ``rng`` is given,
        the core count and placement draws.
    rng
        Optional generator for core placement.  Pass an unseeded
        ``np.random.default_rng()`` for visually varied resets.

    Returns
    -------
    int
        Number of proto-cores stamped.
    """
    if rng is None:
        rng = rng_from_key(rng_seed)

    grid.clear()

    # Two-octave terrain: long-wave base plus fine detail, roughly [0.2, 0.85]
    ys, xs = np.mgrid[0:grid.height, 0:grid.width].astype(np.float64)
    n1 = hash_noise(xs * 0.7, ys * 0.7, rng_seed * 17)
    n2 = hash_noise(xs * 3.3, ys * 3.3, rng_seed * 137)
    grid.writable("resources")[:] = np.clip(0.35 + 0.35 * n1 + 0.15 * n2, 0.0, 1.0)

    lo, hi = CORE_COUNT_RANGE
    n_cores = int(rng.integers(lo, hi + 1))
    for _ in range(n_cores):
        cx = int(rng.integers(0, grid.width))
        cy = int(rng.integers(0, grid.height))
        r = int(rng.integers(*CORE_RADIUS_RANGE))
        stamp_core(grid, cx, cy, r)

    for name in FIELD_NAMES:
        if not np.all(np.isfinite(grid.current(name))):
            raise NumericInstability(f"Seeding produced non-finite values in '{name}' (seed={rng_seed})")
    return n_cores


def stamp_core(grid: FieldGrid, cx: int, cy: int, r: int) -> None:
    """Raise density, infrastructure and signal in a disc of radius ``r``.

    Values only ever go up (running maximum), so overlapping cores, or a
    core wider than the grid wrapping onto itself, keep the stronger value.
    """
    dy, dx = np.mgrid[-r:r + 1, -r:r + 1]
    dist = np.hypot(dx, dy)
    inside = dist <= r
    t = 1.0 - dist[inside] / r
    xx = (cx + dx[inside]) % grid.width
    yy = (cy + dy[inside]) % grid.height

    for name, values in (
        ("density", 0.55 * t + 0.1),
        ("infrastructure", 0.4 * t),
        ("signal", 0.6 * t + 0.2),
    ):
        np.maximum.at(grid.writable(name), (yy, xx), values.astype(np.float32))
