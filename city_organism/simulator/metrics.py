"""Summary statistics over the current field buffers."""
from __future__ import annotations

from typing import TYPE_CHECKING, Dict

import numpy as np

from .dynamics import ABANDON_DENSITY, ABANDON_INFRA
from .grid import FIELD_NAMES, FieldGrid

if TYPE_CHECKING:
    from .engine import Simulation

__all__ = [
    "field_summary",
    "urban_fraction",
    "ruin_fraction",
    "summarize",
]


def field_summary(grid: FieldGrid) -> Dict[str, Dict[str, float]]:
    """Mean, min and max of every field."""
    out = {}
    for name in FIELD_NAMES:
        f = grid.current(name)
        out[name] = {"mean": float(f.mean()), "min": float(f.min()), "max": float(f.max())}
    return out


def urban_fraction(grid: FieldGrid, threshold: float = 0.5) -> float:
    """Share of cells whose density exceeds ``threshold``."""
    return float(np.mean(grid.current("density") > threshold))


def ruin_fraction(grid: FieldGrid) -> float:
    """Share of cells where dense population sits on failed infrastructure."""
    d = grid.current("density")
    inf = grid.current("infrastructure")
    return float(np.mean((inf < ABANDON_INFRA) & (d > ABANDON_DENSITY)))


def summarize(sim: "Simulation") -> Dict[str, float]:
    """Flat dict of the headline numbers, convenient for printing and YAML."""
    summary = {
        "tick": sim.clock.ticks,
        "boom": sim.pulses.boom,
        "bust": sim.pulses.bust,
    }
    for name, stats in field_summary(sim.grid).items():
        summary[f"{name}_mean"] = stats["mean"]
    summary["urban_fraction"] = urban_fraction(sim.grid)
    summary["ruin_fraction"] = ruin_fraction(sim.grid)
    return summary
