"""Per-tick update rule for the four coupled fields.

Every cell's next value depends only on the frozen current buffers, the two
pulse scalars and the season value, so the rule is evaluated for the whole
grid at once with NumPy.  Results go to the next buffers; the caller-visible
state only changes at the single :meth:`FieldGrid.swap` at the end.

Stability: the explicit diffusion term is scaled by ``0.2 * diffusion``.
Diffusion coefficients above ~0.5 can oscillate; they are not clamped.
"""
from __future__ import annotations

from typing import Dict

import numpy as np

from ..config import SimulationConfig
from ..errors import NumericInstability
from .grid import FIELD_NAMES, FieldGrid
from .noise import hash_noise

__all__ = [
    "DIFFUSION_SCALE",
    "ABANDON_INFRA",
    "ABANDON_DENSITY",
    "compute_next",
    "check_stability",
    "step_fields",
]

DIFFUSION_SCALE = 0.2

# Urban-ruin collapse: very low infrastructure under high density.
ABANDON_INFRA = 0.12
ABANDON_DENSITY = 0.6


def compute_next(
    grid: FieldGrid,
    cfg: SimulationConfig,
    season: float,
    boom: float,
    bust: float,
    tick: int,
) -> Dict[str, np.ndarray]:
    """Unclamped next-tick values for every field, as float64 ``(height, width)`` arrays."""
    d = grid.current("density").astype(np.float64)
    inf = grid.current("infrastructure").astype(np.float64)
    res = grid.current("resources").astype(np.float64)
    sig = grid.current("signal").astype(np.float64)

    diff = cfg.diffusion * DIFFUSION_SCALE
    ys, xs = np.mgrid[0:grid.height, 0:grid.width].astype(np.float64)

    # Resources: diffuse, regenerate toward saturation, consumed by density
    regen = cfg.regen_rate * (0.4 + 0.6 * season + 0.8 * boom)
    cons = cfg.consumption * (0.6 + 0.7 * inf)
    res_next = (res
                + diff * grid.laplacian("resources")
                + regen * (1.0 - res)
                - cons * d
                - 0.08 * bust * (0.3 + d))

    # Signal: fast diffusion, relaxes toward infrastructure, micro-perturbation
    sig_next = (sig
                + diff * 1.25 * grid.laplacian("signal")
                + 0.08 * (inf - sig)
                - 0.01 * sig
                + (hash_noise(xs * 2.7, ys * 2.7, 999 + tick * 0.001) - 0.5) * 0.003)

    # Infrastructure: built by density, needs resources, eroded by bust and wear
    inf_next = (inf
                + diff * 0.6 * grid.laplacian("infrastructure")
                + 0.12 * (d - inf) * (0.5 + 0.6 * res)
                - 0.015 * (1.0 - res)
                - 0.02 * bust
                - 0.01 * (hash_noise(xs, ys, 321 + tick) - 0.5))

    # Density: gated logistic growth against scarcity/congestion decay
    attractiveness = 0.35 + 0.65 * (0.6 * sig + 0.4 * inf)
    available = res
    congestion = np.maximum(0.0, d - 0.65) * 0.6
    growth = cfg.growth_rate * d * (1.0 - d) * attractiveness * (0.3 + 0.7 * available) * (1.0 + 0.8 * boom)
    decay = cfg.decay_rate * (0.35 + 0.65 * (1.0 - available)) * (0.5 + congestion) * (1.0 + 0.8 * bust)
    d_next = d + growth - decay + diff * 0.28 * grid.laplacian("density")

    ruin = (inf < ABANDON_INFRA) & (d > ABANDON_DENSITY)
    d_next = d_next - np.where(ruin, 0.03 + 0.05 * (ABANDON_INFRA - inf), 0.0)

    return {
        "density": d_next,
        "infrastructure": inf_next,
        "resources": res_next,
        "signal": sig_next,
    }


def check_stability(values: Dict[str, np.ndarray], tick: int, tolerance: float | None) -> None:
    """Raise :class:`NumericInstability` on non-finite or (optionally) overshooting values."""
    for name, arr in values.items():
        if not np.all(np.isfinite(arr)):
            raise NumericInstability(f"Non-finite value in '{name}' at tick {tick}")
        if tolerance is None:
            continue
        lo, hi = float(arr.min()), float(arr.max())
        if lo < -tolerance or hi > 1.0 + tolerance:
            raise NumericInstability(
                f"'{name}' left [0, 1] by more than {tolerance} before clamping at tick {tick} "
                f"(range {lo:.3f}..{hi:.3f}); lower the diffusion coefficient"
            )


def step_fields(grid: FieldGrid, cfg: SimulationConfig, season: float, boom: float, bust: float, tick: int) -> None:
    """Advance all four fields by one tick and swap buffers.

    On instability nothing is written, so the current buffers keep the last
    good state.
    """
    values = compute_next(grid, cfg, season, boom, bust, tick)
    check_stability(values, tick, cfg.instability_tolerance if cfg.diagnostics else None)
    for name in FIELD_NAMES:
        grid.write_next(name, values[name])
    grid.swap()
