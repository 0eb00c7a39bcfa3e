"""Whole-grid update rule checked against a straightforward per-cell evaluation."""
import math

import numpy as np
import pytest

from city_organism.config import SimulationConfig
from city_organism.errors import NumericInstability
from city_organism.simulator.dynamics import check_stability, compute_next, step_fields
from city_organism.simulator.grid import FIELD_NAMES, FieldGrid
from city_organism.simulator.noise import hash_noise
from city_organism.simulator.seeder import seed_fields


def _clamp01(v):
    return min(1.0, max(0.0, v))


def _reference_cell(grid, cfg, season, boom, bust, tick, x, y):
    """One cell of the update rule written out term by term."""
    d = grid.get("density", x, y)
    inf = grid.get("infrastructure", x, y)
    res = grid.get("resources", x, y)
    sig = grid.get("signal", x, y)
    diff = cfg.diffusion * 0.2

    regen = cfg.regen_rate * (0.4 + 0.6 * season + 0.8 * boom)
    cons = cfg.consumption * (0.6 + 0.7 * inf)
    res_n = (res + diff * grid.laplacian4("resources", x, y) + regen * (1 - res)
             - cons * d - 0.08 * bust * (0.3 + d))

    sig_n = (sig + diff * 1.25 * grid.laplacian4("signal", x, y) + 0.08 * (inf - sig) - 0.01 * sig
             + (hash_noise(x * 2.7, y * 2.7, 999 + tick * 0.001) - 0.5) * 0.003)

    inf_n = (inf + diff * 0.6 * grid.laplacian4("infrastructure", x, y)
             + 0.12 * (d - inf) * (0.5 + 0.6 * res) - 0.015 * (1 - res) - 0.02 * bust
             - 0.01 * (hash_noise(x, y, 321 + tick) - 0.5))

    attractiveness = 0.35 + 0.65 * (0.6 * sig + 0.4 * inf)
    congestion = max(0.0, d - 0.65) * 0.6
    growth = cfg.growth_rate * d * (1 - d) * attractiveness * (0.3 + 0.7 * res) * (1 + 0.8 * boom)
    decay = cfg.decay_rate * (0.35 + 0.65 * (1 - res)) * (0.5 + congestion) * (1 + 0.8 * bust)
    d_n = d + growth - decay + diff * 0.28 * grid.laplacian4("density", x, y)
    if inf < 0.12 and d > 0.6:
        d_n -= 0.03 + 0.05 * (0.12 - inf)

    return {"density": d_n, "infrastructure": inf_n, "resources": res_n, "signal": sig_n}


@pytest.mark.parametrize("boom,bust,tick", [(0.0, 0.0, 0), (0.9, 0.0, 17), (0.0, 0.9, 400), (0.5, 0.4, 1234)])
def test_vectorised_rule_matches_per_cell(boom, bust, tick):
    cfg = SimulationConfig(width=24, height=18, diffusion=0.3)
    grid = FieldGrid(cfg.width, cfg.height)
    seed_fields(grid, 11)
    # Force a few cells into the abandonment regime
    for x in range(3):
        grid.set("density", x, 0, 0.9)
        grid.set("infrastructure", x, 0, 0.02)

    season = 0.5 + 0.35 * 0.5 * math.sin(tick * 0.0025)
    vec = compute_next(grid, cfg, season, boom, bust, tick)

    rng = np.random.default_rng(tick)
    cells = [(0, 0), (1, 0), (cfg.width - 1, cfg.height - 1)]
    cells += [(int(x), int(y)) for x, y in zip(rng.integers(0, cfg.width, 25), rng.integers(0, cfg.height, 25))]
    for x, y in cells:
        ref = _reference_cell(grid, cfg, season, boom, bust, tick, x, y)
        for name in FIELD_NAMES:
            assert vec[name][y, x] == pytest.approx(ref[name], abs=1e-9), (name, x, y)


def test_step_fields_clamps_and_swaps():
    cfg = SimulationConfig(width=16, height=12)
    grid = FieldGrid(cfg.width, cfg.height)
    seed_fields(grid, 2)
    before = grid.snapshot()

    expected = compute_next(grid, cfg, 0.5, 0.0, 0.0, 0)
    step_fields(grid, cfg, 0.5, 0.0, 0.0, 0)

    for name in FIELD_NAMES:
        now = grid.current(name)
        assert now.min() >= 0.0 and now.max() <= 1.0
        assert np.allclose(now, np.clip(expected[name], 0.0, 1.0), atol=1e-6)
        assert not np.array_equal(now, before[name])


def test_check_stability_non_finite_always_raises():
    values = {"density": np.array([[0.5, np.nan]])}
    with pytest.raises(NumericInstability):
        check_stability(values, 3, None)
    values = {"signal": np.array([[np.inf]])}
    with pytest.raises(NumericInstability):
        check_stability(values, 3, 0.5)


def test_check_stability_tolerance():
    values = {"density": np.array([[-0.2, 1.3]])}
    check_stability(values, 0, None)
    check_stability(values, 0, 0.5)
    with pytest.raises(NumericInstability, match="density"):
        check_stability(values, 0, 0.1)


def test_unstable_step_leaves_current_buffers_untouched():
    cfg = SimulationConfig(width=8, height=8, diffusion=50.0, diagnostics=True)
    grid = FieldGrid(cfg.width, cfg.height)
    grid.set("signal", 4, 4, 1.0)
    before = grid.snapshot()
    with pytest.raises(NumericInstability):
        step_fields(grid, cfg, 0.5, 0.0, 0.0, 0)
    for name in FIELD_NAMES:
        assert np.array_equal(grid.current(name), before[name])
