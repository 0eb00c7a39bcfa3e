"""Quick sanity tests for metric functions."""
import pytest

from city_organism.simulator.engine import Simulation, create
from city_organism.simulator.grid import FIELD_NAMES, FieldGrid
from city_organism.simulator.metrics import field_summary, ruin_fraction, summarize, urban_fraction


def test_field_summary_blank_grid():
    summary = field_summary(FieldGrid(4, 4))
    assert set(summary) == set(FIELD_NAMES)
    for stats in summary.values():
        assert stats == {"mean": 0.0, "min": 0.0, "max": 0.0}


def test_field_summary_values():
    grid = FieldGrid(2, 2)
    grid.set("resources", 0, 0, 1.0)
    grid.set("resources", 1, 1, 0.5)
    stats = field_summary(grid)["resources"]
    assert stats["mean"] == pytest.approx(0.375)
    assert stats["min"] == 0.0
    assert stats["max"] == 1.0


def test_urban_and_ruin_fractions():
    grid = FieldGrid(10, 10)
    grid.set("density", 1, 1, 0.9)
    grid.set("infrastructure", 1, 1, 0.8)
    grid.set("density", 2, 2, 0.7)  # dense on failed infrastructure
    grid.set("density", 3, 3, 0.3)
    assert urban_fraction(grid) == pytest.approx(0.02)
    assert urban_fraction(grid, threshold=0.2) == pytest.approx(0.03)
    assert ruin_fraction(grid) == pytest.approx(0.01)


def test_summarize_keys():
    sim = create(8, 8)
    sim.trigger_boom()
    s = summarize(sim)
    assert s["tick"] == 0
    assert s["boom"] == pytest.approx(0.9)
    assert s["bust"] == 0.0
    for name in FIELD_NAMES:
        assert f"{name}_mean" in s
    assert {"urban_fraction", "ruin_fraction"} <= set(s)


def test_summarize_tracks_ticks():
    sim = Simulation(8, 8)
    sim.seed(1)
    sim.run(4)
    assert summarize(sim)["tick"] == 4
