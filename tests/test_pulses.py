"""Pulse controller and season clock."""
import math

import numpy as np
import pytest

from city_organism.simulator.pulses import PulseController
from city_organism.simulator.season import SeasonClock


def test_trigger_adds_and_saturates():
    p = PulseController()
    p.trigger("boom")
    assert p.boom == pytest.approx(0.9)
    p.trigger("boom")
    assert p.boom == 1.0
    assert p.bust == 0.0


@pytest.mark.parametrize("kind,expected", [("boom", 0.9 * 0.97 - 0.0005), ("bust", 0.9 * 0.97 - 0.0004)])
def test_decay_tick(kind, expected):
    p = PulseController()
    p.trigger(kind)
    p.decay_tick(kind)
    assert p.value(kind) == pytest.approx(expected)


def test_decay_floors_at_zero():
    p = PulseController(boom=0.0001, bust=0.0002)
    p.decay()
    assert p.boom == 0.0
    assert p.bust == 0.0


def test_unknown_kind():
    p = PulseController()
    with pytest.raises(ValueError):
        p.trigger("crash")
    with pytest.raises(ValueError):
        p.decay_tick("crash")


@pytest.mark.parametrize("seed", [0, 1, 2, 3])
def test_random_sequences_stay_bounded(seed):
    rng = np.random.default_rng(seed)
    p = PulseController()
    for action in rng.integers(0, 3, size=500):
        if action == 0:
            p.trigger("boom")
        elif action == 1:
            p.trigger("bust")
        else:
            p.decay()
        assert 0.0 <= p.boom <= 1.0
        assert 0.0 <= p.bust <= 1.0


def test_decay_is_monotone_and_reaches_zero():
    p = PulseController()
    p.trigger("boom")
    p.trigger("bust")
    prev = (p.boom, p.bust)
    for _ in range(400):
        p.decay()
        assert p.boom <= prev[0]
        assert p.bust <= prev[1]
        prev = (p.boom, p.bust)
    assert p.boom == 0.0
    assert p.bust == 0.0


def test_reset():
    p = PulseController(boom=0.5, bust=0.3)
    p.reset()
    assert (p.boom, p.bust) == (0.0, 0.0)


def test_season_phase():
    clock = SeasonClock()
    assert clock.phase(0.35) == pytest.approx(0.5)
    for _ in range(100):
        clock.tick()
    assert clock.ticks == 100
    assert clock.phase(0.35) == pytest.approx(0.5 + 0.35 * 0.5 * math.sin(100 * 0.0025))
    clock.reset()
    assert clock.ticks == 0


@pytest.mark.parametrize("amp", [0.0, 0.35, 1.0])
def test_season_stays_in_band(amp):
    clock = SeasonClock()
    for _ in range(0, 3000, 7):
        assert 0.5 - amp / 2 - 1e-12 <= clock.phase(amp) <= 0.5 + amp / 2 + 1e-12
        for _ in range(7):
            clock.tick()
