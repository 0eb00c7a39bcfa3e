"""Simulation handle, its functional API, and the single-run entry point."""
from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

import numpy as np

from ..config import DIFFUSION_STABILITY_LIMIT, DYNAMICS_OPTIONS, SimulationConfig
from .dynamics import step_fields
from .grid import FieldGrid
from .metrics import summarize
from .pulses import PulseController
from .season import SeasonClock
from .seeder import seed_fields

__all__ = [
    "Simulation",
    "SimulationResult",
    "create",
    "seed",
    "configure",
    "step",
    "trigger_boom",
    "trigger_bust",
    "read_field",
    "dimensions",
    "run_once",
]


class Simulation:
    """All mutable state of one city: fields, pulses, season clock and options.

    Instances are independent; nothing is shared at module level.  A fresh
    simulation has all-zero fields until :meth:`seed` is called.
    """

    def __init__(self, width: int, height: int, cfg: Optional[SimulationConfig] = None):
        self.grid = FieldGrid(width, height)
        if cfg is None:
            cfg = SimulationConfig(width=width, height=height)
        # Private copy: `configure` must not leak into the caller's config.
        self.cfg = dataclasses.replace(cfg, width=self.grid.width, height=self.grid.height)
        self.pulses = PulseController()
        self.clock = SeasonClock()
        self.seed_key = self.cfg.seed

    @classmethod
    def from_config(cls, cfg: SimulationConfig, seeded: bool = True) -> "Simulation":
        sim = cls(cfg.width, cfg.height, cfg)
        if seeded:
            sim.seed(cfg.seed, rng=cfg.make_rng())
        return sim

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def seed(self, rng_seed: int, rng: Optional[np.random.Generator] = None) -> int:
        """Reseed terrain and cores; resets tick counter and pulses.  Returns the core count."""
        n_cores = seed_fields(self.grid, rng_seed, rng=rng)
        self.pulses.reset()
        self.clock.reset()
        self.seed_key = rng_seed
        return n_cores

    def reset(self, rng: Optional[np.random.Generator] = None) -> int:
        """Full reseed with the next seed key."""
        return self.seed(self.seed_key + 1, rng=rng)

    def configure(self, options: Optional[Mapping[str, float]] = None, **kwargs: float) -> None:
        """Change dynamics options; they take effect on the next tick."""
        updates = dict(options or {}, **kwargs)
        unknown = sorted(set(updates) - set(DYNAMICS_OPTIONS))
        if unknown:
            raise ValueError(f"Unknown option(s) {unknown}. Recognized: {list(DYNAMICS_OPTIONS)}")
        # Convert everything before touching cfg so a bad value leaves it unchanged
        values = {name: float(value) for name, value in updates.items()}
        for name, value in values.items():
            setattr(self.cfg, name, value)
        if "diffusion" in updates and self.cfg.diffusion > DIFFUSION_STABILITY_LIMIT:
            print(
                f"[WARNING] diffusion={self.cfg.diffusion} is above the stability bound "
                f"{DIFFUSION_STABILITY_LIMIT}; fields may oscillate."
            )

    # ------------------------------------------------------------------
    # Stepping
    # ------------------------------------------------------------------
    def step(self) -> None:
        """Advance exactly one tick.

        Pulses influence the tick that runs, then decay for the next one.
        """
        season = self.clock.phase(self.cfg.season_amp)
        step_fields(self.grid, self.cfg, season, self.pulses.boom, self.pulses.bust, self.clock.ticks)
        self.pulses.decay()
        self.clock.tick()

    def run(self, n_steps: int) -> None:
        for _ in range(n_steps):
            self.step()

    def trigger_boom(self) -> None:
        self.pulses.trigger("boom")

    def trigger_bust(self) -> None:
        self.pulses.trigger("bust")

    # ------------------------------------------------------------------
    # Read-only access
    # ------------------------------------------------------------------
    @property
    def tick(self) -> int:
        return self.clock.ticks

    def read_field(self, field_name: str, x: int, y: int) -> float:
        return self.grid.get(field_name, x, y)

    def field(self, field_name: str) -> np.ndarray:
        """Read-only ``(height, width)`` view of the current buffer."""
        return self.grid.current(field_name)

    def dimensions(self) -> Tuple[int, int]:
        return self.grid.width, self.grid.height


# ------------------------------------------------------------------
# Functional API
# ------------------------------------------------------------------

def create(width: int, height: int) -> Simulation:
    return Simulation(width, height)


def seed(sim: Simulation, rng_seed: int, rng: Optional[np.random.Generator] = None) -> int:
    return sim.seed(rng_seed, rng=rng)


def configure(sim: Simulation, options: Optional[Mapping[str, float]] = None, **kwargs: float) -> None:
    sim.configure(options, **kwargs)


def step(sim: Simulation) -> None:
    sim.step()


def trigger_boom(sim: Simulation) -> None:
    sim.trigger_boom()


def trigger_bust(sim: Simulation) -> None:
    sim.trigger_bust()


def read_field(sim: Simulation, field_name: str, x: int, y: int) -> float:
    return sim.read_field(field_name, x, y)


def dimensions(sim: Simulation) -> Tuple[int, int]:
    return sim.dimensions()


# ------------------------------------------------------------------
# Engine entry-point
# ------------------------------------------------------------------

@dataclass
class SimulationResult:
    """Container returned by `run_once`."""

    config: SimulationConfig
    seed: int
    ticks: int
    summary: Dict[str, float]

    # Final field snapshots and optional time series for post-analysis
    fields: Dict[str, np.ndarray] = field(repr=False, default_factory=dict)
    history: List[Dict[str, float]] = field(repr=False, default_factory=list)


def run_once(
    cfg: SimulationConfig,
    n_steps: int,
    boom_at: Iterable[int] = (),
    bust_at: Iterable[int] = (),
    record_every: int = 0,
    verbose: bool = False,
) -> SimulationResult:
    """Seed from ``cfg``, run ``n_steps`` ticks and summarise.

    ``boom_at``/``bust_at`` list the ticks at which a pulse is triggered
    (before that tick runs).  With ``record_every > 0`` a summary is stored
    every that many ticks, plus the initial and final state.
    """
    sim = Simulation.from_config(cfg)
    booms = set(boom_at)
    busts = set(bust_at)

    history: List[Dict[str, float]] = []
    if record_every > 0:
        history.append(summarize(sim))

    for _ in range(n_steps):
        if sim.tick in booms:
            sim.trigger_boom()
            if verbose:
                print(f"[INFO] Boom triggered at tick {sim.tick}")
        if sim.tick in busts:
            sim.trigger_bust()
            if verbose:
                print(f"[INFO] Bust triggered at tick {sim.tick}")
        sim.step()
        if record_every > 0 and sim.tick % record_every == 0:
            history.append(summarize(sim))
            if verbose:
                s = history[-1]
                print(
                    f"[INFO] tick {s['tick']:>6}  density {s['density_mean']:.3f}  "
                    f"infra {s['infrastructure_mean']:.3f}  resources {s['resources_mean']:.3f}  "
                    f"urban {s['urban_fraction']:.3f}"
                )

    summary = summarize(sim)
    if record_every > 0 and history[-1]["tick"] != sim.tick:
        history.append(summary)

    return SimulationResult(
        config=cfg,
        seed=cfg.seed,
        ticks=sim.tick,
        summary=summary,
        fields=sim.grid.snapshot(),
        history=history,
    )
