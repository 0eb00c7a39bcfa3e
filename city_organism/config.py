"""Global configuration definitions.

All simulation-wide tunables and the seed key live here so that every
component of the framework can access them in a single import.  Config objects
can be created either programmatically or loaded from YAML files to facilitate
batch experiments.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Dict, Optional

import numpy as np
import yaml

__all__ = [
    "SimulationConfig",
    "DYNAMICS_OPTIONS",
    "DIFFUSION_STABILITY_LIMIT",
    "rng_from_key",
]

DEFAULT_YAML_INDENT = 2

# Options accepted by `configure`; everything else is fixed for a run.
DYNAMICS_OPTIONS = (
    "growth_rate",
    "decay_rate",
    "diffusion",
    "regen_rate",
    "consumption",
    "season_amp",
)

# Above this the explicit diffusion update starts to oscillate.
DIFFUSION_STABILITY_LIMIT = 0.5


def rng_from_key(seed_key: int) -> np.random.Generator:
    """Generator for a seed key; negative keys fold into numpy's unsigned seed range."""
    return np.random.default_rng(int(seed_key) % 2**64)


@dataclass
class SimulationConfig:
    """Container for all simulation hyperparameters.

    Attributes
    ----------
    width, height
        Grid size in cells.  Fixed for the lifetime of a simulation.
    seed
        Seed key for terrain noise and proto-core placement.
    growth_rate
        Logistic growth rate of density.
    decay_rate
        Abandonment/decay rate of density.
    diffusion
        Diffusion coefficient shared by all fields (scaled by 0.2 internally).
        Values above ~0.5 risk numerical oscillation.
    regen_rate
        Resource regeneration rate toward saturation.
    consumption
        Resource usage per unit density.
    season_amp
        Amplitude of the seasonal modulation of regeneration.
    diagnostics
        Raise on pre-clamp overshoot beyond `instability_tolerance`.
    instability_tolerance
        Overshoot outside [0, 1] tolerated before a tick counts as unstable.
    """

    width: int = 160
    height: int = 100
    seed: int = 1

    growth_rate: float = 0.12
    decay_rate: float = 0.045
    diffusion: float = 0.18
    regen_rate: float = 0.05
    consumption: float = 0.08
    season_amp: float = 0.35

    diagnostics: bool = False
    instability_tolerance: float = 0.5

    # Free-form field to store arbitrary user metadata (e.g., experiment name).
    tag: str = field(default="", metadata={"yaml_field": True})

    # Automatically filled, not expected to be loaded from file.
    _yaml_path: Optional[Path] = field(default=None, repr=False, compare=False)

    # ---------------------------------------------------------------------
    # YAML helpers
    # ---------------------------------------------------------------------
    @classmethod
    def from_yaml(cls, path: os.PathLike | str) -> "SimulationConfig":
        """Load a configuration from a YAML file."""
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
        cfg = cls(**data)
        cfg._yaml_path = Path(path)
        return cfg

    def to_yaml(self, path: os.PathLike | str) -> None:
        """Save the config to YAML."""
        data = asdict(self)
        data.pop("_yaml_path", None)
        with open(path, "w", encoding="utf-8") as fh:
            yaml.safe_dump(data, fh, indent=DEFAULT_YAML_INDENT, sort_keys=False)

    # ------------------------------------------------------------------
    # Random Seed Control
    # ------------------------------------------------------------------
    def make_rng(self) -> np.random.Generator:
        """Generator used for proto-core placement."""
        return rng_from_key(self.seed)

    def dynamics(self) -> Dict[str, float]:
        """The options that `configure` may change between ticks."""
        return {name: getattr(self, name) for name in DYNAMICS_OPTIONS}

    # Convenience str representation for logging
    def __str__(self) -> str:  # noqa: DunderStr
        return (
            f"SimulationConfig(grid={self.width}x{self.height}, seed={self.seed}, "
            f"diffusion={self.diffusion})"
        )

    def __post_init__(self):
        # YAML may hand back ints for float options (e.g. `diffusion: 0`)
        self.width = int(self.width)
        self.height = int(self.height)
        self.seed = int(self.seed)
        for name in DYNAMICS_OPTIONS:
            setattr(self, name, float(getattr(self, name)))
        self.instability_tolerance = float(self.instability_tolerance)
        self.diagnostics = bool(self.diagnostics)
