"""City as a living organism: a coupled-field growth & decay simulator."""
from __future__ import annotations

from importlib import metadata as _metadata

try:
    __version__: str = _metadata.version(__name__)
except _metadata.PackageNotFoundError:
    __version__ = "0.0.0-dev"

__all__ = ["config", "errors", "simulator", "SimulationConfig", "Simulation"]

from . import config, errors, simulator
from .config import SimulationConfig
from .simulator import Simulation
