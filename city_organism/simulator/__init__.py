"""Simulation core (noise, field grid, seeding, dynamics, pulses, season) and helpers.

The core modules never import `visualize`, so the renderer stays an optional
outer layer and the core can be unit tested without a display.
"""
from .engine import (
    Simulation,
    SimulationResult,
    configure,
    create,
    dimensions,
    read_field,
    run_once,
    seed,
    step,
    trigger_boom,
    trigger_bust,
)
from .grid import FIELD_NAMES, FieldGrid

__all__ = [
    "FIELD_NAMES",
    "FieldGrid",
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
