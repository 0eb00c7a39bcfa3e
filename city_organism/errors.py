"""Exception hierarchy raised by the simulation core.

Every error is a local, deterministic condition: the core fails fast and leaves
the decision to reseed, reconfigure or abort to the caller.  Each class also
derives from the closest built-in exception so generic handlers keep working.
"""
from __future__ import annotations

__all__ = [
    "SimulationError",
    "InvalidDimension",
    "InvalidFieldName",
    "OutOfRangeCoordinate",
    "NumericInstability",
]


class SimulationError(Exception):
    """Base class for all simulation core errors."""


class InvalidDimension(SimulationError, ValueError):
    """Grid width or height is not a positive integer."""


class InvalidFieldName(SimulationError, KeyError):
    """Requested field is not one of the four simulated fields."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message instead.
        return str(self.args[0]) if self.args else ""


class OutOfRangeCoordinate(SimulationError, IndexError):
    """Unwrapped coordinate passed to a non-wrapping accessor."""


class NumericInstability(SimulationError, ArithmeticError):
    """A field value became NaN/Infinity or overshot the allowed range."""
