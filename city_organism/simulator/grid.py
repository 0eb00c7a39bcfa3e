"""Double-buffered scalar fields on a toroidal lattice."""
from __future__ import annotations

from typing import Dict, Tuple

import numpy as np

from ..errors import InvalidDimension, InvalidFieldName, NumericInstability, OutOfRangeCoordinate

__all__ = ["FIELD_NAMES", "FieldGrid"]

FIELD_NAMES = ("density", "infrastructure", "resources", "signal")

FIELD_DTYPE = np.float32


class FieldGrid:
    """Four scalar fields over a W x H torus, each with a current and a next buffer.

    Storage is a flat float32 array per buffer indexed by ``x + y * width``.
    Readers only ever see the current buffers; the step engine fills the next
    buffers and calls :meth:`swap` once every field is complete.
    """

    def __init__(self, width: int, height: int):
        if int(width) != width or int(height) != height or width <= 0 or height <= 0:
            raise InvalidDimension(
                f"Grid dimensions must be positive integers, got {width}x{height}"
            )
        self.width = int(width)
        self.height = int(height)
        n = self.width * self.height
        self._current: Dict[str, np.ndarray] = {name: np.zeros(n, dtype=FIELD_DTYPE) for name in FIELD_NAMES}
        self._next: Dict[str, np.ndarray] = {name: np.zeros(n, dtype=FIELD_DTYPE) for name in FIELD_NAMES}

    # ------------------------------------------------------------------
    # Geometry
    # ------------------------------------------------------------------
    @property
    def size(self) -> int:
        return self.width * self.height

    @property
    def shape(self) -> Tuple[int, int]:
        """Row-major 2D shape ``(height, width)`` of the field views."""
        return self.height, self.width

    def wrap(self, x: int, y: int) -> Tuple[int, int]:
        return x % self.width, y % self.height

    def index(self, x: int, y: int) -> int:
        """Flat index of an in-range coordinate."""
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise OutOfRangeCoordinate(
                f"Coordinate ({x}, {y}) outside [0, {self.width}) x [0, {self.height}); wrap it first"
            )
        return x + y * self.width

    # ------------------------------------------------------------------
    # Cell access (current buffer)
    # ------------------------------------------------------------------
    def _buffer(self, field: str) -> np.ndarray:
        try:
            return self._current[field]
        except KeyError as exc:
            raise InvalidFieldName(
                f"Field '{field}' not found. Available: {list(FIELD_NAMES)}"
            ) from exc

    def get(self, field: str, x: int, y: int) -> float:
        return float(self._buffer(field)[self.index(x, y)])

    def set(self, field: str, x: int, y: int, value: float) -> None:
        """Write one cell of the current buffer, clamped to [0, 1]."""
        buf = self._buffer(field)
        i = self.index(x, y)
        if not np.isfinite(value):
            raise NumericInstability(f"Refusing to write non-finite value {value} to '{field}' at ({x}, {y})")
        buf[i] = min(1.0, max(0.0, value))

    def current(self, field: str) -> np.ndarray:
        """Read-only ``(height, width)`` view of a field's current buffer."""
        view = self._buffer(field).reshape(self.shape).view()
        view.flags.writeable = False
        return view

    def writable(self, field: str) -> np.ndarray:
        """Writable ``(height, width)`` view of the current buffer, for seeding."""
        return self._buffer(field).reshape(self.shape)

    def snapshot(self) -> Dict[str, np.ndarray]:
        """Copies of all four current fields as ``(height, width)`` arrays."""
        return {name: self._current[name].reshape(self.shape).copy() for name in FIELD_NAMES}

    # ------------------------------------------------------------------
    # Diffusion operator
    # ------------------------------------------------------------------
    def laplacian4(self, field: str, x: int, y: int) -> float:
        """4-neighbour discrete Laplacian ``N + S + W + E - 4C`` with wraparound."""
        buf = self._buffer(field)
        c = buf[self.index(x, y)]
        n = buf[self.index(x, (y - 1) % self.height)]
        s = buf[self.index(x, (y + 1) % self.height)]
        w = buf[self.index((x - 1) % self.width, y)]
        e = buf[self.index((x + 1) % self.width, y)]
        return float(n) + float(s) + float(w) + float(e) - 4.0 * float(c)

    def laplacian(self, field: str) -> np.ndarray:
        """The same operator evaluated for every cell; returns float64 ``(height, width)``."""
        f = self._buffer(field).reshape(self.shape).astype(np.float64)
        return (np.roll(f, 1, axis=0) + np.roll(f, -1, axis=0)
                + np.roll(f, 1, axis=1) + np.roll(f, -1, axis=1) - 4.0 * f)

    # ------------------------------------------------------------------
    # Buffer management
    # ------------------------------------------------------------------
    def write_next(self, field: str, values: np.ndarray) -> None:
        """Clamp ``values`` to [0, 1] and store them in the field's next buffer."""
        if field not in self._next:
            raise InvalidFieldName(f"Field '{field}' not found. Available: {list(FIELD_NAMES)}")
        self._next[field][:] = np.clip(np.asarray(values, dtype=np.float64).reshape(-1), 0.0, 1.0)

    def swap(self) -> None:
        """Make the next buffers current for all four fields at once."""
        self._current, self._next = self._next, self._current

    def clear(self) -> None:
        for name in FIELD_NAMES:
            self._current[name].fill(0.0)
            self._next[name].fill(0.0)
