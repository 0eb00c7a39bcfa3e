"""Stateless hash noise used for terrain seeding and micro-perturbation."""
from __future__ import annotations

import numpy as np

__all__ = ["hash_noise"]

# Bit-mixing constants (sine hash).
_KX = 374761393.0
_KY = 668265263.0
_KSEED = 9301.0
_SCALE = 1e-6
_GAIN = 43758.5453


def hash_noise(x, y, seed=1337):
    """Deterministic pseudo-noise in [0, 1).

    Adjacent integer coordinates land far apart on the sine curve, so
    neighbouring cells get decorrelated values.  Works on scalars or NumPy
    arrays (broadcast); scalar input returns a Python float.

    Parameters
    ----------
    x, y
        Sample position (float or array).
    seed
        Seed value; fractional seeds are allowed.
    """
    arg = (np.asarray(x, dtype=np.float64) * _KX
           + np.asarray(y, dtype=np.float64) * _KY
           + np.float64(seed) * _KSEED) * _SCALE
    n = np.sin(arg) * _GAIN
    out = n - np.floor(n)
    if np.ndim(out) == 0:
        return float(out)
    return out
