"""Boom/bust pulse scalars."""
from __future__ import annotations

from dataclasses import dataclass

__all__ = ["PULSE_KINDS", "PulseController"]

PULSE_KINDS = ("boom", "bust")

PULSE_INCREMENT = 0.9
PULSE_RETENTION = 0.97
# Linear floor subtracted after the geometric decay, per kind.
PULSE_FLOOR_STEP = {"boom": 0.0005, "bust": 0.0004}


@dataclass
class PulseController:
    """Two externally triggered scalars in [0, 1] that fade every tick."""

    boom: float = 0.0
    bust: float = 0.0

    def _check(self, kind: str) -> None:
        if kind not in PULSE_KINDS:
            raise ValueError(f"Unknown pulse kind: {kind}. Choose from {list(PULSE_KINDS)}")

    def value(self, kind: str) -> float:
        self._check(kind)
        return getattr(self, kind)

    def trigger(self, kind: str) -> None:
        self._check(kind)
        setattr(self, kind, min(1.0, getattr(self, kind) + PULSE_INCREMENT))

    def decay_tick(self, kind: str) -> None:
        self._check(kind)
        decayed = getattr(self, kind) * PULSE_RETENTION - PULSE_FLOOR_STEP[kind]
        setattr(self, kind, max(0.0, decayed))

    def decay(self) -> None:
        """Decay both pulses once; called after the tick has read them."""
        for kind in PULSE_KINDS:
            self.decay_tick(kind)

    def reset(self) -> None:
        self.boom = 0.0
        self.bust = 0.0
