"""Seasonal clock."""
from __future__ import annotations

import math
from dataclasses import dataclass

__all__ = ["SeasonClock"]

SEASON_RATE = 0.0025


@dataclass
class SeasonClock:
    """Tick counter driving the slow seasonal oscillation."""

    ticks: int = 0

    def tick(self) -> None:
        self.ticks += 1

    def phase(self, amp: float) -> float:
        """Season value ``0.5 + amp * 0.5 * sin(ticks * 0.0025)``."""
        return 0.5 + amp * 0.5 * math.sin(self.ticks * SEASON_RATE)

    def reset(self) -> None:
        self.ticks = 0
