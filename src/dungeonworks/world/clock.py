"""Simulation clock advanced explicitly by the world tick."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class Clock:
    """Elapsed simulated seconds and tick count."""

    now: float = 0.0
    ticks: int = 0

    def advance(self, dt: float) -> float:
        """Move time forward by ``dt`` seconds and return the new time.

        Raises:
            ValueError: If ``dt`` is negative.
        """
        if dt < 0:
            raise ValueError(f"Cannot advance clock by negative dt {dt}")
        self.now += dt
        self.ticks += 1
        return self.now
