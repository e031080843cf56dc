"""Quadratic clock drift model for satellite and ground oscillators.

error(t) = bias + drift * (t - t0) + 0.5 * aging * (t - t0)^2

Coefficients are sampled once per instance from zero-mean normals whose
spread depends on the oscillator grade. Satellite clocks (rubidium/cesium in
a harsher environment) get wider spreads than ground clocks (GPS-disciplined
or rubidium).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

import numpy as np


@dataclass(frozen=True)
class OscillatorGrade:
    """1-sigma spreads of the quadratic drift coefficients."""

    bias_s: float
    drift_s_per_s: float
    aging_s_per_s2: float


CLOCK_GRADES: Dict[str, OscillatorGrade] = {
    # ~1 us initial offset, ~10 ps/s drift, ~0.01 ps/s^2 aging
    "satellite": OscillatorGrade(bias_s=1e-6, drift_s_per_s=1e-11, aging_s_per_s2=1e-14),
    # ~0.5 us initial offset, ~5 ps/s drift, ~0.005 ps/s^2 aging
    "ground": OscillatorGrade(bias_s=5e-7, drift_s_per_s=5e-12, aging_s_per_s2=5e-15),
}


class ClockModel:
    """Clock error of one participant as a function of simulation time."""

    def __init__(
        self,
        bias: float = 0.0,
        drift: float = 0.0,
        aging: float = 0.0,
        epoch: float = 0.0,
        grade: Optional[str] = None,
    ):
        self.bias = bias
        self.drift = drift
        self.aging = aging
        self.epoch = epoch
        self.grade = grade

    @classmethod
    def from_grade(
        cls,
        grade: str,
        rng: Optional[np.random.Generator] = None,
        epoch: float = 0.0,
    ) -> ClockModel:
        """Sample coefficients for a named oscillator grade.

        Args:
            grade: Key of ``CLOCK_GRADES`` ("satellite" or "ground").
            rng: numpy Generator; a fresh unseeded one when None.
            epoch: Reference time for the drift polynomial.
        """
        if grade not in CLOCK_GRADES:
            raise ValueError(
                f"Unknown clock grade '{grade}'. Available: {sorted(CLOCK_GRADES)}"
            )
        spread = CLOCK_GRADES[grade]
        rng = rng if rng is not None else np.random.default_rng()
        bias, drift, aging = rng.standard_normal(3) * np.array(
            [spread.bias_s, spread.drift_s_per_s, spread.aging_s_per_s2]
        )
        return cls(
            bias=float(bias),
            drift=float(drift),
            aging=float(aging),
            epoch=epoch,
            grade=grade,
        )

    @classmethod
    def ideal(cls) -> ClockModel:
        """A perfect clock (all coefficients zero)."""
        return cls(grade="ideal")

    def error(self, t: float) -> float:
        """Clock error in seconds at simulation time t."""
        dt = t - self.epoch
        return self.bias + self.drift * dt + 0.5 * self.aging * dt**2

    def drift_rate(self, t: float) -> float:
        """Instantaneous drift rate (s/s) at time t."""
        return self.drift + self.aging * (t - self.epoch)

    def reset(self, t: float) -> None:
        """Move the reference epoch to t; the current error becomes the bias."""
        self.bias = self.error(t)
        self.epoch = t

    def sync(self, t: float, correction: float) -> None:
        """Apply a synchronization correction at time t.

        Reduces the bias by ``correction`` and restarts the polynomial at t.
        Drift and aging are untouched.
        """
        self.bias = self.bias - correction
        self.epoch = t
