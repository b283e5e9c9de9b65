"""First-order low-pass filter ``tau * dy/dt + y = x``."""

from __future__ import annotations

import math

_PI_APPROX = 3.1415


class LowPassFilter:
    """Discrete first-order low-pass filter.

    Without parameters the filter has zero gain and holds its first sample.
    """

    def __init__(self, cutoff=None, sample_time=None):
        self.alpha = 0.0
        self._previous = 0.0
        self._initialised = False
        if cutoff is not None and sample_time is not None:
            self.set_params(cutoff, sample_time)

    def set_params(self, cutoff, sample_time) -> None:
        """Set the cutoff frequency (Hz) and the sample time (s)."""
        tau = math.inf if cutoff == 0 else 1.0 / (2 * _PI_APPROX * cutoff)
        self.alpha = sample_time / (sample_time + tau)

    def filter(self, value) -> float:
        """Feed one sample and return the filtered output."""
        if self._initialised:
            result = (1 - self.alpha) * self._previous + self.alpha * value
        else:
            result = value
            self._initialised = True
        self._previous = result
        return result