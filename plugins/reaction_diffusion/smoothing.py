"""
EMA-Smoothed Parameters

SmoothedParameter wraps a numeric parameter so that a new target is
approached with frame-rate independent exponential smoothing instead of
snapping. The simulator uses it to drift feed/kill rates between
presets; with time_constant=0 the value snaps immediately.
"""

import math


class SmoothedParameter:
    """EMA wrapper for a single numeric parameter.

    Time constant controls the "feel":
    - tau=0.0s: snap to target on the next update
    - tau=0.5s: responsive but smooth
    - tau=2.0s: slow drift between pattern families
    """

    def __init__(self, initial_value, time_constant=2.0):
        """Initialize smoothed parameter.

        Args:
            initial_value: Starting value (both current and target)
            time_constant: Time in seconds to reach ~63% of target (tau)
        """
        if time_constant < 0:
            raise ValueError(f"time_constant must be >= 0, got {time_constant}")
        self.target = initial_value
        self.current = initial_value
        self.tau = time_constant

    def set_target(self, new_target):
        self.target = new_target

    def update(self, dt):
        """Advance EMA by delta-time (called each frame).

        alpha = 1 - exp(-dt / tau)
        current += alpha * (target - current)
        """
        if dt <= 0:
            return
        if self.tau == 0:
            self.current = self.target
            return
        alpha = 1.0 - math.exp(-dt / self.tau)
        self.current += alpha * (self.target - self.current)

    def get_value(self):
        return self.current

    @property
    def settled(self):
        return self.current == self.target

    def snap(self, value):
        """Immediately set both target and current (for reset)."""
        self.target = value
        self.current = value
