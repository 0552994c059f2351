"""
LUT Transitions

Smoothly cross-fades between two 256-entry color tables over a fixed
duration. The blend is a per-index, per-channel linear interpolation;
progress is elapsed / duration, clamped into [0, 1].

The transition state (start time, duration, tables) belongs to the
caller that drives the frame loop, not to the simulation engine.
"""

import math
import time

import numpy as np

from .gradient import LUT_SIZE


def as_table(lut):
    """(256, C) uint8 table from a GradientLUT, LutData or array."""
    if hasattr(lut, "as_table"):
        lut = lut.as_table()
    table = np.asarray(lut, dtype=np.uint8)
    if table.ndim != 2 or table.shape[0] != LUT_SIZE:
        raise ValueError(f"Expected a ({LUT_SIZE}, C) table, got {table.shape}")
    return table


def blend_luts(source, target, progress):
    """Blend source toward target; progress 0 -> source, 1 -> target exactly."""
    if math.isnan(progress):
        raise ValueError("progress must not be NaN")
    src = as_table(source)
    dst = as_table(target)
    if src.shape[1] != dst.shape[1]:
        # Mixed RGB / RGBA: blend the shared color channels
        channels = min(src.shape[1], dst.shape[1])
        src, dst = src[:, :channels], dst[:, :channels]
    progress = float(np.clip(progress, 0.0, 1.0))
    if progress <= 0.0:
        return src.copy()
    if progress >= 1.0:
        return dst.copy()
    a = src.astype(np.float32)
    b = dst.astype(np.float32)
    mixed = a + (b - a) * np.float32(progress)
    return np.clip(np.round(mixed), 0, 255).astype(np.uint8)


class LutTransition:
    """Time-based cross-fade from the current table to a new target.

    Once progress reaches 1 the target becomes the source for the next
    transition. Starting a transition mid-way starts from the table that
    is currently on screen.
    """

    def __init__(self, source, duration=1.0, clock=time.monotonic):
        if duration <= 0:
            raise ValueError(f"duration must be > 0, got {duration}")
        self.source = as_table(source).copy()
        self.target = None
        self.duration = float(duration)
        self.clock = clock
        self.start_time = None

    @property
    def active(self):
        return self.target is not None

    def start(self, target, now=None):
        now = self.clock() if now is None else now
        if self.active:
            self.source = self.current(now)
        self.target = as_table(target).copy()
        self.start_time = now

    def progress(self, now=None):
        if not self.active:
            return 1.0
        now = self.clock() if now is None else now
        return float(np.clip((now - self.start_time) / self.duration, 0.0, 1.0))

    def current(self, now=None):
        """Table to display at time now. Completes the transition at 1."""
        if not self.active:
            return self.source
        p = self.progress(now)
        if p >= 1.0:
            self.source = blend_luts(self.source, self.target, 1.0)
            self.target = None
            self.start_time = None
            return self.source
        return blend_luts(self.source, self.target, p)

    @property
    def done(self):
        return not self.active
