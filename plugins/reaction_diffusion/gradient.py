"""
Color Gradients and Gradient LUTs

A ColorGradient is an ordered list of (t, color) stops over [0, 1].
Colors are tuples of 3 (RGB) or 4 (RGBA) channels in 0-255; every stop
of a gradient has the same channel count. Alpha is interpolated like
any other channel.

The 256-entry GradientLUT is a cached, quantized projection of the
gradient: it is rebuilt in full (lazily, on next access) whenever a stop
is added.
"""

import bisect
import math

import numpy as np

from .utils import clamp_f32, map_t_of_range_a_to_range_b, interpolate_u8

LUT_SIZE = 256


def _check_color(color, channels=None):
    color = tuple(int(c) for c in color)
    if len(color) not in (3, 4):
        raise ValueError(f"Colors must have 3 (RGB) or 4 (RGBA) channels, got {len(color)}")
    if channels is not None and len(color) != channels:
        raise ValueError(f"Expected a {channels}-channel color, got {color}")
    if any(c < 0 or c > 255 for c in color):
        raise ValueError(f"Color channels must be in 0-255, got {color}")
    return color


class ColorGradient:
    """Sorted (t, color) stops; always holds a stop at t=0 and one at t=1."""

    def __init__(self, stops):
        stops = list(stops)
        if not stops:
            raise ValueError("A gradient needs at least one stop")
        self.channels = len(_check_color(stops[0][1]))
        self._spectrum = []
        for t, color in stops:
            self._insert(t, color)
        if self._spectrum[0][0] != 0.0 or self._spectrum[-1][0] != 1.0:
            raise ValueError(
                "A gradient needs boundary stops at t=0 and t=1, got "
                f"{self._spectrum[0][0]} .. {self._spectrum[-1][0]}")
        self._lut = None

    @classmethod
    def from_colors(cls, color_a, color_b):
        """Two-stop gradient from color_a at t=0 to color_b at t=1."""
        return cls([(0.0, color_a), (1.0, color_b)])

    @property
    def stops(self):
        return tuple(self._spectrum)

    def __len__(self):
        return len(self._spectrum)

    def _insert(self, t, color):
        t = clamp_f32(float(t), 0.0, 1.0)
        color = _check_color(color, self.channels)
        # insort_right keeps insertion order among equal t
        keys = [s[0] for s in self._spectrum]
        self._spectrum.insert(bisect.bisect_right(keys, t), (t, color))

    def add_color_at_t(self, t, color):
        """Insert a stop; t is clamped into [0, 1]. Invalidates the LUT."""
        self._insert(t, color)
        self._lut = None

    def get_bounding_colors_for_t(self, t):
        """(lower, upper) stops around t.

        upper is the first stop with stop.t >= t, lower the one before it.
        At or below the first stop, that stop bounds t on both sides;
        past the last stop, the last one does.
        """
        for position, stop in enumerate(self._spectrum):
            if stop[0] >= t:
                if position == 0:
                    return stop, stop
                return self._spectrum[position - 1], stop
        last = self._spectrum[-1]
        return last, last

    def color_at_t(self, t):
        """Interpolated color at t (clamped into [0, 1])."""
        if math.isnan(t):
            raise ValueError("t must not be NaN")
        t = clamp_f32(float(t), 0.0, 1.0)
        (t0, c0), (t1, c1) = self.get_bounding_colors_for_t(t)
        mapped_t = map_t_of_range_a_to_range_b(t, t0, t1, 0.0, 1.0)
        return tuple(interpolate_u8(a, b, mapped_t) for a, b in zip(c0, c1))

    def color_at_t_u8(self, byte):
        """LUT color for a quantized t in 0-255."""
        byte = int(byte)
        if not 0 <= byte < LUT_SIZE:
            raise ValueError(f"byte must be in 0-255, got {byte}")
        return tuple(int(c) for c in self.lut.table[byte])

    @property
    def lut(self):
        if self._lut is None:
            self._lut = GradientLUT.from_gradient(self)
        return self._lut

    def apply(self, values):
        """Map an array of t values in [0, 1] to colors through the LUT."""
        return self.lut.apply(values)


class GradientLUT:
    """256 colors sampled from a gradient at i / 255."""

    def __init__(self, table):
        table = np.array(table, dtype=np.uint8)
        if table.ndim != 2 or table.shape[0] != LUT_SIZE or table.shape[1] not in (3, 4):
            raise ValueError(f"LUT table must be ({LUT_SIZE}, 3|4), got {table.shape}")
        table.flags.writeable = False
        self.table = table

    @classmethod
    def from_gradient(cls, gradient):
        table = np.empty((LUT_SIZE, gradient.channels), dtype=np.uint8)
        for i in range(LUT_SIZE):
            table[i] = gradient.color_at_t(i / (LUT_SIZE - 1))
        return cls(table)

    @property
    def channels(self):
        return self.table.shape[1]

    def __eq__(self, other):
        if not isinstance(other, GradientLUT):
            return NotImplemented
        return np.array_equal(self.table, other.table)

    def as_table(self):
        return self.table

    def apply(self, values):
        """Map t values in [0, 1] to colors: (..., channels) uint8."""
        return apply_lut(values, self.table)


def apply_lut(values, table):
    """Quantize values in [0, 1] to 0-255 and look them up in table."""
    values = np.nan_to_num(np.asarray(values, dtype=np.float32), nan=0.0)
    indices = (np.clip(values, 0.0, 1.0) * (LUT_SIZE - 1)).astype(np.uint8)
    return table[indices]
