"""
Small numeric helpers shared by the engine and the color pipeline.

Toroidal indexing, checked clamping, range remapping and channel
interpolation.
"""

import math

CLAMP_ERROR = "min should be less than or equal to max"


def get_wrapping_index(x, y, width, height):
    """Row-major index of (x, y) on a width x height torus.

    Any integer coordinate is accepted; the result is always in
    [0, width * height).
    """
    return ((y + height) % height) * width + ((x + width) % width)


def clamp_f32(n, min_value, max_value):
    """Clamp n into [min_value, max_value].

    Raises ValueError when the bounds are inverted or when any argument
    is NaN (NaN has no place in an ordered range).
    """
    if math.isnan(n) or math.isnan(min_value) or math.isnan(max_value):
        raise ValueError("cannot clamp NaN")
    if min_value > max_value:
        raise ValueError(CLAMP_ERROR)
    return max(min_value, min(max_value, n))


def map_t_of_range_a_to_range_b(t, a_start, a_end, b_start, b_end):
    """Linearly remap t from [a_start, a_end] onto [b_start, b_end].

    A degenerate source range maps everything to b_start.
    """
    if a_end == a_start:
        return b_start
    # fraction is exactly 1.0 at t == a_end, so range ends map exactly
    fraction = (t - a_start) / (a_end - a_start)
    return b_start + (b_end - b_start) * fraction


def interpolate_u8(a, b, t):
    """Lerp two 0-255 channel values, truncating toward zero.

    Written as a + (b - a) * t so equal endpoints come back exactly.
    """
    return int(a + (b - a) * t)
