"""
Nutrient Patterns

Pure spatial functions of (x, y, width, height) returning a factor in
[0, 1]. The factor scales how strongly a painted seed takes hold at a
cell; it never enters the reaction equation itself.

All patterns are evaluated through one vectorized dispatcher, so the
single-cell lookup used by the brush and the full-grid map used for
previews always agree.
"""

import enum
import math

import numpy as np


class NutrientPattern(enum.IntEnum):
    UNIFORM = 0
    CHECKERBOARD = 1
    DIAGONAL_GRADIENT = 2
    RADIAL_GRADIENT = 3
    VERTICAL_STRIPES = 4
    HORIZONTAL_STRIPES = 5
    NOISE = 6
    WAVE_FUNCTION = 7
    COSINE_GRID = 8

    @property
    def label(self):
        return _LABELS[self]

    @classmethod
    def from_index(cls, index):
        try:
            return cls(int(index))
        except ValueError:
            raise ValueError(
                f"Unknown nutrient pattern {index!r}. "
                f"Valid indices: 0-{len(cls) - 1}") from None

    @classmethod
    def all(cls):
        return list(cls)


_LABELS = {
    NutrientPattern.UNIFORM: "Uniform",
    NutrientPattern.CHECKERBOARD: "Checkerboard",
    NutrientPattern.DIAGONAL_GRADIENT: "Diagonal Gradient",
    NutrientPattern.RADIAL_GRADIENT: "Radial Gradient",
    NutrientPattern.VERTICAL_STRIPES: "Vertical Stripes",
    NutrientPattern.HORIZONTAL_STRIPES: "Horizontal Stripes",
    NutrientPattern.NOISE: "Noise",
    NutrientPattern.WAVE_FUNCTION: "Wave Function",
    NutrientPattern.COSINE_GRID: "Cosine Grid",
}

# Pattern tuning
CHECKER_DIVISIONS = 8
STRIPE_COUNT = 8
WAVE_COUNT = 4
COSINE_CELLS = 8


def nutrient_factor(pattern, x, y, width, height, reversed=False, seed=0):
    """Factor in [0, 1] for a single cell."""
    pattern = NutrientPattern.from_index(pattern)
    xs = np.array([x], dtype=np.int64)
    ys = np.array([y], dtype=np.int64)
    factor = float(_evaluate(pattern, xs, ys, width, height, seed)[0])
    return 1.0 - factor if reversed else factor


def nutrient_map(pattern, width, height, reversed=False, seed=0):
    """(height, width) float32 map of the pattern over the whole grid."""
    pattern = NutrientPattern.from_index(pattern)
    Y, X = np.mgrid[:height, :width]
    factor = _evaluate(pattern, X.ravel(), Y.ravel(), width, height, seed)
    factor = factor.reshape(height, width).astype(np.float32)
    if reversed:
        factor = 1.0 - factor
    return factor


def _evaluate(pattern, x, y, width, height, seed):
    nx = x / float(width)
    ny = y / float(height)

    if pattern == NutrientPattern.UNIFORM:
        f = np.ones(x.shape, dtype=np.float64)
    elif pattern == NutrientPattern.CHECKERBOARD:
        cell = max(1, min(width, height) // CHECKER_DIVISIONS)
        f = (((x // cell) + (y // cell)) % 2 == 0).astype(np.float64)
    elif pattern == NutrientPattern.DIAGONAL_GRADIENT:
        f = (nx + ny) / 2.0
    elif pattern == NutrientPattern.RADIAL_GRADIENT:
        cx, cy = width / 2.0, height / 2.0
        max_dist = math.hypot(cx, cy)
        f = 1.0 - np.minimum(1.0, np.hypot(x - cx, y - cy) / max_dist)
    elif pattern == NutrientPattern.VERTICAL_STRIPES:
        f = 0.5 + 0.5 * np.sin(2.0 * np.pi * STRIPE_COUNT * nx)
    elif pattern == NutrientPattern.HORIZONTAL_STRIPES:
        f = 0.5 + 0.5 * np.sin(2.0 * np.pi * STRIPE_COUNT * ny)
    elif pattern == NutrientPattern.NOISE:
        f = cell_noise(x, y, seed)
    elif pattern == NutrientPattern.WAVE_FUNCTION:
        f = (0.5 + 0.25 * np.sin(2.0 * np.pi * WAVE_COUNT * nx)
             + 0.25 * np.cos(2.0 * np.pi * WAVE_COUNT * ny))
    elif pattern == NutrientPattern.COSINE_GRID:
        f = np.abs(np.cos(np.pi * COSINE_CELLS * nx) * np.cos(np.pi * COSINE_CELLS * ny))
    else:
        raise ValueError(f"Unhandled nutrient pattern: {pattern!r}")

    return np.clip(f, 0.0, 1.0)


def cell_noise(x, y, seed=0):
    """Deterministic per-cell noise in [0, 1).

    Hashes (x, y, seed) with the murmur3 64-bit finalizer, so the same
    coordinate always returns the same value while neighbouring cells
    are independent draws.
    """
    x = np.atleast_1d(np.asarray(x, dtype=np.int64)).astype(np.uint64)
    y = np.atleast_1d(np.asarray(y, dtype=np.int64)).astype(np.uint64)
    with np.errstate(over="ignore"):
        h = (x * np.uint64(0x9E3779B97F4A7C15)
             + y * np.uint64(0xC2B2AE3D27D4EB4F)
             + np.uint64(seed & 0xFFFFFFFFFFFFFFFF) * np.uint64(0x165667B19E3779F9))
        h ^= h >> np.uint64(33)
        h *= np.uint64(0xFF51AFD7ED558CCD)
        h ^= h >> np.uint64(33)
        h *= np.uint64(0xC4CEB9FE1A85EC53)
        h ^= h >> np.uint64(33)
    return (h >> np.uint64(11)).astype(np.float64) * (1.0 / (1 << 53))
