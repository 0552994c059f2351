"""
Scalar Field Grid

Two chemical concentration arrays (U, V) over a width x height torus.
Arrays are float32, shaped (height, width), so the flat row-major index
of cell (x, y) is y * width + x.

Every write clamps into [-1, 1]; non-finite values are rejected.
"""

import numpy as np

from .utils import get_wrapping_index

FIELD_MIN = -1.0
FIELD_MAX = 1.0

REST_U = 1.0
REST_V = 0.0


class ScalarField:
    """One generation of the (U, V) concentration field."""

    def __init__(self, width, height):
        if int(width) != width or int(height) != height or width <= 0 or height <= 0:
            raise ValueError(
                f"Field dimensions must be positive integers, got {width}x{height}")
        self.width = int(width)
        self.height = int(height)
        self.U = np.full((self.height, self.width), REST_U, dtype=np.float32)
        self.V = np.full((self.height, self.width), REST_V, dtype=np.float32)

    def __len__(self):
        return self.width * self.height

    def index(self, x, y):
        return get_wrapping_index(x, y, self.width, self.height)

    def get(self, x, y):
        """(u, v) at (x, y), wrapping around the torus."""
        return self.get_by_index(self.index(x, y))

    def get_by_index(self, index):
        """(u, v) at a flat row-major index. No wrapping, no clamping."""
        if not 0 <= index < len(self):
            raise IndexError(
                f"index {index} out of range for {self.width}x{self.height} field")
        y, x = divmod(index, self.width)
        return float(self.U[y, x]), float(self.V[y, x])

    def set(self, x, y, value):
        """Write (u, v) at (x, y), clamped into [-1, 1]."""
        u, v = checked_pair(value)
        y, x = divmod(self.index(x, y), self.width)
        self.U[y, x] = min(FIELD_MAX, max(FIELD_MIN, u))
        self.V[y, x] = min(FIELD_MAX, max(FIELD_MIN, v))

    def set_all(self, values):
        """Replace the whole field from width*height (u, v) pairs.

        Accepts a sequence of pairs or an (N, 2) array.
        """
        arr = np.array(values, dtype=np.float64)
        if arr.size == 0:
            arr = arr.reshape(0, 2)
        if arr.ndim != 2 or arr.shape[1] != 2:
            raise ValueError(f"Expected (u, v) pairs, got array of shape {arr.shape}")
        if arr.shape[0] != len(self):
            raise ValueError(
                f"Values length must match grid size: got {arr.shape[0]}, "
                f"expected {len(self)}")
        if not np.isfinite(arr).all():
            raise ValueError("Field values must be finite")
        np.clip(arr, FIELD_MIN, FIELD_MAX, out=arr)
        self.U[:] = arr[:, 0].reshape(self.height, self.width)
        self.V[:] = arr[:, 1].reshape(self.height, self.width)

    def load_arrays(self, U, V):
        """Replace U and V from two (height, width) arrays (clamped)."""
        U = np.asarray(U, dtype=np.float32)
        V = np.asarray(V, dtype=np.float32)
        shape = (self.height, self.width)
        if U.shape != shape or V.shape != shape:
            raise ValueError(f"Expected arrays of shape {shape}, got {U.shape} and {V.shape}")
        if not (np.isfinite(U).all() and np.isfinite(V).all()):
            raise ValueError("Field values must be finite")
        np.clip(U, FIELD_MIN, FIELD_MAX, out=self.U)
        np.clip(V, FIELD_MIN, FIELD_MAX, out=self.V)

    def uvs(self):
        """Read-only (N, 2) float32 snapshot in row-major order."""
        out = np.empty((len(self), 2), dtype=np.float32)
        out[:, 0] = self.U.ravel()
        out[:, 1] = self.V.ravel()
        out.flags.writeable = False
        return out


def checked_pair(value):
    u, v = value
    u = float(u)
    v = float(v)
    if not (np.isfinite(u) and np.isfinite(v)):
        raise ValueError(f"Field values must be finite, got ({u}, {v})")
    return u, v
