"""
Gray-Scott Reaction-Diffusion Engine

Two chemical species (U, V) react and diffuse on a 2D torus:
  U + 2V -> 3V  (autocatalytic reaction)
  U is continuously fed in, V is continuously removed.

Equations:
  dU/dt = Du * laplacian(U) - U*V^2 + F*(1-U)
  dV/dt = Dv * laplacian(V) + U*V^2 - (F+k)*V

Each step reads a halo-padded snapshot of the current generation and
writes the other buffer of a double-buffered pair, so no cell ever sees
a value written during the same step.

References:
  Pearson, "Complex Patterns in a Simple System" (1993)
  Karl Sims, RD Tool (karlsims.com/rdtool.html)
"""

import numpy as np

from .engine_base import (
    RDEngine, DEFAULT_FEED_RATE, DEFAULT_KILL_RATE,
    DEFAULT_DIFFUSION_U, DEFAULT_DIFFUSION_V, DEFAULT_TIME_STEP,
)
from .field import ScalarField, FIELD_MIN, FIELD_MAX

# 9-point stencil: weights sum to zero
CENTER_WEIGHT = -1.0
EDGE_WEIGHT = 0.2
DIAGONAL_WEIGHT = 0.05

LAPLACIAN_KERNEL = np.array([
    [DIAGONAL_WEIGHT, EDGE_WEIGHT, DIAGONAL_WEIGHT],
    [EDGE_WEIGHT, CENTER_WEIGHT, EDGE_WEIGHT],
    [DIAGONAL_WEIGHT, EDGE_WEIGHT, DIAGONAL_WEIGHT],
], dtype=np.float32)


def wrap_pad(field, out=None):
    """Copy field into out with a one-cell toroidal halo.

    Uses pad+slice (one copy) instead of 8 np.roll calls.
    """
    h, w = field.shape
    if out is None:
        out = np.empty((h + 2, w + 2), dtype=field.dtype)
    out[1:-1, 1:-1] = field
    out[0, 1:-1] = field[-1, :]
    out[-1, 1:-1] = field[0, :]
    out[1:-1, 0] = field[:, -1]
    out[1:-1, -1] = field[:, 0]
    out[0, 0] = field[-1, -1]
    out[0, -1] = field[-1, 0]
    out[-1, 0] = field[0, -1]
    out[-1, -1] = field[0, 0]
    return out


def laplacian_padded(p, out=None, tmp=None):
    """9-point laplacian of the interior of a halo-padded block."""
    shape = (p.shape[0] - 2, p.shape[1] - 2)
    if out is None:
        out = np.empty(shape, dtype=p.dtype)
    if tmp is None:
        tmp = np.empty(shape, dtype=p.dtype)

    # Cardinal neighbours
    np.add(p[:-2, 1:-1], p[2:, 1:-1], out=out)
    out += p[1:-1, :-2]
    out += p[1:-1, 2:]
    out *= p.dtype.type(EDGE_WEIGHT)
    # Diagonals into tmp, then add
    np.add(p[:-2, :-2], p[:-2, 2:], out=tmp)
    tmp += p[2:, :-2]
    tmp += p[2:, 2:]
    tmp *= p.dtype.type(DIAGONAL_WEIGHT)
    out += tmp
    np.multiply(p[1:-1, 1:-1], p.dtype.type(CENTER_WEIGHT), out=tmp)
    out += tmp
    return out


def laplacian(field, out=None):
    """9-point laplacian of a whole toroidal field."""
    return laplacian_padded(wrap_pad(field), out)


class StepWorkspace:
    """Pre-allocated work buffers for one block of rows.

    Allocated once per block so steady-state stepping never allocates.
    """

    def __init__(self, rows, cols, dtype=np.float32):
        shape = (rows, cols)
        self.lap_u = np.empty(shape, dtype=dtype)
        self.lap_v = np.empty(shape, dtype=dtype)
        self.uvv = np.empty(shape, dtype=dtype)
        self.tmp = np.empty(shape, dtype=dtype)
        self.out_u = np.empty(shape, dtype=dtype)
        self.out_v = np.empty(shape, dtype=dtype)


def gray_scott_step(u_pad, v_pad, params, dt, ws=None):
    """Next-generation (u, v) for the interior of halo-padded blocks.

    u_pad/v_pad are read only. Returns (ws.out_u, ws.out_v), clamped
    into [-1, 1].
    """
    rows, cols = u_pad.shape[0] - 2, u_pad.shape[1] - 2
    if ws is None:
        ws = StepWorkspace(rows, cols, u_pad.dtype)
    f32 = u_pad.dtype.type
    feed = f32(params.feed_rate)
    kill = f32(params.kill_rate)
    Du = f32(params.diffusion_u)
    Dv = f32(params.diffusion_v)
    dt = f32(dt)

    u = u_pad[1:-1, 1:-1]
    v = v_pad[1:-1, 1:-1]

    laplacian_padded(u_pad, ws.lap_u, ws.tmp)
    laplacian_padded(v_pad, ws.lap_v, ws.tmp)

    # uvv = U * V * V
    np.multiply(v, v, out=ws.uvv)
    ws.uvv *= u

    # dU = Du*lap_U - uvv + feed*(1-U)
    ws.lap_u *= Du
    ws.lap_u -= ws.uvv
    np.subtract(f32(1.0), u, out=ws.tmp)
    ws.tmp *= feed
    ws.lap_u += ws.tmp
    ws.lap_u *= dt
    np.add(u, ws.lap_u, out=ws.out_u)

    # dV = Dv*lap_V + uvv - (feed+kill)*V
    ws.lap_v *= Dv
    ws.lap_v += ws.uvv
    np.multiply(v, f32(feed + kill), out=ws.tmp)
    ws.lap_v -= ws.tmp
    ws.lap_v *= dt
    np.add(v, ws.lap_v, out=ws.out_v)

    np.clip(ws.out_u, FIELD_MIN, FIELD_MAX, out=ws.out_u)
    np.clip(ws.out_v, FIELD_MIN, FIELD_MAX, out=ws.out_v)
    return ws.out_u, ws.out_v


class GrayScott(RDEngine):
    """Single-threaded numpy engine with a double-buffered field."""

    engine_name = "numpy"
    engine_label = "NumPy"

    def __init__(self, width, height, feed_rate=DEFAULT_FEED_RATE,
                 kill_rate=DEFAULT_KILL_RATE, diffusion_u=DEFAULT_DIFFUSION_U,
                 diffusion_v=DEFAULT_DIFFUSION_V, time_step=DEFAULT_TIME_STEP):
        super().__init__(width, height, feed_rate, kill_rate,
                         diffusion_u, diffusion_v, time_step)
        self._buffers = [ScalarField(width, height), ScalarField(width, height)]
        self._current = 0

        # Snapshot of the current generation with a toroidal halo
        self._u_pad = np.empty((self.height + 2, self.width + 2), dtype=np.float32)
        self._v_pad = np.empty((self.height + 2, self.width + 2), dtype=np.float32)
        self._workspace = StepWorkspace(self.height, self.width)

    @property
    def field(self):
        """Current generation (treat as read-only between steps)."""
        return self._buffers[self._current]

    @property
    def current_buffer(self):
        return self._current

    def _snapshot(self):
        cur = self._buffers[self._current]
        wrap_pad(cur.U, self._u_pad)
        wrap_pad(cur.V, self._v_pad)

    def _advance(self, dt):
        self._snapshot()
        u, v = gray_scott_step(self._u_pad, self._v_pad, self.params, dt,
                               self._workspace)
        nxt = self._buffers[1 - self._current]
        nxt.U[:] = u
        nxt.V[:] = v
        self._current = 1 - self._current

    def get(self, x, y):
        return self.field.get(x, y)

    def get_by_index(self, index):
        return self.field.get_by_index(index)

    def set(self, x, y, value):
        self.field.set(x, y, value)

    def set_all(self, values):
        self.field.set_all(values)

    def load_arrays(self, U, V):
        self.field.load_arrays(U, V)

    def uvs(self):
        return self.field.uvs()
