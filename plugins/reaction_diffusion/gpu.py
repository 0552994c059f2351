"""
Torch Device Engine

Runs the Gray-Scott update as one batched convolution pass on a torch
device (CUDA, Apple MPS, or CPU). Two (1, 2, H, W) tensors form the
double buffer; each step reads buffers[current], writes the other one
and flips `current`, so there is no read/write hazard inside a pass and
no snapshot copy.

Buffers, the stencil kernel and the parameter tensor are allocated once;
parameter changes overwrite the parameter tensor in place.
"""

import numpy as np
import torch
import torch.nn.functional as F

from .engine_base import (
    RDEngine, DEFAULT_FEED_RATE, DEFAULT_KILL_RATE,
    DEFAULT_DIFFUSION_U, DEFAULT_DIFFUSION_V, DEFAULT_TIME_STEP,
)
from .field import ScalarField, FIELD_MIN, FIELD_MAX, checked_pair
from .gray_scott import LAPLACIAN_KERNEL


class DeviceInitError(RuntimeError):
    """The requested torch device could not be acquired."""


def default_device():
    """Best available device: CUDA, then MPS, then CPU."""
    if torch.cuda.is_available():
        return torch.device("cuda")
    mps = getattr(torch.backends, "mps", None)
    if mps is not None and mps.is_available():
        return torch.device("mps")
    return torch.device("cpu")


def resolve_device(device=None):
    if device is None:
        return default_device()
    try:
        dev = torch.device(device)
    except (RuntimeError, TypeError) as e:
        raise DeviceInitError(f"Invalid device {device!r}: {e}") from e
    if dev.type == "cuda" and not torch.cuda.is_available():
        raise DeviceInitError("CUDA device requested but CUDA is not available")
    if dev.type == "mps":
        mps = getattr(torch.backends, "mps", None)
        if mps is None or not mps.is_available():
            raise DeviceInitError("MPS device requested but MPS is not available")
    return dev


class TorchGrayScott(RDEngine):
    """Gray-Scott engine with double-buffered device storage."""

    engine_name = "torch"
    engine_label = "Torch Device"

    def __init__(self, width, height, feed_rate=DEFAULT_FEED_RATE,
                 kill_rate=DEFAULT_KILL_RATE, diffusion_u=DEFAULT_DIFFUSION_U,
                 diffusion_v=DEFAULT_DIFFUSION_V, time_step=DEFAULT_TIME_STEP,
                 device=None):
        super().__init__(width, height, feed_rate, kill_rate,
                         diffusion_u, diffusion_v, time_step)
        # Host-side field used to validate and clamp bulk writes
        self._staging = ScalarField(width, height)
        self.device = resolve_device(device)

        try:
            rest = torch.from_numpy(
                np.stack([self._staging.U, self._staging.V])[np.newaxis])
            self._buffers = [rest.to(self.device).clone(), rest.to(self.device).clone()]
            kernel = torch.from_numpy(LAPLACIAN_KERNEL)
            # One 3x3 stencil per channel (grouped convolution)
            self._kernel = kernel.expand(2, 1, 3, 3).contiguous().to(self.device)
            self._params_t = torch.empty(4, dtype=torch.float32, device=self.device)
        except RuntimeError as e:
            raise DeviceInitError(f"Could not allocate buffers on {self.device}: {e}") from e
        self._current = 0
        self._params_changed()

    @property
    def current_buffer(self):
        return self._current

    def _params_changed(self):
        p = self.params
        values = torch.tensor(
            [p.feed_rate, p.kill_rate, p.diffusion_u, p.diffusion_v],
            dtype=torch.float32)
        self._params_t.copy_(values)

    @torch.no_grad()
    def _advance(self, dt):
        cur = self._buffers[self._current]
        nxt = self._buffers[1 - self._current]

        padded = F.pad(cur, (1, 1, 1, 1), mode="circular")
        lap = F.conv2d(padded, self._kernel, groups=2)

        feed, kill, Du, Dv = self._params_t
        u = cur[:, 0]
        v = cur[:, 1]
        uvv = u * v * v
        du = Du * lap[:, 0] - uvv + feed * (1.0 - u)
        dv = Dv * lap[:, 1] + uvv - (feed + kill) * v

        nxt[:, 0] = torch.clamp(u + du * dt, FIELD_MIN, FIELD_MAX)
        nxt[:, 1] = torch.clamp(v + dv * dt, FIELD_MIN, FIELD_MAX)
        self._current = 1 - self._current

    # -- field access -----------------------------------------------------

    def _cell(self, index):
        if not 0 <= index < self.width * self.height:
            raise IndexError(
                f"index {index} out of range for {self.width}x{self.height} field")
        return divmod(index, self.width)

    def get(self, x, y):
        return self.get_by_index(self._staging.index(x, y))

    def get_by_index(self, index):
        y, x = self._cell(index)
        u, v = self._buffers[self._current][0, :, y, x].tolist()
        return u, v

    def set(self, x, y, value):
        u, v = checked_pair(value)
        y, x = self._cell(self._staging.index(x, y))
        cur = self._buffers[self._current]
        cur[0, 0, y, x] = min(FIELD_MAX, max(FIELD_MIN, u))
        cur[0, 1, y, x] = min(FIELD_MAX, max(FIELD_MIN, v))

    def _upload_staging(self):
        host = np.stack([self._staging.U, self._staging.V])[np.newaxis]
        self._buffers[self._current].copy_(torch.from_numpy(host))

    def set_all(self, values):
        self._staging.set_all(values)
        self._upload_staging()

    def load_arrays(self, U, V):
        self._staging.load_arrays(U, V)
        self._upload_staging()

    def uvs(self):
        cur = self._buffers[self._current][0]
        out = cur.permute(1, 2, 0).reshape(-1, 2).cpu().numpy().copy()
        out.flags.writeable = False
        return out
