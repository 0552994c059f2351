"""
Thread-Pool Parallel Engine

Fans the Gray-Scott update out across a fixed pool of worker threads.
The grid is split into contiguous bands of rows; every band reads its
slice of the shared, read-only halo-padded snapshot and writes into its
own local accumulator. Accumulators are then copied into the next
buffer in band order and the buffers flip.

numpy releases the GIL inside its array kernels, so bands really do run
concurrently. Each output cell belongs to exactly one band and depends
only on the previous generation, so no synchronization is needed
between bands.
"""

import os
from concurrent.futures import ThreadPoolExecutor

from .engine_base import (
    DEFAULT_FEED_RATE, DEFAULT_KILL_RATE, DEFAULT_DIFFUSION_U,
    DEFAULT_DIFFUSION_V, DEFAULT_TIME_STEP,
)
from .gray_scott import GrayScott, StepWorkspace, gray_scott_step


def partition_rows(height, chunks):
    """Split [0, height) into at most `chunks` contiguous (start, stop) bands."""
    chunks = max(1, min(int(chunks), height))
    base, extra = divmod(height, chunks)
    bands = []
    start = 0
    for i in range(chunks):
        stop = start + base + (1 if i < extra else 0)
        bands.append((start, stop))
        start = stop
    return bands


class ParallelGrayScott(GrayScott):
    """Gray-Scott engine that steps row bands on a thread pool."""

    engine_name = "threads"
    engine_label = "Thread Pool"

    def __init__(self, width, height, feed_rate=DEFAULT_FEED_RATE,
                 kill_rate=DEFAULT_KILL_RATE, diffusion_u=DEFAULT_DIFFUSION_U,
                 diffusion_v=DEFAULT_DIFFUSION_V, time_step=DEFAULT_TIME_STEP,
                 workers=None, chunks=None):
        super().__init__(width, height, feed_rate, kill_rate,
                         diffusion_u, diffusion_v, time_step)
        self.workers = workers or min(8, os.cpu_count() or 1)
        self.bands = partition_rows(self.height, chunks or self.workers * 2)
        # One workspace per band: the band's local accumulator
        self._band_workspaces = [
            StepWorkspace(stop - start, self.width) for start, stop in self.bands
        ]
        self._pool = ThreadPoolExecutor(max_workers=self.workers,
                                        thread_name_prefix="rd-step")

    def _step_band(self, band_index, dt):
        start, stop = self.bands[band_index]
        # Padded rows [start, stop + 2) hold the band plus its halo
        u_pad = self._u_pad[start:stop + 2]
        v_pad = self._v_pad[start:stop + 2]
        return gray_scott_step(u_pad, v_pad, self.params, dt,
                               self._band_workspaces[band_index])

    def _advance(self, dt):
        self._snapshot()
        futures = [self._pool.submit(self._step_band, i, dt)
                   for i in range(len(self.bands))]
        # Collect every band before touching the next buffer so a failed
        # band leaves both generations as they were
        results = [f.result() for f in futures]

        nxt = self._buffers[1 - self._current]
        for (start, stop), (u, v) in zip(self.bands, results):
            nxt.U[start:stop] = u
            nxt.V[start:stop] = v
        self._current = 1 - self._current

    def close(self):
        """Shut down the worker pool."""
        self._pool.shutdown(wait=True)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
        return False
