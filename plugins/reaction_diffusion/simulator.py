"""
RDSimulator: headless reaction-diffusion core

Owns one Gray-Scott engine plus all the state a front end needs around
it: model preset, smoothed feed/kill rates, gradient / LUT color source
with cross-fade transitions, nutrient-modulated brush painting, and
frame rendering. No windowing dependency; a viewer only has to forward
input and blit the returned frames.

Usage:
    from reaction_diffusion.simulator import RDSimulator
    sim = RDSimulator(256, 256, preset_key="mitosis")
    sim.paint(128, 128)
    frame = sim.step(0.016)  # (H, W, 3) uint8
"""

import time

import numpy as np

from .engine_base import DEFAULT_DIFFUSION_U, DEFAULT_DIFFUSION_V, DEFAULT_TIME_STEP
from .gradient import apply_lut
from .gradient_presets import GRADIENT_ORDER, get_gradient
from .gray_scott import GrayScott
from .parallel import ParallelGrayScott
from .gpu import TorchGrayScott, DeviceInitError
from .lut_manager import LutManager
from .nutrient import NutrientPattern
from .presets import PRESET_ORDER, preset_rates
from .smoothing import SmoothedParameter
from .transition import LutTransition

# Engine class registry
ENGINE_CLASSES = {
    "numpy": GrayScott,
    "threads": ParallelGrayScott,
    "torch": TorchGrayScott,
}

BRUSH_RADIUS = 5
BRUSH_U = 0.5
BRUSH_V = 0.99
NOISE_V = 0.8


def create_engine(backend, width, height, **kwargs):
    """Instantiate an engine by backend name.

    "auto" tries the torch device engine and falls back to the thread
    pool when no device can be acquired.
    """
    if backend == "auto":
        try:
            return TorchGrayScott(width, height, **kwargs)
        except DeviceInitError as e:
            print(f"[RD] Torch device unavailable ({e}), using thread pool")
            return ParallelGrayScott(width, height, **kwargs)
    try:
        cls = ENGINE_CLASSES[backend]
    except KeyError:
        raise ValueError(f"Unknown backend: {backend!r}. "
                         f"Supported: {list(ENGINE_CLASSES.keys())}") from None
    return cls(width, height, **kwargs)


def uv_to_t(uvs):
    """Map (u, v) pairs to gradient positions: t = (value + 1) / 2,
    value = 0.5 + 0.5 * sin(20 v + 10 u)."""
    uvs = np.asarray(uvs, dtype=np.float32)
    value = 0.5 + 0.5 * np.sin(20.0 * uvs[:, 1] + 10.0 * uvs[:, 0])
    return (value + 1.0) / 2.0


class RDSimulator:
    """Headless simulation + color state for an interactive front end.

    Args:
        width, height: Grid size in cells
        preset_key: Initial model preset (see presets.PRESET_ORDER)
        backend: "numpy", "threads", "torch" or "auto"
        gradient: Initial gradient preset name
        lut_manager: LutManager to draw LUTs from (a default one is built)
        transition_duration: Seconds for color source cross-fades
        rate_smoothing: Time constant (s) for feed/kill drift; 0 snaps
        clock: Time source for transitions (seconds, monotonic)
    """

    def __init__(self, width=256, height=256, preset_key="brain_coral",
                 backend="numpy", gradient="rainbow", lut_manager=None,
                 transition_duration=1.0, rate_smoothing=0.0,
                 diffusion_u=DEFAULT_DIFFUSION_U, diffusion_v=DEFAULT_DIFFUSION_V,
                 time_step=DEFAULT_TIME_STEP, steps_per_frame=1,
                 clock=time.monotonic, **engine_kwargs):
        feed, kill = preset_rates(preset_key)
        self.preset_key = preset_key
        self.engine = create_engine(
            backend, width, height, feed_rate=feed, kill_rate=kill,
            diffusion_u=diffusion_u, diffusion_v=diffusion_v,
            time_step=time_step, **engine_kwargs)
        self.steps_per_frame = steps_per_frame
        self.brush_radius = BRUSH_RADIUS

        # Smoothed feed/kill (EMA drift between presets)
        self.smoothed_params = {
            "feed_rate": SmoothedParameter(feed, time_constant=rate_smoothing),
            "kill_rate": SmoothedParameter(kill, time_constant=rate_smoothing),
        }

        # Color source: a gradient preset, or a named LUT when lut_name is set
        self.clock = clock
        self.lut_manager = lut_manager if lut_manager is not None else LutManager()
        self.gradient_key = gradient
        self.gradient = get_gradient(gradient)
        self.lut_name = None
        self.lut_reversed = False
        self.color_transition = LutTransition(
            self._target_table(), duration=transition_duration, clock=clock)

    @property
    def width(self):
        return self.engine.width

    @property
    def height(self):
        return self.engine.height

    # -----------------------------------------------------------------------
    # Model presets
    # -----------------------------------------------------------------------

    def apply_preset(self, key):
        """Switch feed/kill to a preset (drifts if rate_smoothing > 0)."""
        feed, kill = preset_rates(key)
        self.preset_key = key
        self.smoothed_params["feed_rate"].set_target(feed)
        self.smoothed_params["kill_rate"].set_target(kill)
        for param in self.smoothed_params.values():
            if param.tau == 0:
                param.snap(param.target)
        self._sync_rates(0.0)

    def cycle_preset(self):
        i = PRESET_ORDER.index(self.preset_key)
        self.apply_preset(PRESET_ORDER[(i + 1) % len(PRESET_ORDER)])
        return self.preset_key

    def _sync_rates(self, dt):
        feed = self.smoothed_params["feed_rate"]
        kill = self.smoothed_params["kill_rate"]
        # No elapsed time, no drift
        feed.update(dt)
        kill.update(dt)
        # Engine parameters are stored at float32 precision
        rates = (float(np.float32(feed.get_value())), float(np.float32(kill.get_value())))
        params = self.engine.params
        if rates != (params.feed_rate, params.kill_rate):
            self.engine.update_rates(*rates)

    # -----------------------------------------------------------------------
    # Color source
    # -----------------------------------------------------------------------

    def _target_table(self):
        if self.lut_name is not None:
            lut = self.lut_manager.load_lut(self.lut_name)
            if self.lut_reversed:
                lut.reverse()
            return lut.as_table()
        table = self.gradient.lut.table[:, :3]
        return table[::-1] if self.lut_reversed else table

    def _retarget_colors(self):
        self.color_transition.start(self._target_table(), now=self.clock())

    def set_gradient(self, name):
        """Use a gradient preset as the color source (cross-faded)."""
        self.gradient = get_gradient(name)
        self.gradient_key = name
        self.lut_name = None
        self._retarget_colors()

    def cycle_gradient(self):
        i = GRADIENT_ORDER.index(self.gradient_key)
        self.set_gradient(GRADIENT_ORDER[(i + 1) % len(GRADIENT_ORDER)])
        return self.gradient_key

    def set_lut(self, name):
        """Use a registered LUT as the color source (cross-faded).

        Raises LutNotFoundError / InvalidLutDataError without changing
        the current color source.
        """
        self.lut_manager.load_lut(name)
        self.lut_name = name
        self._retarget_colors()

    def cycle_lut(self):
        names = self.lut_manager.get_available_luts()
        if not names:
            return None
        if self.lut_name in names:
            name = names[(names.index(self.lut_name) + 1) % len(names)]
        else:
            name = names[0]
        self.set_lut(name)
        return name

    def set_lut_reversed(self, reversed):
        if bool(reversed) != self.lut_reversed:
            self.lut_reversed = bool(reversed)
            self._retarget_colors()

    def toggle_lut_reversed(self):
        self.set_lut_reversed(not self.lut_reversed)

    # -----------------------------------------------------------------------
    # Nutrient pattern
    # -----------------------------------------------------------------------

    def cycle_nutrient_pattern(self):
        patterns = NutrientPattern.all()
        nxt = patterns[(patterns.index(self.engine.nutrient_pattern) + 1) % len(patterns)]
        self.engine.set_nutrient_pattern(nxt, self.engine.nutrient_reversed)
        return nxt

    def toggle_nutrient_pattern_reversal(self):
        self.engine.toggle_nutrient_pattern_reversal()

    # -----------------------------------------------------------------------
    # Field editing
    # -----------------------------------------------------------------------

    def _brush_cells(self, cx, cy, radius):
        """In-bounds cells strictly inside a disk of the given radius."""
        for dy in range(-radius, radius + 1):
            for dx in range(-radius, radius + 1):
                x, y = cx + dx, cy + dy
                if not (0 <= x < self.width and 0 <= y < self.height):
                    continue
                if radius > 0 and (dx * dx + dy * dy) ** 0.5 / radius >= 1.0:
                    continue
                yield x, y

    def paint(self, cx, cy, radius=None):
        """Seed V at (cx, cy), scaled by the nutrient pattern per cell."""
        radius = self.brush_radius if radius is None else radius
        for x, y in self._brush_cells(int(cx), int(cy), radius):
            factor = self.engine.nutrient_factor(x, y)
            self.engine.set(x, y, (BRUSH_U, BRUSH_V * factor))

    def erase(self, cx, cy, radius=None):
        """Restore the rest state (u=1, v=0) around (cx, cy)."""
        radius = self.brush_radius if radius is None else radius
        for x, y in self._brush_cells(int(cx), int(cy), radius):
            self.engine.set(x, y, (1.0, 0.0))

    def clear(self):
        self.engine.clear()

    def fill_with_noise(self, seed=None):
        """Every cell u=1, v randomly 0 or 0.8 with equal odds."""
        rng = np.random.default_rng(seed)
        V = np.where(rng.random((self.height, self.width)) > 0.5, 0.0, NOISE_V)
        U = np.ones((self.height, self.width), dtype=np.float32)
        self.engine.load_arrays(U, V.astype(np.float32))

    # -----------------------------------------------------------------------
    # Frame loop
    # -----------------------------------------------------------------------

    def step(self, dt=0.0):
        """Advance rates and steps_per_frame generations; return the frame.

        Args:
            dt: Seconds since the previous frame (drives rate smoothing)

        Returns:
            (H, W, 3) uint8 array
        """
        self._sync_rates(dt)
        for _ in range(self.steps_per_frame):
            self.engine.update()
        return self.render()

    def render(self, now=None):
        """(H, W, 3) uint8 frame of the current generation."""
        now = self.clock() if now is None else now
        table = self.color_transition.current(now)
        t = uv_to_t(self.engine.uvs())
        rgb = apply_lut(t, table)[:, :3]
        return rgb.reshape(self.height, self.width, 3)

    def render_float(self, dt=0.0):
        """step(dt) converted to (H, W, 3) float32 in [0, 1]."""
        return self.step(dt).astype(np.float32) / 255.0

    @property
    def status(self):
        """Display strings for an overlay."""
        return {
            "preset": self.preset_key,
            "nutrient": self.engine.nutrient_pattern.label,
            "nutrient_reversed": self.engine.nutrient_reversed,
            "colors": self.lut_name or self.gradient_key,
            "colors_reversed": self.lut_reversed,
            "generation": self.engine.generation,
            "backend": self.engine.engine_name,
        }

    def close(self):
        close = getattr(self.engine, "close", None)
        if close is not None:
            close()
