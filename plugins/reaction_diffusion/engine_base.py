"""
Abstract Base Class for Reaction-Diffusion Engines

All Gray-Scott backends (single-thread numpy, thread pool, torch device)
implement this interface so the simulator can drive any of them
interchangeably. The base class owns the parameters, the nutrient
pattern selection and the Idle/Stepping state machine; subclasses own
the double-buffered field storage and the step itself.
"""

import enum
from abc import ABC, abstractmethod
from dataclasses import dataclass, asdict

import numpy as np

from .nutrient import NutrientPattern, nutrient_factor

DEFAULT_FEED_RATE = 0.055
DEFAULT_KILL_RATE = 0.062
DEFAULT_DIFFUSION_U = 1.0
DEFAULT_DIFFUSION_V = 0.5
DEFAULT_TIME_STEP = 1.0


@dataclass
class SimulationParameters:
    feed_rate: float = DEFAULT_FEED_RATE
    kill_rate: float = DEFAULT_KILL_RATE
    diffusion_u: float = DEFAULT_DIFFUSION_U
    diffusion_v: float = DEFAULT_DIFFUSION_V
    time_step: float = DEFAULT_TIME_STEP

    def __post_init__(self):
        for name, value in asdict(self).items():
            value = float(value)
            if not np.isfinite(value):
                raise ValueError(f"{name} must be finite, got {value}")
            setattr(self, name, float(np.float32(value)))

    def as_dict(self):
        return asdict(self)


class EngineState(enum.Enum):
    IDLE = "idle"
    STEPPING = "stepping"


class RDEngine(ABC):
    """Base class for Gray-Scott engines."""

    engine_name = ""   # e.g. "numpy", "threads"
    engine_label = ""  # e.g. "NumPy", "Thread Pool"

    def __init__(self, width, height, feed_rate=DEFAULT_FEED_RATE,
                 kill_rate=DEFAULT_KILL_RATE, diffusion_u=DEFAULT_DIFFUSION_U,
                 diffusion_v=DEFAULT_DIFFUSION_V, time_step=DEFAULT_TIME_STEP):
        self.width = int(width)
        self.height = int(height)
        self.params = SimulationParameters(
            feed_rate, kill_rate, diffusion_u, diffusion_v, time_step)
        self.state = EngineState.IDLE
        self.generation = 0
        self.nutrient_pattern = NutrientPattern.UNIFORM
        self.nutrient_reversed = False
        self.noise_seed = 0

    # -- stepping ---------------------------------------------------------

    def update(self, delta_time=1.0):
        """Advance one generation.

        The effective step is params.time_step * delta_time. The step
        either replaces the whole generation or, if it raises, leaves
        the previous one current.
        """
        if self.state is EngineState.STEPPING:
            raise RuntimeError("update() called while a step is in flight")
        delta_time = float(delta_time)
        if not np.isfinite(delta_time) or delta_time < 0:
            raise ValueError(f"delta_time must be finite and >= 0, got {delta_time}")
        self.state = EngineState.STEPPING
        try:
            self._advance(self.params.time_step * delta_time)
            self.generation += 1
        finally:
            self.state = EngineState.IDLE

    def step_n(self, n, delta_time=1.0):
        """Advance n generations."""
        for _ in range(n):
            self.update(delta_time)

    @abstractmethod
    def _advance(self, dt):
        """Compute the next generation from the current one and flip."""

    # -- field access -----------------------------------------------------

    @abstractmethod
    def get(self, x, y):
        """(u, v) at (x, y), wrapping."""

    @abstractmethod
    def get_by_index(self, index):
        """(u, v) at a flat row-major index; IndexError when out of range."""

    @abstractmethod
    def set(self, x, y, value):
        """Write one cell of the current generation (clamped)."""

    @abstractmethod
    def set_all(self, values):
        """Replace the current generation from width*height (u, v) pairs."""

    @abstractmethod
    def uvs(self):
        """Read-only (width*height, 2) snapshot of the current generation."""

    @abstractmethod
    def load_arrays(self, U, V):
        """Replace the current generation from two (height, width) arrays."""

    def clear(self):
        """Reset every cell to the rest state (u=1, v=0)."""
        U = np.ones((self.height, self.width), dtype=np.float32)
        V = np.zeros((self.height, self.width), dtype=np.float32)
        self.load_arrays(U, V)
        self.generation = 0

    # -- parameters -------------------------------------------------------

    def update_rates(self, feed_rate, kill_rate):
        """Change feed/kill; used from the next step on."""
        self.set_params(feed_rate=feed_rate, kill_rate=kill_rate)

    def set_params(self, **params):
        current = self.params.as_dict()
        unknown = set(params) - set(current)
        if unknown:
            raise ValueError(f"Unknown parameters: {sorted(unknown)}")
        current.update({k: v for k, v in params.items() if v is not None})
        self.params = SimulationParameters(**current)
        self._params_changed()

    def _params_changed(self):
        """Hook for backends that mirror parameters into device memory."""

    def get_params(self):
        return self.params.as_dict()

    # -- nutrient pattern -------------------------------------------------

    def set_nutrient_pattern(self, pattern_id, reversed=False):
        pattern = NutrientPattern.from_index(pattern_id)
        self.nutrient_pattern, self.nutrient_reversed = pattern, bool(reversed)

    def toggle_nutrient_pattern_reversal(self):
        self.nutrient_reversed = not self.nutrient_reversed

    def nutrient_factor(self, x, y):
        """Current pattern's factor at (x, y)."""
        return nutrient_factor(self.nutrient_pattern, x, y, self.width, self.height,
                               reversed=self.nutrient_reversed, seed=self.noise_seed)

    # -- introspection ----------------------------------------------------

    @property
    def stats(self):
        """Return current field statistics."""
        uv = self.uvs()
        V = uv[:, 1]
        return {
            "generation": self.generation,
            "mass": float(V.sum()),
            "mean": float(V.mean()),
            "max": float(V.max()),
            "alive_pct": float((V > 0.01).sum()) / V.size * 100,
        }

    @classmethod
    def get_slider_defs(cls):
        """Slider definitions for a control panel.

        Each entry is a dict:
            {"key": "feed_rate", "label": "Feed (F)", "section": "REACTION",
             "min": 0.0, "max": 0.1, "default": 0.055, "fmt": ".4f"}
        """
        return [
            {"key": "feed_rate", "label": "Feed (F)", "section": "REACTION",
             "min": 0.0, "max": 0.10, "default": DEFAULT_FEED_RATE, "fmt": ".4f"},
            {"key": "kill_rate", "label": "Kill (k)", "section": "REACTION",
             "min": 0.0, "max": 0.08, "default": DEFAULT_KILL_RATE, "fmt": ".4f"},
            {"key": "diffusion_u", "label": "Diffuse U", "section": "DIFFUSION",
             "min": 0.0, "max": 1.0, "default": DEFAULT_DIFFUSION_U, "fmt": ".3f"},
            {"key": "diffusion_v", "label": "Diffuse V", "section": "DIFFUSION",
             "min": 0.0, "max": 1.0, "default": DEFAULT_DIFFUSION_V, "fmt": ".3f"},
            {"key": "time_step", "label": "Time step", "section": "INTEGRATION",
             "min": 0.1, "max": 1.5, "default": DEFAULT_TIME_STEP, "fmt": ".2f"},
        ]
