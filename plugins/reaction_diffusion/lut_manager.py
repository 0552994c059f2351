"""
LUT Registry

A .lut file is exactly 768 bytes: three 256-byte channel blocks in the
order red, green, blue. LutManager is an explicit registry of named
LUT sources (no module-level state): built-in tables sampled from the
reversed matplotlib colormaps, tables registered from bytes, and .lut
files found on disk. Sources are read lazily; every load_lut call parses
and validates a fresh LutData.
"""

from pathlib import Path

import numpy as np
from matplotlib import colormaps

CHANNEL_SIZE = 256
LUT_FILE_SIZE = CHANNEL_SIZE * 3

BUILTIN_PREFIX = "MATPLOTLIB_"

# Reversed matplotlib colormaps shipped as built-in LUTs
BUILTIN_COLORMAPS = [
    "Accent", "bone", "brg", "bwr", "cool", "coolwarm", "copper",
    "cubehelix", "Dark2", "flag", "gist_earth", "gist_gray", "gist_heat",
    "gist_ncar", "gist_rainbow", "gist_stern", "gist_yarg", "gnuplot",
    "gnuplot2", "gray", "hot", "hsv", "jet", "nipy_spectral", "ocean",
    "Paired", "Pastel1", "Pastel2", "pink", "prism", "rainbow", "seismic",
    "Set1", "Set2", "Set3", "spring", "summer", "tab10", "tab20", "tab20b",
    "tab20c", "terrain", "winter",
]


class LutNotFoundError(LookupError):
    """No LUT is registered under the requested name."""


class InvalidLutDataError(ValueError):
    """LUT data is not exactly 768 bytes."""


class LutData:
    """A named 256-entry RGB table stored as three uint8 channel arrays."""

    def __init__(self, name, red, green, blue):
        self.name = name
        self.red = _channel(red, "red")
        self.green = _channel(green, "green")
        self.blue = _channel(blue, "blue")

    @classmethod
    def from_bytes(cls, name, data):
        data = bytes(data)
        if len(data) != LUT_FILE_SIZE:
            raise InvalidLutDataError(
                f"Invalid LUT size for {name!r}: {len(data)} bytes, "
                f"expected {LUT_FILE_SIZE}")
        buf = np.frombuffer(data, dtype=np.uint8)
        return cls(name, buf[:256], buf[256:512], buf[512:768])

    def to_bytes(self):
        return self.red.tobytes() + self.green.tobytes() + self.blue.tobytes()

    def reverse(self):
        """Reverse each channel in place (entry i becomes entry 255 - i)."""
        self.red[:] = self.red[::-1].copy()
        self.green[:] = self.green[::-1].copy()
        self.blue[:] = self.blue[::-1].copy()

    def as_table(self):
        """(256, 3) uint8 table, interchangeable with GradientLUT.table."""
        return np.stack([self.red, self.green, self.blue], axis=1)

    def __eq__(self, other):
        if not isinstance(other, LutData):
            return NotImplemented
        return (self.name == other.name
                and np.array_equal(self.red, other.red)
                and np.array_equal(self.green, other.green)
                and np.array_equal(self.blue, other.blue))

    def __repr__(self):
        return f"LutData({self.name!r})"


def _channel(values, label):
    arr = np.array(values, dtype=np.uint8).ravel()
    if arr.size != CHANNEL_SIZE:
        raise InvalidLutDataError(
            f"{label} channel must have {CHANNEL_SIZE} entries, got {arr.size}")
    return arr


def colormap_lut_bytes(cmap_name):
    """Sample a matplotlib colormap at 256 points into the .lut layout."""
    cmap = colormaps[cmap_name]
    rgba = cmap(np.linspace(0.0, 1.0, CHANNEL_SIZE))
    rgb = np.round(rgba[:, :3] * 255.0).astype(np.uint8)
    return rgb[:, 0].tobytes() + rgb[:, 1].tobytes() + rgb[:, 2].tobytes()


class LutManager:
    """Registry of named LUT sources."""

    def __init__(self, include_builtin=True):
        self._sources = {}
        if include_builtin:
            for cmap_name in BUILTIN_COLORMAPS:
                reversed_name = cmap_name + "_r"
                if reversed_name in colormaps:
                    self._sources[f"{BUILTIN_PREFIX}{reversed_name}"] = (
                        lambda n=reversed_name: colormap_lut_bytes(n))

    def register(self, name, data):
        """Register raw .lut bytes under name (validated on load)."""
        data = bytes(data)
        self._sources[name] = lambda: data

    def register_file(self, path, name=None):
        path = Path(path)
        self._sources[name or path.stem] = path.read_bytes

    def add_directory(self, directory):
        """Register every *.lut file in directory under its file stem.

        Returns the registered names.
        """
        directory = Path(directory)
        if not directory.is_dir():
            raise FileNotFoundError(f"LUT directory not found: {directory}")
        names = []
        for path in sorted(directory.glob("*.lut")):
            self.register_file(path)
            names.append(path.stem)
        return names

    def __contains__(self, name):
        return name in self._sources

    def __len__(self):
        return len(self._sources)

    def get_available_luts(self):
        return sorted(self._sources)

    def load_lut(self, name):
        """Parse the LUT registered under name.

        Raises LutNotFoundError or InvalidLutDataError.
        """
        try:
            source = self._sources[name]
        except KeyError:
            raise LutNotFoundError(f"LUT {name!r} not found") from None
        return LutData.from_bytes(name, source())
