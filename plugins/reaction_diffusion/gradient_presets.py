"""
Gradient Presets

Named ColorGradient factories. Each builds a fresh RGBA gradient from
black (t=0) to white (t=1) with extra stops in between; stop order in
the code does not matter since add_color_at_t keeps them sorted.
"""

from .gradient import ColorGradient

BLACK = (0, 0, 0, 255)
WHITE = (255, 255, 255, 255)


def rainbow():
    """Purple-red-yellow-green-cyan-blue band over the upper half."""
    gradient = ColorGradient.from_colors(BLACK, WHITE)
    gradient.add_color_at_t(0.45, (131, 58, 180, 255))
    gradient.add_color_at_t(0.50, (243, 31, 42, 255))
    gradient.add_color_at_t(0.55, (253, 252, 29, 255))
    gradient.add_color_at_t(0.60, (29, 253, 49, 255))
    gradient.add_color_at_t(0.85, (29, 220, 253, 255))
    gradient.add_color_at_t(0.95, (30, 29, 253, 255))
    return gradient


def pink_and_blue():
    gradient = ColorGradient.from_colors(BLACK, WHITE)
    gradient.add_color_at_t(0.80, (0, 20, 230, 255))
    gradient.add_color_at_t(0.63, (200, 0, 255, 255))
    gradient.add_color_at_t(0.60, (255, 0, 0, 255))
    gradient.add_color_at_t(0.53, (0, 255, 255, 255))
    gradient.add_color_at_t(0.40, (0, 0, 0, 255))
    return gradient


def protanopia_friendly():
    """Black-blue-yellow-magenta-white, distinguishable with protanopia."""
    gradient = ColorGradient.from_colors(BLACK, WHITE)
    gradient.add_color_at_t(0.20, (0, 0, 0, 255))
    gradient.add_color_at_t(0.40, (0, 0, 255, 255))
    gradient.add_color_at_t(0.60, (255, 255, 0, 255))
    gradient.add_color_at_t(0.80, (255, 0, 255, 255))
    gradient.add_color_at_t(0.90, (255, 255, 255, 255))
    return gradient


def magma():
    """Black through deep purple and red-orange to pale yellow."""
    gradient = ColorGradient.from_colors(BLACK, WHITE)
    gradient.add_color_at_t(0.40, (0, 0, 4, 255))
    gradient.add_color_at_t(0.55, (81, 18, 124, 255))
    gradient.add_color_at_t(0.70, (183, 55, 121, 255))
    gradient.add_color_at_t(0.85, (252, 137, 97, 255))
    gradient.add_color_at_t(0.95, (252, 253, 191, 255))
    return gradient


def monochrome():
    gradient = ColorGradient.from_colors(BLACK, WHITE)
    gradient.add_color_at_t(0.50, (0, 0, 0, 255))
    return gradient


# Registry of all gradient presets
GRADIENTS = {
    "rainbow": rainbow,
    "pink_and_blue": pink_and_blue,
    "protanopia_friendly": protanopia_friendly,
    "magma": magma,
    "monochrome": monochrome,
}

GRADIENT_ORDER = list(GRADIENTS.keys())


def get_gradient(name):
    """Build a fresh gradient by name. Raises KeyError for unknown names."""
    try:
        factory = GRADIENTS[name]
    except KeyError:
        raise KeyError(f"Unknown gradient {name!r}. Available: {GRADIENT_ORDER}") from None
    return factory()
