"""
Gray-Scott Parameter Presets

Each preset is a feed/kill pair known to produce a recognisable
pattern family with the default diffusion rates (Du=1.0, Dv=0.5).
Values follow the usual Pearson / Munafo parameter map.
"""

PRESETS = {
    "soliton_collapse": {
        "name": "Soliton Collapse",
        "description": "Isolated spots that shrink and vanish",
        "feed": 0.022, "kill": 0.060,
    },
    "brain_coral": {
        "name": "Brain Coral",
        "description": "Meandering labyrinth of thick stripes",
        "feed": 0.0545, "kill": 0.062,
    },
    "fingerprint": {
        "name": "Fingerprint",
        "description": "Fine parallel ridges that curl into whorls",
        "feed": 0.037, "kill": 0.060,
    },
    "mitosis": {
        "name": "Mitosis",
        "description": "Spots that grow and divide like cells",
        "feed": 0.0367, "kill": 0.0649,
    },
    "ripples": {
        "name": "Ripples",
        "description": "Concentric waves spreading from disturbances",
        "feed": 0.018, "kill": 0.051,
    },
    "u_skate_world": {
        "name": "U-Skate World",
        "description": "Gliders skating across a stable background",
        "feed": 0.062, "kill": 0.0609,
    },
    "undulating": {
        "name": "Undulating",
        "description": "Slowly breathing, never-settling blobs",
        "feed": 0.026, "kill": 0.051,
    },
}

PRESET_ORDER = list(PRESETS.keys())


def get_preset(name):
    """Get a preset by name. Returns None if not found."""
    return PRESETS.get(name)


def preset_rates(name):
    """(feed, kill) for a preset. Raises KeyError for unknown names."""
    preset = PRESETS.get(name)
    if preset is None:
        raise KeyError(f"Unknown preset {name!r}. Available: {PRESET_ORDER}")
    return preset["feed"], preset["kill"]


def list_presets():
    """Return list of (key, name, description) for all presets."""
    return [(k, PRESETS[k]["name"], PRESETS[k]["description"])
            for k in PRESET_ORDER]
