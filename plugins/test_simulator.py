#!/usr/bin/env python3
"""
Tests for the headless simulator and the snapshot entry point.
"""

import os
import tempfile

import numpy as np
import pytest

from reaction_diffusion.__main__ import main
from reaction_diffusion.gradient_presets import GRADIENT_ORDER, get_gradient
from reaction_diffusion.lut_manager import LutManager, LutNotFoundError
from reaction_diffusion.nutrient import NutrientPattern
from reaction_diffusion.presets import PRESET_ORDER, get_preset, list_presets, preset_rates
from reaction_diffusion.simulator import RDSimulator, uv_to_t

RAMP = bytes(range(256)) * 3


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def _sim(**kwargs):
    manager = LutManager(include_builtin=False)
    manager.register("ramp", RAMP)
    kwargs.setdefault("clock", FakeClock())
    return RDSimulator(32, 24, lut_manager=manager, **kwargs)


def test_paint_seeds_disk():
    sim = _sim()
    sim.paint(16, 12)
    u, v = sim.engine.get(16, 12)
    assert u == 0.5
    assert v == pytest.approx(0.99)
    # Radius 5 disk: distance 5 is outside
    assert sim.engine.get(21, 12) == (1.0, 0.0)
    assert sim.engine.get(20, 12)[0] == 0.5


def test_paint_does_not_wrap():
    sim = _sim()
    sim.paint(0, 0, radius=3)
    assert sim.engine.get(0, 0)[0] == 0.5
    assert sim.engine.get(31, 23) == (1.0, 0.0)
    assert sim.engine.get(-1, 0) == (1.0, 0.0)


def test_paint_uses_nutrient_factor():
    sim = _sim()
    sim.engine.set_nutrient_pattern(NutrientPattern.CHECKERBOARD)
    sim.paint(8, 8, radius=4)
    # 24 rows: checker cells of 3
    assert sim.engine.get(6, 6)[1] == pytest.approx(0.99)
    assert sim.engine.get(9, 6) == (0.5, 0.0)


def test_erase_and_clear():
    sim = _sim()
    sim.paint(10, 10)
    sim.erase(10, 10)
    assert sim.engine.get(10, 10) == (1.0, 0.0)
    sim.paint(10, 10)
    sim.step()
    sim.clear()
    assert sim.engine.generation == 0
    assert (sim.engine.uvs()[:, 1] == 0.0).all()


def test_fill_with_noise():
    sim = _sim()
    sim.fill_with_noise(seed=7)
    uvs = sim.engine.uvs()
    assert (uvs[:, 0] == 1.0).all()
    values = set(np.unique(uvs[:, 1]).tolist())
    assert values == {0.0, float(np.float32(0.8))}


def test_step_returns_frame():
    sim = _sim(steps_per_frame=3)
    sim.paint(16, 12)
    frame = sim.step(1 / 60)
    assert frame.shape == (24, 32, 3)
    assert frame.dtype == np.uint8
    assert sim.engine.generation == 3
    assert sim.render_float().max() <= 1.0


def test_rest_field_renders_one_color():
    sim = _sim()
    frame = sim.render()
    assert (frame == frame[0, 0]).all()
    t = uv_to_t(np.array([[1.0, 0.0]]))[0]
    expected = get_gradient("rainbow").lut.table[int(t * 255), :3]
    np.testing.assert_array_equal(frame[0, 0], expected)


def test_uv_to_t_range():
    rng = np.random.default_rng(1)
    t = uv_to_t(rng.uniform(-1, 1, (500, 2)))
    assert t.min() >= 0.5 and t.max() <= 1.0


def test_cycle_preset_wraps():
    sim = _sim(preset_key=PRESET_ORDER[-1])
    assert sim.cycle_preset() == PRESET_ORDER[0]
    feed, kill = preset_rates(PRESET_ORDER[0])
    assert sim.engine.params.feed_rate == pytest.approx(feed)
    assert sim.engine.params.kill_rate == pytest.approx(kill)
    with pytest.raises(KeyError):
        sim.apply_preset("lava_lamp")


def test_preset_lookup():
    preset = get_preset("mitosis")
    assert preset["name"] == "Mitosis"
    assert (preset["feed"], preset["kill"]) == preset_rates("mitosis")
    assert get_preset("lava_lamp") is None
    assert [key for key, _, _ in list_presets()] == PRESET_ORDER


def test_cycle_gradient_cross_fades():
    clock = FakeClock()
    sim = _sim(clock=clock, transition_duration=1.0)
    old = sim.render()
    assert sim.cycle_gradient() == GRADIENT_ORDER[1]
    assert sim.color_transition.active
    np.testing.assert_array_equal(sim.render(), old)
    clock.now = 2.0
    t = uv_to_t(np.array([[1.0, 0.0]]))[0]
    expected = get_gradient(GRADIENT_ORDER[1]).lut.table[int(t * 255), :3]
    np.testing.assert_array_equal(sim.render()[0, 0], expected)
    assert sim.color_transition.done


def test_lut_selection_and_reversal():
    clock = FakeClock()
    sim = _sim(clock=clock)
    sim.set_lut("ramp")
    clock.now = 5.0
    np.testing.assert_array_equal(sim.color_transition.current(), _ramp_table())
    sim.toggle_lut_reversed()
    assert sim.lut_reversed
    clock.now = 10.0
    np.testing.assert_array_equal(sim.color_transition.current(), _ramp_table()[::-1])
    assert sim.status["colors"] == "ramp"
    assert sim.status["colors_reversed"]


def _ramp_table():
    return np.stack([np.arange(256, dtype=np.uint8)] * 3, axis=1)


def test_unknown_lut_keeps_colors():
    sim = _sim()
    with pytest.raises(LutNotFoundError):
        sim.set_lut("nope")
    assert sim.lut_name is None
    assert not sim.color_transition.active
    assert sim.cycle_lut() == "ramp"
    assert sim.lut_name == "ramp"


def test_cycle_nutrient_pattern():
    sim = _sim()
    assert sim.cycle_nutrient_pattern() is NutrientPattern.CHECKERBOARD
    sim.toggle_nutrient_pattern_reversal()
    for _ in range(8):
        sim.cycle_nutrient_pattern()
    assert sim.engine.nutrient_pattern is NutrientPattern.UNIFORM
    assert sim.engine.nutrient_reversed
    assert sim.status["nutrient"] == "Uniform"


def test_threads_backend_closes():
    sim = _sim(backend="threads", workers=2)
    sim.paint(5, 5)
    sim.step()
    assert sim.status["backend"] == "threads"
    sim.close()


def test_cli_list_and_bad_args(capsys):
    assert main(["--list"]) == 0
    out = capsys.readouterr().out
    assert "brain_coral" in out and "Cosine Grid" in out
    assert main(["--bogus"]) == 1
    assert main(["--gradient", "sepia"]) == 1
    assert main(["--lut", "nope"]) == 1


def test_cli_snapshot():
    pytest.importorskip("PIL")
    with tempfile.TemporaryDirectory() as tmp:
        rc = main(["ripples", "--size", "16x12", "--steps", "3",
                   "--gradient", "magma", "--nutrient", "3", "--out", tmp])
        assert rc == 0
        assert os.path.exists(os.path.join(tmp, "rd_ripples.png"))
        assert os.path.exists(os.path.join(tmp, "latest.png"))

        from PIL import Image
        with Image.open(os.path.join(tmp, "rd_ripples.png")) as img:
            assert img.size == (16, 12)


if __name__ == "__main__":
    for name, fn in list(globals().items()):
        if name.startswith("test_") and callable(fn) and name != "test_cli_list_and_bad_args":
            fn()
            print(f"  ✓ {name}")
    print("All simulator tests passed")
