#!/usr/bin/env python3
"""
Tests for the scalar field and the Gray-Scott engines.

Verifies:
1. Field writes clamp, wrap and reject bad input
2. The stepper keeps the rest state fixed and double-buffers
3. Parameter changes apply from the next step
4. Thread-pool and torch backends agree with the numpy engine
"""

import numpy as np
import pytest

from reaction_diffusion.engine_base import EngineState
from reaction_diffusion.field import ScalarField
from reaction_diffusion.gray_scott import GrayScott, laplacian
from reaction_diffusion.nutrient import NutrientPattern
from reaction_diffusion.parallel import ParallelGrayScott, partition_rows
from reaction_diffusion.simulator import create_engine


def _seeded(engine, seed=3):
    """Rest state with a block of V in the middle plus a little noise."""
    rng = np.random.default_rng(seed)
    U = np.ones((engine.height, engine.width), dtype=np.float32)
    V = np.zeros_like(U)
    cy, cx = engine.height // 2, engine.width // 2
    U[cy - 3:cy + 3, cx - 3:cx + 3] = 0.5
    V[cy - 3:cy + 3, cx - 3:cx + 3] = 0.25
    V += rng.uniform(0.0, 0.05, V.shape).astype(np.float32)
    engine.load_arrays(U, V)
    return engine


# -- field ----------------------------------------------------------------

def test_field_rest_state():
    field = ScalarField(4, 3)
    assert len(field) == 12
    assert field.U.shape == (3, 4)
    assert field.get(2, 1) == (1.0, 0.0)


def test_field_rejects_bad_dimensions():
    with pytest.raises(ValueError):
        ScalarField(0, 4)
    with pytest.raises(ValueError):
        ScalarField(3, -1)


def test_field_set_clamps_and_wraps():
    field = ScalarField(4, 3)
    field.set(0, 0, (2.0, -3.0))
    assert field.get(0, 0) == (1.0, -1.0)
    field.set(-1, -1, (0.5, 0.25))
    assert field.get(3, 2) == (0.5, 0.25)
    assert field.get_by_index(11) == (0.5, 0.25)


def test_field_set_rejects_nan():
    field = ScalarField(2, 2)
    with pytest.raises(ValueError):
        field.set(0, 0, (float("nan"), 0.0))


def test_set_all_then_uvs():
    field = ScalarField(5, 4)
    rng = np.random.default_rng(0)
    values = rng.uniform(-1.5, 1.5, (20, 2)).astype(np.float32)
    field.set_all(values)
    uvs = field.uvs()
    assert uvs.shape == (20, 2)
    np.testing.assert_array_equal(uvs, np.clip(values, -1.0, 1.0))
    assert not uvs.flags.writeable


def test_set_all_accepts_pairs():
    field = ScalarField(2, 1)
    field.set_all([(0.1, 0.2), (0.3, 0.4)])
    assert field.get(1, 0) == pytest.approx((0.3, 0.4))


def test_set_all_length_mismatch():
    field = ScalarField(3, 3)
    with pytest.raises(ValueError):
        field.set_all([(1.0, 0.0)] * 8)
    with pytest.raises(ValueError):
        field.set_all([])


def test_get_by_index_out_of_range():
    field = ScalarField(3, 4)
    with pytest.raises(IndexError):
        field.get_by_index(12)
    with pytest.raises(IndexError):
        field.get_by_index(-1)


# -- stepper --------------------------------------------------------------

def test_laplacian_of_constant_is_zero():
    lap = laplacian(np.full((6, 5), 0.7, dtype=np.float32))
    np.testing.assert_allclose(lap, 0.0, atol=1e-6)


def test_laplacian_wraps():
    field = np.zeros((5, 5), dtype=np.float32)
    field[0, 0] = 1.0
    lap = laplacian(field)
    assert lap[0, 0] == pytest.approx(-1.0)
    assert lap[4, 0] == pytest.approx(0.2)
    assert lap[0, 4] == pytest.approx(0.2)
    assert lap[4, 4] == pytest.approx(0.05)


def test_zero_rates_keep_rest_state():
    eng = GrayScott(8, 6, feed_rate=0.0, kill_rate=0.0)
    before = eng.uvs().copy()
    eng.update()
    np.testing.assert_array_equal(eng.uvs(), before)


def test_double_buffer_flips():
    eng = GrayScott(6, 6)
    assert eng.current_buffer == 0
    eng.update()
    assert eng.current_buffer == 1
    eng.update()
    assert eng.current_buffer == 0
    assert eng.generation == 2
    assert eng.state is EngineState.IDLE


def test_step_changes_seeded_field_within_bounds():
    eng = _seeded(GrayScott(16, 16))
    before = eng.uvs().copy()
    eng.step_n(5)
    after = eng.uvs()
    assert not np.array_equal(before, after)
    assert after.min() >= -1.0 and after.max() <= 1.0


def test_reentrant_update_rejected():
    eng = GrayScott(4, 4)
    eng.state = EngineState.STEPPING
    with pytest.raises(RuntimeError):
        eng.update()


def test_failed_step_returns_to_idle():
    eng = _seeded(GrayScott(8, 8))
    before = eng.uvs().copy()

    def boom(dt):
        raise MemoryError("no buffers")

    eng._advance = boom
    with pytest.raises(MemoryError):
        eng.update()
    assert eng.state is EngineState.IDLE
    assert eng.generation == 0
    np.testing.assert_array_equal(eng.uvs(), before)


def test_update_rejects_bad_delta():
    eng = GrayScott(4, 4)
    with pytest.raises(ValueError):
        eng.update(float("inf"))
    with pytest.raises(ValueError):
        eng.update(-1.0)


def test_delta_time_scales_time_step():
    a = _seeded(GrayScott(12, 12, time_step=0.5))
    b = _seeded(GrayScott(12, 12, time_step=1.0))
    a.update()
    b.update(delta_time=0.5)
    np.testing.assert_array_equal(a.uvs(), b.uvs())


def test_update_rates_applies_on_next_step():
    eng = _seeded(GrayScott(12, 12))
    before = eng.uvs().copy()
    eng.update_rates(0.0367, 0.0649)
    assert eng.params.feed_rate == pytest.approx(0.0367)
    assert eng.params.kill_rate == pytest.approx(0.0649)
    np.testing.assert_array_equal(eng.uvs(), before)

    ref = _seeded(GrayScott(12, 12, feed_rate=0.0367, kill_rate=0.0649))
    eng.update()
    ref.update()
    np.testing.assert_array_equal(eng.uvs(), ref.uvs())


def test_set_params_rejects_unknown_keys():
    eng = GrayScott(4, 4)
    with pytest.raises(ValueError):
        eng.set_params(feed=0.1)
    with pytest.raises(ValueError):
        eng.set_params(feed_rate=float("nan"))


def test_clear_restores_rest_state():
    eng = _seeded(GrayScott(6, 6))
    eng.update()
    eng.clear()
    assert eng.generation == 0
    uvs = eng.uvs()
    assert (uvs[:, 0] == 1.0).all() and (uvs[:, 1] == 0.0).all()


def test_engine_nutrient_pattern():
    eng = GrayScott(16, 16)
    assert eng.nutrient_factor(3, 3) == 1.0
    eng.set_nutrient_pattern(NutrientPattern.CHECKERBOARD)
    assert eng.nutrient_factor(0, 0) == 1.0
    assert eng.nutrient_factor(2, 0) == 0.0
    eng.toggle_nutrient_pattern_reversal()
    assert eng.nutrient_factor(0, 0) == 0.0
    eng.toggle_nutrient_pattern_reversal()
    assert eng.nutrient_factor(0, 0) == 1.0
    with pytest.raises(ValueError):
        eng.set_nutrient_pattern(42)


def test_stats_and_slider_defs():
    eng = _seeded(GrayScott(8, 8))
    stats = eng.stats
    assert stats["generation"] == 0
    assert stats["mass"] > 0.0
    keys = [d["key"] for d in GrayScott.get_slider_defs()]
    assert keys == ["feed_rate", "kill_rate", "diffusion_u", "diffusion_v", "time_step"]


# -- parallel drivers -----------------------------------------------------

def test_partition_rows_covers_grid():
    bands = partition_rows(10, 3)
    assert bands == [(0, 4), (4, 7), (7, 10)]
    assert partition_rows(2, 8) == [(0, 1), (1, 2)]


def test_threads_match_numpy():
    ref = _seeded(GrayScott(24, 17))
    with _seeded(ParallelGrayScott(24, 17, workers=3, chunks=5)) as par:
        for _ in range(10):
            ref.update()
            par.update()
        np.testing.assert_allclose(par.uvs(), ref.uvs(), atol=1e-6)
        assert par.current_buffer == ref.current_buffer


def test_create_engine_unknown_backend():
    with pytest.raises(ValueError):
        create_engine("opencl", 4, 4)
    assert isinstance(create_engine("numpy", 4, 4), GrayScott)


def test_torch_matches_numpy():
    pytest.importorskip("torch")
    from reaction_diffusion.gpu import TorchGrayScott

    ref = _seeded(GrayScott(20, 14))
    dev = _seeded(TorchGrayScott(20, 14, device="cpu"))
    for _ in range(5):
        ref.update()
        dev.update()
    np.testing.assert_allclose(dev.uvs(), ref.uvs(), atol=1e-5)
    assert dev.current_buffer == 1


def test_torch_field_access_and_rates():
    pytest.importorskip("torch")
    from reaction_diffusion.gpu import TorchGrayScott

    eng = TorchGrayScott(6, 4, device="cpu", feed_rate=0.0, kill_rate=0.0)
    eng.update()
    np.testing.assert_allclose(eng.uvs()[:, 0], 1.0)
    np.testing.assert_allclose(eng.uvs()[:, 1], 0.0)

    eng.set(-1, 0, (3.0, 0.5))
    assert eng.get(5, 0) == pytest.approx((1.0, 0.5))
    with pytest.raises(IndexError):
        eng.get_by_index(24)
    with pytest.raises(ValueError):
        eng.set_all([(1.0, 0.0)] * 23)

    eng.update_rates(0.03, 0.06)
    assert eng._params_t[0].item() == pytest.approx(0.03)


def test_torch_unavailable_device():
    torch = pytest.importorskip("torch")
    from reaction_diffusion.gpu import DeviceInitError, TorchGrayScott

    if torch.cuda.is_available():
        pytest.skip("CUDA is available")
    with pytest.raises(DeviceInitError):
        TorchGrayScott(4, 4, device="cuda")


if __name__ == "__main__":
    for name, fn in list(globals().items()):
        if name.startswith("test_") and callable(fn):
            fn()
            print(f"  ✓ {name}")
    print("All engine tests passed")
