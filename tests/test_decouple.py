"""Tests for restored/impairment decoupling."""

import numpy as np
import pytest

from arena import DwtBand
from decouple import decouple, rcp
from plane import Plane


def _band_from(h, v, d) -> DwtBand:
    h = np.asarray(h, dtype=np.float32)
    return DwtBand(
        Plane.from_array(np.zeros_like(h)),
        Plane.from_array(h),
        Plane.from_array(np.asarray(v, dtype=np.float32)),
        Plane.from_array(np.asarray(d, dtype=np.float32)),
    )


def _empty(height: int, width: int) -> DwtBand:
    return DwtBand(*(Plane.allocate(width, height) for _ in range(4)))


def _run(ref: DwtBand, main: DwtBand, **kwargs):
    height, width = ref.h.shape
    restored, impairment = _empty(height, width), _empty(height, width)
    decouple(ref, main, restored, impairment, width, height, **kwargs)
    return restored, impairment


def test_rcp_is_close_to_exact_reciprocal():
    x = np.array([3.0, 0.5, 1e-30, 7.7, -2.5], dtype=np.float32)
    np.testing.assert_allclose(rcp(x), 1.0 / x, rtol=1e-6)
    assert rcp(4.0).shape == ()


def test_restored_plus_impairment_equals_distorted():
    rng = np.random.default_rng(3)
    ref = _band_from(*(rng.normal(0, 20, (12, 9)) for _ in range(3)))
    main = _band_from(*(rng.normal(0, 20, (12, 9)) for _ in range(3)))
    restored, impairment = _run(ref, main)
    for r, a, t in zip(restored.orientations(), impairment.orientations(), main.orientations()):
        np.testing.assert_allclose(r.pixels + a.pixels, t.pixels, rtol=1e-6, atol=1e-5)


def test_gain_is_clipped_to_unit_interval():
    rng = np.random.default_rng(4)
    ref = _band_from(*(rng.normal(0, 20, (16, 16)) for _ in range(3)))
    main = _band_from(*(rng.normal(0, 40, (16, 16)) for _ in range(3)))
    restored, _ = _run(ref, main)

    # Pixels where the angle test overrode the candidate hold the distorted value verbatim.
    overridden = restored.h.pixels == main.h.pixels
    for r, o in zip(restored.orientations(), ref.orientations()):
        gain = r.pixels[~overridden] / o.pixels[~overridden]
        assert np.all(gain >= -1e-6)
        assert np.all(gain <= 1.0 + 1e-6)


def test_aligned_detail_is_fully_restored():
    ref = _band_from([[1.0, 1.0]], [[1.0, 1.0]], [[1.0, 1.0]])
    main = _band_from([[2.0, 0.5]], [[2.0, 0.5]], [[5.0, 0.3]])
    restored, impairment = _run(ref, main)
    for r, a, t in zip(restored.orientations(), impairment.orientations(), main.orientations()):
        np.testing.assert_array_equal(r.pixels, t.pixels)
        assert not a.pixels.any()


def test_perpendicular_detail_is_all_impairment():
    ref = _band_from([[1.0]], [[0.0]], [[2.0]])
    main = _band_from([[0.0]], [[1.0]], [[-1.0]])
    restored, impairment = _run(ref, main)
    for r, a, t in zip(restored.orientations(), impairment.orientations(), main.orientations()):
        assert r.pixels[0, 0] == 0.0
        assert a.pixels[0, 0] == t.pixels[0, 0]


@pytest.mark.parametrize("exact", [False, True])
def test_misaligned_detail_keeps_scaled_reference(exact):
    ref = _band_from([[1.0]], [[0.0]], [[1.0]])
    main = _band_from([[0.5]], [[0.1]], [[0.2]])
    restored, impairment = _run(ref, main, exact_division=exact)
    assert restored.h.pixels[0, 0] == pytest.approx(0.5, rel=1e-6)
    assert restored.v.pixels[0, 0] == 0.0
    assert restored.d.pixels[0, 0] == pytest.approx(0.2, rel=1e-6)
    assert impairment.v.pixels[0, 0] == pytest.approx(0.1)
