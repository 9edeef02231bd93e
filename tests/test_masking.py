"""Tests for contrast masking."""

import numpy as np
import pytest

from arena import DwtBand
from masking import cm, cm_thresh
from plane import Plane


def _band(*planes) -> DwtBand:
    first = np.asarray(planes[0], dtype=np.float32)
    return DwtBand(Plane.from_array(np.zeros_like(first)), *(Plane.from_array(np.asarray(p, dtype=np.float32)) for p in planes))


@pytest.mark.parametrize("shape", [(6, 7), (5, 4), (2, 2)])
def test_unit_impairment_gives_unit_threshold(shape):
    rng = np.random.default_rng(5)
    signs = [np.where(rng.random(shape) > 0.5, 1.0, -1.0) for _ in range(3)]
    thresh = Plane.allocate(shape[1], shape[0])
    cm_thresh(_band(*signs), thresh, shape[1], shape[0])
    # Each orientation contributes 1/15 + 8/30 = 1/3.
    np.testing.assert_allclose(thresh.pixels, 1.0, rtol=1e-6)


def test_zero_impairment_gives_zero_threshold():
    zeros = np.zeros((8, 8))
    thresh = Plane.allocate(8, 8)
    cm_thresh(_band(zeros, zeros, zeros), thresh, 8, 8)
    assert not thresh.pixels.any()


def test_mirror_is_asymmetric_between_edges():
    zeros = np.zeros((4, 4))
    top_left = np.zeros((4, 4))
    top_left[0, 0] = 30.0
    bottom_right = np.zeros((4, 4))
    bottom_right[3, 3] = 30.0
    thresh = Plane.allocate(4, 4)

    cm_thresh(_band(top_left, zeros, zeros), thresh, 4, 4)
    # -1 reflects to 1, so the first sample is only seen by the centre tap.
    assert thresh.pixels[0, 0] == pytest.approx(30.0 / 15)
    assert thresh.pixels[1, 1] == pytest.approx(30.0 / 30)
    assert thresh.pixels[2, 2] == 0.0

    cm_thresh(_band(bottom_right, zeros, zeros), thresh, 4, 4)
    # n reflects to n - 1, so the last sample is seen by four taps.
    assert thresh.pixels[3, 3] == pytest.approx(30.0 * (1 / 15 + 3 / 30))


def test_masking_output_is_never_negative():
    rng = np.random.default_rng(6)
    restored = _band(*(rng.normal(0, 1, (10, 10)) for _ in range(3)))
    thresh = Plane.from_array(rng.uniform(0, 2, (10, 10)).astype(np.float32))
    out = DwtBand(*(Plane.allocate(10, 10) for _ in range(4)))
    cm(restored, out, thresh, 10, 10)
    for masked, r in zip(out.orientations(), restored.orientations()):
        assert (masked.pixels >= 0).all()
        np.testing.assert_allclose(masked.pixels, np.maximum(np.abs(r.pixels) - thresh.pixels, 0), atol=1e-6)
