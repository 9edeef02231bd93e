"""One level of the separable db2 wavelet decomposition."""

from __future__ import annotations

import numpy as np

from adm_constants import DWT2_DB2_COEFFS_HI, DWT2_DB2_COEFFS_LO
from arena import DwtBand
from plane import Plane, mirror_index


def _tap_indices(out_len: int, dim: int, taps: int) -> np.ndarray:
    """Mirrored source indices, shape ``(out_len, taps)``, for a stride-2 filter starting at -1."""

    start = 2 * np.arange(out_len)[:, None] - 1
    return mirror_index(start + np.arange(taps)[None, :], dim)


def _filter_pair(gathered: np.ndarray, lo_out: np.ndarray, hi_out: np.ndarray) -> None:
    # Accumulate tap by tap so float32 rounding follows the scalar loop.
    lo_out[...] = 0.0
    hi_out[...] = 0.0
    for k in range(gathered.shape[-1]):
        column = gathered[..., k]
        lo_out += DWT2_DB2_COEFFS_LO[k] * column
        hi_out += DWT2_DB2_COEFFS_HI[k] * column


def dwt2(
    src: Plane,
    width: int,
    height: int,
    dst: DwtBand,
    temp_lo: np.ndarray,
    temp_hi: np.ndarray,
) -> None:
    """Decompose the ``height x width`` region of ``src`` into ``dst`` at half resolution.

    A vertical pass fills the two row buffers with the low- and high-pass rows, then a
    horizontal pass over each produces A/V (from the low rows) and H/D (from the high rows).
    """

    taps = len(DWT2_DB2_COEFFS_LO)
    half_w = (width + 1) // 2
    half_h = (height + 1) // 2

    rows = _tap_indices(half_h, height, taps)
    cols = _tap_indices(half_w, width, taps)

    data = src.data
    lo_row = temp_lo[:width]
    hi_row = temp_hi[:width]
    band_a = dst.a.region(half_w, half_h)
    band_h = dst.h.region(half_w, half_h)
    band_v = dst.v.region(half_w, half_h)
    band_d = dst.d.region(half_w, half_h)

    for i in range(half_h):
        _filter_pair(data[rows[i], :width].T, lo_row, hi_row)
        _filter_pair(lo_row[cols], band_a[i], band_v[i])
        _filter_pair(hi_row[cols], band_h[i], band_d[i])
