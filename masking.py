"""Contrast masking: threshold estimation from impairments and its subtraction."""

from __future__ import annotations

import numpy as np

from arena import DwtBand
from plane import Plane, mirror_index

CENTER_COEFF = np.float32(1.0 / 15.0)
SURROUND_COEFF = np.float32(1.0 / 30.0)


def cm_thresh(src: DwtBand, dst: Plane, width: int, height: int) -> None:
    """Sum over H, V and D of a 3x3 weighted mean of ``|src|`` into ``dst``."""

    thresh = dst.region(width, height)
    thresh[...] = 0.0
    rows = [mirror_index(np.arange(height) - 1 + fi, height) for fi in range(3)]
    cols = [mirror_index(np.arange(width) - 1 + fj, width) for fj in range(3)]

    for band in src.orientations():
        magnitude = np.abs(band.region(width, height))
        acc = np.zeros((height, width), dtype=np.float32)
        for fi in range(3):
            for fj in range(3):
                coeff = CENTER_COEFF if fi == 1 and fj == 1 else SURROUND_COEFF
                acc += coeff * magnitude[np.ix_(rows[fi], cols[fj])]
        thresh += acc


def cm(src: DwtBand, dst: DwtBand, thresh: Plane, width: int, height: int) -> None:
    """``max(0, |src| - thresh)`` for each orientation."""

    thr = thresh.region(width, height)
    for s, d in zip(src.orientations(), dst.orientations()):
        out = d.region(width, height)
        np.abs(s.region(width, height), out=out)
        out -= thr
        np.maximum(out, 0.0, out=out)
