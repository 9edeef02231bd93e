"""Contrast sensitivity weighting of wavelet detail bands."""

from __future__ import annotations

import math
from functools import lru_cache
from typing import Tuple

import numpy as np

from adm_constants import (
    DWT_7_9_BASIS_FUNCTION_AMPLITUDES,
    DWT_7_9_YCBCR_THRESHOLD,
    REF_DISPLAY_HEIGHT,
    VIEW_DIST,
    DwtModelParams,
)
from arena import DwtBand


def display_visual_resolution(view_distance: float, display_height: float) -> np.float32:
    """Pixels per degree of visual angle (56.55 for 3H on a 1080-line display)."""

    return np.float32(view_distance * display_height * math.pi / 180.0)


def dwt_quant_step(
    params: DwtModelParams,
    lambda_: int,
    theta: int,
    view_distance: float = VIEW_DIST,
    display_height: float = REF_DISPLAY_HEIGHT,
) -> np.float32:
    """Visibility threshold of a unit coefficient at level ``lambda_`` and orientation ``theta``."""

    r = float(display_visual_resolution(view_distance, display_height))
    f0 = float(np.float32(params.f0))
    g = float(np.float32(params.g[theta]))
    temp = np.float32(math.log10(math.pow(2.0, lambda_ + 1) * f0 * g / r))
    a = float(np.float32(params.a))
    # The exponent stays in single precision; only pow() runs in double.
    exponent = float(np.float32(np.float32(params.k) * temp) * temp)
    amplitude = float(np.float32(DWT_7_9_BASIS_FUNCTION_AMPLITUDES[lambda_][theta]))
    return np.float32(2.0 * a * math.pow(10.0, exponent) / amplitude)


@lru_cache(maxsize=64)
def csf_factors(
    scale: int,
    view_distance: float = VIEW_DIST,
    display_height: float = REF_DISPLAY_HEIGHT,
) -> Tuple[np.float32, np.float32, np.float32]:
    """Reciprocal quantisation steps applied to the H, V and D bands of ``scale``."""

    luma = DWT_7_9_YCBCR_THRESHOLD[0]
    factor1 = dwt_quant_step(luma, scale, 1, view_distance, display_height)
    factor2 = dwt_quant_step(luma, scale, 2, view_distance, display_height)
    rfactor1 = np.float32(1.0 / float(factor1))
    rfactor2 = np.float32(1.0 / float(factor2))
    return rfactor1, rfactor1, rfactor2


def csf(
    src: DwtBand,
    dst: DwtBand,
    scale: int,
    width: int,
    height: int,
    view_distance: float = VIEW_DIST,
    display_height: float = REF_DISPLAY_HEIGHT,
) -> None:
    rfactors = csf_factors(scale, view_distance, display_height)
    for rfactor, s, d in zip(rfactors, src.orientations(), dst.orientations()):
        np.multiply(s.region(width, height), rfactor, out=d.region(width, height))
