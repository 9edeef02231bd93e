"""Lp (p=3) pooling over the centred part of a band."""

from __future__ import annotations

from typing import Tuple

import numpy as np

from adm_constants import BORDER_FACTOR

_ONE_THIRD = np.float32(1.0 / 3.0)


def pooling_region(width: int, height: int, border_factor: float = BORDER_FACTOR) -> Tuple[int, int, int, int]:
    """``(top, bottom, left, right)`` bounds, with the C-style truncation of ``n * border - 0.5``."""

    left = int(width * border_factor - 0.5)
    top = int(height * border_factor - 0.5)
    return top, height - top, left, width - left


def sum_cube(band: np.ndarray, border_factor: float = BORDER_FACTOR) -> np.float32:
    """``(sum |x|^3)^(1/3) + (area / 32)^(1/3)`` over the pooling region of ``band``."""

    height, width = band.shape
    top, bottom, left, right = pooling_region(width, height, border_factor)
    region = np.abs(band[top:bottom, left:right])
    cubes = (region * region * region).ravel()
    # Row-major running sum, like the scalar loop.
    total = np.cumsum(cubes, dtype=np.float32)[-1] if cubes.size else np.float32(0.0)
    area = max(bottom - top, 0) * max(right - left, 0)
    stabilizer = np.float32(area / 32.0)
    return np.float32(np.power(total, _ONE_THIRD) + np.power(stabilizer, _ONE_THIRD))
