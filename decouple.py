"""Split distorted detail into restored and additive-impairment parts."""

from __future__ import annotations

import math

import numpy as np

from arena import DwtBand

EPS = np.float32(1e-30)
COS_1DEG_SQ = np.float32(math.cos(1.0 * math.pi / 180.0) * math.cos(1.0 * math.pi / 180.0))

# Keeps 12 significant bits of the float32 reciprocal, the precision of a hardware estimate.
_RCP_ESTIMATE_MASK = np.uint32(0xFFFFF800)
_ONE = np.float32(1.0)


def rcp(x) -> np.ndarray:
    """Reciprocal as a 12-bit estimate refined by one Newton-Raphson step, in float32."""

    x = np.asarray(x, dtype=np.float32)
    shape = x.shape
    x = np.atleast_1d(x)
    with np.errstate(divide="ignore", over="ignore", invalid="ignore"):
        exact = _ONE / x
        estimate = (exact.view(np.uint32) & _RCP_ESTIMATE_MASK).view(np.float32)
        refined = estimate + estimate * (_ONE - x * estimate)
    return refined.reshape(shape)


def divs(n: np.ndarray, d: np.ndarray, exact: bool = False) -> np.ndarray:
    if exact:
        with np.errstate(divide="ignore", over="ignore", invalid="ignore"):
            return n * (_ONE / d)
    return n * rcp(d)


def decouple(
    ref: DwtBand,
    main: DwtBand,
    restored: DwtBand,
    impairment: DwtBand,
    width: int,
    height: int,
    exact_division: bool = False,
) -> None:
    """Fill ``restored``/``impairment`` so that ``restored + impairment == main`` per orientation.

    Each orientation gets a gain ``main / ref`` clipped to [0, 1]. When the (H, V) vectors of
    reference and distorted detail point within one degree of each other, the whole of the
    distorted detail counts as restored.
    """

    oh, ov, od = (p.region(width, height) for p in ref.orientations())
    th, tv, td = (p.region(width, height) for p in main.orientations())

    with np.errstate(over="ignore", invalid="ignore"):
        kh = np.clip(divs(th, oh + EPS, exact_division), 0.0, 1.0)
        kv = np.clip(divs(tv, ov + EPS, exact_division), 0.0, 1.0)
        kd = np.clip(divs(td, od + EPS, exact_division), 0.0, 1.0)

        ot_dp = oh * th + ov * tv
        o_mag_sq = oh * oh + ov * ov
        t_mag_sq = th * th + tv * tv
        angle_flag = (ot_dp >= 0.0) & (ot_dp * ot_dp >= COS_1DEG_SQ * o_mag_sq * t_mag_sq)

        for gain, o, t, r_plane, a_plane in (
            (kh, oh, th, restored.h, impairment.h),
            (kv, ov, tv, restored.v, impairment.v),
            (kd, od, td, restored.d, impairment.d),
        ):
            r = r_plane.region(width, height)
            np.multiply(gain, o, out=r)
            np.copyto(r, t, where=angle_flag)
            np.subtract(t, r, out=a_plane.region(width, height))
