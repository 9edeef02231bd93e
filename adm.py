"""ADM2 driver: four wavelet scales, decoupling, CSF, masking and pooling."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np

from adm_constants import MIN_DIMENSION, NOISE_FLOOR, NUM_SCALES
from arena import ScratchArena
from config import AdmConfig
from csf import csf
from decouple import decouple
from dwt import dwt2
from masking import cm, cm_thresh
from plane import Plane
from pooling import sum_cube


@dataclass
class ScaleContext:
    """Dimensions and accumulators of one iteration of the scale loop."""

    scale: int
    orig_height: int
    width: int
    height: int
    num_scale: np.float32 = np.float32(0.0)
    den_scale: np.float32 = np.float32(0.0)

    def halved(self) -> "ScaleContext":
        return ScaleContext(self.scale, self.orig_height, (self.width + 1) // 2, (self.height + 1) // 2)


@dataclass
class AdmScore:
    """Frame score plus the unclipped totals and per-scale ``(num, den)`` values."""

    score: float
    score_num: float
    score_den: float
    scales: Tuple[float, ...] = field(default_factory=tuple)

    @property
    def scale_pairs(self) -> List[Tuple[float, float]]:
        return [(self.scales[2 * i], self.scales[2 * i + 1]) for i in range(len(self.scales) // 2)]


def scale_dimensions(width: int, height: int, num_scales: int = NUM_SCALES) -> List[Tuple[int, int]]:
    """Band sizes produced by each of the cascaded DWT levels."""

    dims = []
    for _ in range(num_scales):
        width, height = (width + 1) // 2, (height + 1) // 2
        dims.append((width, height))
    return dims


def numden_limit(width: int, height: int, noise_floor: float = NOISE_FLOOR) -> float:
    """Resolution-scaled floor below which totals count as zero."""

    return noise_floor * (width * height) / (1920.0 * 1080.0)


def finalize_score(num: float, den: float, limit: float) -> Tuple[float, float, float]:
    """Apply the noise floor and return ``(score, num, den)``; no reference detail scores 1.0."""

    num = 0.0 if num < limit else num
    den = 0.0 if den < limit else den
    score = 1.0 if den == 0.0 else num / den
    return score, num, den


def validate_inputs(
    ref: Plane,
    main: Plane,
    arena: ScratchArena,
    temp_lo: np.ndarray,
    temp_hi: np.ndarray,
) -> None:
    """Reject inputs the scale loop cannot handle."""

    if ref.shape != main.shape:
        raise ValueError(
            f"Width and height of input videos must be same: {ref.width}x{ref.height} "
            f"vs {main.width}x{main.height}"
        )
    if ref.width < MIN_DIMENSION or ref.height < MIN_DIMENSION:
        raise ValueError(
            f"frame {ref.width}x{ref.height} is below the {MIN_DIMENSION}x{MIN_DIMENSION} minimum "
            f"for {NUM_SCALES} scales"
        )
    if not arena.fits(ref.width, ref.height):
        raise ValueError(f"scratch arena of {arena.nbytes} bytes is too small for {ref.width}x{ref.height}")
    for name, buf in (("temp_lo", temp_lo), ("temp_hi", temp_hi)):
        if buf.dtype != np.float32 or buf.ndim != 1 or buf.shape[0] < ref.width:
            raise ValueError(f"{name} must be a float32 row of at least {ref.width} samples")


def compute_adm2(
    ref: Plane,
    main: Plane,
    arena: ScratchArena,
    temp_lo: np.ndarray,
    temp_hi: np.ndarray,
    config: Optional[AdmConfig] = None,
) -> AdmScore:
    """Score ``main`` against ``ref``.

    All intermediate planes live in ``arena``; ``temp_lo``/``temp_hi`` are the DWT row buffers.
    Raises ``ValueError`` for malformed inputs before any work is done; the computation itself
    never raises.
    """

    config = config or AdmConfig()
    validate_inputs(ref, main, arena, temp_lo, temp_hi)

    width, height = ref.width, ref.height
    exact = config.reciprocal == "exact"
    buffers = arena.layout(width, height)

    curr_ref, curr_main = ref, main
    ctx = ScaleContext(0, height, width, height)
    num = 0.0
    den = 0.0
    scores: List[float] = []

    for scale in range(NUM_SCALES):
        ctx.scale = scale
        dwt2(curr_ref, ctx.width, ctx.height, buffers.ref_dwt2, temp_lo, temp_hi)
        dwt2(curr_main, ctx.width, ctx.height, buffers.main_dwt2, temp_lo, temp_hi)
        ctx = ctx.halved()
        w, h = ctx.width, ctx.height
        display_height = config.display_height or ctx.orig_height

        decouple(buffers.ref_dwt2, buffers.main_dwt2, buffers.decouple_r, buffers.decouple_a, w, h, exact)

        csf(buffers.ref_dwt2, buffers.csf_o, scale, w, h, config.view_distance, display_height)
        csf(buffers.decouple_r, buffers.csf_r, scale, w, h, config.view_distance, display_height)
        csf(buffers.decouple_a, buffers.csf_a, scale, w, h, config.view_distance, display_height)

        cm_thresh(buffers.csf_a, buffers.mta, w, h)
        cm(buffers.csf_r, buffers.cm_r, buffers.mta, w, h)

        for band in buffers.cm_r.orientations():
            ctx.num_scale += sum_cube(band.region(w, h), config.border_factor)
        for band in buffers.csf_o.orientations():
            ctx.den_scale += sum_cube(band.region(w, h), config.border_factor)

        num += float(ctx.num_scale)
        den += float(ctx.den_scale)
        scores.extend((float(ctx.num_scale), float(ctx.den_scale)))

        np.copyto(buffers.ref_scale.region(w, h), buffers.ref_dwt2.a.region(w, h))
        np.copyto(buffers.main_scale.region(w, h), buffers.main_dwt2.a.region(w, h))
        curr_ref, curr_main = buffers.ref_scale, buffers.main_scale

    limit = numden_limit(width, height, config.noise_floor)
    score, num, den = finalize_score(num, den, limit)
    return AdmScore(score=score, score_num=num, score_den=den, scales=tuple(scores))
