"""Scratch arena sliced into the named planes and bands used by one ADM call."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterator, Tuple

import numpy as np

from adm_constants import BUFFER_COUNT
from logging_utils import get_logger
from plane import FLOAT_SIZE, Plane, aligned_stride

LOGGER = get_logger(__name__)


def buffer_geometry(width: int, height: int) -> Tuple[int, int]:
    """Stride (bytes) and row count of one half-resolution scratch buffer."""

    return aligned_stride((width + 1) // 2), (height + 1) // 2


def buffer_size(width: int, height: int) -> int:
    """Bytes in one half-resolution scratch buffer for a ``width x height`` frame."""

    stride, rows = buffer_geometry(width, height)
    return stride * rows


@dataclass
class DwtBand:
    """Approximation plus the three detail orientations of one wavelet level."""

    a: Plane
    h: Plane
    v: Plane
    d: Plane

    def orientations(self) -> Tuple[Plane, Plane, Plane]:
        return self.h, self.v, self.d


@dataclass
class AdmBuffers:
    ref_scale: Plane
    main_scale: Plane
    ref_dwt2: DwtBand
    main_dwt2: DwtBand
    decouple_r: DwtBand
    decouple_a: DwtBand
    csf_o: DwtBand
    csf_r: DwtBand
    csf_a: DwtBand
    mta: Plane
    cm_r: DwtBand


class ScratchArena:
    """One contiguous float32 allocation owned by a stream.

    Buffers handed out by :meth:`layout` are views, so the per-frame hot path never allocates.
    The arena must not be shared by concurrent calls.
    """

    def __init__(self, nbytes: int):
        if nbytes <= 0 or nbytes % FLOAT_SIZE:
            raise ValueError(f"arena size must be a positive multiple of {FLOAT_SIZE} bytes")
        self.data = np.zeros(nbytes // FLOAT_SIZE, dtype=np.float32)
        self._layouts: Dict[Tuple[int, int], AdmBuffers] = {}

    @classmethod
    def for_frame(cls, width: int, height: int) -> "ScratchArena":
        """Allocate an arena large enough for frames of ``width x height``."""

        if width <= 0 or height <= 0:
            raise ValueError(f"invalid frame size {width}x{height}")
        nbytes = BUFFER_COUNT * buffer_size(width, height)
        LOGGER.debug("Allocating %d byte ADM arena for %dx%d", nbytes, width, height)
        return cls(nbytes)

    @property
    def nbytes(self) -> int:
        return self.data.nbytes

    def fits(self, width: int, height: int) -> bool:
        return BUFFER_COUNT * buffer_size(width, height) <= self.nbytes

    def _slots(self, width: int, height: int) -> Iterator[Plane]:
        stride, rows = buffer_geometry(width, height)
        stride_elements = stride // FLOAT_SIZE
        slot_elements = stride_elements * rows
        for index in range(BUFFER_COUNT):
            start = index * slot_elements
            view = self.data[start : start + slot_elements].reshape(rows, stride_elements)
            yield Plane(view, (width + 1) // 2, rows)

    def layout(self, width: int, height: int) -> AdmBuffers:
        """Named views for a frame of ``width x height``, in fixed slot order."""

        key = (width, height)
        cached = self._layouts.get(key)
        if cached is not None:
            return cached
        if not self.fits(width, height):
            raise ValueError(
                f"scratch arena of {self.nbytes} bytes is too small for {width}x{height}, "
                f"need {BUFFER_COUNT * buffer_size(width, height)}"
            )
        slots = self._slots(width, height)

        def band() -> DwtBand:
            return DwtBand(next(slots), next(slots), next(slots), next(slots))

        buffers = AdmBuffers(
            ref_scale=next(slots),
            main_scale=next(slots),
            ref_dwt2=band(),
            main_dwt2=band(),
            decouple_r=band(),
            decouple_a=band(),
            csf_o=band(),
            csf_r=band(),
            csf_a=band(),
            mta=next(slots),
            cm_r=band(),
        )
        self._layouts[key] = buffers
        return buffers
