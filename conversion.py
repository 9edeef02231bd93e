"""Integer sample formats, planar pixel formats and conversion into float planes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

import numpy as np

from plane import Plane


@dataclass(frozen=True)
class SampleFormat:
    """Storage of one integer sample."""

    name: str
    dtype: np.dtype
    bit_depth: int

    @property
    def bytes_per_sample(self) -> int:
        return self.dtype.itemsize


SAMPLE_8BIT = SampleFormat("8bit", np.dtype(np.uint8), 8)
SAMPLE_10BIT = SampleFormat("10bit", np.dtype("<u2"), 10)


@dataclass(frozen=True)
class PixelFormat:
    """Planar YUV layout; only the luma plane is scored."""

    name: str
    sample: SampleFormat
    chroma_shift_w: int
    chroma_shift_h: int

    def chroma_size(self, width: int, height: int) -> tuple[int, int]:
        # Rounds up like AV_CEIL_RSHIFT.
        cw = -((-width) >> self.chroma_shift_w)
        ch = -((-height) >> self.chroma_shift_h)
        return cw, ch

    def luma_bytes(self, width: int, height: int) -> int:
        return width * height * self.sample.bytes_per_sample

    def frame_bytes(self, width: int, height: int) -> int:
        cw, ch = self.chroma_size(width, height)
        return self.luma_bytes(width, height) + 2 * cw * ch * self.sample.bytes_per_sample


PIXEL_FORMATS: Dict[str, PixelFormat] = {
    fmt.name: fmt
    for fmt in (
        PixelFormat("yuv444p", SAMPLE_8BIT, 0, 0),
        PixelFormat("yuv422p", SAMPLE_8BIT, 1, 0),
        PixelFormat("yuv420p", SAMPLE_8BIT, 1, 1),
        PixelFormat("yuv444p10le", SAMPLE_10BIT, 0, 0),
        PixelFormat("yuv422p10le", SAMPLE_10BIT, 1, 0),
        PixelFormat("yuv420p10le", SAMPLE_10BIT, 1, 1),
    )
}


def get_pixel_format(name: str) -> PixelFormat:
    try:
        return PIXEL_FORMATS[name]
    except KeyError:
        supported = ", ".join(sorted(PIXEL_FORMATS))
        raise ValueError(f"Unsupported pixel format {name!r}; expected one of: {supported}") from None


def convert_samples(samples: np.ndarray, dst: Plane, sample: SampleFormat, offset: float = 0.0) -> Plane:
    """Write integer luma ``samples`` into ``dst`` as float32, adding ``offset``."""

    if samples.dtype != sample.dtype:
        raise ValueError(f"{sample.name} samples must be {sample.dtype}, got {samples.dtype}")
    if samples.shape != dst.shape:
        raise ValueError(f"sample plane {samples.shape} does not match destination {dst.shape}")
    out = dst.pixels
    out[...] = samples
    if offset:
        out += np.float32(offset)
    return dst


def convert_8bit(samples: np.ndarray, dst: Plane, offset: float = 0.0) -> Plane:
    return convert_samples(samples, dst, SAMPLE_8BIT, offset)


def convert_10bit(samples: np.ndarray, dst: Plane, offset: float = 0.0) -> Plane:
    return convert_samples(samples, dst, SAMPLE_10BIT, offset)
