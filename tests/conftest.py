"""Shared fixtures: synthetic luma frames and raw YUV files."""

from pathlib import Path
from typing import List

import numpy as np
import pytest

from conversion import get_pixel_format


def _make_frame(width: int, height: int, seed: int = 0) -> np.ndarray:
    """Textured 8-bit luma: a gradient plus noise, so every wavelet band carries detail."""

    rng = np.random.default_rng(seed)
    yy, xx = np.mgrid[0:height, 0:width]
    base = 128 + 60 * np.sin(xx / 3.0) * np.cos(yy / 5.0)
    return np.clip(base + rng.normal(0, 12, size=(height, width)), 0, 255).astype(np.uint8)


@pytest.fixture
def write_yuv():
    def _write(path: Path, frames: List[np.ndarray], pix_fmt: str = "yuv420p") -> Path:
        fmt = get_pixel_format(pix_fmt)
        height, width = frames[0].shape
        cw, ch = fmt.chroma_size(width, height)
        chroma = np.full(2 * cw * ch, 1 << (fmt.sample.bit_depth - 1), dtype=fmt.sample.dtype)
        with path.open("wb") as f:
            for frame in frames:
                f.write(frame.astype(fmt.sample.dtype).tobytes())
                f.write(chroma.tobytes())
        return path

    return _write


@pytest.fixture
def make_frame():
    return _make_frame
