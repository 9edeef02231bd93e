"""Strided float planes and the mirror boundary rule shared by the filters."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

import numpy as np

from adm_constants import MAX_ALIGN

FLOAT_SIZE = np.dtype(np.float32).itemsize


def align_up(nbytes: int, alignment: int = MAX_ALIGN) -> int:
    """Round a byte count up to the next alignment boundary."""

    remainder = nbytes % alignment
    return nbytes + (alignment - remainder if remainder else 0)


def aligned_stride(width: int) -> int:
    """Row stride in bytes for a float row of ``width`` samples."""

    return align_up(width * FLOAT_SIZE)


def mirror_index(idx, dim: int):
    """Whole-sample reflection: ``|idx|``, then ``2*dim - idx - 1`` when still past the end."""

    idx = np.abs(idx)
    return np.where(idx >= dim, 2 * dim - idx - 1, idx)


@dataclass
class Plane:
    """A ``height x stride`` float32 array of which ``height x width`` is meaningful."""

    data: np.ndarray
    width: int
    height: int

    def __post_init__(self) -> None:
        if self.data.ndim != 2 or self.data.dtype != np.float32:
            raise ValueError("plane storage must be a 2D float32 array")
        rows, stride_elements = self.data.shape
        if stride_elements < self.width or rows < self.height:
            raise ValueError(
                f"plane storage {rows}x{stride_elements} cannot hold {self.height}x{self.width}"
            )

    @classmethod
    def allocate(cls, width: int, height: int) -> "Plane":
        stride_elements = aligned_stride(width) // FLOAT_SIZE
        return cls(np.zeros((height, stride_elements), dtype=np.float32), width, height)

    @classmethod
    def from_array(cls, pixels: np.ndarray) -> "Plane":
        """Copy a 2D array into a freshly allocated, stride-aligned plane."""

        if pixels.ndim != 2:
            raise ValueError(f"expected a 2D array, got shape {pixels.shape}")
        height, width = pixels.shape
        plane = cls.allocate(width, height)
        plane.pixels[...] = pixels
        return plane

    @property
    def stride_elements(self) -> int:
        return self.data.shape[1]

    @property
    def stride(self) -> int:
        """Row stride in bytes."""

        return self.stride_elements * FLOAT_SIZE

    @property
    def shape(self) -> Tuple[int, int]:
        return self.height, self.width

    @property
    def pixels(self) -> np.ndarray:
        return self.data[: self.height, : self.width]

    def region(self, width: int, height: int) -> np.ndarray:
        """View of the top-left ``height x width`` samples."""

        return self.data[:height, :width]
