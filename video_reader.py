"""Video reading and reference/distorted frame pairing."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional, Tuple

import cv2
import numpy as np

from config import InputConfig
from conversion import SAMPLE_8BIT, PixelFormat, SampleFormat, get_pixel_format
from logging_utils import get_logger

LOGGER = get_logger(__name__)


@dataclass
class StreamInfo:
    """Geometry and sample layout of one input."""

    path: Path
    width: int
    height: int
    pix_fmt: str
    sample: SampleFormat


@dataclass
class FramePair:
    """DTO for aligned frames emitted by the pairing iterator."""

    frame_index: int
    reference: np.ndarray
    distorted: np.ndarray
    repeated_reference: bool = False


def probe_video(path: Path) -> StreamInfo:
    """Read container geometry with OpenCV."""

    cap = cv2.VideoCapture(str(path))
    if not cap.isOpened():
        raise RuntimeError(f"Failed to open video {path}")
    width = int(cap.get(cv2.CAP_PROP_FRAME_WIDTH))
    height = int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
    cap.release()
    return StreamInfo(path, width, height, "bgr24", SAMPLE_8BIT)


def _iter_container_luma(path: Path) -> Iterator[np.ndarray]:
    cap = cv2.VideoCapture(str(path))
    if not cap.isOpened():
        raise RuntimeError(f"Failed to open video {path}")
    try:
        while True:
            ret, frame = cap.read()
            if not ret:
                break
            if frame.ndim == 2:
                yield frame
            else:
                yield np.ascontiguousarray(cv2.cvtColor(frame, cv2.COLOR_BGR2YUV)[:, :, 0])
    finally:
        cap.release()


def iter_raw_luma(path: Path, width: int, height: int, pix_fmt: PixelFormat) -> Iterator[np.ndarray]:
    """Yield the luma plane of each frame of a raw planar YUV file."""

    frame_bytes = pix_fmt.frame_bytes(width, height)
    with path.open("rb") as f:
        frame_idx = 0
        while True:
            chunk = f.read(frame_bytes)
            if not chunk:
                break
            if len(chunk) < frame_bytes:
                LOGGER.warning(
                    "Truncated frame %d in %s (%d of %d bytes), stopping",
                    frame_idx,
                    path,
                    len(chunk),
                    frame_bytes,
                )
                break
            luma = np.frombuffer(chunk, dtype=pix_fmt.sample.dtype, count=width * height)
            yield luma.reshape(height, width)
            frame_idx += 1


def open_stream(path: Path, config: InputConfig, pix_fmt_name: str) -> Tuple[StreamInfo, Iterator[np.ndarray]]:
    """Describe and open one input."""

    if not path.exists():
        raise RuntimeError(f"Input {path} does not exist")
    if config.is_raw(path):
        if config.width is None or config.height is None:
            raise ValueError(f"Raw input {path} needs explicit width and height")
        pix_fmt = get_pixel_format(pix_fmt_name)
        info = StreamInfo(path, config.width, config.height, pix_fmt.name, pix_fmt.sample)
        return info, iter_raw_luma(path, config.width, config.height, pix_fmt)
    info = probe_video(path)
    return info, _iter_container_luma(path)


def check_compatible(reference: StreamInfo, distorted: StreamInfo) -> None:
    """Configuration errors surface before any frame reaches the metric."""

    if (reference.width, reference.height) != (distorted.width, distorted.height):
        raise ValueError(
            "Width and height of input videos must be same. "
            f"reference={reference.width}x{reference.height} distorted={distorted.width}x{distorted.height}"
        )
    if reference.sample != distorted.sample or reference.pix_fmt != distorted.pix_fmt:
        raise ValueError(
            f"Inputs must be of same pixel format. reference={reference.pix_fmt} distorted={distorted.pix_fmt}"
        )


def pair_frames(
    reference: Iterator[np.ndarray],
    distorted: Iterator[np.ndarray],
    eof_action: str = "repeat_last",
    max_frames: Optional[int] = None,
) -> Iterator[FramePair]:
    """Align two frame iterators in presentation order.

    With ``repeat_last`` the last reference frame is reused while distorted frames remain;
    the pairing always ends with the distorted stream.
    """

    last_ref: Optional[np.ndarray] = None
    frame_idx = 0
    ref_ended = False
    while max_frames is None or frame_idx < max_frames:
        dist_frame = next(distorted, None)
        ref_frame = None if ref_ended else next(reference, None)
        if ref_frame is None and not ref_ended:
            ref_ended = True
            if dist_frame is not None:
                LOGGER.warning("Reference stream ended at frame %d before distorted stream", frame_idx)
        if dist_frame is None:
            if ref_frame is not None:
                LOGGER.warning("Distorted stream ended at frame %d before reference stream", frame_idx)
            break
        repeated = False
        if ref_frame is None:
            if eof_action == "shortest" or last_ref is None:
                break
            ref_frame = last_ref
            repeated = True
        yield FramePair(frame_idx, ref_frame, dist_frame, repeated)
        last_ref = ref_frame
        frame_idx += 1


def iter_frame_pairs(config: InputConfig) -> Tuple[StreamInfo, Iterator[FramePair]]:
    """Open both inputs, validate them against each other and pair their frames."""

    if config.reference is None or config.distorted is None:
        raise ValueError("Both reference and distorted inputs are required")
    ref_info, ref_frames = open_stream(config.reference, config, config.reference_pix_fmt)
    dist_info, dist_frames = open_stream(config.distorted, config, config.distorted_pix_fmt or config.reference_pix_fmt)
    check_compatible(ref_info, dist_info)
    LOGGER.info(
        "Pairing %s with %s at %dx%d (%s)",
        ref_info.path.name,
        dist_info.path.name,
        ref_info.width,
        ref_info.height,
        ref_info.pix_fmt,
    )
    return ref_info, pair_frames(ref_frames, dist_frames, config.eof_action, config.max_frames)
