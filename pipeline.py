"""Stream-level orchestration: per-stream buffers, per-frame scoring and reporting."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, List, Optional

import numpy as np

from adm import AdmScore, compute_adm2
from adm_constants import MIN_DIMENSION
from arena import ScratchArena
from config import AdmConfig, MetricConfig
from conversion import SampleFormat, convert_samples
from logging_utils import get_logger, setup_logging
from plane import Plane
from video_reader import iter_frame_pairs
from writer import FrameScoreRecord, ScoreWriter, StreamSummary, write_summary

LOGGER = get_logger(__name__)


class ProgressUpdate:
    """Lightweight struct emitted to callers for progress reporting."""

    def __init__(self, frame_index: int, score: float, average: float):
        self.frame_index = frame_index
        self.score = score
        self.average = average


class AdmStream:
    """Everything one stream needs between open and close.

    Buffers are allocated once here and overwritten on every frame. An instance must not be
    used from more than one thread at a time; score independent streams with separate instances.
    """

    def __init__(
        self,
        width: int,
        height: int,
        config: Optional[AdmConfig] = None,
        pixel_offset: float = 0.0,
    ):
        if width < MIN_DIMENSION or height < MIN_DIMENSION:
            raise ValueError(f"frame size {width}x{height} is below the {MIN_DIMENSION}x{MIN_DIMENSION} minimum")
        self.width = width
        self.height = height
        self.config = config or AdmConfig()
        self.pixel_offset = pixel_offset
        self.ref_data = Plane.allocate(width, height)
        self.main_data = Plane.allocate(width, height)
        self.arena = ScratchArena.for_frame(width, height)
        self.temp_lo = np.zeros(self.ref_data.stride_elements, dtype=np.float32)
        self.temp_hi = np.zeros(self.ref_data.stride_elements, dtype=np.float32)
        self.score_sum = 0.0
        self.nb_frames = 0
        self.scores: List[float] = []
        self.closed = False
        LOGGER.info("Opened ADM stream %dx%d (arena %d bytes)", width, height, self.arena.nbytes)

    def __enter__(self) -> "AdmStream":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @property
    def average(self) -> Optional[float]:
        if self.nb_frames == 0:
            return None
        return self.score_sum / self.nb_frames

    def process(self, reference: np.ndarray, distorted: np.ndarray, sample: SampleFormat) -> AdmScore:
        """Convert one aligned pair of luma planes, score it and update the running average."""

        if self.closed:
            raise RuntimeError("ADM stream already closed")
        convert_samples(reference, self.ref_data, sample, self.pixel_offset)
        convert_samples(distorted, self.main_data, sample, self.pixel_offset)
        result = compute_adm2(self.ref_data, self.main_data, self.arena, self.temp_lo, self.temp_hi, self.config)
        self.nb_frames += 1
        self.score_sum += result.score
        self.scores.append(result.score)
        LOGGER.debug("Frame %d ADM %.6f (num=%.6f den=%.6f)", self.nb_frames - 1, result.score, result.score_num, result.score_den)
        return result

    def summary(self, reference: Optional[Path] = None, distorted: Optional[Path] = None) -> StreamSummary:
        return StreamSummary(
            frames=self.nb_frames,
            average=self.average,
            min_score=min(self.scores) if self.scores else None,
            max_score=max(self.scores) if self.scores else None,
            reference=None if reference is None else str(reference),
            distorted=None if distorted is None else str(distorted),
            width=self.width,
            height=self.height,
        )

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        if self.nb_frames > 0:
            LOGGER.info("ADM AVG: %.3f", self.average)


def run_pipeline(
    config: MetricConfig,
    progress_cb: Optional[Callable[[ProgressUpdate], None]] = None,
) -> StreamSummary:
    """Score every aligned frame pair of the configured inputs."""

    setup_logging(config.output.log_dir, config.log_level)
    info, pairs = iter_frame_pairs(config.input)

    writer: Optional[ScoreWriter] = None
    if config.output.report_path is not None:
        writer = ScoreWriter(config.output, config.output.report_path)

    with AdmStream(info.width, info.height, config.adm, config.input.pixel_offset) as stream:
        try:
            for pair in pairs:
                result = stream.process(pair.reference, pair.distorted, info.sample)
                if writer is not None:
                    writer.add(FrameScoreRecord.from_score(pair.frame_index, result, pair.repeated_reference))
                if progress_cb:
                    progress_cb(ProgressUpdate(pair.frame_index, result.score, stream.average))
        finally:
            if writer is not None:
                writer.close()
        summary = stream.summary(config.input.reference, config.input.distorted)

    if summary.frames == 0:
        LOGGER.warning("No frame pairs were scored")
    if config.output.summary_path is not None:
        write_summary(summary, config.output.summary_path)
    LOGGER.info("Pipeline finished: %d frames", summary.frames)
    return summary
