"""Output writers for per-frame scores and stream summaries."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

import pandas as pd

from adm import AdmScore
from adm_constants import NUM_SCALES
from config import OutputConfig
from logging_utils import get_logger

LOGGER = get_logger(__name__)

SCORE_META_KEY = "adm.score"


@dataclass
class FrameScoreRecord:
    """Per-frame ADM result as persisted."""

    frame_index: int
    score: float
    score_num: float
    score_den: float
    scales: Dict[str, float]
    metadata: Dict[str, str] = field(default_factory=dict)
    repeated_reference: bool = False

    @classmethod
    def from_score(cls, frame_index: int, result: AdmScore, repeated_reference: bool = False) -> "FrameScoreRecord":
        scales: Dict[str, float] = {}
        for scale, (num, den) in enumerate(result.scale_pairs):
            scales[f"num_scale{scale}"] = num
            scales[f"den_scale{scale}"] = den
        return cls(
            frame_index=frame_index,
            score=result.score,
            score_num=result.score_num,
            score_den=result.score_den,
            scales=scales,
            metadata=score_metadata(result.score),
            repeated_reference=repeated_reference,
        )

    def flat(self) -> Dict[str, object]:
        row = {key: value for key, value in asdict(self).items() if key not in {"scales", "metadata"}}
        row.update(self.scales)
        row.update(self.metadata)
        return row


@dataclass
class StreamSummary:
    """Aggregate written once the stream closes."""

    frames: int
    average: Optional[float]
    min_score: Optional[float]
    max_score: Optional[float]
    reference: Optional[str] = None
    distorted: Optional[str] = None
    width: int = 0
    height: int = 0


def score_metadata(score: float) -> Dict[str, str]:
    """Frame metadata entry, formatted to two decimals."""

    return {SCORE_META_KEY: f"{score:0.2f}"}


def score_columns() -> List[str]:
    columns = ["frame_index", "score", "score_num", "score_den", "repeated_reference"]
    for scale in range(NUM_SCALES):
        columns.extend((f"num_scale{scale}", f"den_scale{scale}"))
    columns.append(SCORE_META_KEY)
    return columns


class ScoreWriter:
    """Batching helper for per-frame score persistence."""

    def __init__(self, output_cfg: OutputConfig, report_path: Path):
        self.output_cfg = output_cfg
        self.report_path = report_path
        self._buffer: List[FrameScoreRecord] = []
        self._pq_writer = None
        self._csv_has_header = False
        self.rows_written = 0
        report_path.parent.mkdir(parents=True, exist_ok=True)
        if report_path.exists():
            report_path.unlink()

    def __enter__(self) -> "ScoreWriter":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def add(self, record: FrameScoreRecord) -> None:
        self._buffer.append(record)
        if len(self._buffer) >= self.output_cfg.batch_size:
            self._flush_buffer()

    def close(self) -> None:
        self._flush_buffer()
        if self._pq_writer is not None:
            self._pq_writer.close()
            self._pq_writer = None
        LOGGER.debug("Wrote %d score rows to %s", self.rows_written, self.report_path)

    def _flush_buffer(self) -> None:
        if not self._buffer:
            return
        df = pd.DataFrame([record.flat() for record in self._buffer], columns=score_columns())
        fmt = self.output_cfg.report_format
        if fmt == "parquet":
            self._write_parquet(df)
        elif fmt == "csv":
            df.to_csv(
                self.report_path,
                mode="a",
                header=not self._csv_has_header,
                index=False,
            )
            self._csv_has_header = True
        else:  # jsonl
            with self.report_path.open("a", encoding="utf-8") as f:
                for record in df.to_dict(orient="records"):
                    f.write(json.dumps(record))
                    f.write("\n")
        self.rows_written += len(self._buffer)
        self._buffer.clear()

    def _write_parquet(self, df: pd.DataFrame) -> None:
        import pyarrow as pa
        import pyarrow.parquet as pq

        table = pa.Table.from_pandas(df, preserve_index=False)
        if self._pq_writer is None:
            self._pq_writer = pq.ParquetWriter(self.report_path, schema=table.schema)
        self._pq_writer.write_table(table)


def read_scores(path: Path) -> pd.DataFrame:
    """Load a score report written by :class:`ScoreWriter`."""

    suffix = path.suffix.lower()
    if suffix == ".parquet":
        return pd.read_parquet(path)
    if suffix == ".csv":
        return pd.read_csv(path)
    return pd.read_json(path, lines=True)


def write_summary(summary: StreamSummary, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(asdict(summary), f, indent=2)
