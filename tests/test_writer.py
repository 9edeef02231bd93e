"""Tests for writer module."""

import json

import pytest

from adm import AdmScore
from config import OutputConfig
from writer import FrameScoreRecord, ScoreWriter, StreamSummary, read_scores, score_metadata, write_summary


def _result(score: float = 0.875) -> AdmScore:
    scales = tuple(float(i) for i in range(1, 9))
    return AdmScore(score=score, score_num=sum(scales[0::2]), score_den=sum(scales[1::2]), scales=scales)


def test_record_flattens_scale_pairs():
    record = FrameScoreRecord.from_score(3, _result())
    row = record.flat()
    assert row["frame_index"] == 3
    assert row["num_scale0"] == 1.0 and row["den_scale0"] == 2.0
    assert row["num_scale3"] == 7.0 and row["den_scale3"] == 8.0
    assert row["adm.score"] == "0.88"


def test_score_metadata_has_two_decimals():
    assert score_metadata(1.0) == {"adm.score": "1.00"}


@pytest.mark.parametrize("fmt,suffix", [("jsonl", ".jsonl"), ("csv", ".csv"), ("parquet", ".parquet")])
def test_writer_round_trips_rows(tmp_path, fmt, suffix):
    output_cfg = OutputConfig(report_format=fmt, batch_size=2)
    path = tmp_path / f"scores{suffix}"
    with ScoreWriter(output_cfg, path) as writer:
        for idx in range(5):
            writer.add(FrameScoreRecord.from_score(idx, _result(0.5 + idx / 10)))
    assert writer.rows_written == 5

    df = read_scores(path)
    assert len(df) == 5
    assert df["frame_index"].tolist() == [0, 1, 2, 3, 4]
    assert df["score"].iloc[-1] == pytest.approx(0.9)
    assert df["den_scale2"].iloc[0] == pytest.approx(6.0)


def test_writer_replaces_existing_report(tmp_path):
    path = tmp_path / "scores.jsonl"
    path.write_text("stale\n", encoding="utf-8")
    writer = ScoreWriter(OutputConfig(), path)
    writer.add(FrameScoreRecord.from_score(0, _result()))
    writer.close()
    lines = path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 1
    assert json.loads(lines[0])["score"] == pytest.approx(0.875)


def test_summary_is_written_as_json(tmp_path):
    summary = StreamSummary(frames=2, average=0.75, min_score=0.5, max_score=1.0, width=64, height=48)
    path = tmp_path / "out" / "summary.json"
    write_summary(summary, path)
    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["frames"] == 2 and data["average"] == 0.75
