"""Regression tests for config serialization helpers."""

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from config import AdmConfig, InputConfig, MetricConfig, config_to_dict, load_config, save_config


def test_config_to_dict_allows_json_dump():
    cfg = MetricConfig(input=InputConfig(reference=Path("/data/ref.yuv")))
    data = config_to_dict(cfg)
    assert isinstance(data, dict)
    # json.dumps should succeed because Paths have been stringified
    json_text = json.dumps(data)
    assert "/data/ref.yuv" in json_text


def test_metric_config_to_jsonable_converts_paths_to_strings():
    cfg = MetricConfig()
    cfg.output.report_path = Path("/tmp/scores.jsonl")
    payload = cfg.to_jsonable()
    assert isinstance(payload["output"]["report_path"], str)
    assert payload["adm"]["view_distance"] == 3.0


def test_distorted_pix_fmt_defaults_to_reference():
    assert InputConfig(reference_pix_fmt="yuv422p10le").distorted_pix_fmt == "yuv422p10le"
    assert InputConfig(distorted_pix_fmt="yuv444p").distorted_pix_fmt == "yuv444p"


def test_border_factor_is_bounded():
    with pytest.raises(ValidationError):
        AdmConfig(border_factor=0.5)


@pytest.mark.parametrize("name", ["cfg.yaml", "cfg.json"])
def test_save_and_load_config(tmp_path, name):
    cfg = MetricConfig(adm=AdmConfig(reciprocal="exact", display_height=None), log_level="DEBUG")
    cfg.input.width = 320
    path = tmp_path / name
    save_config(cfg, path)
    loaded = load_config(path)
    assert loaded.adm.reciprocal == "exact"
    assert loaded.adm.display_height is None
    assert loaded.input.width == 320
    assert loaded.log_level == "DEBUG"
