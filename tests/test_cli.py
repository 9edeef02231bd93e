"""Tests for the command line entrypoint."""

import yaml

from cli import build_config, main, parse_args


def test_flags_override_config_file(tmp_path):
    cfg_path = tmp_path / "cfg.yaml"
    cfg_path.write_text(yaml.safe_dump({"input": {"width": 10, "height": 10}, "log_level": "DEBUG"}), encoding="utf-8")
    args = parse_args(["--config", str(cfg_path), "--width", "32", "--pix-fmt", "yuv420p10le", "--exact-division"])
    cfg = build_config(args)
    assert cfg.input.width == 32 and cfg.input.height == 10
    assert cfg.input.reference_pix_fmt == "yuv420p10le"
    assert cfg.input.distorted_pix_fmt == "yuv420p10le"
    assert cfg.adm.reciprocal == "exact"
    assert cfg.log_level == "DEBUG"


def test_main_scores_raw_inputs(tmp_path, write_yuv, make_frame, capsys):
    frames = [make_frame(32, 32, seed=i) for i in range(2)]
    ref = write_yuv(tmp_path / "ref.yuv", frames)
    report = tmp_path / "scores.jsonl"
    code = main([
        "--reference", str(ref),
        "--distorted", str(ref),
        "--width", "32",
        "--height", "32",
        "--report", str(report),
        "--no-progress",
    ])
    assert code == 0
    assert "ADM AVG: 1.000 over 2 frames" in capsys.readouterr().out
    assert len(report.read_text(encoding="utf-8").splitlines()) == 2


def test_main_reports_configuration_errors(tmp_path, write_yuv, make_frame, capsys):
    ref = write_yuv(tmp_path / "ref.yuv", [make_frame(32, 32)])
    code = main(["--reference", str(ref), "--distorted", str(ref), "--no-progress"])
    assert code == 1
    assert "width and height" in capsys.readouterr().err
