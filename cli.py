#!/usr/bin/env python
"""Command line entrypoint: score a distorted video against its reference."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from tqdm import tqdm

from config import MetricConfig, default_config, load_config
from pipeline import ProgressUpdate, run_pipeline


# ----------------- ARGPARSE -----------------

def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        description="Compute the ADM (additive detail measure) between two videos."
    )
    p.add_argument("--reference", type=Path, help="Reference video or raw .yuv file.")
    p.add_argument("--distorted", type=Path, help="Distorted video or raw .yuv file.")
    p.add_argument("--config", type=Path, help="JSON or YAML config; flags override it.")

    # raw input geometry
    p.add_argument("--width", type=int, help="Frame width (raw inputs).")
    p.add_argument("--height", type=int, help="Frame height (raw inputs).")
    p.add_argument("--pix-fmt", type=str, help="Pixel format of raw inputs, e.g. yuv420p or yuv420p10le.")
    p.add_argument("--distorted-pix-fmt", type=str, help="Pixel format of the distorted input if it differs.")
    p.add_argument("--pixel-offset", type=float, help="Constant added to every sample before scoring.")

    # pairing
    p.add_argument("--eof-action", choices=["repeat_last", "shortest"],
                   help="What to do when the reference ends first.")
    p.add_argument("--max-frames", type=int, help="Stop after this many frame pairs.")

    # model
    p.add_argument("--exact-division", action="store_true",
                   help="Use exact division instead of the refined reciprocal estimate.")

    # output
    p.add_argument("--report", type=Path, help="Per-frame score file.")
    p.add_argument("--report-format", choices=["jsonl", "csv", "parquet"])
    p.add_argument("--summary", type=Path, help="JSON summary written at the end.")
    p.add_argument("--log-dir", type=Path)
    p.add_argument("--log-level", choices=["INFO", "DEBUG", "WARNING"])
    p.add_argument("--no-progress", action="store_true")
    return p.parse_args(argv)


def build_config(args: argparse.Namespace) -> MetricConfig:
    """Merge command line flags over the config file (or defaults)."""

    cfg = (load_config(args.config) if args.config else default_config()).dict()
    overrides = {
        "reference": args.reference,
        "distorted": args.distorted,
        "width": args.width,
        "height": args.height,
        "reference_pix_fmt": args.pix_fmt,
        "distorted_pix_fmt": args.distorted_pix_fmt,
        "pixel_offset": args.pixel_offset,
        "eof_action": args.eof_action,
        "max_frames": args.max_frames,
    }
    cfg["input"].update({key: value for key, value in overrides.items() if value is not None})
    if args.pix_fmt and not args.distorted_pix_fmt:
        cfg["input"]["distorted_pix_fmt"] = args.pix_fmt
    if args.exact_division:
        cfg["adm"]["reciprocal"] = "exact"
    outputs = {
        "report_path": args.report,
        "report_format": args.report_format,
        "summary_path": args.summary,
        "log_dir": args.log_dir,
    }
    cfg["output"].update({key: value for key, value in outputs.items() if value is not None})
    if args.log_level:
        cfg["log_level"] = args.log_level
    return MetricConfig(**cfg)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    try:
        config = build_config(args)
    except ValueError as exc:
        print(f"[ERROR] Invalid configuration: {exc}", file=sys.stderr)
        return 2

    total = config.input.max_frames
    with tqdm(total=total, desc="ADM", unit="frame", disable=args.no_progress) as bar:

        def _progress(update: ProgressUpdate) -> None:
            bar.update(1)
            bar.set_postfix(score=f"{update.score:.3f}")

        try:
            summary = run_pipeline(config, _progress)
        except (ValueError, RuntimeError) as exc:
            print(f"[ERROR] {exc}", file=sys.stderr)
            return 1

    if summary.average is None:
        print("No frames scored.")
    else:
        print(f"ADM AVG: {summary.average:.3f} over {summary.frames} frames")
    return 0


if __name__ == "__main__":
    sys.exit(main())
