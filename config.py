"""Configuration models for the ADM scoring tool."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field, PositiveInt, validator

from adm_constants import BORDER_FACTOR, NOISE_FLOOR, REF_DISPLAY_HEIGHT, VIEW_DIST

RAW_SUFFIXES = {".yuv", ".raw"}


class AdmConfig(BaseModel):
    """Perceptual model parameters."""

    view_distance: float = Field(VIEW_DIST, gt=0.0)
    # None uses the frame's own height.
    display_height: Optional[PositiveInt] = REF_DISPLAY_HEIGHT
    border_factor: float = Field(BORDER_FACTOR, ge=0.0, lt=0.5)
    reciprocal: Literal["approximate", "exact"] = "approximate"
    noise_floor: float = Field(NOISE_FLOOR, ge=0.0)


class InputConfig(BaseModel):
    """Reference and distorted sources and how to pair them."""

    reference: Optional[Path] = None
    distorted: Optional[Path] = None
    width: Optional[PositiveInt] = None
    height: Optional[PositiveInt] = None
    reference_pix_fmt: str = "yuv420p"
    distorted_pix_fmt: Optional[str] = None
    pixel_offset: float = 0.0
    eof_action: Literal["repeat_last", "shortest"] = "repeat_last"
    max_frames: Optional[PositiveInt] = None

    @validator("distorted_pix_fmt", always=True)
    def _default_distorted_format(cls, value: Optional[str], values: Dict[str, object]) -> Optional[str]:
        """Distorted stream defaults to the reference pixel format."""

        if value is None:
            return values.get("reference_pix_fmt")  # type: ignore[return-value]
        return value

    def is_raw(self, path: Path) -> bool:
        return path.suffix.lower() in RAW_SUFFIXES


class OutputConfig(BaseModel):
    """Where per-frame scores and the stream summary go."""

    report_path: Optional[Path] = None
    report_format: Literal["parquet", "csv", "jsonl"] = "jsonl"
    batch_size: PositiveInt = 256
    summary_path: Optional[Path] = None
    log_dir: Optional[Path] = None


class MetricConfig(BaseModel):
    """Top-level configuration tying everything together."""

    adm: AdmConfig = AdmConfig()
    input: InputConfig = InputConfig()
    output: OutputConfig = OutputConfig()
    log_level: Literal["INFO", "DEBUG", "WARNING"] = "INFO"

    def to_jsonable(self) -> Dict[str, Any]:
        """Dict form with paths stringified."""

        return config_to_dict(self)


def _jsonable(value: Any) -> Any:
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, dict):
        return {key: _jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(item) for item in value]
    return value


def config_to_dict(config: BaseModel) -> Dict[str, Any]:
    return _jsonable(config.dict())


def default_config() -> MetricConfig:
    """Return a ready-to-use default configuration."""

    return MetricConfig()


def load_config(path: Path) -> MetricConfig:
    """Load config from a JSON or YAML file."""

    import json

    if path.suffix.lower() in {".yaml", ".yml"}:
        import yaml

        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    else:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    return MetricConfig(**data)


def save_config(config: MetricConfig, path: Path) -> None:
    """Persist config to disk."""

    import json

    data = config_to_dict(config)
    if path.suffix.lower() in {".yaml", ".yml"}:
        import yaml

        with path.open("w", encoding="utf-8") as f:
            yaml.safe_dump(data, f, sort_keys=False)
    else:
        with path.open("w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
