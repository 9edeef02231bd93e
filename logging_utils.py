"""Logging helpers shared across modules."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional


_ADM_LOGGER_NAME = "adm_metric"


def setup_logging(log_dir: Optional[Path] = None, level: str = "INFO") -> Optional[Path]:
    """Configure logging to console, and to file when ``log_dir`` is set, without clobbering root handlers."""

    logger = logging.getLogger(_ADM_LOGGER_NAME)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    formatter = logging.Formatter(
        fmt="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    if not any(type(handler) is logging.StreamHandler for handler in logger.handlers):
        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(formatter)
        logger.addHandler(stream_handler)

    if log_dir is None:
        return None

    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / "adm.log"
    if not any(isinstance(handler, logging.FileHandler) and getattr(handler, "baseFilename", None) == str(log_path.resolve()) for handler in logger.handlers):
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.debug("Logging initialized at %s", log_path)
    return log_path


def get_logger(name: str) -> logging.Logger:
    """Convenience wrapper for module loggers."""

    return logging.getLogger(f"{_ADM_LOGGER_NAME}.{name}")
