"""Logging helpers."""

from __future__ import annotations

import logging
from pathlib import Path

from config.settings import AppConfig

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(config: AppConfig) -> logging.Logger:
    """Send batch progress to the console and to ``<log_dir>/generation.log``."""
    log_dir = Path(config.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    level = logging.getLevelName(config.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[
            logging.FileHandler(log_dir / "generation.log", encoding="utf-8"),
            logging.StreamHandler(),
        ],
    )
    # urllib3 logs every connection; keep the console to batch progress.
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    return logging.getLogger("batch_image_generator")
