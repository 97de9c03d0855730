"""Logging setup driven by LoggingConfig."""

from __future__ import annotations

import logging
import logging.handlers
from pathlib import Path

from commute_display.config import LoggingConfig

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
LOG_FILENAME = "commute_display.log"


def configure_logging(config: LoggingConfig) -> Path:
    """Send records to stderr and a rotating file under ``config.log_dir``."""
    level = logging.getLevelName(config.level.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {config.level}")

    log_dir = Path(config.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / LOG_FILENAME

    formatter = logging.Formatter(LOG_FORMAT)
    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    file_handler = logging.handlers.RotatingFileHandler(
        log_path, maxBytes=1_000_000, backupCount=3, encoding="utf-8"
    )
    file_handler.setFormatter(formatter)

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    root.addHandler(stream_handler)
    root.addHandler(file_handler)
    root.setLevel(level)
    return log_path


__all__ = ["LOG_FORMAT", "configure_logging"]
