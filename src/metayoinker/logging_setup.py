"""Logging configuration shared by the TUI and the command line."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import IO

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"
LOG_MAX_BYTES = 5 * 1024 * 1024
LOG_BACKUP_COUNT = 3
PACKAGE_LOGGER = "metayoinker"


def _create_formatter() -> logging.Formatter:
    return logging.Formatter(LOG_FORMAT)


def create_stream_handler(stream: IO[str]) -> logging.Handler:
    handler = logging.StreamHandler(stream)
    handler.setFormatter(_create_formatter())
    return handler


def create_file_handler(log_file_path: Path) -> RotatingFileHandler:
    log_file_path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        log_file_path,
        maxBytes=LOG_MAX_BYTES,
        backupCount=LOG_BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setFormatter(_create_formatter())
    return handler


def parse_level(value: str | None, default: int = logging.INFO) -> int:
    if not value:
        return default
    level = logging.getLevelName(value.strip().upper())
    return level if isinstance(level, int) else default


def configure_logging(
    level: int = logging.INFO,
    *,
    log_file_path: Path | None = None,
    stream: IO[str] | None = None,
) -> logging.Logger:
    """Attach handlers to the package logger, replacing earlier ones.

    The TUI owns the terminal, so it only logs to a file; the command line
    also passes ``stream`` to log to stderr.
    """

    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(level)
    logger.propagate = False
    if log_file_path is not None:
        try:
            logger.addHandler(create_file_handler(log_file_path))
        except OSError as exc:
            if stream is not None:
                stream.write(f"Failed to open log file {log_file_path}: {exc}\n")
    if stream is not None:
        logger.addHandler(create_stream_handler(stream))
    if not logger.handlers:
        logger.addHandler(logging.NullHandler())
    return logger
