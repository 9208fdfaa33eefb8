from __future__ import annotations

import logging
import sys
from typing import TextIO

"""Labeled log output for the sheetlens CLI.

Lines are written to stdout as ``<LABEL> <message>`` where LABEL is one of
INFO|WARN|ERROR|SUMMARY (DEBUG only after --debug). Library modules log through
``logging.getLogger(__name__)``; records propagate up to the "sheetlens" logger,
which is the only one that owns a handler.
"""

__all__ = [
    "LOGGER_NAME",
    "SUMMARY_LEVEL",
    "get_logger",
    "log_summary",
    "reset_logging",
    "set_level",
    "setup_logging",
]

LOGGER_NAME = "sheetlens"

# Sits between INFO (20) and WARNING (30) so --quiet style filtering keeps it
SUMMARY_LEVEL = 25

_LABELS = {
    logging.DEBUG: "DEBUG",
    logging.INFO: "INFO",
    SUMMARY_LEVEL: "SUMMARY",
    logging.WARNING: "WARN",
    logging.ERROR: "ERROR",
    logging.CRITICAL: "CRITICAL",
}

_logger: logging.Logger | None = None


class LabeledFormatter(logging.Formatter):
    """``LABEL message``; unknown levels fall back to the level name."""

    def format(self, record: logging.LogRecord) -> str:
        label = _LABELS.get(record.levelno, record.levelname)
        return f"{label} {record.getMessage()}"


def _stream_handler(stream: TextIO, level: int) -> logging.Handler:
    handler = logging.StreamHandler(stream)
    handler.setLevel(level)
    handler.setFormatter(LabeledFormatter())
    return handler


def setup_logging(level: int = logging.INFO, stream: TextIO | None = None) -> logging.Logger:
    """Configure the "sheetlens" logger once and return it.

    Repeated calls return the already configured logger unchanged.

    Args:
        level: initial level of the logger and its handler
        stream: output stream, stdout when None
    """
    global _logger
    if _logger is not None:
        return _logger

    logging.addLevelName(SUMMARY_LEVEL, "SUMMARY")
    logger = logging.getLogger(LOGGER_NAME)
    logger.handlers.clear()
    logger.addHandler(_stream_handler(stream or sys.stdout, level))
    logger.setLevel(level)
    # records stop here; the root logger never sees them
    logger.propagate = False

    _logger = logger
    return logger


def get_logger() -> logging.Logger:
    return _logger if _logger is not None else setup_logging()


def set_level(level: int) -> None:
    """Change the level of the logger and every handler it owns (used by --debug)."""
    logger = get_logger()
    logger.setLevel(level)
    for handler in logger.handlers:
        handler.setLevel(level)


def log_summary(message: str) -> None:
    get_logger().log(SUMMARY_LEVEL, message)


def reset_logging() -> None:
    """Forget the configured logger so the next setup_logging() starts over. Test helper."""
    global _logger
    _logger = None
