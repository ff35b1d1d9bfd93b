from __future__ import annotations

import logging
import sys
from typing import Optional

"""Logging setup with labeled prefixes (INFO|WARN|ERROR).

One package logger, ``dashboard_api``, writes to stdout. Modules log through
children of it (``logging.getLogger(__name__)``) so a single call to
setup_logging() covers the whole app.
"""

__all__ = [
    "LOGGER_NAME",
    "LabeledFormatter",
    "setup_logging",
    "reset_logging",
]

LOGGER_NAME = "dashboard_api"

_logger: Optional[logging.Logger] = None


class LabeledFormatter(logging.Formatter):
    LEVEL_LABELS = {
        logging.DEBUG: "DEBUG",
        logging.INFO: "INFO",
        logging.WARNING: "WARN",
        logging.ERROR: "ERROR",
        logging.CRITICAL: "CRITICAL",
    }

    def format(self, record: logging.LogRecord) -> str:
        label = self.LEVEL_LABELS.get(record.levelno, record.levelname)
        message = f"{label} [{record.name}] {record.getMessage()}"
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        return message


def setup_logging(level: str = "INFO") -> logging.Logger:
    """Configure the package logger once; later calls only adjust the level."""
    global _logger

    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        numeric = logging.INFO

    if _logger is not None:
        _logger.setLevel(numeric)
        return _logger

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(numeric)

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(LabeledFormatter())
    logger.addHandler(handler)

    # Keep uvicorn's root handlers from printing everything twice.
    logger.propagate = False

    _logger = logger
    return logger


def reset_logging() -> None:
    """Forget the configured logger. Used by tests."""
    global _logger
    _logger = None
