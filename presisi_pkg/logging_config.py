"""Structured logging configuration for Kalkulator Presisi.

Every module logs through a ``presisi.<module>`` child logger. Normal flow
(precision changes, constant cache fills, parse failures) is logged at
DEBUG and recorded evaluation errors at INFO, so the default WARNING level
keeps the console quiet while results still carry their ``Warning:`` line.
Defaults come from ``PRESISI_LOG_LEVEL`` and ``PRESISI_LOG_FILE``.
"""

import logging
import sys
from datetime import datetime
from typing import Optional

from .config import LOG_FILE, LOG_LEVEL

ROOT_LOGGER = "presisi"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


class StructuredFormatter(logging.Formatter):
    """Formats records as ``ISO-timestamp [LEVEL] presisi.module: message``."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).isoformat()
        message = f"{timestamp} [{record.levelname}] {record.name}: {record.getMessage()}"
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        return message


def resolve_level(level: Optional[str]) -> int:
    """Map a level name to its ``logging`` constant; unknown names mean WARNING."""
    name = (level or LOG_LEVEL).upper()
    if name not in LOG_LEVELS:
        return logging.WARNING
    return getattr(logging, name)


def setup_logging(
    level: Optional[str] = None, log_file: Optional[str] = None
) -> logging.Logger:
    """Configure the ``presisi`` logger tree.

    Args:
        level: DEBUG, INFO, WARNING or ERROR (default: ``PRESISI_LOG_LEVEL``)
        log_file: Also write to this file (default: ``PRESISI_LOG_FILE``)

    Returns:
        The configured ``presisi`` logger
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(resolve_level(level))
    # Records stop here; the host application's root handlers stay untouched.
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(StructuredFormatter())
    logger.addHandler(console_handler)

    log_file = log_file or LOG_FILE
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(StructuredFormatter())
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str = "") -> logging.Logger:
    """Child logger ``presisi.<name>``; the ``presisi`` logger itself for no name."""
    if not name or name == ROOT_LOGGER:
        return logging.getLogger(ROOT_LOGGER)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")
