"""
seqlabel Logging Module
=======================
Thin layer over the standard library logging package used by the trainer,
the indexer and the decoders.

Every module logs through a child of the ``seqlabel`` logger, so a single
``configure_logging`` call controls the output of a whole training run.
"""

from __future__ import annotations

import logging
import sys
import time
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional, Union


# ============================================================================
# LEVELS
# ============================================================================

DEBUG = logging.DEBUG
INFO = logging.INFO
WARNING = logging.WARNING
ERROR = logging.ERROR
CRITICAL = logging.CRITICAL

_LEVEL_NAMES: Dict[str, int] = {
    logging.getLevelName(level): level for level in (DEBUG, INFO, WARNING, ERROR, CRITICAL)
}

PACKAGE_LOGGER = "seqlabel"
DEFAULT_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
DEFAULT_DATE_FORMAT = "%H:%M:%S"

LoggerLike = Union[str, logging.Logger, None]


def _to_level(level: Union[int, str], default: int = INFO) -> int:
    if isinstance(level, str):
        return _LEVEL_NAMES.get(level.upper(), default)
    return level


def _resolve(logger: LoggerLike) -> logging.Logger:
    if isinstance(logger, logging.Logger):
        return logger
    return get_logger(logger)


def set_level(logger: LoggerLike, level: Union[int, str]) -> None:
    """Set the level of a logger.

    Args:
        logger: Logger name or instance (None for the package logger)
        level: Level number or name, case-insensitive
    """
    _resolve(logger).setLevel(_to_level(level))


def get_level(logger: LoggerLike) -> int:
    """Level set directly on a logger (NOTSET when inherited)."""
    return _resolve(logger).level


# ============================================================================
# FORMATTING AND HANDLERS
# ============================================================================


class Formatter(logging.Formatter):
    """Formatter defaulting to the package layout."""

    def __init__(self, fmt: Optional[str] = None, datefmt: Optional[str] = None):
        super().__init__(fmt=fmt or DEFAULT_FORMAT, datefmt=datefmt or DEFAULT_DATE_FORMAT)


class StreamHandler(logging.StreamHandler):
    """Stream handler that takes its formatter and level up front."""

    def __init__(
        self,
        stream=None,
        formatter: Optional[logging.Formatter] = None,
        level: Union[int, str] = logging.NOTSET,
    ):
        super().__init__(stream)
        self.setFormatter(formatter or Formatter())
        self.setLevel(_to_level(level, logging.NOTSET))


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Logger called ``name``, or the package logger when omitted."""
    return logging.getLogger(name or PACKAGE_LOGGER)


def configure_logging(
    level: Union[int, str] = INFO,
    format_string: Optional[str] = None,
    date_format: Optional[str] = None,
    handlers: Optional[List[logging.Handler]] = None,
) -> logging.Logger:
    """Configure the package logger.

    Handlers previously installed on the ``seqlabel`` logger are replaced;
    the root logger is left alone.

    Args:
        level: Logging level
        format_string: Layout of the default handler
        date_format: Date layout of the default handler
        handlers: Handlers to install (default: one stderr stream handler)

    Returns:
        The configured package logger
    """
    level = _to_level(level)
    if handlers is None:
        handlers = [StreamHandler(sys.stderr, Formatter(format_string, date_format))]

    logger = get_logger()
    logger.setLevel(level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    for handler in handlers:
        logger.addHandler(handler)
    return logger


# ============================================================================
# UTILITIES
# ============================================================================


@contextmanager
def log_time(
    logger: LoggerLike = None,
    level: int = INFO,
    msg: str = "Operation",
    log_start: bool = False,
) -> Iterator[None]:
    """Log how long the body of a ``with`` block took.

    Example:
        >>> with log_time(logger, INFO, "Computing model parameters"):
        ...     trainer.train_model(100, indexer)
    """
    logger = _resolve(logger)
    if log_start:
        logger.log(level, "%s started", msg)
    started = time.perf_counter()
    try:
        yield
    finally:
        logger.log(level, "%s completed in %.4fs", msg, time.perf_counter() - started)


class LogCapture(logging.Handler):
    """Collects the records a logger emits inside a ``with`` block.

    The logger's level is lowered to ``level`` for the duration of the
    block when needed and restored afterwards.
    """

    def __init__(self, logger: LoggerLike = None, level: int = DEBUG):
        super().__init__(level)
        self.logger = _resolve(logger)
        self.records: List[logging.LogRecord] = []
        self._previous_level = self.logger.level

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)

    def __enter__(self) -> "LogCapture":
        self._previous_level = self.logger.level
        if self._previous_level == logging.NOTSET or self._previous_level > self.level:
            self.logger.setLevel(self.level)
        self.logger.addHandler(self)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.logger.removeHandler(self)
        self.logger.setLevel(self._previous_level)

    def get_messages(self, level: Optional[int] = None) -> List[str]:
        """Captured messages, optionally only those logged at ``level``."""
        return [r.getMessage() for r in self.records if level is None or r.levelno == level]

    def contains(self, text: str) -> bool:
        return any(text in message for message in self.get_messages())


__all__ = [
    "DEBUG",
    "INFO",
    "WARNING",
    "ERROR",
    "CRITICAL",
    "set_level",
    "get_level",
    "Formatter",
    "StreamHandler",
    "get_logger",
    "configure_logging",
    "log_time",
    "LogCapture",
]
