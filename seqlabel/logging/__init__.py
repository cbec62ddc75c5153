"""
seqlabel Logging Module
=======================
Logging helpers for seqlabel.

Example:
    >>> from seqlabel.logging import configure_logging, get_logger
    >>>
    >>> configure_logging("INFO")
    >>> logger = get_logger("seqlabel.maxent.gis")
    >>> logger.info("Training started")
"""

from .core import (
    # Levels
    DEBUG,
    INFO,
    WARNING,
    ERROR,
    CRITICAL,
    set_level,
    get_level,
    # Formatters
    Formatter,
    # Handlers
    StreamHandler,
    # Loggers
    get_logger,
    configure_logging,
    # Utilities
    log_time,
    LogCapture,
)

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
