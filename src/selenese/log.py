"""Structured logging setup."""

from __future__ import annotations

import logging
from enum import StrEnum

import structlog


class LogLevel(StrEnum):
    """Recognized session log levels."""

    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"
    OFF = "off"


_STDLIB_LEVELS: dict[LogLevel, int] = {
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.INFO: logging.INFO,
    LogLevel.WARN: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
    LogLevel.OFF: logging.CRITICAL + 10,
}


def stdlib_level(level: LogLevel | str) -> int:
    return _STDLIB_LEVELS[LogLevel(level)]


def configure_logging(level: LogLevel | str = LogLevel.INFO) -> None:
    """Configure structlog on top of the standard library logger."""
    level = LogLevel(level)
    verbose = level == LogLevel.DEBUG
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer() if verbose else structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(level=stdlib_level(level))
    logging.getLogger().setLevel(stdlib_level(level))
