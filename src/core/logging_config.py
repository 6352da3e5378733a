"""Structured logging configuration.

This module configures structlog once per process with a stable
JSON event format on stderr and hands out named loggers.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

from core.constants import DEFAULT_LOG_LEVEL
from core.errors import CacheConfigError

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def configure_logging(level: str = DEFAULT_LOG_LEVEL) -> None:
    """Configure structlog processors and the minimum log level.

    Args:
        level: Level name, one of debug, info, warning, error.

    Raises:
        CacheConfigError: If the level name is unknown.
    """
    numeric_level = parse_log_level(level)
    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(sort_keys=True),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        logger_factory=_stderr_logger,
        cache_logger_on_first_use=False,
    )


def get_logger(name: str) -> Any:
    """Return a module logger instance.

    Args:
        name: Logger name, usually __name__.

    Returns:
        A lazy structlog logger carrying the module name; it follows
        the configuration active when each event is emitted.
    """
    return structlog.get_logger(name)


def parse_log_level(level: str) -> int:
    """Map a level name onto the stdlib numeric level."""
    normalized = level.strip().lower()
    if normalized not in _LEVELS:
        raise CacheConfigError(
            f"Invalid log level '{level}'. "
            f"Use one of: {', '.join(sorted(_LEVELS))}."
        )
    return _LEVELS[normalized]


class _NamedPrintLogger(structlog.PrintLogger):
    """Print logger carrying the module name read by ``add_logger_name``."""

    def __init__(self, file: Any, name: str | None) -> None:
        super().__init__(file)
        self.name = name


def _stderr_logger(*args: Any) -> _NamedPrintLogger:
    # Resolved per event so redirected stderr streams are honored.
    return _NamedPrintLogger(sys.stderr, str(args[0]) if args else None)
