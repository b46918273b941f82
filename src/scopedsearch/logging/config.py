"""
Logging configuration for scopedsearch.

Library code only ever calls ``get_logger``; applications call
``configure_logging`` once at startup to pick a format.
"""

from __future__ import annotations

import logging
import sys
from enum import Enum
from typing import Any, TextIO

from scopedsearch.logging.context import ContextFilter
from scopedsearch.logging.formatters import JSONFormatter, TextFormatter

ROOT_LOGGER = "scopedsearch"


class LogLevel(str, Enum):
    """Log level options."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log format options."""

    JSON = "json"
    TEXT = "text"


class SearchLogger:
    """
    Logger wrapper that accepts structured fields as keyword arguments.

    Example:
        logger = get_logger("scopedsearch.query")
        logger.info("Search executed", entity="task", records=12)
    """

    def __init__(self, name: str) -> None:
        self._logger = logging.getLogger(name)

    @property
    def name(self) -> str:
        return self._logger.name

    def _log(
        self,
        level: int,
        msg: str,
        *args: Any,
        exc_info: bool | BaseException | None = None,
        **fields: Any,
    ) -> None:
        if self._logger.isEnabledFor(level):
            self._logger.log(level, msg, *args, exc_info=exc_info, extra=fields, stacklevel=3)

    def debug(self, msg: str, *args: Any, **fields: Any) -> None:
        self._log(logging.DEBUG, msg, *args, **fields)

    def info(self, msg: str, *args: Any, **fields: Any) -> None:
        self._log(logging.INFO, msg, *args, **fields)

    def warning(self, msg: str, *args: Any, **fields: Any) -> None:
        self._log(logging.WARNING, msg, *args, **fields)

    def error(
        self,
        msg: str,
        *args: Any,
        exc_info: bool | BaseException | None = None,
        **fields: Any,
    ) -> None:
        self._log(logging.ERROR, msg, *args, exc_info=exc_info, **fields)

    def exception(self, msg: str, *args: Any, **fields: Any) -> None:
        """Log an error message with the current traceback."""
        self._log(logging.ERROR, msg, *args, exc_info=True, **fields)

    def is_enabled_for(self, level: int | LogLevel) -> bool:
        if isinstance(level, LogLevel):
            level = getattr(logging, level.value)
        return self._logger.isEnabledFor(level)


def get_logger(name: str) -> SearchLogger:
    """
    Get a scopedsearch logger by name.

    Args:
        name: Logger name (typically ``__name__``)
    """
    return SearchLogger(name)


def configure_logging(
    level: LogLevel | str = LogLevel.INFO,
    format: LogFormat | str = LogFormat.JSON,
    output: TextIO | None = None,
    include_context: bool = True,
    use_colors: bool = True,
) -> None:
    """
    Configure scopedsearch logging.

    Replaces any handlers on the ``scopedsearch`` logger with a single
    stream handler.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format: Output format (json for production, text for development)
        output: Output stream (defaults to stderr)
        include_context: Whether to inject the current log context
        use_colors: Whether to use colors in text format (ignored for JSON)

    Example:
        configure_logging(level="DEBUG", format="text")
    """
    if isinstance(level, str):
        level = LogLevel(level.upper())
    if isinstance(format, str):
        format = LogFormat(format.lower())

    root_logger = logging.getLogger(ROOT_LOGGER)
    root_logger.setLevel(getattr(logging, level.value))
    root_logger.handlers.clear()

    handler = logging.StreamHandler(output or sys.stderr)
    handler.setLevel(getattr(logging, level.value))
    if format == LogFormat.JSON:
        handler.setFormatter(JSONFormatter(include_extra=True))
    else:
        handler.setFormatter(TextFormatter(use_colors=use_colors))
    if include_context:
        handler.addFilter(ContextFilter())

    root_logger.addHandler(handler)
    root_logger.propagate = False
