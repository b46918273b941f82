"""
scopedsearch structured logging.

JSON or text output with request/principal/entity context injection.
"""

from scopedsearch.logging.config import (
    LogFormat,
    LogLevel,
    SearchLogger,
    configure_logging,
    get_logger,
)
from scopedsearch.logging.context import LogContext, get_log_context, with_log_context
from scopedsearch.logging.formatters import JSONFormatter, TextFormatter

__all__ = [
    # Configuration
    "configure_logging",
    "get_logger",
    "SearchLogger",
    "LogLevel",
    "LogFormat",
    # Formatters
    "JSONFormatter",
    "TextFormatter",
    # Context
    "LogContext",
    "get_log_context",
    "with_log_context",
]
