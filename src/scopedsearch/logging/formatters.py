"""
Log formatters for scopedsearch.

JSON for aggregated production logs, plain text for local development.
"""

from __future__ import annotations

import json
import logging
import traceback
from datetime import datetime, timezone
from typing import Any

# Context fields promoted to the top level of every formatted record
CONTEXT_FIELDS = ("request_id", "trace_id", "principal_id", "role", "tenant_id", "entity")

# Attributes every LogRecord carries; never treated as extra fields
_RECORD_ATTRS = set(vars(logging.makeLogRecord({}))) | {"message", "asctime", "taskName"}


def _extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _RECORD_ATTRS and key not in CONTEXT_FIELDS and not key.startswith("_")
    }


class JSONFormatter(logging.Formatter):
    """
    Single-line JSON formatter.

    Output keys: timestamp, level, logger, message, the context fields that
    are set, ``exception`` when present, and ``extra`` for any other
    keyword fields passed to the logger.
    """

    def __init__(self, include_extra: bool = True) -> None:
        super().__init__()
        self.include_extra = include_extra

    def format(self, record: logging.LogRecord) -> str:
        log_dict: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for name in CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                log_dict[name] = value

        if record.exc_info:
            exc_type, exc_value, _ = record.exc_info
            log_dict["exception"] = {
                "type": exc_type.__name__ if exc_type else None,
                "message": str(exc_value) if exc_value else None,
                "traceback": traceback.format_exception(*record.exc_info),
            }

        if self.include_extra:
            extra = _extra_fields(record)
            if extra:
                log_dict["extra"] = extra

        return json.dumps(log_dict, default=str, ensure_ascii=False)


class TextFormatter(logging.Formatter):
    """Readable one-line formatter with optional ANSI level colors."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self, use_colors: bool = True) -> None:
        super().__init__()
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created, timezone.utc).strftime(
            "%Y-%m-%d %H:%M:%S"
        )

        level = f"{record.levelname:8}"
        if self.use_colors and record.levelname in self.COLORS:
            level = f"{self.COLORS[record.levelname]}{level}{self.RESET}"

        context = [
            f"{name}={getattr(record, name)}"
            for name in ("request_id", "entity", "role")
            if getattr(record, name, None) is not None
        ]
        context.extend(f"{key}={value}" for key, value in _extra_fields(record).items())
        suffix = f" [{', '.join(context)}]" if context else ""

        line = f"{timestamp} {level} {record.name}: {record.getMessage()}{suffix}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line
