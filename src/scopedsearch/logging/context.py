"""
Logging context management for scopedsearch.

Lets request, principal and entity information ride along with every log
record emitted while a search runs, without threading it through each call.
"""

from __future__ import annotations

import contextvars
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from scopedsearch.core.context import RunContext

_log_context: contextvars.ContextVar[dict[str, Any] | None] = contextvars.ContextVar(
    "scopedsearch_log_context",
    default=None,
)


@dataclass
class LogContext:
    """
    Structured logging context.

    Only identifiers go here; filter values never do.
    """

    request_id: str | None = None
    trace_id: str | None = None
    principal_id: str | None = None
    role: str | None = None
    tenant_id: str | None = None
    entity: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_run_context(cls, ctx: RunContext, entity: str | None = None) -> LogContext:
        principal = ctx.principal
        return cls(
            request_id=ctx.request_id,
            trace_id=ctx.trace_id,
            principal_id=principal.id,
            role=principal.role,
            tenant_id=principal.tenant_id or principal.organization_id,
            entity=entity,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to a dictionary of non-None values."""
        result = {
            key: value
            for key, value in (
                ("request_id", self.request_id),
                ("trace_id", self.trace_id),
                ("principal_id", self.principal_id),
                ("role", self.role),
                ("tenant_id", self.tenant_id),
                ("entity", self.entity),
            )
            if value is not None
        }
        result.update(self.extra)
        return result


def get_log_context() -> dict[str, Any]:
    """Get a copy of the current log context."""
    ctx = _log_context.get()
    return ctx.copy() if ctx else {}


@contextmanager
def with_log_context(
    context: LogContext | dict[str, Any] | None = None,
    **kwargs: Any,
) -> Iterator[None]:
    """
    Context manager for setting log context within a scope.

    Example:
        with with_log_context(LogContext.from_run_context(ctx, "task")):
            logger.info("Search started")  # carries request_id, entity, ...
    """
    previous = _log_context.get()

    if context is not None:
        new_context = context.to_dict() if isinstance(context, LogContext) else dict(context)
    else:
        new_context = previous.copy() if previous else {}
    new_context.update(kwargs)

    token = _log_context.set(new_context)
    try:
        yield
    finally:
        _log_context.reset(token)


class ContextFilter(logging.Filter):
    """Injects the current log context into each record it sees."""

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in get_log_context().items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True
