"""
Error taxonomy for scopedsearch.

All scopedsearch errors inherit from ScopedSearchError and include:
- A unique error code for programmatic handling
- A human-readable message
- Optional details for the caller

Errors raised before storage access (validation, scope) guarantee that no
query was issued. An unsafe sort field is never an error: it silently falls
back to the entity's default sort.
"""

from typing import Any


class ScopedSearchError(Exception):
    """
    Base class for all scopedsearch errors.

    Attributes:
        code: Unique error code for programmatic handling
        message: Human-readable error message
        details: Additional error context, safe to return to the caller
    """

    code: str = "SCOPEDSEARCH_ERROR"

    def __init__(
        self,
        message: str,
        *,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert error to a dictionary for serialization."""
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(ScopedSearchError):
    """A filter, sort or paging value is malformed."""

    code = "VALIDATION_ERROR"

    def __init__(
        self,
        message: str,
        field: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(
            message,
            details={"field": field} if field else {},
            **kwargs,
        )
        self.field = field


class UnknownFilterError(ValidationError):
    """The caller filtered on a field the entity does not expose for filtering."""

    code = "UNKNOWN_FILTER"

    def __init__(
        self,
        field: str,
        entity: str,
        allowed_fields: list[str] | None = None,
    ) -> None:
        super().__init__(f"Unknown filter field '{field}' for entity '{entity}'", field=field)
        self.details["entity"] = entity
        if allowed_fields is not None:
            self.details["allowed_fields"] = sorted(allowed_fields)


class ForbiddenScopeError(ScopedSearchError):
    """
    The principal may not perform this operation at all.

    Raised before any storage access, e.g. for an unauthenticated caller on
    a protected search or a role with no scope rule for the entity.
    """

    code = "FORBIDDEN_SCOPE"

    def __init__(
        self,
        entity: str,
        reason: str,
        role: str | None = None,
    ) -> None:
        super().__init__(
            f"Access to '{entity}' is not permitted: {reason}",
            details={"entity": entity, "role": role},
        )
        self.reason = reason


class NotFoundError(ScopedSearchError):
    """
    Requested record was not found.

    Note: When scoping predicates remove a record, we return NotFoundError
    rather than revealing that the record exists but is inaccessible.
    """

    code = "NOT_FOUND"

    def __init__(
        self,
        entity: str,
        id: Any,
    ) -> None:
        super().__init__(
            f"Record not found: {entity} with id '{id}'",
            details={"entity": entity, "id": str(id)},
        )


class StorageError(ScopedSearchError):
    """
    The backing store failed or timed out.

    The message is deliberately opaque; the underlying exception is chained
    as ``__cause__`` for server-side diagnostics.
    """

    code = "STORAGE_ERROR"

    def __init__(
        self,
        entity: str,
        operation: str,
        timed_out: bool = False,
    ) -> None:
        message = "Storage timed out" if timed_out else "Storage failure"
        super().__init__(
            f"{message} during {operation} on '{entity}'",
            details={"entity": entity, "operation": operation},
        )
        self.timed_out = timed_out


class EntityNotRegisteredError(ScopedSearchError):
    """The entity name is not registered with the engine."""

    code = "ENTITY_NOT_REGISTERED"

    def __init__(
        self,
        entity: str,
        registered: list[str] | None = None,
    ) -> None:
        super().__init__(
            f"Entity '{entity}' is not registered",
            details={"entity": entity, "registered": sorted(registered or [])},
        )
