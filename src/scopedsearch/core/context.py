"""
Execution context for search requests.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4


@dataclass(frozen=True)
class Principal:
    """
    Represents the identity making a request.

    Created at authentication time by the caller's auth layer and immutable
    for the lifetime of the request. Scope rules read their values from the
    named attributes (``id``, ``tenant_id``, ``organization_id``) or from
    ``claims`` for backend-specific identifiers such as ``department_id``.
    """

    id: str | None = None
    role: str | None = None
    tenant_id: str | None = None
    organization_id: str | None = None
    claims: Mapping[str, Any] = field(default_factory=dict)
    is_authenticated: bool = True

    @classmethod
    def anonymous(cls) -> "Principal":
        """The explicit marker for an unauthenticated caller."""
        return cls(is_authenticated=False)

    def claim(self, name: str) -> Any:
        """
        Look up a scoping identifier by name.

        Named attributes win over entries in ``claims``. Returns None when
        the principal does not carry the identifier.
        """
        if name in ("id", "role", "tenant_id", "organization_id"):
            return getattr(self, name)
        return self.claims.get(name)


@dataclass
class RunContext:
    """
    Execution context for a single engine call.

    Carries the principal for scoping plus request tracking fields used to
    correlate log records.
    """

    principal: Principal
    request_id: str = field(default_factory=lambda: str(uuid4()))
    trace_id: str | None = None
    now: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def create(
        cls,
        *,
        principal_id: str | None = None,
        role: str | None = None,
        tenant_id: str | None = None,
        organization_id: str | None = None,
        claims: Mapping[str, Any] | None = None,
        request_id: str | None = None,
        trace_id: str | None = None,
    ) -> "RunContext":
        """
        Convenience factory for an authenticated context.

        Args:
            principal_id: The caller's id, used for ownership scoping
            role: The caller's role, keyed into the scope policy table
            tenant_id: Tenant scoping identifier
            organization_id: Organization scoping identifier
            claims: Additional scoping identifiers
            request_id: Optional request ID (generated if not provided)
            trace_id: Optional trace ID for distributed tracing
        """
        principal = Principal(
            id=principal_id,
            role=role,
            tenant_id=tenant_id,
            organization_id=organization_id,
            claims=dict(claims or {}),
        )
        return cls(
            principal=principal,
            request_id=request_id or str(uuid4()),
            trace_id=trace_id,
        )

    @classmethod
    def anonymous(cls, request_id: str | None = None) -> "RunContext":
        """Context for an unauthenticated caller."""
        return cls(principal=Principal.anonymous(), request_id=request_id or str(uuid4()))
