"""
Policy model definitions.

Policies decide which records a principal may see, how searches are paged
and ordered, and how strictly unknown input is treated. They are evaluated
before any storage access.
"""

from typing import Any, Literal

from pydantic import BaseModel, Field, model_validator

from scopedsearch.core.dsl import SortClause, SortDirection


class ScopeRule(BaseModel):
    """
    One mandatory equality constraint for a role.

    ``dimension`` names an abstract scope axis ("tenant", "organization",
    "owner", ...) that each entity maps onto one of its own fields through
    RowPolicy.scope_fields. The value comes from the principal ``claim``, or
    from the constant ``value`` when no claim is named.
    """

    dimension: str
    claim: str | None = None
    value: Any = None

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def check_source(self) -> "ScopeRule":
        if self.claim is None and "value" not in self.model_fields_set:
            raise ValueError(f"Scope rule for '{self.dimension}' needs a claim or a value")
        return self


class RoleScope(BaseModel):
    """Scope granted to one role."""

    # Mandatory constraints, all of which must hold
    rules: list[ScopeRule] = Field(default_factory=list)

    # Roles that see every record (e.g. system administrators)
    unrestricted: bool = Field(default=False)

    # If set, the role may only search these entities
    entities: list[str] | None = Field(default=None)

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def check_rules(self) -> "RoleScope":
        if self.unrestricted and self.rules:
            raise ValueError("An unrestricted role cannot carry scope rules")
        return self

    def allows_entity(self, entity: str) -> bool:
        return self.entities is None or entity in self.entities


class ScopePolicy(BaseModel):
    """
    Static role -> scope table shared by every entity.

    Roles absent from the table are refused.
    """

    roles: dict[str, RoleScope] = Field(default_factory=dict)

    # Role applied to unauthenticated callers on entities that allow them
    anonymous_role: str | None = Field(default=None)

    model_config = {"frozen": True}

    def get_role_scope(self, role: str | None) -> RoleScope | None:
        if role is None:
            return None
        return self.roles.get(role)


class RowPolicy(BaseModel):
    """
    Row-level security policy for one entity.

    Defines how scope dimensions map onto the entity's fields and how
    soft-deleted rows are recognised.
    """

    # Scope dimension -> entity field (e.g. {"owner": "applicant_id"})
    scope_fields: dict[str, str] = Field(default_factory=dict)

    # Whether unauthenticated callers are refused
    require_authentication: bool = Field(default=True)

    # Soft delete field (e.g. "deleted_at", "is_deleted")
    soft_delete_field: str | None = Field(default=None)

    # Value of the soft delete field on live rows
    soft_delete_live_value: Any = Field(default=None)

    model_config = {"frozen": True}


class PageBudget(BaseModel):
    """
    Paging limits for searches.

    A requested limit outside 1..max_limit falls back to default_limit.
    """

    default_limit: int = Field(default=20, ge=1)
    max_limit: int = Field(default=100, ge=1, le=10000)

    # Timeout applied to each storage read, in milliseconds
    statement_timeout_ms: int = Field(default=2000, ge=100, le=60000)

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def check_limits(self) -> "PageBudget":
        if self.default_limit > self.max_limit:
            raise ValueError("default_limit cannot exceed max_limit")
        return self


class EntityPolicy(BaseModel):
    """
    Complete search policy for a single entity.
    """

    row_policy: RowPolicy = Field(default_factory=RowPolicy)

    # Budget override for this entity
    budget: PageBudget | None = Field(default=None)

    # Ordering used when the caller's sort is absent or not allow-listed
    default_sort: SortClause = Field(
        default_factory=lambda: SortClause(field="created_at", direction=SortDirection.DESC)
    )

    # Fields appended after the primary sort key; the primary key always ends the list
    tiebreakers: list[str] = Field(default_factory=lambda: ["created_at"])

    # What to do with filters on unknown or non-filterable fields
    unknown_filters: Literal["reject", "ignore"] = Field(default="reject")

    model_config = {"frozen": True}


class Policy(BaseModel):
    """
    Complete policy configuration.

    The root policy object holding every entity policy and the shared scope
    table.
    """

    entities: dict[str, EntityPolicy] = Field(default_factory=dict)

    scope: ScopePolicy = Field(default_factory=ScopePolicy)

    # Default budget applied to all entities unless overridden
    default_budget: PageBudget = Field(default_factory=PageBudget)

    model_config = {"frozen": True}

    def get_entity_policy(self, entity: str) -> EntityPolicy | None:
        return self.entities.get(entity)

    def get_budget(self, entity: str) -> PageBudget:
        """Get budget for an entity, falling back to default."""
        entity_policy = self.entities.get(entity)
        if entity_policy and entity_policy.budget:
            return entity_policy.budget
        return self.default_budget

    def list_entities(self) -> list[str]:
        return list(self.entities.keys())
