"""
Policy builder for fluent policy construction.
"""

from scopedsearch.core.dsl import SortClause, SortDirection, parse_sort
from scopedsearch.policy.models import (
    EntityPolicy,
    PageBudget,
    Policy,
    RoleScope,
    ScopePolicy,
    ScopeRule,
)
from scopedsearch.utils.defaults import DEFAULT_PROD, DefaultsProfile

_UNSET = object()


class PolicyBuilder:
    """
    Fluent builder for constructing policies.

    Example:
        policy = (
            PolicyBuilder(DEFAULT_PROD)
            .register_entity("task", scope_fields={"tenant": "tenant_id"})
            .register_entity("application", scope_fields={"owner": "applicant_id"})
            .role("member", tenant="tenant_id")
            .role("applicant", owner="id")
            .unrestricted_role("system_admin")
            .build()
        )

    Keyword arguments to ``role`` map a scope dimension to the principal
    claim that supplies its value.
    """

    def __init__(self, profile: DefaultsProfile = DEFAULT_PROD) -> None:
        """
        Initialize the builder.

        Args:
            profile: Default profile to use
        """
        self.profile = profile

        # State
        self._entities: dict[str, EntityPolicy] = {}
        self._roles: dict[str, RoleScope] = {}
        self._anonymous_role: str | None = None

    def register_entity(
        self,
        name: str,
        scope_fields: dict[str, str] | None = None,
        *,
        default_sort: str | SortClause | None = None,
        tiebreakers: list[str] | None = None,
        soft_delete_field: str | None | object = _UNSET,
        public: bool = False,
        budget: PageBudget | None = None,
    ) -> "PolicyBuilder":
        """
        Register a searchable entity.

        Args:
            name: Entity name
            scope_fields: Scope dimension -> entity field
            default_sort: Default ordering, e.g. "created_at desc"
            tiebreakers: Fields appended after the primary sort key
            soft_delete_field: Soft delete marker (defaults to the profile's;
                None disables soft delete for the entity)
            public: Whether unauthenticated callers may search the entity
            budget: Paging budget override
        """
        row_policy = self.profile.to_row_policy(scope_fields)
        updates: dict[str, object] = {}
        if soft_delete_field is not _UNSET:
            updates["soft_delete_field"] = soft_delete_field
        if public:
            updates["require_authentication"] = False
        if updates:
            row_policy = row_policy.model_copy(update=updates)

        entity_policy = EntityPolicy(
            row_policy=row_policy,
            budget=budget,
            unknown_filters=self.profile.unknown_filters,
        )
        if default_sort is not None:
            sort = parse_sort(default_sort) if isinstance(default_sort, str) else default_sort
            if sort is None:
                raise ValueError(f"Invalid default sort for '{name}': {default_sort!r}")
            if sort.direction is None:
                sort = SortClause(field=sort.field, direction=SortDirection.DESC)
            entity_policy = entity_policy.model_copy(update={"default_sort": sort})
        if tiebreakers is not None:
            entity_policy = entity_policy.model_copy(update={"tiebreakers": list(tiebreakers)})

        self._entities[name] = entity_policy
        return self

    def role(
        self,
        name: str,
        *rules: ScopeRule,
        entities: list[str] | None = None,
        **dimensions: str,
    ) -> "PolicyBuilder":
        """
        Define a scoped role.

        Args:
            name: Role name, matched against Principal.role
            rules: Explicit scope rules (e.g. constant values)
            entities: Restrict the role to these entities
            dimensions: Scope dimension -> principal claim
        """
        all_rules = [*rules, *(ScopeRule(dimension=d, claim=c) for d, c in dimensions.items())]
        self._roles[name] = RoleScope(rules=all_rules, entities=entities)
        return self

    def unrestricted_role(self, name: str, entities: list[str] | None = None) -> "PolicyBuilder":
        """Define a role that sees every record (e.g. system administrators)."""
        self._roles[name] = RoleScope(unrestricted=True, entities=entities)
        return self

    def anonymous_role(
        self,
        name: str,
        *rules: ScopeRule,
        entities: list[str] | None = None,
        unrestricted: bool = False,
        **dimensions: str,
    ) -> "PolicyBuilder":
        """
        Define the role applied to unauthenticated callers on public entities.

        An unrestricted anonymous role sees every live record of the public
        entities it is allowed on.
        """
        if unrestricted:
            self.unrestricted_role(name, entities=entities)
        else:
            self.role(name, *rules, entities=entities, **dimensions)
        self._anonymous_role = name
        return self

    def build(self) -> Policy:
        """Build the final policy."""
        return Policy(
            entities=dict(self._entities),
            scope=ScopePolicy(roles=dict(self._roles), anonymous_role=self._anonymous_role),
            default_budget=self.profile.to_budget(),
        )
