"""
Scope enforcement for row-level security.

The ScopeEnforcer turns the authenticated principal into the mandatory
predicates every query on an entity must carry, or refuses the operation
outright. It never touches storage, so a refused request has no storage
side effects.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, TypeVar

from scopedsearch.core.context import Principal
from scopedsearch.core.errors import ForbiddenScopeError
from scopedsearch.core.predicates import Equals, PredicateNode, and_, evaluate
from scopedsearch.logging import get_logger
from scopedsearch.policy.models import RoleScope, RowPolicy, ScopePolicy

logger = get_logger(__name__)

V = TypeVar("V")


def _target_field(key: str, mandatory: frozenset[str]) -> str:
    # Range bounds arrive as "<field>_from" / "<field>_to"
    for suffix in ("_from", "_to"):
        if key.endswith(suffix) and key[: -len(suffix)] in mandatory:
            return key[: -len(suffix)]
    return key


@dataclass(frozen=True)
class ScopeDecision:
    """
    Outcome of scope evaluation for one principal and entity.

    ``predicates`` must be conjoined with every query on the entity.
    ``mandatory_fields`` lists the fields a caller may not filter on because
    the scope (or the soft-delete convention) already fixes them.
    """

    entity: str
    permitted: bool
    role: str | None = None
    predicates: tuple[Equals, ...] = ()
    mandatory_fields: frozenset[str] = field(default_factory=frozenset)
    unrestricted: bool = False
    reason: str | None = None

    def stamp(self, data: Mapping[str, Any]) -> dict[str, Any]:
        """
        Return a copy of ``data`` with the scope-owned values written in.

        Used on create paths so a new record lands inside the caller's
        scope whatever the payload said.
        """
        stamped = dict(data)
        for predicate in self.predicates:
            stamped[predicate.field] = predicate.value
        return stamped


class ScopeEnforcer:
    """
    Derives mandatory scope predicates from the shared role table.

    Evaluation fails closed: an unknown role, a rule the entity cannot map,
    or a claim the principal does not carry all refuse the operation.
    """

    def __init__(self, scope_policy: ScopePolicy) -> None:
        self.scope_policy = scope_policy

    def evaluate(
        self,
        principal: Principal,
        entity: str,
        row_policy: RowPolicy,
    ) -> ScopeDecision:
        """Evaluate the scope of ``principal`` on ``entity`` without raising."""
        role, role_scope, reason = self._resolve_role(principal, row_policy)
        if role_scope is None:
            return self._deny(entity, role, reason or "no scope")

        if not role_scope.allows_entity(entity):
            return self._deny(entity, role, f"role '{role}' may not access this entity")

        mandatory = {row_policy.soft_delete_field} if row_policy.soft_delete_field else set()

        if role_scope.unrestricted:
            return ScopeDecision(
                entity=entity,
                permitted=True,
                role=role,
                mandatory_fields=frozenset(mandatory),
                unrestricted=True,
            )

        predicates: list[Equals] = []
        for rule in role_scope.rules:
            scope_field = row_policy.scope_fields.get(rule.dimension)
            if scope_field is None:
                return self._deny(entity, role, f"entity has no '{rule.dimension}' scope field")

            value = principal.claim(rule.claim) if rule.claim is not None else rule.value
            if rule.claim is not None and value is None:
                return self._deny(entity, role, f"principal carries no '{rule.claim}'")

            predicates.append(Equals(scope_field, value))
            mandatory.add(scope_field)

        return ScopeDecision(
            entity=entity,
            permitted=True,
            role=role,
            predicates=tuple(predicates),
            mandatory_fields=frozenset(mandatory),
        )

    def ensure_permitted(self, decision: ScopeDecision) -> ScopeDecision:
        """Raise ForbiddenScopeError unless the decision permits the operation."""
        if not decision.permitted:
            raise ForbiddenScopeError(
                entity=decision.entity,
                reason=decision.reason or "not permitted",
                role=decision.role,
            )
        return decision

    def enforce(
        self,
        principal: Principal,
        entity: str,
        row_policy: RowPolicy,
    ) -> ScopeDecision:
        """Evaluate and raise if the operation is not permitted."""
        return self.ensure_permitted(self.evaluate(principal, entity, row_policy))

    def strip_overrides(
        self,
        filters: Mapping[str, V],
        decision: ScopeDecision,
    ) -> tuple[dict[str, V], list[str]]:
        """
        Drop caller filters on scope-mandatory fields.

        The caller's value is ignored, never merged, so a filter can not
        widen or redirect the scope. Returns the kept filters and the names
        of the ignored fields.
        """
        kept: dict[str, V] = {}
        ignored: list[str] = []
        for name, value in filters.items():
            if _target_field(name, decision.mandatory_fields) in decision.mandatory_fields:
                ignored.append(name)
            else:
                kept[name] = value
        if ignored:
            logger.warning(
                "Ignored caller filters on scope-mandatory fields",
                entity=decision.entity,
                role=decision.role,
                ignored_fields=sorted(ignored),
            )
        return kept, ignored

    def soft_delete_predicate(self, row_policy: RowPolicy) -> Equals | None:
        """Predicate excluding soft-deleted rows, if the entity has them."""
        if row_policy.soft_delete_field is None:
            return None
        return Equals(row_policy.soft_delete_field, row_policy.soft_delete_live_value)

    def permits(
        self,
        decision: ScopeDecision,
        row: Mapping[str, Any] | Any,
        row_policy: RowPolicy | None = None,
    ) -> bool:
        """
        Check an already-loaded row against a decision.

        Used on update/delete paths that load a record before mutating it.
        """
        if not decision.permitted:
            return False
        nodes: list[PredicateNode | None] = list(decision.predicates)
        if row_policy is not None:
            nodes.append(self.soft_delete_predicate(row_policy))
        return evaluate(and_(*nodes), row)

    def _resolve_role(
        self,
        principal: Principal,
        row_policy: RowPolicy,
    ) -> tuple[str | None, RoleScope | None, str | None]:
        if not principal.is_authenticated:
            if row_policy.require_authentication:
                return None, None, "authentication required"
            role = self.scope_policy.anonymous_role
            if role is None:
                return None, None, "anonymous access is not configured"
        else:
            role = principal.role

        role_scope = self.scope_policy.get_role_scope(role)
        if role_scope is None:
            return role, None, f"role '{role}' has no scope"
        return role, role_scope, None

    def _deny(self, entity: str, role: str | None, reason: str) -> ScopeDecision:
        logger.info("Scope refused", entity=entity, role=role, reason=reason)
        return ScopeDecision(entity=entity, permitted=False, role=role, reason=reason)
