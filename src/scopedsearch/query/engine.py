"""
Search engine.

Runs the search pipeline for every registered entity:

    normalize filters -> enforce scope -> resolve sort -> build predicate
    -> page window -> count + fetch -> map rows -> assemble page

Everything up to the page window is pure and happens in ``plan``; a request
that fails validation or scope never reaches storage.
"""

import time
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from scopedsearch.adapters.base import SearchRepository
from scopedsearch.core.context import RunContext
from scopedsearch.core.dsl import FilterValue, Page, SearchRequest, SortClause, SortDirection
from scopedsearch.core.errors import EntityNotRegisteredError, NotFoundError
from scopedsearch.core.predicates import And, Equals, and_
from scopedsearch.core.types import EntitySchema, SchemaMetadata
from scopedsearch.logging import LogContext, get_logger, with_log_context
from scopedsearch.policy.models import EntityPolicy, PageBudget, Policy
from scopedsearch.policy.scoping import ScopeDecision, ScopeEnforcer
from scopedsearch.query.assembler import assemble_page
from scopedsearch.query.builder import PredicateBuilder
from scopedsearch.query.executor import SearchExecutor
from scopedsearch.query.mapper import RowMapper
from scopedsearch.query.normalizer import FilterNormalizer, coerce_value
from scopedsearch.query.pager import PageWindow, Pager
from scopedsearch.query.sorting import ResolvedSort, SortResolver

logger = get_logger(__name__)


@dataclass(frozen=True)
class SearchPlan:
    """Everything decided about a search before storage is touched."""

    entity: str
    decision: ScopeDecision
    filters: dict[str, FilterValue]
    ignored_filters: list[str]
    predicate: And
    sort: ResolvedSort
    window: PageWindow
    budget: PageBudget


@dataclass(frozen=True)
class _Entity:
    schema: EntitySchema
    policy: EntityPolicy
    budget: PageBudget
    normalizer: FilterNormalizer
    sorter: SortResolver
    pager: Pager
    mapper: RowMapper


class SearchEngine:
    """
    Scoped search over a set of registered entities.

    An entity is registered when it has both a field table in ``schema`` and
    an entry in ``policy.entities``; construction raises ValueError when a
    policy names a scope or soft-delete field its schema lacks. The engine
    holds no per-request state and may be shared across concurrent tasks.

    Example:
        engine = SearchEngine(schema, policy, InMemoryRepository())
        page = await engine.search("task", {"status": "open", "page": 2}, ctx)
    """

    def __init__(
        self,
        schema: SchemaMetadata,
        policy: Policy,
        repository: SearchRepository,
    ) -> None:
        self.schema = schema
        self.policy = policy
        self.repository = repository
        self.enforcer = ScopeEnforcer(policy.scope)
        self.builder = PredicateBuilder()
        self.executor = SearchExecutor(repository)
        self._entities = {
            name: self._prepare(entity_schema, policy.entities[name], policy.get_budget(name))
            for name, entity_schema in schema.entities.items()
            if name in policy.entities
        }

    def entities(self) -> list[str]:
        """Names of the registered entities."""
        return list(self._entities)

    def _prepare(self, schema: EntitySchema, policy: EntityPolicy, budget: PageBudget) -> _Entity:
        row_policy = policy.row_policy
        required = list(row_policy.scope_fields.values())
        if row_policy.soft_delete_field is not None:
            required.append(row_policy.soft_delete_field)
        missing = [name for name in required if not schema.has_field(name)]
        if missing:
            raise ValueError(
                f"Policy for '{schema.name}' names fields missing from its schema: "
                f"{', '.join(missing)}"
            )

        allowed = schema.sortable_fields()

        default = policy.default_sort
        if default.field not in allowed and default.field != schema.primary_key:
            logger.warning(
                "Default sort field is not sortable, using primary key",
                entity=schema.name,
                default_sort=default.field,
            )
            default = SortClause(field=schema.primary_key, direction=SortDirection.DESC)

        tiebreakers = [f for f in policy.tiebreakers if schema.has_field(f)]

        return _Entity(
            schema=schema,
            policy=policy,
            budget=budget,
            normalizer=FilterNormalizer(schema, policy.unknown_filters),
            sorter=SortResolver(
                allowed=[*allowed, schema.primary_key],
                default=default,
                primary_key=schema.primary_key,
                tiebreakers=tiebreakers,
            ),
            pager=Pager(budget.default_limit, budget.max_limit),
            mapper=RowMapper(schema),
        )

    def _entity(self, name: str) -> _Entity:
        entry = self._entities.get(name)
        if entry is None:
            raise EntityNotRegisteredError(name, registered=self.entities())
        return entry

    def plan(
        self,
        entity: str,
        request: SearchRequest | Mapping[str, Any],
        ctx: RunContext,
    ) -> SearchPlan:
        """
        Validate and resolve a search without touching storage.

        Raises:
            EntityNotRegisteredError: The entity is unknown
            ForbiddenScopeError: The principal has no scope on the entity
            ValidationError: A filter or paging value is invalid
        """
        entry = self._entity(entity)
        if not isinstance(request, SearchRequest):
            request = SearchRequest.from_params(request)

        decision = self.enforcer.enforce(ctx.principal, entity, entry.policy.row_policy)
        raw_filters, ignored = self.enforcer.strip_overrides(request.filters, decision)
        filters = entry.normalizer.normalize(raw_filters)

        predicate = self.builder.build(
            filters,
            scope=decision.predicates,
            soft_delete=self.enforcer.soft_delete_predicate(entry.policy.row_policy),
        )

        return SearchPlan(
            entity=entity,
            decision=decision,
            filters=filters,
            ignored_filters=ignored,
            predicate=predicate,
            sort=entry.sorter.resolve(request.sort),
            window=entry.pager.window(request.page, request.limit),
            budget=entry.budget,
        )

    async def search(
        self,
        entity: str,
        request: SearchRequest | Mapping[str, Any],
        ctx: RunContext,
    ) -> Page[dict[str, Any]]:
        """
        Run a scoped, paginated search.

        A page past the end is not an error: it comes back empty with the
        true totals.

        Raises:
            EntityNotRegisteredError: The entity is unknown
            ForbiddenScopeError: The principal has no scope on the entity
            ValidationError: A filter or paging value is invalid
            StorageError: The backing store failed or timed out
        """
        with with_log_context(LogContext.from_run_context(ctx, entity)):
            started = time.perf_counter()
            plan = self.plan(entity, request, ctx)
            entry = self._entities[entity]

            result = await self.executor.execute(
                entry.schema,
                plan.predicate,
                plan.sort.keys,
                plan.window,
                timeout_ms=plan.budget.statement_timeout_ms,
                principal_id=ctx.principal.id,
            )

            page = assemble_page(
                entry.pager.pagination(plan.window, result.records),
                entry.mapper.map_all(result.rows),
            )

            logger.info(
                "Search completed",
                predicate=plan.predicate.shape(),
                sort=[str(key) for key in plan.sort.keys],
                page=plan.window.page,
                limit=plan.window.limit,
                records=result.records,
                returned=len(page.data),
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )
            return page

    async def get(self, entity: str, record_id: Any, ctx: RunContext) -> dict[str, Any]:
        """
        Fetch a single record by primary key under the caller's scope.

        A record outside the scope, soft-deleted, or absent raises the same
        NotFoundError so callers cannot probe for foreign records.
        """
        with with_log_context(LogContext.from_run_context(ctx, entity)):
            entry = self._entity(entity)
            decision = self.enforcer.enforce(ctx.principal, entity, entry.policy.row_policy)

            pk = entry.schema.primary_key
            key = coerce_value(entry.schema.fields[pk], record_id)
            predicate = and_(
                *decision.predicates,
                self.enforcer.soft_delete_predicate(entry.policy.row_policy),
                Equals(pk, key),
            )

            row = await self.executor.fetch_one(
                entry.schema,
                predicate,
                entry.sorter.resolve(None).keys,
                timeout_ms=entry.budget.statement_timeout_ms,
                principal_id=ctx.principal.id,
            )
            if row is None:
                logger.info("Record not found in scope", predicate=predicate.shape())
                raise NotFoundError(entity, record_id)
            return entry.mapper.map(row)
