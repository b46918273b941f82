"""
In-memory repository.

A list-of-dicts store that evaluates predicate trees in Python. Useful for
tests and prototypes; null ordering follows PostgreSQL (nulls last when
ascending, first when descending).
"""

from collections.abc import Iterable, Mapping, Sequence
from datetime import datetime, timezone
from typing import Any

from scopedsearch.adapters.base import SearchRepository
from scopedsearch.core.dsl import SortDirection, SortKey
from scopedsearch.core.predicates import PredicateNode, evaluate
from scopedsearch.core.types import EntitySchema


def _sort_value(value: Any) -> tuple[int, Any]:
    if value is None:
        return (1, 0)
    if isinstance(value, datetime) and value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return (0, value)


class InMemoryRepository(SearchRepository):
    """
    Stores rows per entity and records every read in ``operations``.

    Example:
        repo = InMemoryRepository()
        repo.add("task", {"id": 1, "tenant_id": "a", "title": "Draft"})
    """

    def __init__(self, rows: Mapping[str, Iterable[Mapping[str, Any]]] | None = None) -> None:
        self._rows: dict[str, list[dict[str, Any]]] = {}
        self.operations: list[tuple[str, str]] = []
        for entity, entity_rows in (rows or {}).items():
            self.add(entity, *entity_rows)

    def add(self, entity: str, *rows: Mapping[str, Any]) -> None:
        self._rows.setdefault(entity, []).extend(dict(row) for row in rows)

    def rows(self, entity: str) -> list[dict[str, Any]]:
        return [dict(row) for row in self._rows.get(entity, [])]

    def clear_operations(self) -> None:
        self.operations.clear()

    async def count(self, schema: EntitySchema, predicate: PredicateNode) -> int:
        self.operations.append(("count", schema.name))
        return sum(1 for _ in self._matching(schema, predicate))

    async def fetch(
        self,
        schema: EntitySchema,
        predicate: PredicateNode,
        sort: Sequence[SortKey],
        offset: int,
        limit: int,
    ) -> list[dict[str, Any]]:
        self.operations.append(("fetch", schema.name))
        matched = list(self._matching(schema, predicate))
        # Stable sorts applied from the least to the most significant key
        for key in reversed(sort):
            matched.sort(
                key=lambda row, name=key.field: _sort_value(row.get(name)),
                reverse=key.direction == SortDirection.DESC,
            )
        return [dict(row) for row in matched[offset : offset + limit]]

    def _matching(self, schema: EntitySchema, predicate: PredicateNode) -> Iterable[dict[str, Any]]:
        return (row for row in self._rows.get(schema.name, []) if evaluate(predicate, row))
