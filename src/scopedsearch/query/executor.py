"""
Search execution.

Issues the count and the page fetch through a repository, in that order,
each under the entity's statement timeout.
"""

import asyncio
from collections.abc import Awaitable, Sequence
from dataclasses import dataclass
from typing import Any, TypeVar

from scopedsearch.adapters.base import SearchRepository
from scopedsearch.core.dsl import SortKey
from scopedsearch.core.errors import StorageError
from scopedsearch.core.predicates import PredicateNode
from scopedsearch.core.types import EntitySchema
from scopedsearch.logging import get_logger
from scopedsearch.query.pager import PageWindow

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class ExecutionResult:
    records: int
    rows: list[dict[str, Any]]


class SearchExecutor:
    """
    Runs the reads for one search.

    The two reads are sequential because a storage session never runs two
    statements at once. They are not snapshot-isolated, so ``records`` may
    disagree with the fetched rows under concurrent writes.
    """

    def __init__(self, repository: SearchRepository) -> None:
        self.repository = repository

    async def execute(
        self,
        schema: EntitySchema,
        predicate: PredicateNode,
        sort: Sequence[SortKey],
        window: PageWindow,
        timeout_ms: int | None = None,
        principal_id: str | None = None,
    ) -> ExecutionResult:
        records = await self._read(
            "count",
            self.repository.count(schema, predicate),
            schema,
            predicate,
            timeout_ms,
            principal_id,
        )
        rows = await self._read(
            "fetch",
            self.repository.fetch(schema, predicate, sort, window.offset, window.limit),
            schema,
            predicate,
            timeout_ms,
            principal_id,
        )

        logger.debug(
            "Search executed",
            entity=schema.name,
            predicate=predicate.shape(),
            records=records,
            returned=len(rows),
            offset=window.offset,
        )
        return ExecutionResult(records=records, rows=rows)

    async def fetch_one(
        self,
        schema: EntitySchema,
        predicate: PredicateNode,
        sort: Sequence[SortKey],
        timeout_ms: int | None = None,
        principal_id: str | None = None,
    ) -> dict[str, Any] | None:
        """Fetch the first matching row, or None."""
        rows = await self._read(
            "get",
            self.repository.fetch(schema, predicate, sort, 0, 1),
            schema,
            predicate,
            timeout_ms,
            principal_id,
        )
        return rows[0] if rows else None

    async def _read(
        self,
        operation: str,
        read: Awaitable[T],
        schema: EntitySchema,
        predicate: PredicateNode,
        timeout_ms: int | None,
        principal_id: str | None,
    ) -> T:
        # CancelledError is a BaseException and passes through untouched
        try:
            if timeout_ms is None:
                return await read
            return await asyncio.wait_for(read, timeout=timeout_ms / 1000)
        except asyncio.TimeoutError as e:
            logger.error(
                "Storage read timed out",
                entity=schema.name,
                operation=operation,
                predicate=predicate.shape(),
                principal_id=principal_id,
                timeout_ms=timeout_ms,
            )
            raise StorageError(schema.name, operation, timed_out=True) from e
        except Exception as e:
            logger.error(
                "Storage read failed",
                exc_info=e,
                entity=schema.name,
                operation=operation,
                predicate=predicate.shape(),
                principal_id=principal_id,
            )
            raise StorageError(schema.name, operation) from e
