"""
Abstract repository interface.

Every storage backend implements this interface to serve searches.
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any

from scopedsearch.core.dsl import SortKey
from scopedsearch.core.predicates import PredicateNode
from scopedsearch.core.types import EntitySchema


class SearchRepository(ABC):
    """
    Abstract base class for search repositories.

    Repositories are responsible for:
    1. Compiling predicate trees and sort keys into their query language
    2. Running exactly the reads they are asked for, never writes
    3. Returning rows keyed by logical field name

    Repositories never decide what a principal may see; every predicate they
    receive already carries the scope.
    """

    @abstractmethod
    async def count(self, schema: EntitySchema, predicate: PredicateNode) -> int:
        """Count the rows of ``schema`` matching ``predicate``."""
        ...

    @abstractmethod
    async def fetch(
        self,
        schema: EntitySchema,
        predicate: PredicateNode,
        sort: Sequence[SortKey],
        offset: int,
        limit: int,
    ) -> list[dict[str, Any]]:
        """
        Fetch one window of matching rows in ``sort`` order.

        Rows are mappings keyed by the entity's logical field names.
        """
        ...

    async def close(self) -> None:
        """Release any resources held by the repository."""
        return None
