"""
SQLAlchemy repository implementation.

Serves searches from SQLAlchemy-mapped classes on sync or async engines.
"""

from collections.abc import Mapping, Sequence
from typing import Any

from sqlalchemy import Engine, Select
from sqlalchemy.ext.asyncio import AsyncEngine

from scopedsearch.adapters.base import SearchRepository
from scopedsearch.adapters.sqlalchemy.compiler import SQLAlchemyCompiler
from scopedsearch.adapters.sqlalchemy.session import SessionManager
from scopedsearch.core.dsl import SortKey
from scopedsearch.core.errors import EntityNotRegisteredError
from scopedsearch.core.predicates import PredicateNode
from scopedsearch.core.types import EntitySchema


class SQLAlchemyRepository(SearchRepository):
    """
    SQLAlchemy repository for scopedsearch.

    Supports both sync and async SQLAlchemy engines. A sync engine blocks
    the event loop for the duration of each read, so the statement timeout
    is only enforced between reads there.
    """

    def __init__(
        self,
        engine: Engine | AsyncEngine,
        models: Mapping[str, type],
        session_manager: SessionManager | None = None,
    ) -> None:
        """
        Initialize the SQLAlchemy repository.

        Args:
            engine: SQLAlchemy engine (sync or async)
            models: Entity name -> mapped class
            session_manager: Optional custom session manager
        """
        self.engine = engine
        self.models = dict(models)
        self.is_async = isinstance(engine, AsyncEngine)
        self.session_manager = session_manager or SessionManager(engine)
        self._compilers: dict[str, SQLAlchemyCompiler] = {}

    def compiler(self, schema: EntitySchema) -> SQLAlchemyCompiler:
        """Get the compiler for an entity, creating it on first use."""
        compiler = self._compilers.get(schema.name)
        if compiler is None:
            model_class = self.models.get(schema.name)
            if model_class is None:
                raise EntityNotRegisteredError(schema.name, registered=list(self.models))
            compiler = SQLAlchemyCompiler(model_class, schema)
            self._compilers[schema.name] = compiler
        return compiler

    async def count(self, schema: EntitySchema, predicate: PredicateNode) -> int:
        stmt = self.compiler(schema).count_statement(predicate)
        if self.is_async:
            return await self._scalar_async(stmt)
        return self._scalar_sync(stmt)

    async def fetch(
        self,
        schema: EntitySchema,
        predicate: PredicateNode,
        sort: Sequence[SortKey],
        offset: int,
        limit: int,
    ) -> list[dict[str, Any]]:
        stmt = self.compiler(schema).fetch_statement(predicate, sort, offset, limit)
        if self.is_async:
            return await self._rows_async(stmt, schema)
        return self._rows_sync(stmt, schema)

    async def close(self) -> None:
        await self.session_manager.dispose()

    def _scalar_sync(self, stmt: Select) -> int:
        with self.session_manager.session() as session:
            return int(session.execute(stmt).scalar_one())

    async def _scalar_async(self, stmt: Select) -> int:
        async with self.session_manager.async_session() as session:
            result = await session.execute(stmt)
            return int(result.scalar_one())

    def _rows_sync(self, stmt: Select, schema: EntitySchema) -> list[dict[str, Any]]:
        with self.session_manager.session() as session:
            return [self._row_to_dict(row, schema) for row in session.execute(stmt).scalars()]

    async def _rows_async(self, stmt: Select, schema: EntitySchema) -> list[dict[str, Any]]:
        async with self.session_manager.async_session() as session:
            result = await session.execute(stmt)
            return [self._row_to_dict(row, schema) for row in result.scalars()]

    def _row_to_dict(self, row: Any, schema: EntitySchema) -> dict[str, Any]:
        """Convert a mapped instance to a dict keyed by logical field name."""
        return {
            name: getattr(row, spec.storage_name, None) for name, spec in schema.fields.items()
        }
