"""
SQLAlchemy session management.

Provides read-only session lifecycle management for both sync and async
engines.
"""

from collections.abc import AsyncGenerator, Generator
from contextlib import asynccontextmanager, contextmanager

from sqlalchemy import Engine
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import Session, sessionmaker


class SessionManager:
    """
    Manages SQLAlchemy sessions for search reads.

    Supports both sync and async engines/sessions. Closing a session ends
    its transaction without committing, since searches never write.
    """

    def __init__(
        self,
        engine: Engine | AsyncEngine,
        session_factory: sessionmaker | async_sessionmaker | None = None,
    ) -> None:
        """
        Initialize the session manager.

        Args:
            engine: SQLAlchemy engine (sync or async)
            session_factory: Optional pre-configured session factory
        """
        self.engine = engine
        self.is_async = isinstance(engine, AsyncEngine)

        if session_factory:
            self._session_factory = session_factory
        elif self.is_async:
            self._session_factory = async_sessionmaker(
                engine,  # type: ignore
                class_=AsyncSession,
                expire_on_commit=False,
            )
        else:
            self._session_factory = sessionmaker(
                engine,  # type: ignore
                expire_on_commit=False,
            )

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """Context manager for sync read sessions."""
        if self.is_async:
            raise RuntimeError("Use async_session() for async engines")

        session: Session = self._session_factory()  # type: ignore
        try:
            yield session
        finally:
            session.close()

    @asynccontextmanager
    async def async_session(self) -> AsyncGenerator[AsyncSession, None]:
        """Async context manager for async read sessions."""
        if not self.is_async:
            raise RuntimeError("Use session() for sync engines")

        session: AsyncSession = self._session_factory()  # type: ignore
        try:
            yield session
        finally:
            await session.close()

    async def dispose(self) -> None:
        """Dispose of the engine's connection pool."""
        if self.is_async:
            await self.engine.dispose()  # type: ignore
        else:
            self.engine.dispose()  # type: ignore
