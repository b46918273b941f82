"""
Database setup.
"""

from sqlalchemy.ext.asyncio import create_async_engine

from app.models import Base

# Use SQLite for the example
DATABASE_URL = "sqlite+aiosqlite:///./example.db"

engine = create_async_engine(
    DATABASE_URL,
    echo=True,  # Log SQL queries
)


async def init_db() -> None:
    """Initialize the database (create tables)."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
