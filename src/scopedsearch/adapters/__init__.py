"""
scopedsearch adapters module.

Contains the abstract repository interface and its implementations.
"""

from scopedsearch.adapters.base import SearchRepository
from scopedsearch.adapters.memory import InMemoryRepository

__all__ = [
    "SearchRepository",
    "InMemoryRepository",
]


def get_sqlalchemy_repository():
    """Get the SQLAlchemy repository class."""
    from scopedsearch.adapters.sqlalchemy import SQLAlchemyRepository
    return SQLAlchemyRepository
