"""
SQLAlchemy adapter for scopedsearch.

Provides integration with SQLAlchemy 2.0+ for both sync and async engines.
"""

from scopedsearch.adapters.sqlalchemy.compiler import SQLAlchemyCompiler
from scopedsearch.adapters.sqlalchemy.introspection import schema_from_model
from scopedsearch.adapters.sqlalchemy.repository import SQLAlchemyRepository
from scopedsearch.adapters.sqlalchemy.session import SessionManager

__all__ = [
    "SQLAlchemyRepository",
    "SQLAlchemyCompiler",
    "SessionManager",
    "schema_from_model",
]
