"""
scopedsearch - scoped, paginated search over multi-tenant records.

scopedsearch turns a caller's loose filter, sort and paging parameters into
a validated, tenant-scoped query, runs it through a storage repository and
returns a stable page of public records. Every query carries the
principal's mandatory scope; a request that cannot be scoped never reaches
storage.
"""

__version__ = "0.1.0"

from scopedsearch.core.context import Principal, RunContext
from scopedsearch.core.dsl import Page, Pagination, SearchRequest, SortClause, SortDirection
from scopedsearch.core.errors import (
    EntityNotRegisteredError,
    ForbiddenScopeError,
    NotFoundError,
    ScopedSearchError,
    StorageError,
    UnknownFilterError,
    ValidationError,
)
from scopedsearch.core.types import EntitySchema, FieldSpec, FilterKind, SchemaMetadata, ValueType
from scopedsearch.query.engine import SearchEngine

__all__ = [
    # Version
    "__version__",
    # Engine
    "SearchEngine",
    # Context
    "Principal",
    "RunContext",
    # Schemas
    "EntitySchema",
    "FieldSpec",
    "FilterKind",
    "ValueType",
    "SchemaMetadata",
    # Requests and results
    "SearchRequest",
    "SortClause",
    "SortDirection",
    "Page",
    "Pagination",
    # Errors
    "ScopedSearchError",
    "ValidationError",
    "UnknownFilterError",
    "ForbiddenScopeError",
    "NotFoundError",
    "StorageError",
    "EntityNotRegisteredError",
]
