"""
scopedsearch core module.

Contains the request context, request/response schemas, predicate trees,
error taxonomy, and entity field tables.
"""

from scopedsearch.core.context import Principal, RunContext
from scopedsearch.core.dsl import (
    ExactMatch,
    FilterValue,
    Page,
    Pagination,
    RangeMatch,
    SearchRequest,
    SetMatch,
    SortClause,
    SortDirection,
    SortKey,
    TextMatch,
    parse_sort,
)
from scopedsearch.core.errors import (
    EntityNotRegisteredError,
    ForbiddenScopeError,
    NotFoundError,
    ScopedSearchError,
    StorageError,
    UnknownFilterError,
    ValidationError,
)
from scopedsearch.core.predicates import (
    And,
    Contains,
    Equals,
    In,
    PredicateNode,
    Range,
    and_,
    evaluate,
)
from scopedsearch.core.types import (
    EntitySchema,
    FieldSpec,
    FilterKind,
    SchemaMetadata,
    ValueType,
)

__all__ = [
    # Context
    "Principal",
    "RunContext",
    # DSL
    "SearchRequest",
    "SortClause",
    "SortDirection",
    "SortKey",
    "parse_sort",
    "FilterValue",
    "ExactMatch",
    "TextMatch",
    "RangeMatch",
    "SetMatch",
    "Pagination",
    "Page",
    # Errors
    "ScopedSearchError",
    "ValidationError",
    "UnknownFilterError",
    "ForbiddenScopeError",
    "NotFoundError",
    "StorageError",
    "EntityNotRegisteredError",
    # Predicates
    "PredicateNode",
    "Equals",
    "Contains",
    "Range",
    "In",
    "And",
    "and_",
    "evaluate",
    # Types
    "EntitySchema",
    "FieldSpec",
    "FilterKind",
    "SchemaMetadata",
    "ValueType",
]
