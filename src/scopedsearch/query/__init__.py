"""
scopedsearch query pipeline.

Filter normalization, sort resolution, predicate building, paging,
execution, row mapping and the engine that ties them together.
"""

from scopedsearch.query.assembler import assemble_page
from scopedsearch.query.builder import PredicateBuilder, filter_predicate
from scopedsearch.query.engine import SearchEngine, SearchPlan
from scopedsearch.query.executor import ExecutionResult, SearchExecutor
from scopedsearch.query.mapper import RowMapper, format_datetime, serialize_value
from scopedsearch.query.normalizer import FilterNormalizer, coerce_value
from scopedsearch.query.pager import PageWindow, Pager, pages_for
from scopedsearch.query.sorting import ResolvedSort, SortResolver

__all__ = [
    # Normalization
    "FilterNormalizer",
    "coerce_value",
    # Sorting
    "SortResolver",
    "ResolvedSort",
    # Predicates
    "PredicateBuilder",
    "filter_predicate",
    # Paging
    "Pager",
    "PageWindow",
    "pages_for",
    # Execution
    "SearchExecutor",
    "ExecutionResult",
    # Mapping
    "RowMapper",
    "format_datetime",
    "serialize_value",
    "assemble_page",
    # Engine
    "SearchEngine",
    "SearchPlan",
]
