"""
Predicate building.

Combines scope predicates, the soft-delete exclusion and the caller's
normalized filters into a single conjunctive tree.
"""

from collections.abc import Iterable, Mapping

from scopedsearch.core.dsl import ExactMatch, FilterValue, RangeMatch, SetMatch, TextMatch
from scopedsearch.core.predicates import (
    And,
    Contains,
    Equals,
    In,
    PredicateNode,
    Range,
    and_,
)


def filter_predicate(field: str, value: FilterValue) -> PredicateNode:
    """Translate one normalized filter into a predicate node."""
    match value:
        case ExactMatch(value=v):
            return Equals(field, v)
        case TextMatch(substring=s, case_sensitive=cs):
            return Contains(field, s, case_sensitive=cs)
        case RangeMatch(lower=lo, upper=hi):
            return Range(field, lo, hi)
        case SetMatch(values=vs):
            return In(field, tuple(vs))
    raise TypeError(f"Unsupported filter value: {type(value).__name__}")


class PredicateBuilder:
    """
    Builds the And tree for a search.

    Order: scope predicates, then the soft-delete exclusion, then caller
    predicates sorted by field name. There is no OR.
    """

    def build(
        self,
        filters: Mapping[str, FilterValue],
        scope: Iterable[PredicateNode] = (),
        soft_delete: PredicateNode | None = None,
    ) -> And:
        caller = [filter_predicate(name, filters[name]) for name in sorted(filters)]
        return and_(*scope, soft_delete, *caller)
