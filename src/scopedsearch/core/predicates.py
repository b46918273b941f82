"""
Backend-agnostic predicate trees.

A predicate tree is built once per request and never mutated. Nodes name
logical entity fields, never storage columns or SQL; storage adapters
compile them into their own query language. ``Equals(field, None)`` means
"field is null".
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Union


@dataclass(frozen=True)
class Equals:
    field: str
    value: Any

    def fields(self) -> Iterator[str]:
        yield self.field

    def shape(self) -> str:
        return f"Equals({self.field})"


@dataclass(frozen=True)
class Contains:
    field: str
    substring: str
    case_sensitive: bool = False

    def fields(self) -> Iterator[str]:
        yield self.field

    def shape(self) -> str:
        return f"Contains({self.field})"


@dataclass(frozen=True)
class Range:
    """Inclusive range; a missing bound is unbounded on that side."""

    field: str
    lower: Any = None
    upper: Any = None

    def fields(self) -> Iterator[str]:
        yield self.field

    def shape(self) -> str:
        return f"Range({self.field})"


@dataclass(frozen=True)
class In:
    field: str
    values: tuple[Any, ...]

    def fields(self) -> Iterator[str]:
        yield self.field

    def shape(self) -> str:
        return f"In({self.field})"


@dataclass(frozen=True)
class And:
    children: tuple[PredicateNode, ...] = field(default_factory=tuple)

    def fields(self) -> Iterator[str]:
        for child in self.children:
            yield from child.fields()

    def shape(self) -> str:
        return "And(" + ", ".join(child.shape() for child in self.children) + ")"


PredicateNode = Union[Equals, Contains, Range, In, And]


def and_(*nodes: PredicateNode | None) -> And:
    """Conjoin nodes into one flat And, dropping Nones and nested Ands."""
    children: list[PredicateNode] = []
    for node in nodes:
        if node is None:
            continue
        if isinstance(node, And):
            children.extend(node.children)
        else:
            children.append(node)
    return And(tuple(children))


def _comparable(value: Any) -> Any:
    # Naive datetimes are stored as UTC by convention
    if isinstance(value, datetime) and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _against(actual: Any, bound: Any) -> Any:
    # A date bound compares against the calendar date of a datetime value
    if isinstance(actual, datetime) and isinstance(bound, date) and not isinstance(bound, datetime):
        return actual.date()
    return _comparable(actual)


def _lookup(row: Mapping[str, Any] | Any, name: str) -> Any:
    if isinstance(row, Mapping):
        return row.get(name)
    return getattr(row, name, None)


def evaluate(node: PredicateNode, row: Mapping[str, Any] | Any) -> bool:
    """
    Evaluate a predicate tree against a single row.

    Follows SQL semantics for nulls: a null field never satisfies Contains,
    Range or In, and satisfies Equals only against None.
    """
    match node:
        case And(children=children):
            return all(evaluate(child, row) for child in children)
        case Equals(field=name, value=value):
            actual = _lookup(row, name)
            if value is None:
                return actual is None
            return actual is not None and _comparable(actual) == _comparable(value)
        case Contains(field=name, substring=substring, case_sensitive=case_sensitive):
            actual = _lookup(row, name)
            if actual is None:
                return False
            if case_sensitive:
                return substring in str(actual)
            return substring.lower() in str(actual).lower()
        case Range(field=name, lower=lower, upper=upper):
            actual = _lookup(row, name)
            if actual is None:
                return False
            if lower is not None and _against(actual, lower) < _comparable(lower):
                return False
            if upper is not None and _against(actual, upper) > _comparable(upper):
                return False
            return True
        case In(field=name, values=values):
            actual = _lookup(row, name)
            if actual is None:
                return False
            return _comparable(actual) in {_comparable(v) for v in values}
    raise TypeError(f"Unsupported predicate node: {type(node).__name__}")
