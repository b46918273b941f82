"""
SQLAlchemy predicate compiler.

Compiles predicate trees and sort keys into SQLAlchemy select statements.
"""

from collections.abc import Sequence
from datetime import date, datetime, time, timedelta, timezone
from typing import Any
from uuid import UUID

from sqlalchemy import Select, and_, func, select, true

from scopedsearch.core.dsl import SortDirection, SortKey
from scopedsearch.core.errors import ValidationError
from scopedsearch.core.predicates import And, Contains, Equals, In, PredicateNode, Range
from scopedsearch.core.types import EntitySchema, FieldSpec, ValueType


class SQLAlchemyCompiler:
    """
    Compiles predicates against one mapped class.

    Predicates name logical fields; columns are looked up through each
    field's ``storage_name``.
    """

    def __init__(self, model_class: type, schema: EntitySchema) -> None:
        self.model_class = model_class
        self.schema = schema

    def count_statement(self, predicate: PredicateNode) -> Select:
        return select(func.count()).select_from(self.model_class).where(self.compile(predicate))

    def fetch_statement(
        self,
        predicate: PredicateNode,
        sort: Sequence[SortKey],
        offset: int,
        limit: int,
    ) -> Select:
        stmt = select(self.model_class).where(self.compile(predicate))
        stmt = self._apply_ordering(stmt, sort)
        return stmt.offset(offset).limit(limit)

    def compile(self, node: PredicateNode) -> Any:
        """Compile a predicate tree into a SQLAlchemy condition."""
        match node:
            case And(children=children):
                if not children:
                    return true()
                return and_(*(self.compile(child) for child in children))
            case Equals(field=name, value=value):
                spec, column = self._column(name)
                if value is None:
                    return column.is_(None)
                return column == self._bind(spec, column, value)
            case Contains(field=name, substring=substring, case_sensitive=case_sensitive):
                _, column = self._column(name)
                if case_sensitive:
                    return column.contains(substring, autoescape=True)
                return column.icontains(substring, autoescape=True)
            case Range(field=name, lower=lower, upper=upper):
                return self._range(name, lower, upper)
            case In(field=name, values=values):
                spec, column = self._column(name)
                return column.in_([self._bind(spec, column, v) for v in values])
        raise TypeError(f"Unsupported predicate node: {type(node).__name__}")

    def _range(self, name: str, lower: Any, upper: Any) -> Any:
        spec, column = self._column(name)
        conditions = []
        on_datetime = spec.value_type == ValueType.DATETIME
        if lower is not None:
            if on_datetime and _is_plain_date(lower):
                lower = datetime.combine(lower, time.min, tzinfo=timezone.utc)
            conditions.append(column >= lower)
        if upper is not None:
            # A date upper bound covers the whole day
            if on_datetime and _is_plain_date(upper):
                next_day = datetime.combine(upper + timedelta(days=1), time.min, tzinfo=timezone.utc)
                conditions.append(column < next_day)
            else:
                conditions.append(column <= upper)
        if not conditions:
            return true()
        return and_(*conditions)

    def _apply_ordering(self, stmt: Select, sort: Sequence[SortKey]) -> Select:
        """Apply ORDER BY with nulls last ascending and first descending."""
        for key in sort:
            _, column = self._column(key.field)
            if key.direction == SortDirection.DESC:
                stmt = stmt.order_by(column.desc().nulls_first())
            else:
                stmt = stmt.order_by(column.asc().nulls_last())
        return stmt

    def _column(self, name: str) -> tuple[FieldSpec, Any]:
        spec = self.schema.get_field(name)
        column = getattr(self.model_class, spec.storage_name, None) if spec else None
        if spec is None or column is None:
            raise ValidationError(
                f"Field '{name}' does not exist on model '{self.model_class.__name__}'",
                field=name,
            )
        return spec, column

    def _bind(self, spec: FieldSpec, column: Any, value: Any) -> Any:
        if spec.value_type == ValueType.UUID and isinstance(value, str):
            if getattr(column.type, "as_uuid", False):
                return UUID(value)
        return value


def _is_plain_date(value: Any) -> bool:
    return isinstance(value, date) and not isinstance(value, datetime)
