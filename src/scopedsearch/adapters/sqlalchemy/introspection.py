"""
SQLAlchemy schema introspection.

Builds an EntitySchema from a SQLAlchemy mapped class.
"""

from collections.abc import Iterable
from typing import Any

from sqlalchemy import inspect
from sqlalchemy.sql.sqltypes import (
    Boolean,
    Date,
    DateTime,
    Enum,
    Float,
    Integer,
    Numeric,
    String,
    Uuid,
)

from scopedsearch.core.types import EntitySchema, FieldSpec, FilterKind, ValueType

# Checked in order; Enum subclasses String and Float subclasses Numeric
_TYPE_MAPPING: list[tuple[type, ValueType]] = [
    (Enum, ValueType.STRING),
    (Boolean, ValueType.BOOLEAN),
    (Integer, ValueType.INTEGER),
    (Float, ValueType.FLOAT),
    (Numeric, ValueType.FLOAT),
    (DateTime, ValueType.DATETIME),
    (Date, ValueType.DATE),
    (Uuid, ValueType.UUID),
    (String, ValueType.STRING),
]

_RANGE_TYPES = {ValueType.INTEGER, ValueType.FLOAT, ValueType.DATETIME, ValueType.DATE}


def schema_from_model(
    model: type,
    name: str | None = None,
    *,
    text: Iterable[str] = (),
    sortable: Iterable[str] = (),
    hidden: Iterable[str] = (),
    exclude: Iterable[str] = (),
    case_sensitive: bool = False,
) -> EntitySchema:
    """
    Introspect a mapped class into an EntitySchema.

    Numeric and temporal columns become range filters, enums become enum
    filters with their declared values, and other strings, booleans and
    UUIDs become exact filters. Columns of any other type are kept public but
    not filterable.

    Args:
        model: SQLAlchemy declarative model class
        name: Entity name (defaults to the table name)
        text: String columns filtered by substring instead of equality
        sortable: Columns callers may sort by
        hidden: Columns never emitted in results (e.g. soft-delete markers)
        exclude: Columns left out of the schema entirely
        case_sensitive: Whether text filters match case-sensitively
    """
    mapper = inspect(model)
    text, sortable = set(text), set(sortable)
    hidden, exclude = set(hidden), set(exclude)

    fields: list[FieldSpec] = []
    primary_keys: list[str] = []
    for column in mapper.columns:
        key = column.key
        if key in exclude:
            continue
        if column.primary_key:
            primary_keys.append(key)
        fields.append(
            _field_spec(
                key,
                column,
                text=key in text,
                sortable=key in sortable,
                public=key not in hidden,
                case_sensitive=case_sensitive,
            )
        )

    if len(primary_keys) != 1:
        raise ValueError(f"Model '{model.__name__}' must have exactly one primary key column")

    return EntitySchema.build(
        name or mapper.persist_selectable.name,
        *fields,
        primary_key=primary_keys[0],
        description=model.__doc__,
    )


def _field_spec(
    key: str,
    column: Any,
    *,
    text: bool,
    sortable: bool,
    public: bool,
    case_sensitive: bool,
) -> FieldSpec:
    value_type = _value_type(column.type)
    common = {
        "name": key,
        "sortable": sortable,
        "public": public,
        "nullable": bool(column.nullable),
    }

    if value_type is None:
        return FieldSpec(value_type=ValueType.JSON, filterable=False, **common)

    if isinstance(column.type, Enum) and column.type.enums:
        return FieldSpec(
            value_type=value_type,
            kind=FilterKind.ENUM,
            choices=list(column.type.enums),
            **common,
        )

    if text:
        if value_type != ValueType.STRING:
            raise ValueError(f"Column '{key}' is not a string column and cannot be a text filter")
        return FieldSpec(
            value_type=value_type,
            kind=FilterKind.TEXT,
            case_sensitive=case_sensitive,
            **common,
        )

    kind = FilterKind.RANGE if value_type in _RANGE_TYPES else FilterKind.EXACT
    return FieldSpec(value_type=value_type, kind=kind, **common)


def _value_type(sa_type: Any) -> ValueType | None:
    """Map a SQLAlchemy type to a ValueType, or None when unsupported."""
    for sa_class, value_type in _TYPE_MAPPING:
        if isinstance(sa_type, sa_class):
            return value_type
    return None
