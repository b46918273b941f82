"""
Row mapping.

Converts storage rows into the public representation of an entity.
"""

from collections.abc import Iterable, Mapping
from datetime import date, datetime, time, timezone
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from scopedsearch.core.types import EntitySchema, FieldSpec


def format_datetime(value: datetime) -> str:
    """ISO 8601 in UTC with millisecond precision, e.g. 2024-05-01T09:30:00.000Z."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def serialize_value(value: Any) -> Any:
    """Convert a single stored value into its public form."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return format_datetime(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, time):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Decimal):
        return float(value)
    return value


class RowMapper:
    """
    Maps rows (mappings or attribute objects) to dicts of public fields.

    Missing nullable values are emitted as explicit None.
    """

    def __init__(self, schema: EntitySchema) -> None:
        self.schema = schema
        self._fields: list[FieldSpec] = schema.public_fields()

    def map(self, row: Mapping[str, Any] | Any) -> dict[str, Any]:
        data = {}
        for spec in self._fields:
            if isinstance(row, Mapping):
                value = row.get(spec.name)
            else:
                value = getattr(row, spec.storage_name, None)
            data[spec.name] = serialize_value(value)
        return data

    def map_all(self, rows: Iterable[Mapping[str, Any] | Any]) -> list[dict[str, Any]]:
        return [self.map(row) for row in rows]
