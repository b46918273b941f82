"""
Request and response schemas for scopedsearch.

These Pydantic models describe what callers send (SearchRequest) and what
the engine returns (Page). Filters arrive as a loose mapping and are turned
into the typed FilterValue variants by the filter normalizer.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar, Union

from pydantic import BaseModel, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from scopedsearch.core.errors import ValidationError

T = TypeVar("T")


class SortDirection(str, Enum):
    """Sort order direction."""

    ASC = "asc"
    DESC = "desc"


class SortClause(BaseModel):
    """
    A single sort clause.

    Example:
        {"field": "created_at", "direction": "desc"}

    ``direction`` is None when the caller named a field without a direction;
    the sort resolver then applies its default.
    """

    field: str = Field(..., description="The field name to order by")
    direction: SortDirection | None = Field(default=None, description="Sort direction")

    model_config = {"frozen": True}

    @field_validator("direction", mode="before")
    @classmethod
    def lenient_direction(cls, v: Any) -> SortDirection | None:
        """Unrecognized directions become None, so the default applies."""
        return parse_direction(v)


@dataclass(frozen=True)
class SortKey:
    """One resolved ordering key, always with an explicit direction."""

    field: str
    direction: SortDirection

    def __str__(self) -> str:
        return f"{self.field} {self.direction.value}"


# Flat parameter names accepted for sorting and paging
SORT_FIELD_KEYS = ("sort", "sort_by", "sortBy")
SORT_DIRECTION_KEYS = ("order", "direction", "sortDirection", "sortOrder")
PAGE_KEYS = ("page", "limit")


def parse_direction(value: Any) -> SortDirection | None:
    """Parse a direction string; anything unrecognized is None."""
    if isinstance(value, SortDirection):
        return value
    if not isinstance(value, str):
        return None
    try:
        return SortDirection(value.strip().lower())
    except ValueError:
        return None


def parse_sort(value: str, direction: Any = None) -> SortClause | None:
    """
    Parse a sort string.

    Accepts ``"name"``, ``"name asc"``, ``"name:desc"``, ``"-name"`` and
    ``"+name"``. An explicit ``direction`` argument wins over one written
    inline. Returns None for a blank string.
    """
    text = value.strip()
    if not text:
        return None

    inline: SortDirection | None = None
    if text[0] in "+-":
        inline = SortDirection.ASC if text[0] == "+" else SortDirection.DESC
        text = text[1:].strip()
    else:
        for sep in (":", " "):
            if sep in text:
                text, _, tail = text.partition(sep)
                inline = parse_direction(tail)
                text = text.strip()
                break

    if not text:
        return None
    return SortClause(field=text, direction=parse_direction(direction) or inline)


class SearchRequest(BaseModel):
    """
    A caller's search request.

    Example:
        {
            "filters": {"status": "active", "title": "report",
                        "created_at_from": "2024-01-01"},
            "sort": {"field": "created_at", "direction": "desc"},
            "page": 2,
            "limit": 20
        }
    """

    filters: dict[str, Any] = Field(default_factory=dict)
    sort: SortClause | None = None
    page: int | None = None
    limit: int | None = None

    model_config = {"frozen": True}

    @classmethod
    def from_params(cls, params: Mapping[str, Any]) -> "SearchRequest":
        """
        Build a request from a flat parameter mapping.

        ``page`` and ``limit`` are paging parameters, the sort keys listed in
        SORT_FIELD_KEYS / SORT_DIRECTION_KEYS select the ordering, and every
        other key is a filter.
        """
        filters: dict[str, Any] = {}
        sort_value: Any = None
        direction_value: Any = None

        for key, value in params.items():
            if key in PAGE_KEYS:
                continue
            if key in SORT_FIELD_KEYS:
                if value is not None:
                    sort_value = value
            elif key in SORT_DIRECTION_KEYS:
                if value is not None:
                    direction_value = value
            else:
                filters[key] = value

        sort: SortClause | None = None
        if isinstance(sort_value, str):
            sort = parse_sort(sort_value, direction_value)
        elif isinstance(sort_value, Mapping) and sort_value.get("field"):
            sort = SortClause(
                field=str(sort_value["field"]),
                direction=parse_direction(direction_value or sort_value.get("direction")),
            )

        try:
            return cls(
                filters=filters,
                sort=sort,
                page=_blank_to_none(params.get("page")),
                limit=_blank_to_none(params.get("limit")),
            )
        except PydanticValidationError as e:
            first = e.errors()[0]
            field = str(first["loc"][0]) if first.get("loc") else None
            raise ValidationError(f"Invalid {field or 'request'}: {first['msg']}", field=field) from e


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


# === Normalized filter values ===


class ExactMatch(BaseModel):
    """Field equals a single value."""

    value: Any

    model_config = {"frozen": True}


class TextMatch(BaseModel):
    """Field contains a substring."""

    substring: str
    case_sensitive: bool = False

    model_config = {"frozen": True}


class RangeMatch(BaseModel):
    """Field lies within inclusive bounds; either bound may be open."""

    lower: Any = None
    upper: Any = None

    model_config = {"frozen": True}


class SetMatch(BaseModel):
    """Field equals one of several values."""

    values: tuple[Any, ...]

    model_config = {"frozen": True}


FilterValue = Union[ExactMatch, TextMatch, RangeMatch, SetMatch]


# === Results ===


class Pagination(BaseModel):
    """Position of a page within the full matching set."""

    current: int = Field(..., ge=1)
    limit: int = Field(..., ge=1)
    records: int = Field(..., ge=0)
    pages: int = Field(..., ge=0)

    model_config = {"frozen": True}


class Page(BaseModel, Generic[T]):
    """
    Result of a search.

    ``data`` never holds more than ``pagination.limit`` items.
    """

    pagination: Pagination
    data: list[T] = Field(default_factory=list)

    model_config = {"frozen": True}
