"""
Tests for the request and response schemas.
"""

import pytest

from scopedsearch.core.dsl import (
    Page,
    Pagination,
    SearchRequest,
    SortClause,
    SortDirection,
    SortKey,
    parse_direction,
    parse_sort,
)
from scopedsearch.core.errors import ValidationError


class TestParseSort:
    def test_field_only(self):
        clause = parse_sort("title")
        assert clause == SortClause(field="title")
        assert clause.direction is None

    @pytest.mark.parametrize(
        "value,field,direction",
        [
            ("title asc", "title", SortDirection.ASC),
            ("title DESC", "title", SortDirection.DESC),
            ("title:asc", "title", SortDirection.ASC),
            ("-created_at", "created_at", SortDirection.DESC),
            ("+created_at", "created_at", SortDirection.ASC),
        ],
    )
    def test_inline_directions(self, value, field, direction):
        clause = parse_sort(value)
        assert clause.field == field
        assert clause.direction == direction

    def test_explicit_direction_wins(self):
        clause = parse_sort("title desc", "asc")
        assert clause.direction == SortDirection.ASC

    def test_invalid_inline_direction_is_none(self):
        clause = parse_sort("title sideways")
        assert clause.field == "title"
        assert clause.direction is None

    def test_clause_invalid_direction_is_none(self):
        clause = SortClause.model_validate({"field": "title", "direction": "sideways"})
        assert clause.direction is None
        assert SortClause(field="title", direction="ASC").direction == SortDirection.ASC

    def test_blank_is_none(self):
        assert parse_sort("   ") is None
        assert parse_sort("-") is None


class TestParseDirection:
    def test_case_insensitive(self):
        assert parse_direction(" Desc ") == SortDirection.DESC

    def test_unrecognized(self):
        assert parse_direction("up") is None
        assert parse_direction(1) is None
        assert parse_direction(None) is None


class TestSearchRequestFromParams:
    def test_splits_filters_sort_and_paging(self):
        request = SearchRequest.from_params(
            {"status": "open", "title": "report", "sort": "title asc", "page": "2", "limit": "5"}
        )
        assert request.filters == {"status": "open", "title": "report"}
        assert request.sort == SortClause(field="title", direction=SortDirection.ASC)
        assert request.page == 2
        assert request.limit == 5

    @pytest.mark.parametrize(
        "params",
        [
            {"sortBy": "title", "sortDirection": "asc"},
            {"sort_by": "title", "order": "asc"},
            {"sort": "title", "direction": "asc"},
            {"sort": "title", "sortOrder": "ASC"},
        ],
    )
    def test_sort_parameter_aliases(self, params):
        request = SearchRequest.from_params(params)
        assert request.sort == SortClause(field="title", direction=SortDirection.ASC)
        assert request.filters == {}

    def test_sort_mapping(self):
        request = SearchRequest.from_params({"sort": {"field": "title", "direction": "desc"}})
        assert request.sort == SortClause(field="title", direction=SortDirection.DESC)

    def test_blank_paging_is_absent(self):
        request = SearchRequest.from_params({"page": "", "limit": "  "})
        assert request.page is None
        assert request.limit is None

    def test_non_numeric_page_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            SearchRequest.from_params({"page": "two"})
        assert exc_info.value.field == "page"
        assert exc_info.value.code == "VALIDATION_ERROR"

    def test_empty_params(self):
        request = SearchRequest.from_params({})
        assert request.filters == {}
        assert request.sort is None
        assert request.page is None
        assert request.limit is None


class TestSortKey:
    def test_str(self):
        assert str(SortKey("created_at", SortDirection.DESC)) == "created_at desc"


class TestPage:
    def test_page_serialization(self):
        page = Page[dict](
            pagination=Pagination(current=1, limit=5, records=0, pages=0),
            data=[],
        )
        assert page.model_dump() == {
            "pagination": {"current": 1, "limit": 5, "records": 0, "pages": 0},
            "data": [],
        }

    def test_pagination_bounds(self):
        with pytest.raises(Exception):
            Pagination(current=0, limit=5, records=0, pages=0)
