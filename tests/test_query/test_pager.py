"""
Tests for page windows and page assembly.
"""

import pytest

from scopedsearch.core.dsl import Pagination
from scopedsearch.query.assembler import assemble_page
from scopedsearch.query.pager import MAX_OFFSET, PageWindow, Pager, pages_for


class TestPagesFor:
    @pytest.mark.parametrize(
        "records,limit,expected",
        [(0, 5, 0), (1, 5, 1), (5, 5, 1), (6, 5, 2), (12, 5, 3), (100, 100, 1)],
    )
    def test_pages(self, records, limit, expected):
        assert pages_for(records, limit) == expected


class TestPager:
    def test_defaults(self):
        assert Pager(20, 100).window(None, None) == PageWindow(page=1, limit=20, offset=0)

    def test_offset(self):
        assert Pager(20, 100).window(3, 5) == PageWindow(page=3, limit=5, offset=10)

    @pytest.mark.parametrize("limit", [0, -1, 101, 10_000])
    def test_out_of_range_limit_uses_default(self, limit):
        assert Pager(20, 100).window(1, limit).limit == 20

    def test_max_limit_accepted(self):
        assert Pager(20, 100).window(1, 100).limit == 100

    @pytest.mark.parametrize("page", [0, -3])
    def test_low_page_becomes_first(self, page):
        assert Pager(20, 100).window(page, 5).page == 1

    def test_offset_capped(self):
        window = Pager(20, 100).window(10**19, 5)
        assert window.page == 10**19
        assert window.offset == MAX_OFFSET

    def test_pagination(self):
        pager = Pager(20, 100)
        window = pager.window(999, 5)
        assert pager.pagination(window, 12) == Pagination(current=999, limit=5, records=12, pages=3)


class TestAssemblePage:
    def test_assemble(self):
        pagination = Pagination(current=1, limit=2, records=3, pages=2)
        page = assemble_page(pagination, [{"id": 1}, {"id": 2}])
        assert page.pagination is pagination
        assert page.data == [{"id": 1}, {"id": 2}]

    def test_overfull_page_rejected(self):
        pagination = Pagination(current=1, limit=1, records=3, pages=3)
        with pytest.raises(ValueError):
            assemble_page(pagination, [{"id": 1}, {"id": 2}])
