"""
Page window arithmetic.
"""

import math
from dataclasses import dataclass

from scopedsearch.core.dsl import Pagination

# Storage offsets are signed 64-bit integers
MAX_OFFSET = 2**63 - 1


@dataclass(frozen=True)
class PageWindow:
    page: int
    limit: int
    offset: int


def pages_for(records: int, limit: int) -> int:
    """Number of pages needed for ``records`` rows; 0 when there are none."""
    return math.ceil(records / limit) if records > 0 else 0


class Pager:
    """
    Resolves the requested page and limit against a budget.

    A limit outside ``1..max_limit`` falls back to ``default_limit``;
    a page below 1 becomes 1. The offset is capped at MAX_OFFSET, so a page
    far past the end still reads as empty instead of failing in storage.
    """

    def __init__(self, default_limit: int, max_limit: int) -> None:
        self.default_limit = default_limit
        self.max_limit = max_limit

    def window(self, page: int | None, limit: int | None) -> PageWindow:
        if limit is None or not 1 <= limit <= self.max_limit:
            limit = self.default_limit
        if page is None or page < 1:
            page = 1
        return PageWindow(page=page, limit=limit, offset=min((page - 1) * limit, MAX_OFFSET))

    def pagination(self, window: PageWindow, records: int) -> Pagination:
        return Pagination(
            current=window.page,
            limit=window.limit,
            records=records,
            pages=pages_for(records, window.limit),
        )
