"""
Page assembly.
"""

from typing import Any

from scopedsearch.core.dsl import Page, Pagination


def assemble_page(pagination: Pagination, data: list[dict[str, Any]]) -> Page[dict[str, Any]]:
    """Combine pagination and mapped rows into a Page."""
    if len(data) > pagination.limit:
        raise ValueError(f"Page holds {len(data)} rows but its limit is {pagination.limit}")
    return Page[dict[str, Any]](pagination=pagination, data=data)
