"""
Look-ahead pagination: query one row past the page to learn whether another page exists.
"""
from typing import List, NamedTuple, Sequence, TypeVar

T = TypeVar("T")


class Page(NamedTuple):
    items: List
    has_next_page: bool


def fetch_size(limit: int) -> int:
    """Number of rows to request for a page of `limit` rows."""
    return limit + 1


def paginate(rows: Sequence[T], limit: int) -> Page:
    """
    Trim a look-ahead result set to one page.

    Args:
        rows: Rows returned for a query limited to fetch_size(limit)
        limit: Requested page size

    Returns:
        The first `limit` rows and whether more rows exist
    """
    has_next_page = len(rows) > limit
    items = list(rows[:limit]) if has_next_page else list(rows)
    return Page(items=items, has_next_page=has_next_page)
