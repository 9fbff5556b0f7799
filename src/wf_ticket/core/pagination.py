"""
Pagination utilities for offset-cursor listings.

The task service returns pages of at most ``limit`` items together with an
opaque ``next_page.offset`` cursor. ``collect_pages`` follows that cursor until
the service stops returning one and accumulates every item.

Pagination Defaults
===================

    DEFAULT_PAGE_SIZE (100)  - Default number of items per page
    MAX_PAGE_SIZE (100)      - Largest page the service accepts

Example usage:

    from functools import partial
    from wf_ticket.core.pagination import collect_pages

    items = collect_pages(
        partial(api.get_tasks_for_project, project_gid),
        limit=100,
    )
"""

from typing import Callable, List, Optional, Set

from wf_ticket.core.models import Item, Page


# ---------------------------------------------------------------------------
# Pagination Constants
# ---------------------------------------------------------------------------

#: Default number of items per page
DEFAULT_PAGE_SIZE: int = 100

#: Maximum allowed page size
MAX_PAGE_SIZE: int = 100


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class PaginationError(Exception):
    """A listing returned an unusable cursor.

    Attributes:
        cursor: The offending cursor.
        pages: Number of pages fetched before the problem was detected.
    """

    def __init__(
        self,
        message: str,
        cursor: Optional[str] = None,
        pages: int = 0,
    ):
        super().__init__(message)
        self.cursor = cursor
        self.pages = pages


# ---------------------------------------------------------------------------
# Page Collection
# ---------------------------------------------------------------------------


PageFetcher = Callable[..., Page]


def collect_pages(
    fetch_page: PageFetcher,
    limit: int = DEFAULT_PAGE_SIZE,
) -> List[Item]:
    """Fetch every page of a listing and return the accumulated items.

    ``fetch_page`` is called as ``fetch_page(limit=..., offset=...)``; the
    offset keyword is omitted on the first call.

    Args:
        fetch_page: Callable returning a ``Page``.
        limit: Items per page, normalised to 1..MAX_PAGE_SIZE.

    Returns:
        All items across all pages, in listing order.

    Raises:
        PaginationError: If the service hands back a cursor it already gave.
        Exception: Anything ``fetch_page`` raises is propagated untouched.
    """
    limit = normalize_page_size(limit)
    items: List[Item] = []
    seen: Set[str] = set()
    offset: Optional[str] = None
    pages = 0

    while True:
        if offset:
            page = fetch_page(limit=limit, offset=offset)
        else:
            page = fetch_page(limit=limit)
        pages += 1
        items.extend(page.items)

        if not page.next_offset:
            return items

        if page.next_offset in seen:
            raise PaginationError(
                f"Listing repeated cursor after {pages} page(s)",
                cursor=page.next_offset,
                pages=pages,
            )
        seen.add(page.next_offset)
        offset = page.next_offset


def normalize_page_size(
    requested: Optional[int],
    default: int = DEFAULT_PAGE_SIZE,
    maximum: int = MAX_PAGE_SIZE,
) -> int:
    """Normalize requested page size to valid range.

    Example:
        >>> normalize_page_size(None)
        100
        >>> normalize_page_size(5000)
        100
        >>> normalize_page_size(-1)
        1
    """
    if requested is None:
        return default
    return min(max(1, requested), maximum)
