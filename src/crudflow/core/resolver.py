"""
Retrieval Strategy Resolver

🧭 Strategy Inference:
Callers never pick how a page or count is retrieved. The resolver infers one
of three strategies purely from which optional parameters are present and
dispatches to the matching persistence hook:

    search absent,  query absent  -> ALL               (internal_page / internal_count)
    search present, query absent  -> SEARCH            (internal_search / internal_count_search)
    any search,     query present -> SEARCH_WITH_QUERY (internal_search_query / internal_count_search_query)

The resolver returns whatever the hook returns, so it serves blocking hooks
(plain values) and suspending hooks (awaitables) alike.
"""

import logging
from enum import Enum
from typing import Any, Optional

from .paging import Pagination, Sort, UNPAGINATED, UNSORTED
from .text import is_empty, normalize_search

logger = logging.getLogger(__name__)


class RetrievalStrategy(Enum):
    """Retrieval shape chosen for a page or count request"""
    ALL = "all"
    SEARCH = "search"
    SEARCH_WITH_QUERY = "search_with_query"


def normalize_pagination(pagination: Optional[Pagination]) -> Pagination:
    return UNPAGINATED if pagination is None else pagination


def normalize_sort(sort: Optional[Sort]) -> Sort:
    return UNSORTED if sort is None else sort


def resolve_strategy(search: Optional[str], query: Any) -> RetrievalStrategy:
    """
    Pick the retrieval strategy from parameter presence.

    ``search`` must already be normalized. A present ``query`` always wins,
    so the (absent search, present query) combination collapses into
    ``SEARCH_WITH_QUERY``.
    """
    if query is not None:
        return RetrievalStrategy.SEARCH_WITH_QUERY
    if is_empty(search):
        return RetrievalStrategy.ALL
    return RetrievalStrategy.SEARCH


def resolve_page(adapter, search: Optional[str], query: Any,
                 pagination: Optional[Pagination], sort: Optional[Sort]):
    """
    Dispatch a page request to exactly one adapter hook.

    Args:
        adapter: Object providing the ``internal_page`` family of hooks
        search: Free-text search, normalized here
        query: Structured query or ``None``
        pagination: Page request, ``None`` for unpaginated
        sort: Sort request, ``None`` for unsorted

    Returns:
        The hook's return value (a page, or an awaitable of a page)
    """
    search = normalize_search(search)
    pagination = normalize_pagination(pagination)
    sort = normalize_sort(sort)

    strategy = resolve_strategy(search, query)
    logger.debug(f"Resolved page strategy {strategy.value} (pagination={pagination}, sort={sort})")

    if strategy is RetrievalStrategy.ALL:
        return adapter.internal_page(pagination, sort)
    if strategy is RetrievalStrategy.SEARCH:
        return adapter.internal_search(search, pagination, sort)
    return adapter.internal_search_query(search, pagination, sort, query)


def resolve_count(adapter, search: Optional[str], query: Any):
    """Dispatch a count request to exactly one adapter hook."""
    search = normalize_search(search)

    strategy = resolve_strategy(search, query)
    logger.debug(f"Resolved count strategy {strategy.value}")

    if strategy is RetrievalStrategy.ALL:
        return adapter.internal_count()
    if strategy is RetrievalStrategy.SEARCH:
        return adapter.internal_count_search(search)
    return adapter.internal_count_search_query(search, query)


__all__ = [
    "RetrievalStrategy", "normalize_pagination", "normalize_sort",
    "resolve_strategy", "resolve_page", "resolve_count"
]
