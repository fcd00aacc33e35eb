"""K-way merge and pagination of per-source activity streams.

Every source list arrives sorted newest first. The lists are merged
lazily with heapq.merge, so building one page costs O(n log k) for k
sources and stops as soon as the page (plus one look-ahead item) is
filled. Filters run before truncation so a page is never under-filled.
"""

import heapq
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
from datetime import datetime
from itertools import islice

import structlog

from src.adapters.base import FetchWindow
from src.models.activity import ActivityItem, ActivityType

logger = structlog.get_logger()


def sort_key(item: ActivityItem) -> tuple[datetime, str]:
    """Ordering key: timestamp, then id as tie-break (both descending)."""
    return (item.timestamp, item.id)


def is_sorted_desc(items: Sequence[ActivityItem]) -> bool:
    """Check that items are ordered by sort_key, newest first."""
    return all(sort_key(a) >= sort_key(b) for a, b in zip(items, items[1:]))


def ensure_sorted(items: list[ActivityItem], source: str = "unknown") -> list[ActivityItem]:
    """Return items in merge order, re-sorting only if the source was out of order.

    Adapters sort by their own timestamp column, which leaves ties in
    arbitrary order; those are fixed up here.
    """
    if is_sorted_desc(items):
        return items
    logger.debug("re-sorting source output", source=source, count=len(items))
    return sorted(items, key=sort_key, reverse=True)


def merge_sorted(sources: Iterable[Sequence[ActivityItem]]) -> Iterator[ActivityItem]:
    """Lazily merge per-source lists that are already sorted newest first."""
    return heapq.merge(*sources, key=sort_key, reverse=True)


@dataclass
class Page:
    """One filtered page of merged items."""

    items: list[ActivityItem]
    has_more: bool
    out_of_scope: int = 0


class _ScopeCounter:
    def __init__(self) -> None:
        self.dropped = 0


def _in_scope(
    items: Iterable[ActivityItem],
    company_id: str,
    window: FetchWindow | None,
    counter: _ScopeCounter,
) -> Iterator[ActivityItem]:
    for item in items:
        if item.company_id != company_id or (
            window is not None and not window.contains(item.timestamp)
        ):
            counter.dropped += 1
            continue
        yield item


def paginate(
    sources: Iterable[Sequence[ActivityItem]],
    *,
    company_id: str,
    window: FetchWindow | None = None,
    allowed_types: frozenset[ActivityType] | None = None,
    limit: int,
    offset: int = 0,
) -> Page:
    """Merge sources, then scope, filter and truncate, in that order.

    Args:
        sources: Per-source item lists, each sorted newest first
        company_id: Company every returned item must belong to
        window: Time window every returned item must fall in
        allowed_types: Type allow-list; None means all types
        limit: Page size
        offset: Number of filtered items to skip

    Returns:
        Page whose has_more is True iff a filtered item exists past the page
    """
    if limit < 1:
        raise ValueError("limit must be at least 1")
    if offset < 0:
        raise ValueError("offset must not be negative")

    counter = _ScopeCounter()
    stream: Iterator[ActivityItem] = _in_scope(
        merge_sorted(sources), company_id, window, counter
    )
    if allowed_types is not None:
        stream = (item for item in stream if item.type in allowed_types)

    # One extra item tells us whether another page exists
    window_items = list(islice(stream, offset, offset + limit + 1))
    has_more = len(window_items) > limit

    return Page(
        items=window_items[:limit],
        has_more=has_more,
        out_of_scope=counter.dropped,
    )
