"""Short-lived in-memory cache for assembled activity feeds.

Source data changes asynchronously, so entries expire after a small
TTL. Only complete feeds (no warnings) are stored.
"""

import time
from collections.abc import Callable, Hashable

import structlog

from src.models.activity import ActivityFeed, CallerRole, FeedRequest

logger = structlog.get_logger()

CacheKey = tuple[Hashable, ...]


def feed_cache_key(request: FeedRequest, role: CallerRole) -> CacheKey:
    """Build the cache key for a feed request and caller role."""
    types = tuple(sorted(t.value for t in request.allowed_types))
    return (
        request.company_id,
        role.value,
        request.days_back,
        types,
        request.limit,
        request.offset,
    )


class FeedCache:
    """TTL cache of ActivityFeed responses keyed by request parameters."""

    def __init__(
        self,
        ttl_seconds: float,
        max_entries: int = 1024,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize cache.

        Args:
            ttl_seconds: Lifetime of an entry; 0 disables caching
            max_entries: Entries kept before the oldest are evicted
            clock: Monotonic time source (injectable for tests)
        """
        self._ttl = ttl_seconds
        self._max_entries = max_entries
        self._clock = clock
        self._entries: dict[CacheKey, tuple[float, ActivityFeed]] = {}

    @property
    def enabled(self) -> bool:
        return self._ttl > 0

    def get(self, key: CacheKey) -> ActivityFeed | None:
        """Return a cached feed if present and not expired."""
        if not self.enabled:
            return None
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, feed = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        return feed

    def put(self, key: CacheKey, feed: ActivityFeed) -> None:
        """Store a complete feed; feeds with warnings are not cached."""
        if not self.enabled or feed.warnings:
            return
        if len(self._entries) >= self._max_entries:
            self._evict()
        self._entries[key] = (self._clock() + self._ttl, feed)

    def invalidate(self, company_id: str | None = None) -> None:
        """Drop entries for one company, or everything."""
        if company_id is None:
            self._entries.clear()
            return
        for key in [k for k in self._entries if k[0] == company_id]:
            del self._entries[key]

    def _evict(self) -> None:
        now = self._clock()
        expired = [k for k, (exp, _) in self._entries.items() if exp <= now]
        for key in expired:
            del self._entries[key]
        if len(self._entries) >= self._max_entries:
            # dicts keep insertion order, so the first key is the oldest
            oldest = next(iter(self._entries))
            del self._entries[oldest]
        logger.debug("feed cache evicted", remaining=len(self._entries))

    def __len__(self) -> int:
        return len(self._entries)
