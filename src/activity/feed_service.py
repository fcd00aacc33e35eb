"""Activity feed service.

Fans out to every source adapter for a company in parallel, normalizes
and classifies what comes back, and merges the results into one
filtered, paginated feed. A failing or slow source only removes its own
contribution and is reported as a warning; an unknown company aborts
the whole request.
"""

import asyncio
from collections.abc import Iterable, Sequence
from datetime import datetime

import structlog

from src.activity.action_items import rank_action_items
from src.activity.cache import FeedCache, feed_cache_key
from src.activity.classifier import classify_items
from src.activity.errors import (
    InvalidCompanyError,
    InvalidFilterError,
    SourceUnavailableError,
)
from src.activity.merger import ensure_sorted, paginate
from src.activity.normalizer import normalize_records
from src.adapters.base import CompanyDirectory, FetchWindow, RawRecord, SourceAdapter
from src.config import settings
from src.models.activity import (
    ROLE_ACTIONABLE_TYPES,
    ActivityFeed,
    ActivityItem,
    ActivityType,
    CallerRole,
    FeedRequest,
    FeedWarning,
)

logger = structlog.get_logger()


def parse_type_filter(raw_types: Iterable[str] | None) -> tuple[ActivityType, ...] | None:
    """Parse a user-supplied type allow-list.

    Args:
        raw_types: Type names, e.g. ["file_flag", "note_added"]

    Returns:
        Tuple of ActivityType, or None if no filter was given

    Raises:
        InvalidFilterError: If any name is not a known activity type
    """
    if raw_types is None:
        return None

    parsed: list[ActivityType] = []
    unknown: list[str] = []
    for name in raw_types:
        name = name.strip()
        if not name:
            continue
        try:
            parsed.append(ActivityType(name))
        except ValueError:
            unknown.append(name)

    if unknown:
        raise InvalidFilterError(f"Unknown activity types: {', '.join(unknown)}")
    return tuple(dict.fromkeys(parsed)) or None


class ActivityFeedService:
    """Builds activity feeds and action item lists for a company."""

    def __init__(
        self,
        company_directory: CompanyDirectory,
        sources: Sequence[SourceAdapter],
        cache: FeedCache | None = None,
        default_timeout: float | None = None,
    ):
        """Initialize service with injected adapters.

        Args:
            company_directory: Looks up companies for request validation
            sources: One adapter per activity type
            cache: Optional feed cache
            default_timeout: Per-source timeout in seconds when the caller
                does not supply one
        """
        self._companies = company_directory
        self._sources = list(sources)
        self._cache = cache
        self._default_timeout = default_timeout or settings.adapter_timeout_seconds

        seen = [s.activity_type for s in self._sources]
        duplicates = {t.value for t in seen if seen.count(t) > 1}
        if duplicates:
            raise ValueError(f"Duplicate source adapters for: {sorted(duplicates)}")

    @property
    def sources(self) -> list[SourceAdapter]:
        return list(self._sources)

    async def get_feed(
        self,
        request: FeedRequest,
        role: CallerRole,
        *,
        timeout: float | None = None,
        now: datetime | None = None,
    ) -> ActivityFeed:
        """Build one page of the activity feed.

        Args:
            request: Company, window, type filter and page parameters
            role: Role of the caller, used for action item classification
            timeout: Per-source fetch timeout in seconds
            now: End of the time window (defaults to current time)

        Returns:
            ActivityFeed with items, has_more and any non-fatal warnings

        Raises:
            InvalidCompanyError: If the company does not exist
        """
        await self._require_company(request.company_id)

        cache_key = feed_cache_key(request, role)
        if self._cache is not None and now is None:
            cached = self._cache.get(cache_key)
            if cached is not None:
                logger.debug("activity feed cache hit", company_id=request.company_id)
                return cached

        window = FetchWindow.last_days(request.days_back, now=now)
        allowed = request.allowed_types
        sources = [s for s in self._sources if s.activity_type in allowed]

        streams, warnings = await self._collect(
            sources, request.company_id, window, role, timeout
        )

        page = paginate(
            streams,
            company_id=request.company_id,
            window=window,
            allowed_types=allowed,
            limit=request.limit,
            offset=request.offset,
        )

        if page.out_of_scope:
            logger.warning(
                "dropped out-of-scope items",
                company_id=request.company_id,
                count=page.out_of_scope,
            )

        feed = ActivityFeed(items=page.items, has_more=page.has_more, warnings=warnings)

        logger.info(
            "activity feed built",
            company_id=request.company_id,
            role=role.value,
            sources=len(sources),
            items=len(feed.items),
            has_more=feed.has_more,
            warnings=len(warnings),
        )

        if self._cache is not None and now is None:
            self._cache.put(cache_key, feed)
        return feed

    async def get_action_items(
        self,
        company_id: str,
        role: CallerRole,
        *,
        days_back: int | None = None,
        timeout: float | None = None,
        now: datetime | None = None,
    ) -> tuple[list[ActivityItem], list[FeedWarning]]:
        """List the items the caller's role still has to respond to.

        Only the sources that can hold action items for the role are
        queried. Items stay open until resolved, so there is no lower time
        bound unless days_back is given. Items are ordered by priority,
        then newest first.

        Returns:
            Tuple of (ranked action items, warnings)
        """
        await self._require_company(company_id)

        if days_back is None:
            window = FetchWindow.open_ended(now=now)
        else:
            window = FetchWindow.last_days(days_back, now=now)
        wanted = ROLE_ACTIONABLE_TYPES[role]
        sources = [s for s in self._sources if s.activity_type in wanted]
        streams, warnings = await self._collect(sources, company_id, window, role, timeout)

        items = [
            item
            for stream in streams
            for item in stream
            if item.company_id == company_id
        ]
        ranked = rank_action_items(items)

        logger.info(
            "action items built",
            company_id=company_id,
            role=role.value,
            count=len(ranked),
            warnings=len(warnings),
        )
        return ranked, warnings

    async def _require_company(self, company_id: str) -> None:
        company = await self._companies.get_company(company_id)
        if company is None:
            logger.warning("unknown company requested", company_id=company_id)
            raise InvalidCompanyError(company_id)

    async def _collect(
        self,
        sources: Sequence[SourceAdapter],
        company_id: str,
        window: FetchWindow,
        role: CallerRole,
        timeout: float | None,
    ) -> tuple[list[list[ActivityItem]], list[FeedWarning]]:
        """Fetch, normalize and classify every source concurrently."""
        fetch_timeout = timeout or self._default_timeout

        results = await asyncio.gather(
            *(self._fetch(source, company_id, window, fetch_timeout) for source in sources),
            return_exceptions=True,
        )

        streams: list[list[ActivityItem]] = []
        warnings: list[FeedWarning] = []

        for source, result in zip(sources, results):
            if isinstance(result, SourceUnavailableError):
                warnings.append(result.to_warning())
                continue
            if isinstance(result, BaseException):
                # Not raised by _fetch under normal operation; keep other sources
                error = SourceUnavailableError(source.activity_type, str(result))
                warnings.append(error.to_warning())
                continue

            items, errors = normalize_records(source.activity_type, result)
            warnings.extend(e.to_warning() for e in errors)
            classified = classify_items(items, role)
            streams.append(ensure_sorted(classified, source.activity_type.value))

        return streams, warnings

    async def _fetch(
        self,
        source: SourceAdapter,
        company_id: str,
        window: FetchWindow,
        timeout: float,
    ) -> list[RawRecord]:
        """Fetch from one source, converting failures to SourceUnavailableError."""
        name = source.activity_type.value
        deadline = asyncio.timeout(timeout)
        try:
            async with deadline:
                records = await source.fetch(company_id, window)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            if isinstance(e, TimeoutError) and deadline.expired():
                logger.warning("source timed out", source=name, timeout=timeout)
                raise SourceUnavailableError(
                    source.activity_type, f"timed out after {timeout:g}s"
                ) from e
            logger.warning("source failed", source=name, error=str(e))
            raise SourceUnavailableError(source.activity_type, str(e) or type(e).__name__) from e

        if records is None:
            return []
        if not isinstance(records, list):
            records = list(records)
        return records
