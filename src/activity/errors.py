"""Error taxonomy for activity feed aggregation.

InvalidCompanyError and InvalidFilterError abort the request.
SourceUnavailableError and MalformedRecordError are recovered from and
reported to the caller as FeedWarning entries next to partial results.
"""

from src.models.activity import ActivityType, FeedWarning


class ActivityFeedError(Exception):
    """Base class for activity feed errors."""

    pass


class InvalidCompanyError(ActivityFeedError):
    """Raised when the requested company does not exist."""

    def __init__(self, company_id: str):
        self.company_id = company_id
        super().__init__(f"Company {company_id} not found")


class InvalidFilterError(ActivityFeedError):
    """Raised when a feed filter names an unknown activity type."""

    pass


class SourceUnavailableError(ActivityFeedError):
    """Raised when a single source adapter fails or times out."""

    def __init__(self, source: ActivityType, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Source {source.value} unavailable: {reason}")

    def to_warning(self) -> FeedWarning:
        return FeedWarning(
            code="source_unavailable",
            source=self.source,
            message=self.reason,
        )


class MalformedRecordError(ActivityFeedError):
    """Raised when a raw record cannot be normalized."""

    def __init__(self, source: ActivityType, reason: str, record_id: str | None = None):
        self.source = source
        self.reason = reason
        self.record_id = record_id
        super().__init__(f"Malformed {source.value} record {record_id}: {reason}")

    def to_warning(self) -> FeedWarning:
        return FeedWarning(
            code="malformed_record",
            source=self.source,
            message=self.reason,
            record_id=self.record_id,
        )
