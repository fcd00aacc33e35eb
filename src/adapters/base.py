"""Base types for source adapters.

This module defines the SourceAdapter and CompanyDirectory protocols and
the FetchWindow model used by adapters that read portal records for the
activity feed. Each adapter is scoped to exactly one entity kind.
"""

from datetime import UTC, datetime, timedelta
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field, model_validator

from src.models.activity import ActivityType
from src.models.company import CompanyRetainer

RawRecord = dict[str, Any]


class FetchWindow(BaseModel):
    """Closed time window [start, end] a source is asked to cover."""

    model_config = ConfigDict(frozen=True)

    start: datetime = Field(description="Oldest event time to include (UTC)")
    end: datetime = Field(description="Newest event time to include (UTC)")

    @model_validator(mode="after")
    def _check_order(self) -> "FetchWindow":
        if self.start.tzinfo is None or self.end.tzinfo is None:
            raise ValueError("FetchWindow bounds must be timezone-aware")
        if self.start > self.end:
            raise ValueError("FetchWindow start must not be after end")
        return self

    @classmethod
    def last_days(cls, days: int, now: datetime | None = None) -> "FetchWindow":
        """Build a window covering the last N days up to now."""
        end = now or datetime.now(UTC)
        return cls(start=end - timedelta(days=days), end=end)

    @classmethod
    def open_ended(cls, now: datetime | None = None) -> "FetchWindow":
        """Build a window with no lower bound, up to now."""
        return cls(start=datetime.min.replace(tzinfo=UTC), end=now or datetime.now(UTC))

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment <= self.end


@runtime_checkable
class SourceAdapter(Protocol):
    """Protocol for adapters that read one kind of portal record.

    Adapters implement this protocol for structural subtyping -
    they don't need to inherit, just implement the attribute and method.
    """

    activity_type: ActivityType

    async def fetch(self, company_id: str, window: FetchWindow) -> list[RawRecord]:
        """Fetch records for a company within a time window.

        Args:
            company_id: Company the records belong to
            window: Time window to cover

        Returns:
            Raw records sorted by their own timestamp field, newest first
        """
        ...


@runtime_checkable
class CompanyDirectory(Protocol):
    """Protocol for looking up companies and their retainer state."""

    async def get_company(self, company_id: str) -> CompanyRetainer | None:
        """Return the company, or None if no such company exists."""
        ...
