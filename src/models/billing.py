"""Derived billing models.

None of these are persisted; they are computed fresh for every request
from a company's retainer configuration and its time entries.
"""

from datetime import date
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, computed_field

from src.models.company import RetainerType


class BillingCycle(BaseModel):
    """Half-open billing interval [start_date, end_date)."""

    model_config = ConfigDict(frozen=True)

    label: str = Field(description="Display label, e.g. 'January 2024'")
    start_date: date = Field(description="First day of the cycle (inclusive)")
    end_date: date = Field(description="First day after the cycle (exclusive)")
    key: str = Field(description="Stable period key, e.g. '2024-01' or '2023-12-15'")

    @computed_field
    @property
    def last_day(self) -> date:
        """Last day that belongs to the cycle."""
        return date.fromordinal(self.end_date.toordinal() - 1)

    def contains(self, day: date) -> bool:
        """Check whether a day falls inside the cycle."""
        return self.start_date <= day < self.end_date


class HourStatusLevel(str, Enum):
    """Traffic-light retainer health."""

    GREEN = "green"
    YELLOW = "yellow"
    RED = "red"


class HourStatus(BaseModel):
    """Hour usage health for a retainer."""

    status: HourStatusLevel
    remaining: float = Field(description="Hours left, never below zero")
    percentage_used: float = Field(description="Share of allocation used, in percent")
    label: str = Field(description="On Track, Caution or Critical")


class PeriodBreakdown(BaseModel):
    """Regular vs. overage hours within one billing cycle."""

    total_hours: float = 0
    regular_hours: float = 0
    overage_hours: float = 0
    overage_entry_ids: set[str] = Field(default_factory=set)


class TimeEntry(BaseModel):
    """Minimal time entry shape used for billing grouping."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    date: date
    hours: float = Field(ge=0)


class BillingPeriodGroup(BaseModel):
    """Time entries that fall into one billing cycle."""

    cycle: BillingCycle
    entries: list[TimeEntry] = Field(default_factory=list)


class RetainerHealth(BaseModel):
    """Current cycle and hour status for a company's retainer."""

    company_id: str
    retainer_type: RetainerType
    cycle: BillingCycle
    hours: HourStatus
