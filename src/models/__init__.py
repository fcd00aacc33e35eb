"""Domain models for the portal core.

This module exports the canonical activity and billing models:
- ActivityItem / ActivityFeed: unified feed entries and pages
- CompanyRetainer: read-only retainer configuration
- BillingCycle / HourStatus: derived retainer health
"""

from src.models.activity import (
    PRIORITY_ORDER,
    ROLE_ACTIONABLE_TYPES,
    ActivityFeed,
    ActivityItem,
    ActivityLink,
    ActivityType,
    Actor,
    CallerRole,
    FeedRequest,
    FeedWarning,
    ItemState,
    Priority,
)
from src.models.billing import (
    BillingCycle,
    BillingPeriodGroup,
    HourStatus,
    HourStatusLevel,
    PeriodBreakdown,
    RetainerHealth,
    TimeEntry,
)
from src.models.company import CompanyRetainer, PaymentSchedule, RetainerType

__all__ = [
    "PRIORITY_ORDER",
    "ROLE_ACTIONABLE_TYPES",
    "ActivityFeed",
    "ActivityItem",
    "ActivityLink",
    "ActivityType",
    "Actor",
    "BillingCycle",
    "BillingPeriodGroup",
    "CallerRole",
    "CompanyRetainer",
    "FeedRequest",
    "FeedWarning",
    "HourStatus",
    "HourStatusLevel",
    "ItemState",
    "PaymentSchedule",
    "PeriodBreakdown",
    "Priority",
    "RetainerHealth",
    "RetainerType",
    "TimeEntry",
]
