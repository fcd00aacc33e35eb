"""Billing cycle and retainer health calculations.

All functions are pure and side-effect-free:
- resolve_billing_period: date + payment schedule -> BillingCycle
- classify_hour_usage: hours used/allocated -> HourStatus
"""

from src.billing.hours import assess_retainer, classify_hour_usage
from src.billing.periods import (
    compute_period_breakdown,
    current_billing_period,
    group_entries_by_period,
    period_key,
    resolve_billing_period,
)

__all__ = [
    "assess_retainer",
    "classify_hour_usage",
    "compute_period_breakdown",
    "current_billing_period",
    "group_entries_by_period",
    "period_key",
    "resolve_billing_period",
]
