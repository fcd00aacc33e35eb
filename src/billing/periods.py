"""Billing period resolution.

Maps a date and a retainer's payment schedule to the billing cycle that
contains it. Cycles are half-open [start, end) intervals and, for a given
schedule, consecutive cycles tile the calendar with no gap or overlap.
"""

from collections.abc import Iterable
from datetime import date, datetime

from src.models.billing import (
    BillingCycle,
    BillingPeriodGroup,
    PeriodBreakdown,
    TimeEntry,
)
from src.models.company import PaymentSchedule

MID_MONTH_DAY = 15


def _add_months(year: int, month: int, delta: int) -> tuple[int, int]:
    """Shift a (year, month) pair by delta months, rolling over years."""
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def _coerce_date(value: date | datetime | str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value.strip()[:10])
    raise TypeError(f"Expected date, datetime or ISO string, got {type(value).__name__}")


def _coerce_schedule(schedule: PaymentSchedule | str | None) -> PaymentSchedule | None:
    if schedule is None or isinstance(schedule, PaymentSchedule):
        return schedule
    if not schedule.strip():
        return None
    try:
        return PaymentSchedule(schedule.strip())
    except ValueError as e:
        raise ValueError(f"Unknown payment schedule: {schedule!r}") from e


def period_key(start: date, schedule: PaymentSchedule | None) -> str:
    """Stable key for a cycle: 'YYYY-MM' or 'YYYY-MM-15' for mid-month cycles."""
    if schedule is PaymentSchedule.FIFTEENTH:
        return f"{start:%Y-%m}-{MID_MONTH_DAY}"
    return f"{start:%Y-%m}"


def resolve_billing_period(
    day: date | datetime | str,
    schedule: PaymentSchedule | str | None,
) -> BillingCycle:
    """Resolve the billing cycle containing a date.

    Args:
        day: Date to resolve (date, datetime or 'YYYY-MM-DD')
        schedule: "1st", "15th", or None for calendar months

    Returns:
        BillingCycle with label, start_date, end_date (exclusive) and key

    Raises:
        ValueError: If schedule is not a known payment schedule

    Examples:
        >>> resolve_billing_period(date(2024, 1, 10), "15th").start_date
        datetime.date(2023, 12, 15)
        >>> resolve_billing_period(date(2024, 1, 10), "15th").end_date
        datetime.date(2024, 1, 15)
    """
    target = _coerce_date(day)
    resolved = _coerce_schedule(schedule)

    if resolved is PaymentSchedule.FIFTEENTH:
        delta = 0 if target.day >= MID_MONTH_DAY else -1
        start_year, start_month = _add_months(target.year, target.month, delta)
        end_year, end_month = _add_months(start_year, start_month, 1)
        start = date(start_year, start_month, MID_MONTH_DAY)
        end = date(end_year, end_month, MID_MONTH_DAY)
        last = date(end_year, end_month, MID_MONTH_DAY - 1)
        label = f"{start:%b} {start.day} - {last:%b} {last.day}"
        return BillingCycle(
            label=label, start_date=start, end_date=end, key=period_key(start, resolved)
        )

    # "1st" and unset both bill by calendar month
    start = target.replace(day=1)
    end_year, end_month = _add_months(target.year, target.month, 1)
    end = date(end_year, end_month, 1)
    return BillingCycle(
        label=f"{start:%B %Y}",
        start_date=start,
        end_date=end,
        key=period_key(start, resolved),
    )


def current_billing_period(
    schedule: PaymentSchedule | str | None,
    today: date | None = None,
) -> BillingCycle:
    """Resolve the cycle containing today."""
    return resolve_billing_period(today or date.today(), schedule)


def group_entries_by_period(
    entries: Iterable[TimeEntry | dict],
    schedule: PaymentSchedule | str | None,
) -> list[BillingPeriodGroup]:
    """Group time entries by billing cycle.

    Entries are ordered by date within a group; groups are newest first.
    """
    groups: dict[str, BillingPeriodGroup] = {}

    for raw in entries:
        entry = raw if isinstance(raw, TimeEntry) else TimeEntry.model_validate(raw)
        cycle = resolve_billing_period(entry.date, schedule)
        group = groups.get(cycle.key)
        if group is None:
            group = BillingPeriodGroup(cycle=cycle)
            groups[cycle.key] = group
        group.entries.append(entry)

    for group in groups.values():
        group.entries.sort(key=lambda e: e.date)

    return sorted(groups.values(), key=lambda g: g.cycle.start_date, reverse=True)


def compute_period_breakdown(
    entries: Iterable[TimeEntry | dict],
    hours_allocated: float,
) -> PeriodBreakdown:
    """Split a cycle's hours into regular and overage.

    Entries are walked in date order; once the running total passes the
    allocation, that entry and every later one count as overage.
    """
    if hours_allocated < 0:
        raise ValueError("hours_allocated must not be negative")

    parsed = [e if isinstance(e, TimeEntry) else TimeEntry.model_validate(e) for e in entries]
    parsed.sort(key=lambda e: e.date)

    total = 0.0
    overage_ids: set[str] = set()
    for entry in parsed:
        total += entry.hours
        if total > hours_allocated:
            overage_ids.add(entry.id)

    return PeriodBreakdown(
        total_hours=total,
        regular_hours=min(total, hours_allocated),
        overage_hours=max(total - hours_allocated, 0),
        overage_entry_ids=overage_ids,
    )
