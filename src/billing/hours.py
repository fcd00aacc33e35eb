"""Retainer hour usage health."""

from datetime import date

from src.billing.periods import current_billing_period
from src.models.billing import HourStatus, HourStatusLevel, RetainerHealth
from src.models.company import CompanyRetainer, RetainerType

# Red once this many hours (or fewer) remain; takes precedence over yellow
CRITICAL_REMAINING_HOURS = 2
# Yellow once this share of the allocation is used
CAUTION_USAGE_RATIO = 0.75

STATUS_LABELS: dict[HourStatusLevel, str] = {
    HourStatusLevel.GREEN: "On Track",
    HourStatusLevel.YELLOW: "Caution",
    HourStatusLevel.RED: "Critical",
}


def classify_hour_usage(used: float, allocated: float) -> HourStatus:
    """Classify hour usage into a traffic-light status.

    An allocation of 0 means the retainer has no cap and is always green.
    The unclamped remaining value decides red, so going over the
    allocation is red even though remaining is reported as 0.

    Args:
        used: Hours used in the current cycle
        allocated: Hours allocated per cycle

    Returns:
        HourStatus with status, clamped remaining hours and percentage used

    Raises:
        ValueError: If either value is negative
    """
    if used < 0 or allocated < 0:
        raise ValueError("hours used and allocated must not be negative")

    if allocated == 0:
        status = HourStatusLevel.GREEN
        return HourStatus(
            status=status,
            remaining=0,
            percentage_used=0.0,
            label=STATUS_LABELS[status],
        )

    remaining = allocated - used
    percentage_used = used * 100 / allocated

    if remaining <= CRITICAL_REMAINING_HOURS:
        status = HourStatusLevel.RED
    elif used / allocated >= CAUTION_USAGE_RATIO:
        status = HourStatusLevel.YELLOW
    else:
        status = HourStatusLevel.GREEN

    return HourStatus(
        status=status,
        remaining=max(remaining, 0),
        percentage_used=round(percentage_used, 2),
        label=STATUS_LABELS[status],
    )


def assess_retainer(company: CompanyRetainer, today: date | None = None) -> RetainerHealth:
    """Current billing cycle and hour status for a company."""
    allocated = (
        0 if company.retainer_type is RetainerType.UNLIMITED else company.hours_allocated
    )
    return RetainerHealth(
        company_id=company.id,
        retainer_type=company.retainer_type,
        cycle=current_billing_period(company.payment_schedule, today=today),
        hours=classify_hour_usage(company.hours_used, allocated),
    )
