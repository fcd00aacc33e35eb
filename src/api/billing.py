"""Billing and retainer health API endpoints."""

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from src.adapters.base import CompanyDirectory
from src.billing.hours import assess_retainer, classify_hour_usage
from src.billing.periods import resolve_billing_period
from src.models.billing import BillingCycle, HourStatus, RetainerHealth

router = APIRouter(tags=["billing"])


def get_company_directory(request: Request) -> CompanyDirectory:
    """Get CompanyDirectory from app state."""
    directory = getattr(request.app.state, "company_directory", None)
    if directory is None:
        raise HTTPException(status_code=503, detail="CompanyDirectory not initialized")
    return directory


@router.get("/billing/period", response_model=BillingCycle)
async def get_billing_period(
    day: date = Query(alias="date", description="Date to resolve (YYYY-MM-DD)"),
    schedule: str | None = Query(default=None, description="Payment schedule: 1st or 15th"),
) -> BillingCycle:
    """Resolve the billing cycle containing a date."""
    try:
        return resolve_billing_period(day, schedule)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.get("/billing/hours", response_model=HourStatus)
async def get_hour_status(
    used: float = Query(ge=0, description="Hours used this cycle"),
    allocated: float = Query(ge=0, description="Hours allocated per cycle"),
) -> HourStatus:
    """Classify hour usage into green, yellow or red."""
    return classify_hour_usage(used, allocated)


@router.get("/companies/{company_id}/retainer", response_model=RetainerHealth)
async def get_retainer_health(
    company_id: str,
    directory: CompanyDirectory = Depends(get_company_directory),
) -> RetainerHealth:
    """Get the current billing cycle and hour status for a company."""
    company = await directory.get_company(company_id)
    if company is None:
        raise HTTPException(status_code=404, detail=f"Company {company_id} not found")
    return assess_retainer(company)
