"""Company retainer state consumed by billing logic."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PaymentSchedule(str, Enum):
    """Day of month a retainer's billing cycle starts."""

    FIRST = "1st"
    FIFTEENTH = "15th"


class RetainerType(str, Enum):
    """Client billing arrangement."""

    UNLIMITED = "unlimited"
    HOURLY = "hourly"
    ONE_TIME = "one_time"


class CompanyRetainer(BaseModel):
    """Read-only view of a company's retainer configuration."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: str = Field(description="Company ID")
    name: str | None = Field(default=None, description="Company name")
    hours_allocated: float = Field(default=0, ge=0, description="Monthly hours")
    hours_used: float = Field(default=0, ge=0, description="Hours used this cycle")
    payment_schedule: PaymentSchedule | None = Field(default=None)
    retainer_type: RetainerType = Field(default=RetainerType.UNLIMITED)

    @field_validator("hours_allocated", "hours_used", mode="before")
    @classmethod
    def _null_hours(cls, value):
        return 0 if value is None else value

    @field_validator("payment_schedule", mode="before")
    @classmethod
    def _blank_schedule(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("retainer_type", mode="before")
    @classmethod
    def _legacy_retainer_type(cls, value):
        # Older rows store the capped bucket plan as "retainer"
        if value is None:
            return RetainerType.UNLIMITED
        if value == "retainer":
            return RetainerType.HOURLY
        return value
