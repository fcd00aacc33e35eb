"""Raw record shapes, one per activity source.

Each model lists the fields a source must provide for its records to be
normalized. Extra columns are ignored; a missing required field or an
unparseable value makes the record malformed.
"""

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, field_validator


class RawRecordBase(BaseModel):
    """Fields shared by every source record."""

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True, frozen=True)

    id: str
    company_id: str

    @field_validator("id", "company_id", mode="before")
    @classmethod
    def _coerce_id(cls, value):
        # UUID columns may come back as UUID objects or ints from some drivers
        if value is None:
            return value
        return str(value)

    @field_validator("*", mode="after")
    @classmethod
    def _assume_utc(cls, value):
        # Naive timestamps are stored as UTC
        if isinstance(value, datetime) and value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value


class CompanyUpdateRecord(RawRecordBase):
    content: str
    created_at: datetime
    author_id: str | None = None
    author_name: str | None = None


class ChangeRequestRecord(RawRecordBase):
    project_id: str
    project_name: str | None = None
    change_request_text: str
    change_request_submitted_at: datetime
    is_approved: bool | None = None
    change_request_resolved: bool | None = None
    requester_id: str | None = None
    requester_name: str | None = None
    priority: str | None = None


class FileFlagRecord(RawRecordBase):
    file_id: str
    file_name: str | None = None
    project_id: str | None = None
    flag_message: str
    flagged_for: str
    resolved: bool = False
    flagged_by: str | None = None
    flagged_by_name: str | None = None
    created_at: datetime


class BlockedProjectRecord(RawRecordBase):
    name: str
    blocked_reason: str | None = None
    is_blocked: bool = True
    updated_at: datetime
    assigned_to: str | None = None
    assignee_name: str | None = None
    priority: str | None = None


class DeliverableReviewRecord(RawRecordBase):
    project_id: str
    project_name: str | None = None
    content: str = ""
    is_approved: bool | None = None
    author_id: str | None = None
    author_name: str | None = None
    priority: str | None = None
    created_at: datetime


class TimeEntryRecord(RawRecordBase):
    project_id: str | None = None
    project_name: str | None = None
    user_id: str
    user_name: str | None = None
    hours: float
    description: str | None = None
    created_at: datetime


class FileUploadRecord(RawRecordBase):
    project_id: str | None = None
    name: str
    title: str | None = None
    uploaded_by: str | None = None
    uploader_name: str | None = None
    created_at: datetime


class CredentialRecord(RawRecordBase):
    label: str
    created_by: str | None = None
    creator_name: str | None = None
    created_at: datetime


class NoteRecord(RawRecordBase):
    category: str | None = None
    content: str
    created_by: str | None = None
    author_name: str | None = None
    created_at: datetime


class CompletedTaskRecord(RawRecordBase):
    project_id: str
    project_name: str | None = None
    title: str
    assigned_to: str | None = None
    assignee_name: str | None = None
    updated_at: datetime


class CompletedProjectRecord(RawRecordBase):
    name: str
    assigned_to: str | None = None
    assignee_name: str | None = None
    updated_at: datetime


class ApprovedDeliverableRecord(RawRecordBase):
    project_id: str
    project_name: str | None = None
    content: str = ""
    approved_by: str | None = None
    approver_name: str | None = None
    approved_at: datetime | None = None
    created_at: datetime

    @property
    def event_time(self) -> datetime:
        return self.approved_at or self.created_at
