"""Canonical activity feed models.

Every heterogeneous source record (updates, file flags, notes, time
entries, task and project transitions, credentials) is normalized into
an immutable ActivityItem. Feed responses, requests and warnings are
defined here as well so the API layer can use them directly.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.config import settings


class ActivityType(str, Enum):
    """Closed set of activity types shown in the unified feed."""

    COMPANY_UPDATE = "company_update"
    CHANGE_REQUEST = "change_request"
    FILE_FLAG = "file_flag"
    PROJECT_BLOCKED = "project_blocked"
    DELIVERABLE_REVIEW = "deliverable_review"
    HOURS_LOGGED = "hours_logged"
    FILE_UPLOADED = "file_uploaded"
    CREDENTIAL_ADDED = "credential_added"
    NOTE_ADDED = "note_added"
    TASK_COMPLETED = "task_completed"
    PROJECT_COMPLETED = "project_completed"
    DELIVERABLE_APPROVED = "deliverable_approved"


class CallerRole(str, Enum):
    """Role of the user the feed is being built for."""

    ADMIN = "admin"
    TEAM = "team"
    CLIENT = "client"

    @property
    def audience(self) -> str:
        """Flag audience this role answers to ("team" or "client")."""
        return "client" if self is CallerRole.CLIENT else "team"


# Action items each role is expected to respond to
ROLE_ACTIONABLE_TYPES: dict[CallerRole, frozenset[ActivityType]] = {
    CallerRole.ADMIN: frozenset(
        {ActivityType.CHANGE_REQUEST, ActivityType.FILE_FLAG, ActivityType.PROJECT_BLOCKED}
    ),
    CallerRole.TEAM: frozenset(
        {ActivityType.CHANGE_REQUEST, ActivityType.FILE_FLAG, ActivityType.PROJECT_BLOCKED}
    ),
    CallerRole.CLIENT: frozenset({ActivityType.DELIVERABLE_REVIEW, ActivityType.FILE_FLAG}),
}


class Priority(str, Enum):
    """Project priority levels, most pressing first."""

    URGENT = "urgent"
    IMPORTANT = "important"
    NORMAL = "normal"
    QUEUED = "queued"


PRIORITY_ORDER: dict[Priority, int] = {
    Priority.URGENT: 0,
    Priority.IMPORTANT: 1,
    Priority.NORMAL: 2,
    Priority.QUEUED: 3,
}


class Actor(BaseModel):
    """User responsible for an activity."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="User ID")
    display_name: str = Field(description="Name shown in the feed")


class ActivityLink(BaseModel):
    """Navigation reference to the originating project or file."""

    model_config = ConfigDict(frozen=True)

    kind: str = Field(description="Target kind: project or file")
    id: str = Field(description="Target ID")
    label: str | None = Field(default=None, description="Project or file name")


class ItemState(BaseModel):
    """Source facts the classifier needs to decide on action items."""

    model_config = ConfigDict(frozen=True)

    resolved: bool | None = None
    flagged_for: str | None = None
    is_blocked: bool | None = None
    is_approved: bool | None = None


class ActivityItem(BaseModel):
    """One normalized event in the unified activity feed.

    Items are immutable once normalized. is_action_item is computed by
    the classifier and is never read back from a source.
    """

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: str = Field(description="Stable ID, unique within the feed")
    company_id: str = Field(description="Owning company")
    project_id: str | None = Field(default=None, description="Owning project")
    type: ActivityType = Field(description="Activity type")
    timestamp: datetime = Field(description="When the event happened (UTC)")
    actor: Actor | None = Field(default=None, description="Responsible user")
    summary: str = Field(description="Short human-readable description")
    detail: str | None = Field(default=None, description="Longer body text")
    priority: Priority = Field(default=Priority.NORMAL)
    state: ItemState = Field(default_factory=ItemState)
    is_action_item: bool = Field(default=False)
    link: ActivityLink | None = Field(default=None)


class FeedWarning(BaseModel):
    """Non-fatal problem encountered while building a feed."""

    code: str = Field(description="source_unavailable or malformed_record")
    source: ActivityType = Field(description="Source the problem came from")
    message: str = Field(description="Human-readable reason")
    record_id: str | None = Field(default=None, description="Dropped record ID")


class ActivityFeed(BaseModel):
    """A page of the merged activity feed."""

    items: list[ActivityItem] = Field(default_factory=list)
    has_more: bool = Field(
        default=False,
        description="True if filtered items exist beyond this page",
    )
    warnings: list[FeedWarning] = Field(default_factory=list)


class FeedRequest(BaseModel):
    """Parameters for a single activity feed request."""

    model_config = ConfigDict(frozen=True)

    company_id: str = Field(min_length=1)
    days_back: int = Field(default=90, ge=1, le=365)
    type_filter: tuple[ActivityType, ...] | None = Field(
        default=None,
        description="Allow-list of types; empty or None means all types",
    )
    limit: int = Field(default=50, ge=1)
    offset: int = Field(default=0, ge=0)

    @field_validator("limit")
    @classmethod
    def _cap_limit(cls, value: int) -> int:
        if value > settings.feed_max_limit:
            raise ValueError(f"limit must be at most {settings.feed_max_limit}")
        return value

    @property
    def allowed_types(self) -> frozenset[ActivityType]:
        """Types this request will return."""
        if not self.type_filter:
            return frozenset(ActivityType)
        return frozenset(self.type_filter)
