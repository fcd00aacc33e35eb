"""Normalizer for heterogeneous source records.

Maps each source's native record shape into a canonical ActivityItem.
Normalization is total: every raw record either becomes exactly one
ActivityItem or is rejected with a MalformedRecordError that names the
reason. Partially valid records never leak into the feed.
"""

from collections.abc import Callable, Iterable
from typing import Any

import structlog
from pydantic import ValidationError

from src.activity.errors import MalformedRecordError
from src.activity.records import (
    ApprovedDeliverableRecord,
    BlockedProjectRecord,
    ChangeRequestRecord,
    CompanyUpdateRecord,
    CompletedProjectRecord,
    CompletedTaskRecord,
    CredentialRecord,
    DeliverableReviewRecord,
    FileFlagRecord,
    FileUploadRecord,
    NoteRecord,
    RawRecordBase,
    TimeEntryRecord,
)
from src.models.activity import (
    ActivityItem,
    ActivityLink,
    ActivityType,
    Actor,
    ItemState,
    Priority,
)

logger = structlog.get_logger()

DEFAULT_ACTOR_NAME = "Team member"
SUMMARY_MAX_LENGTH = 140


def _actor(user_id: str | None, name: str | None) -> Actor | None:
    if not user_id:
        return None
    return Actor(id=user_id, display_name=name or DEFAULT_ACTOR_NAME)


def _project_link(project_id: str | None, name: str | None = None) -> ActivityLink | None:
    if not project_id:
        return None
    return ActivityLink(kind="project", id=project_id, label=name)


def _priority(raw: str | None, default: Priority = Priority.NORMAL) -> Priority:
    if not raw:
        return default
    try:
        return Priority(raw.lower())
    except ValueError:
        return default


def _truncate(text: str, limit: int = SUMMARY_MAX_LENGTH) -> str:
    text = " ".join(text.split())
    if len(text) <= limit:
        return text
    return text[: limit - 3].rstrip() + "..."


def _company_update(r: CompanyUpdateRecord) -> ActivityItem:
    actor = _actor(r.author_id, r.author_name)
    name = actor.display_name if actor else DEFAULT_ACTOR_NAME
    return ActivityItem(
        id=f"update-{r.id}",
        company_id=r.company_id,
        type=ActivityType.COMPANY_UPDATE,
        timestamp=r.created_at,
        actor=actor,
        summary=f"{name} posted an update",
        detail=r.content,
    )


def _change_request(r: ChangeRequestRecord) -> ActivityItem:
    resolved = bool(r.change_request_resolved) or r.is_approved is True
    return ActivityItem(
        id=f"change-{r.id}",
        company_id=r.company_id,
        project_id=r.project_id,
        type=ActivityType.CHANGE_REQUEST,
        timestamp=r.change_request_submitted_at,
        actor=_actor(r.requester_id, r.requester_name),
        summary="Change request" + (f" on {r.project_name}" if r.project_name else ""),
        detail=r.change_request_text,
        priority=_priority(r.priority),
        state=ItemState(resolved=resolved, is_approved=r.is_approved),
        link=_project_link(r.project_id, r.project_name),
    )


def _file_flag(r: FileFlagRecord) -> ActivityItem:
    return ActivityItem(
        id=f"flag-{r.id}",
        company_id=r.company_id,
        project_id=r.project_id,
        type=ActivityType.FILE_FLAG,
        timestamp=r.created_at,
        actor=_actor(r.flagged_by, r.flagged_by_name),
        summary="File flagged" + (f": {r.file_name}" if r.file_name else ""),
        detail=r.flag_message,
        state=ItemState(resolved=r.resolved, flagged_for=r.flagged_for.lower()),
        link=ActivityLink(kind="file", id=r.file_id, label=r.file_name),
    )


def _project_blocked(r: BlockedProjectRecord) -> ActivityItem:
    return ActivityItem(
        id=f"blocked-{r.id}",
        company_id=r.company_id,
        project_id=r.id,
        type=ActivityType.PROJECT_BLOCKED,
        timestamp=r.updated_at,
        actor=_actor(r.assigned_to, r.assignee_name),
        summary=f"Project blocked: {r.name}",
        detail=r.blocked_reason or "This project is currently blocked",
        priority=_priority(r.priority, default=Priority.URGENT),
        state=ItemState(is_blocked=r.is_blocked),
        link=_project_link(r.id, r.name),
    )


def _deliverable_review(r: DeliverableReviewRecord) -> ActivityItem:
    return ActivityItem(
        id=f"deliverable-{r.id}",
        company_id=r.company_id,
        project_id=r.project_id,
        type=ActivityType.DELIVERABLE_REVIEW,
        timestamp=r.created_at,
        actor=_actor(r.author_id, r.author_name),
        summary="Deliverable ready for review"
        + (f" on {r.project_name}" if r.project_name else ""),
        detail=r.content or None,
        priority=_priority(r.priority),
        state=ItemState(is_approved=r.is_approved),
        link=_project_link(r.project_id, r.project_name),
    )


def _hours_logged(r: TimeEntryRecord) -> ActivityItem:
    if r.hours < 0:
        raise ValueError("hours must not be negative")
    return ActivityItem(
        id=f"time-{r.id}",
        company_id=r.company_id,
        project_id=r.project_id,
        type=ActivityType.HOURS_LOGGED,
        timestamp=r.created_at,
        actor=_actor(r.user_id, r.user_name),
        summary=f"{r.hours:g} hours logged"
        + (f" on {r.project_name}" if r.project_name else ""),
        detail=r.description,
        link=_project_link(r.project_id, r.project_name),
    )


def _file_uploaded(r: FileUploadRecord) -> ActivityItem:
    name = r.title or r.name
    return ActivityItem(
        id=f"file-{r.id}",
        company_id=r.company_id,
        project_id=r.project_id,
        type=ActivityType.FILE_UPLOADED,
        timestamp=r.created_at,
        actor=_actor(r.uploaded_by, r.uploader_name),
        summary=f"File uploaded: {name}",
        link=ActivityLink(kind="file", id=r.id, label=name),
    )


def _credential_added(r: CredentialRecord) -> ActivityItem:
    # The secret value is never part of the record model
    return ActivityItem(
        id=f"credential-{r.id}",
        company_id=r.company_id,
        type=ActivityType.CREDENTIAL_ADDED,
        timestamp=r.created_at,
        actor=_actor(r.created_by, r.creator_name),
        summary=f"Credential added: {r.label}",
    )


def _note_added(r: NoteRecord) -> ActivityItem:
    return ActivityItem(
        id=f"note-{r.id}",
        company_id=r.company_id,
        type=ActivityType.NOTE_ADDED,
        timestamp=r.created_at,
        actor=_actor(r.created_by, r.author_name),
        summary=f"Note added: {r.category}" if r.category else _truncate(r.content),
        detail=r.content,
    )


def _task_completed(r: CompletedTaskRecord) -> ActivityItem:
    return ActivityItem(
        id=f"task-done-{r.id}",
        company_id=r.company_id,
        project_id=r.project_id,
        type=ActivityType.TASK_COMPLETED,
        timestamp=r.updated_at,
        actor=_actor(r.assigned_to, r.assignee_name),
        summary=f"Task completed: {_truncate(r.title)}",
        link=_project_link(r.project_id, r.project_name),
    )


def _project_completed(r: CompletedProjectRecord) -> ActivityItem:
    return ActivityItem(
        id=f"project-done-{r.id}",
        company_id=r.company_id,
        project_id=r.id,
        type=ActivityType.PROJECT_COMPLETED,
        timestamp=r.updated_at,
        actor=_actor(r.assigned_to, r.assignee_name),
        summary=f"Project completed: {r.name}",
        link=_project_link(r.id, r.name),
    )


def _deliverable_approved(r: ApprovedDeliverableRecord) -> ActivityItem:
    return ActivityItem(
        id=f"approved-{r.id}",
        company_id=r.company_id,
        project_id=r.project_id,
        type=ActivityType.DELIVERABLE_APPROVED,
        timestamp=r.event_time,
        actor=_actor(r.approved_by, r.approver_name),
        summary="Deliverable approved"
        + (f" on {r.project_name}" if r.project_name else ""),
        detail=r.content or None,
        state=ItemState(is_approved=True),
        link=_project_link(r.project_id, r.project_name),
    )


_MAPPERS: dict[ActivityType, tuple[type[RawRecordBase], Callable[[Any], ActivityItem]]] = {
    ActivityType.COMPANY_UPDATE: (CompanyUpdateRecord, _company_update),
    ActivityType.CHANGE_REQUEST: (ChangeRequestRecord, _change_request),
    ActivityType.FILE_FLAG: (FileFlagRecord, _file_flag),
    ActivityType.PROJECT_BLOCKED: (BlockedProjectRecord, _project_blocked),
    ActivityType.DELIVERABLE_REVIEW: (DeliverableReviewRecord, _deliverable_review),
    ActivityType.HOURS_LOGGED: (TimeEntryRecord, _hours_logged),
    ActivityType.FILE_UPLOADED: (FileUploadRecord, _file_uploaded),
    ActivityType.CREDENTIAL_ADDED: (CredentialRecord, _credential_added),
    ActivityType.NOTE_ADDED: (NoteRecord, _note_added),
    ActivityType.TASK_COMPLETED: (CompletedTaskRecord, _task_completed),
    ActivityType.PROJECT_COMPLETED: (CompletedProjectRecord, _project_completed),
    ActivityType.DELIVERABLE_APPROVED: (ApprovedDeliverableRecord, _deliverable_approved),
}

_missing = set(ActivityType) - set(_MAPPERS)
if _missing:
    raise RuntimeError(f"No normalizer for activity types: {sorted(t.value for t in _missing)}")


def _describe_validation_error(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        field = ".".join(str(p) for p in err.get("loc", ())) or "record"
        parts.append(f"{field}: {err.get('msg', 'invalid')}")
    return "; ".join(parts)


def normalize_record(activity_type: ActivityType, raw: dict[str, Any]) -> ActivityItem:
    """Normalize one raw record into an ActivityItem.

    Args:
        activity_type: Activity type of the source the record came from
        raw: Record as returned by the source adapter

    Returns:
        Normalized, immutable ActivityItem (is_action_item is False)

    Raises:
        MalformedRecordError: If required fields are missing or invalid
    """
    model, mapper = _MAPPERS[activity_type]

    if not isinstance(raw, dict):
        raise MalformedRecordError(activity_type, "record is not a mapping")

    record_id = str(raw["id"]) if raw.get("id") is not None else None

    try:
        record = model.model_validate(raw)
        return mapper(record)
    except ValidationError as e:
        raise MalformedRecordError(
            activity_type, _describe_validation_error(e), record_id
        ) from e
    except ValueError as e:
        raise MalformedRecordError(activity_type, str(e), record_id) from e


def normalize_records(
    activity_type: ActivityType,
    records: Iterable[dict[str, Any]],
) -> tuple[list[ActivityItem], list[MalformedRecordError]]:
    """Normalize a source's result set, dropping malformed records.

    Args:
        activity_type: Activity type of the source
        records: Raw records in source order

    Returns:
        Tuple of (items in source order, errors for dropped records)
    """
    items: list[ActivityItem] = []
    errors: list[MalformedRecordError] = []

    for raw in records:
        try:
            items.append(normalize_record(activity_type, raw))
        except MalformedRecordError as e:
            logger.warning(
                "dropping malformed record",
                source=activity_type.value,
                record_id=e.record_id,
                reason=e.reason,
            )
            errors.append(e)

    return items, errors
