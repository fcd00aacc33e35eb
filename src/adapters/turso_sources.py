"""Database-backed source adapters for the activity feed.

One TursoSourceAdapter per activity type, each running a single query
against the portal schema and returning rows newest first. Transient
connection failures are retried here with exponential backoff; the feed
service itself never retries.
"""

from datetime import UTC, datetime

import structlog
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from src.adapters.base import FetchWindow, RawRecord
from src.config import settings
from src.db.turso import TursoClient
from src.models.activity import ActivityType
from src.models.company import CompanyRetainer

logger = structlog.get_logger()

# Exceptions that are retriable (transient failures)
RETRIABLE_EXCEPTIONS = (
    ConnectionError,
    TimeoutError,
)

# Every query takes (company_id, window_start, window_end) and orders
# by its event time column, newest first.
SOURCE_QUERIES: dict[ActivityType, str] = {
    ActivityType.COMPANY_UPDATE: """
        SELECT cu.id, cu.company_id, cu.content, cu.created_at,
               cu.author_id, p.full_name AS author_name
        FROM company_updates cu
        LEFT JOIN profiles p ON p.id = cu.author_id
        WHERE cu.company_id = ?
          AND datetime(cu.created_at) BETWEEN datetime(?) AND datetime(?)
        ORDER BY datetime(cu.created_at) DESC
    """,
    ActivityType.CHANGE_REQUEST: """
        SELECT u.id, pr.company_id, u.project_id, pr.name AS project_name,
               u.change_request_text, u.change_request_submitted_at,
               u.is_approved, pr.priority
        FROM updates u
        JOIN projects pr ON pr.id = u.project_id
        WHERE pr.company_id = ?
          AND u.change_request_text IS NOT NULL
          AND u.change_request_submitted_at IS NOT NULL
          AND COALESCE(u.change_request_draft, 0) = 0
          AND datetime(u.change_request_submitted_at)
              BETWEEN datetime(?) AND datetime(?)
        ORDER BY datetime(u.change_request_submitted_at) DESC
    """,
    ActivityType.FILE_FLAG: """
        SELECT ff.id, f.company_id, ff.file_id, COALESCE(f.title, f.name) AS file_name,
               f.project_id, ff.flag_message, ff.flagged_for, ff.resolved,
               ff.flagged_by, p.full_name AS flagged_by_name, ff.created_at
        FROM file_flags ff
        JOIN files f ON f.id = ff.file_id
        LEFT JOIN profiles p ON p.id = ff.flagged_by
        WHERE f.company_id = ?
          AND COALESCE(ff.resolved, 0) = 0
          AND datetime(ff.created_at) BETWEEN datetime(?) AND datetime(?)
        ORDER BY datetime(ff.created_at) DESC
    """,
    ActivityType.PROJECT_BLOCKED: """
        SELECT pr.id, pr.company_id, pr.name, pr.blocked_reason, pr.is_blocked,
               pr.updated_at, pr.assigned_to, p.full_name AS assignee_name,
               pr.priority
        FROM projects pr
        LEFT JOIN profiles p ON p.id = pr.assigned_to
        WHERE pr.company_id = ?
          AND pr.is_blocked = 1
          AND datetime(pr.updated_at) BETWEEN datetime(?) AND datetime(?)
        ORDER BY datetime(pr.updated_at) DESC
    """,
    ActivityType.DELIVERABLE_REVIEW: """
        SELECT u.id, pr.company_id, u.project_id, pr.name AS project_name,
               u.content, u.is_approved, u.author_id, p.full_name AS author_name,
               pr.priority, u.created_at
        FROM updates u
        JOIN projects pr ON pr.id = u.project_id
        LEFT JOIN profiles p ON p.id = u.author_id
        WHERE pr.company_id = ?
          AND u.is_deliverable = 1
          AND u.is_approved IS NULL
          AND datetime(u.created_at) BETWEEN datetime(?) AND datetime(?)
        ORDER BY datetime(u.created_at) DESC
    """,
    ActivityType.HOURS_LOGGED: """
        SELECT te.id, te.company_id, te.project_id, pr.name AS project_name,
               te.user_id, p.full_name AS user_name, te.hours, te.description,
               te.created_at
        FROM time_entries te
        LEFT JOIN projects pr ON pr.id = te.project_id
        LEFT JOIN profiles p ON p.id = te.user_id
        WHERE te.company_id = ?
          AND datetime(te.created_at) BETWEEN datetime(?) AND datetime(?)
        ORDER BY datetime(te.created_at) DESC
    """,
    ActivityType.FILE_UPLOADED: """
        SELECT f.id, f.company_id, f.project_id, f.name, f.title,
               f.uploaded_by, p.full_name AS uploader_name, f.created_at
        FROM files f
        LEFT JOIN profiles p ON p.id = f.uploaded_by
        WHERE f.company_id = ?
          AND datetime(f.created_at) BETWEEN datetime(?) AND datetime(?)
        ORDER BY datetime(f.created_at) DESC
    """,
    ActivityType.CREDENTIAL_ADDED: """
        SELECT c.id, c.company_id, c.label, c.created_by,
               p.full_name AS creator_name, c.created_at
        FROM company_credentials c
        LEFT JOIN profiles p ON p.id = c.created_by
        WHERE c.company_id = ?
          AND datetime(c.created_at) BETWEEN datetime(?) AND datetime(?)
        ORDER BY datetime(c.created_at) DESC
    """,
    ActivityType.NOTE_ADDED: """
        SELECT n.id, n.company_id, n.category, n.content, n.created_by,
               p.full_name AS author_name, n.created_at
        FROM client_notes n
        LEFT JOIN profiles p ON p.id = n.created_by
        WHERE n.company_id = ?
          AND datetime(n.created_at) BETWEEN datetime(?) AND datetime(?)
        ORDER BY datetime(n.created_at) DESC
    """,
    ActivityType.TASK_COMPLETED: """
        SELECT t.id, pr.company_id, t.project_id, pr.name AS project_name,
               t.title, t.assigned_to, p.full_name AS assignee_name, t.updated_at
        FROM tasks t
        JOIN projects pr ON pr.id = t.project_id
        LEFT JOIN profiles p ON p.id = t.assigned_to
        WHERE pr.company_id = ?
          AND t.status = 'done'
          AND datetime(t.updated_at) BETWEEN datetime(?) AND datetime(?)
        ORDER BY datetime(t.updated_at) DESC
    """,
    ActivityType.PROJECT_COMPLETED: """
        SELECT pr.id, pr.company_id, pr.name, pr.assigned_to,
               p.full_name AS assignee_name, pr.updated_at
        FROM projects pr
        LEFT JOIN profiles p ON p.id = pr.assigned_to
        WHERE pr.company_id = ?
          AND pr.status = 'complete'
          AND datetime(pr.updated_at) BETWEEN datetime(?) AND datetime(?)
        ORDER BY datetime(pr.updated_at) DESC
    """,
    ActivityType.DELIVERABLE_APPROVED: """
        SELECT u.id, pr.company_id, u.project_id, pr.name AS project_name,
               u.content, u.created_at
        FROM updates u
        JOIN projects pr ON pr.id = u.project_id
        WHERE pr.company_id = ?
          AND u.is_deliverable = 1
          AND u.is_approved = 1
          AND datetime(u.created_at) BETWEEN datetime(?) AND datetime(?)
        ORDER BY datetime(u.created_at) DESC
    """,
}

COMPANY_QUERY = """
    SELECT id, name, hours_allocated, hours_used, payment_schedule, retainer_type
    FROM companies
    WHERE id = ?
"""


def _sql_timestamp(moment: datetime) -> str:
    # SQLite datetime() needs a four-digit year
    return moment.astimezone(UTC).replace(tzinfo=None).isoformat(sep=" ", timespec="seconds")


class TursoSourceAdapter:
    """Reads one kind of portal record from the database."""

    def __init__(
        self,
        db: TursoClient,
        activity_type: ActivityType,
        retry_attempts: int | None = None,
    ):
        """Initialize adapter for one activity type.

        Args:
            db: Connected TursoClient
            activity_type: Activity type this adapter serves
            retry_attempts: Attempts for transient failures (default from settings)
        """
        self._db = db
        self.activity_type = activity_type
        self._query = SOURCE_QUERIES[activity_type]
        self._attempts = retry_attempts or settings.adapter_retry_attempts

    async def fetch(self, company_id: str, window: FetchWindow) -> list[RawRecord]:
        """Fetch records for a company within the window, newest first."""
        params = [company_id, _sql_timestamp(window.start), _sql_timestamp(window.end)]

        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self._attempts),
            wait=wait_exponential(multiplier=0.2, min=0.2, max=2),
            retry=retry_if_exception_type(RETRIABLE_EXCEPTIONS),
            before_sleep=before_sleep_log(logger, log_level=20),  # INFO level
            reraise=True,
        ):
            with attempt:
                rows = await self._db.fetch_dicts(self._query, params)

        logger.debug(
            "source rows fetched",
            source=self.activity_type.value,
            company_id=company_id,
            rows=len(rows),
        )
        return rows


class TursoCompanyDirectory:
    """Looks up companies and their retainer configuration."""

    def __init__(self, db: TursoClient):
        self._db = db

    async def get_company(self, company_id: str) -> CompanyRetainer | None:
        rows = await self._db.fetch_dicts(COMPANY_QUERY, [company_id])
        if not rows:
            return None
        return CompanyRetainer.model_validate(rows[0])


def build_turso_sources(
    db: TursoClient,
    retry_attempts: int | None = None,
) -> list[TursoSourceAdapter]:
    """Create one adapter per activity type."""
    return [
        TursoSourceAdapter(db, activity_type, retry_attempts=retry_attempts)
        for activity_type in ActivityType
    ]
