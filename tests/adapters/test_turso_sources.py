"""Tests for database-backed source adapters."""

from datetime import UTC, datetime
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.activity.feed_service import ActivityFeedService
from src.activity.normalizer import normalize_records
from src.adapters.base import CompanyDirectory, FetchWindow, SourceAdapter
from src.adapters.turso_sources import (
    SOURCE_QUERIES,
    TursoCompanyDirectory,
    TursoSourceAdapter,
    build_turso_sources,
)
from src.db.turso import TursoClient
from src.models.activity import ActivityType, CallerRole
from src.models.company import PaymentSchedule, RetainerType

WINDOW = FetchWindow(
    start=datetime(2024, 1, 1, tzinfo=UTC),
    end=datetime(2024, 1, 31, tzinfo=UTC),
)

SCHEMA = [
    """CREATE TABLE companies (
        id TEXT PRIMARY KEY, name TEXT, hours_allocated REAL, hours_used REAL,
        payment_schedule TEXT, retainer_type TEXT
    )""",
    "CREATE TABLE profiles (id TEXT PRIMARY KEY, full_name TEXT)",
    """CREATE TABLE client_notes (
        id TEXT PRIMARY KEY, company_id TEXT, category TEXT, content TEXT,
        created_by TEXT, created_at TEXT
    )""",
    """CREATE TABLE files (
        id TEXT PRIMARY KEY, company_id TEXT, project_id TEXT, name TEXT,
        title TEXT, uploaded_by TEXT, created_at TEXT
    )""",
    """CREATE TABLE file_flags (
        id TEXT PRIMARY KEY, file_id TEXT, flag_message TEXT, flagged_for TEXT,
        resolved INTEGER, flagged_by TEXT, created_at TEXT
    )""",
    """CREATE TABLE company_credentials (
        id TEXT PRIMARY KEY, company_id TEXT, label TEXT, value TEXT,
        created_by TEXT, created_at TEXT
    )""",
    """CREATE TABLE projects (
        id TEXT PRIMARY KEY, company_id TEXT, name TEXT, blocked_reason TEXT,
        is_blocked INTEGER, updated_at TEXT, assigned_to TEXT, priority TEXT,
        status TEXT
    )""",
]

SEED = [
    """INSERT INTO companies VALUES
        ('c1', 'Acme Co', 40, 31, '15th', 'retainer'),
        ('c2', 'Other Co', NULL, NULL, '', NULL)""",
    "INSERT INTO profiles VALUES ('u1', 'Dana Lee')",
    """INSERT INTO client_notes VALUES
        ('n1', 'c1', 'general', 'Old note', 'u1', '2024-01-05 10:00:00'),
        ('n2', 'c1', 'general', 'New note', 'u1', '2024-01-20 10:00:00'),
        ('n3', 'c2', 'general', 'Other company', 'u1', '2024-01-21 10:00:00'),
        ('n4', 'c1', 'general', 'Too old', 'u1', '2023-11-01 10:00:00')""",
    """INSERT INTO files VALUES
        ('f1', 'c1', 'p1', 'logo.png', 'Logo', 'u1', '2024-01-02 09:00:00')""",
    """INSERT INTO file_flags VALUES
        ('ff1', 'f1', 'Wrong colors', 'team', 0, 'u1', '2024-01-03 09:00:00'),
        ('ff2', 'f1', 'Fixed already', 'team', 1, 'u1', '2024-01-04 09:00:00')""",
    """INSERT INTO company_credentials VALUES
        ('k1', 'c1', 'FTP', 'hunter2', 'u1', '2024-01-06 09:00:00')""",
    """INSERT INTO projects VALUES
        ('p9', 'c1', 'Migration', 'Waiting on DNS', 1, '2024-01-01 08:00:00',
         'u1', NULL, 'active')""",
]


@pytest.fixture
async def db_client(tmp_path: Path):
    """Create a temp file database seeded with portal records."""
    db_path = tmp_path / "test_portal.db"
    client = TursoClient(url=f"file:{db_path}")
    await client.connect()
    for statement in SCHEMA + SEED:
        await client.execute(statement)
    yield client
    await client.close()


def test_every_type_has_a_query():
    assert set(SOURCE_QUERIES) == set(ActivityType)


def test_build_sources_covers_every_type():
    sources = build_turso_sources(MagicMock())

    assert [s.activity_type for s in sources] == list(ActivityType)
    assert all(isinstance(s, SourceAdapter) for s in sources)


@pytest.mark.asyncio
async def test_notes_scoped_to_company_and_window(db_client: TursoClient):
    """Should return only this company's notes inside the window, newest first."""
    adapter = TursoSourceAdapter(db_client, ActivityType.NOTE_ADDED)

    rows = await adapter.fetch("c1", WINDOW)

    assert [r["id"] for r in rows] == ["n2", "n1"]
    assert rows[0]["author_name"] == "Dana Lee"


@pytest.mark.asyncio
async def test_rows_normalize_cleanly(db_client: TursoClient):
    """Rows produced by the queries satisfy the record shapes."""
    adapter = TursoSourceAdapter(db_client, ActivityType.FILE_FLAG)

    rows = await adapter.fetch("c1", WINDOW)
    items, errors = normalize_records(ActivityType.FILE_FLAG, rows)

    assert errors == []
    assert [i.id for i in items] == ["flag-ff1"]
    assert items[0].link.label == "Logo"
    assert items[0].actor.display_name == "Dana Lee"


@pytest.mark.asyncio
async def test_credentials_never_select_value(db_client: TursoClient):
    adapter = TursoSourceAdapter(db_client, ActivityType.CREDENTIAL_ADDED)

    rows = await adapter.fetch("c1", WINDOW)

    assert len(rows) == 1
    assert "value" not in rows[0]


@pytest.mark.asyncio
async def test_retries_transient_failures():
    """Should retry connection errors and return the eventual result."""
    db = MagicMock()
    db.fetch_dicts = AsyncMock(side_effect=[ConnectionError("reset"), [{"id": "n1"}]])
    adapter = TursoSourceAdapter(db, ActivityType.NOTE_ADDED, retry_attempts=2)

    rows = await adapter.fetch("c1", WINDOW)

    assert rows == [{"id": "n1"}]
    assert db.fetch_dicts.await_count == 2


@pytest.mark.asyncio
async def test_gives_up_after_attempts():
    """Should re-raise once attempts are exhausted."""
    db = MagicMock()
    db.fetch_dicts = AsyncMock(side_effect=ConnectionError("down"))
    adapter = TursoSourceAdapter(db, ActivityType.NOTE_ADDED, retry_attempts=2)

    with pytest.raises(ConnectionError):
        await adapter.fetch("c1", WINDOW)
    assert db.fetch_dicts.await_count == 2


@pytest.mark.asyncio
async def test_does_not_retry_query_errors():
    """Non-transient errors propagate immediately."""
    db = MagicMock()
    db.fetch_dicts = AsyncMock(side_effect=ValueError("bad sql"))
    adapter = TursoSourceAdapter(db, ActivityType.NOTE_ADDED, retry_attempts=3)

    with pytest.raises(ValueError):
        await adapter.fetch("c1", WINDOW)
    assert db.fetch_dicts.await_count == 1


@pytest.mark.asyncio
async def test_long_blocked_project_is_still_an_action_item(db_client: TursoClient):
    """Action items reach back past any feed window."""
    service = ActivityFeedService(
        TursoCompanyDirectory(db_client),
        [TursoSourceAdapter(db_client, ActivityType.PROJECT_BLOCKED)],
    )

    items, warnings = await service.get_action_items(
        "c1", CallerRole.TEAM, now=datetime(2024, 6, 1, tzinfo=UTC)
    )

    assert warnings == []
    assert [i.id for i in items] == ["blocked-p9"]
    assert items[0].detail == "Waiting on DNS"


class TestTursoCompanyDirectory:
    """Tests for TursoCompanyDirectory."""

    @pytest.mark.asyncio
    async def test_known_company(self, db_client: TursoClient):
        directory = TursoCompanyDirectory(db_client)

        company = await directory.get_company("c1")

        assert isinstance(directory, CompanyDirectory)
        assert company is not None
        assert company.hours_allocated == 40
        assert company.payment_schedule is PaymentSchedule.FIFTEENTH
        assert company.retainer_type is RetainerType.HOURLY

    @pytest.mark.asyncio
    async def test_null_columns_use_defaults(self, db_client: TursoClient):
        company = await TursoCompanyDirectory(db_client).get_company("c2")

        assert company.hours_allocated == 0
        assert company.payment_schedule is None
        assert company.retainer_type is RetainerType.UNLIMITED

    @pytest.mark.asyncio
    async def test_unknown_company(self, db_client: TursoClient):
        assert await TursoCompanyDirectory(db_client).get_company("nope") is None
