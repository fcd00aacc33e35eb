"""Pytest configuration and fixtures."""

from collections.abc import AsyncIterator, Callable
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient

from src.activity.feed_service import ActivityFeedService
from src.db.turso import TursoClient
from src.main import app
from src.models.activity import ActivityType
from src.models.company import CompanyRetainer, PaymentSchedule, RetainerType


@pytest.fixture
def company() -> CompanyRetainer:
    """A capped retainer billed on the 15th."""
    return CompanyRetainer(
        id="company-1",
        name="Acme Co",
        hours_allocated=40,
        hours_used=31,
        payment_schedule=PaymentSchedule.FIFTEENTH,
        retainer_type=RetainerType.HOURLY,
    )


@pytest.fixture
def company_directory(company: CompanyRetainer) -> MagicMock:
    """Directory that only knows the `company` fixture."""
    directory = MagicMock()
    directory.get_company = AsyncMock(
        side_effect=lambda company_id: company if company_id == company.id else None
    )
    return directory


@pytest.fixture
def make_source() -> Callable[..., MagicMock]:
    """Factory for mock source adapters."""

    def _make(
        activity_type: ActivityType,
        records: list[dict] | None = None,
        error: BaseException | None = None,
    ) -> MagicMock:
        adapter = MagicMock()
        adapter.activity_type = activity_type
        if error is not None:
            adapter.fetch = AsyncMock(side_effect=error)
        else:
            adapter.fetch = AsyncMock(return_value=list(records or []))
        return adapter

    return _make


@pytest.fixture
async def client(
    tmp_path: Path,
    company_directory: MagicMock,
    make_source: Callable[..., MagicMock],
) -> AsyncIterator[AsyncClient]:
    """Create async test client for FastAPI app with database."""
    db_path = tmp_path / "test_api.db"
    db = TursoClient(url=f"file:{db_path}")
    await db.connect()

    app.state.db = db
    app.state.company_directory = company_directory
    app.state.feed_service = ActivityFeedService(
        company_directory=company_directory,
        sources=[make_source(t) for t in ActivityType],
    )

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    await db.close()
    del app.state.db
    del app.state.company_directory
    del app.state.feed_service
