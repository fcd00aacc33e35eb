"""FastAPI application entry point."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from src.activity.cache import FeedCache
from src.activity.feed_service import ActivityFeedService
from src.adapters.turso_sources import TursoCompanyDirectory, build_turso_sources
from src.api.router import api_router
from src.config import settings
from src.db.turso import TursoClient

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def _initialize_feed_service(app: FastAPI, db: TursoClient) -> None:
    """Wire ActivityFeedService with database-backed adapters.

    One source adapter per activity type; the company directory doubles
    as the retainer lookup for billing endpoints.
    """
    company_directory = TursoCompanyDirectory(db)
    sources = build_turso_sources(db)

    app.state.company_directory = company_directory
    app.state.feed_service = ActivityFeedService(
        company_directory=company_directory,
        sources=sources,
        cache=FeedCache(ttl_seconds=settings.feed_cache_ttl_seconds),
        default_timeout=settings.adapter_timeout_seconds,
    )
    logger.info("ActivityFeedService initialized with %d sources", len(sources))


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan management.

    Startup:
    - Initialize database connection
    - Wire source adapters and the activity feed service

    Shutdown:
    - Close database connection
    """
    logger.info("Starting %s...", settings.app_name)

    db = TursoClient()
    await db.connect()
    app.state.db = db
    logger.info("Database connected: %s", db.url)

    _initialize_feed_service(app, db)

    yield

    logger.info("Shutting down %s...", settings.app_name)
    await db.close()


app = FastAPI(
    title=settings.app_name,
    description="Activity feed and retainer health for the agency portal",
    version=settings.app_version,
    lifespan=lifespan,
)

app.include_router(api_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
