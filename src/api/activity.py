"""Activity feed API endpoints.

Provides the merged activity feed and the action items view for a
company. The caller's role is passed explicitly; access scoping is done
upstream before requests reach this service.
"""

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel, Field

from src.activity.errors import InvalidCompanyError, InvalidFilterError
from src.activity.feed_service import ActivityFeedService, parse_type_filter
from src.config import settings
from src.models.activity import (
    ActivityFeed,
    ActivityItem,
    CallerRole,
    FeedRequest,
    FeedWarning,
)

router = APIRouter(prefix="/companies", tags=["activity"])


class ActionItemsResponse(BaseModel):
    """Response for the action items endpoint."""

    company_id: str = Field(description="Company the items belong to")
    role: CallerRole = Field(description="Role the items were classified for")
    items: list[ActivityItem] = Field(default_factory=list)
    warnings: list[FeedWarning] = Field(default_factory=list)


def get_feed_service(request: Request) -> ActivityFeedService:
    """Get ActivityFeedService from app state."""
    service = getattr(request.app.state, "feed_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="ActivityFeedService not initialized")
    return service


def _split_types(types: list[str] | None) -> list[str] | None:
    # Accept both ?types=a&types=b and ?types=a,b
    if not types:
        return None
    return [name for value in types for name in value.split(",")]


@router.get("/{company_id}/activity", response_model=ActivityFeed)
async def get_activity_feed(
    company_id: str,
    role: CallerRole = Query(default=CallerRole.TEAM, description="Caller role"),
    days_back: int = Query(
        default=settings.feed_default_days_back, ge=1, le=365, description="Lookback"
    ),
    types: list[str] | None = Query(default=None, description="Activity type allow-list"),
    limit: int = Query(
        default=settings.feed_default_limit,
        ge=1,
        le=settings.feed_max_limit,
        description="Page size",
    ),
    offset: int = Query(default=0, ge=0, description="Filtered items to skip"),
    service: ActivityFeedService = Depends(get_feed_service),
) -> ActivityFeed:
    """Get one page of the company's merged activity feed.

    Items are newest first. has_more reports whether further items
    matching the type filter exist past this page.
    """
    try:
        type_filter = parse_type_filter(_split_types(types))
        feed_request = FeedRequest(
            company_id=company_id,
            days_back=days_back,
            type_filter=type_filter,
            limit=limit,
            offset=offset,
        )
        return await service.get_feed(feed_request, role)
    except InvalidFilterError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except InvalidCompanyError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/{company_id}/action-items", response_model=ActionItemsResponse)
async def get_action_items(
    company_id: str,
    role: CallerRole = Query(default=CallerRole.TEAM, description="Caller role"),
    service: ActivityFeedService = Depends(get_feed_service),
) -> ActionItemsResponse:
    """Get items the caller's role still has to respond to.

    Ordered by project priority, then newest first.
    """
    try:
        items, warnings = await service.get_action_items(company_id, role)
    except InvalidCompanyError as e:
        raise HTTPException(status_code=404, detail=str(e))

    return ActionItemsResponse(
        company_id=company_id,
        role=role,
        items=items,
        warnings=warnings,
    )
