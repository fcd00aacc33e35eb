"""API router aggregation."""

from fastapi import APIRouter

from src.api.activity import router as activity_router
from src.api.billing import router as billing_router
from src.api.health import router as health_router

api_router = APIRouter()
api_router.include_router(health_router)
api_router.include_router(activity_router)
api_router.include_router(billing_router)
