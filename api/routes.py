"""
Savor AI API Routes
Main router configuration for all API endpoints
"""

from fastapi import APIRouter
import structlog

from api.endpoints import events, health, profile, recipes

logger = structlog.get_logger()

# Create main API router
api_router = APIRouter()

api_router.include_router(
    health.router,
    prefix="/health",
    tags=["health"]
)

api_router.include_router(
    recipes.router,
    prefix="/recipes",
    tags=["recipes"]
)

api_router.include_router(
    profile.router,
    prefix="/profile",
    tags=["profile"]
)

api_router.include_router(
    events.router,
    prefix="/events",
    tags=["events"]
)
