"""
Savor AI Core Dependencies
FastAPI dependencies for caller identity and service wiring
"""

from fastapi import Depends, HTTPException, Header, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional, Annotated
import structlog

from core.database import get_db
from services.ai_service import AIService
from services.events_service import EventsService
from services.profiles_service import ProfilesService
from services.recipes_service import RecipesService
from utils.rate_limiter import GenerationRateLimiter

logger = structlog.get_logger()


async def get_current_user_id(
    x_user_id: Annotated[Optional[str], Header(alias="X-User-ID")] = None,
) -> str:
    """
    Get the caller's user ID

    Token verification happens upstream; the verified identity is forwarded
    in the X-User-ID header.

    Raises:
        HTTPException: If the header is missing or blank
    """
    user_id = (x_user_id or "").strip()
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    if len(user_id) > 64:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid user identifier",
        )
    return user_id


def get_ai_service(request: Request) -> AIService:
    """AI service created at startup and stored on the application state"""
    service = getattr(request.app.state, "ai_service", None)
    if service is None:
        logger.error("AI service requested before startup completed")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="AI service unavailable",
        )
    return service


def get_recipes_service(db: AsyncSession = Depends(get_db)) -> RecipesService:
    return RecipesService(db)


def get_profiles_service(db: AsyncSession = Depends(get_db)) -> ProfilesService:
    return ProfilesService(db)


def get_events_service(db: AsyncSession = Depends(get_db)) -> EventsService:
    return EventsService(db)


def get_rate_limiter(request: Request) -> GenerationRateLimiter:
    limiter = getattr(request.app.state, "rate_limiter", None)
    return limiter or GenerationRateLimiter.from_settings()


CurrentUserId = Annotated[str, Depends(get_current_user_id)]
AIServiceDep = Annotated[AIService, Depends(get_ai_service)]
RecipesServiceDep = Annotated[RecipesService, Depends(get_recipes_service)]
ProfilesServiceDep = Annotated[ProfilesService, Depends(get_profiles_service)]
EventsServiceDep = Annotated[EventsService, Depends(get_events_service)]
RateLimiterDep = Annotated[GenerationRateLimiter, Depends(get_rate_limiter)]
