"""
Savor AI Health Check Endpoints
Liveness and readiness checks
"""

from fastapi import APIRouter, HTTPException, Request, status
from sqlalchemy import text
import asyncio
import time

from core import database
from core.config import settings

router = APIRouter()


@router.get("/")
async def health_check():
    """Basic health check endpoint"""
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": settings.VERSION,
        "timestamp": time.time()
    }


@router.get("/ready")
async def readiness_check(request: Request):
    """
    Readiness check endpoint
    Checks the database connection and the configured AI provider
    """
    ai_service = getattr(request.app.state, "ai_service", None)

    if database.engine is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"status": "not_ready", "database": "disconnected"}
        )

    try:
        async def ping():
            async with database.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))

        await asyncio.wait_for(ping(), timeout=5.0)
    except asyncio.TimeoutError:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"status": "not_ready", "error": "Health check timeout"}
        )
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"status": "not_ready", "error": str(e)}
        )

    return {
        "status": "ready",
        "database": "connected",
        "ai_provider": ai_service.provider.name if ai_service else None,
        "timestamp": time.time()
    }
