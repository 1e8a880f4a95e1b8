"""
Savor AI Rate Limiter
Sliding-window generation limit counted from the stored event log
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
import structlog

from core.config import settings
from core.exceptions import RateLimitExceededError

logger = structlog.get_logger()

GENERATED_EVENT = "ai_recipe_generated"


class GenerationRateLimiter:
    """
    Allow at most ``max_generations`` successful generations per user in any
    trailing ``window_minutes`` window.

    The events store is anything with an async ``window_stats(user_id, type,
    window_minutes, now)`` returning ``(count, oldest)`` and an async
    ``rollback()``. Store failures let the request through.
    """

    def __init__(
        self,
        max_generations: int = 10,
        window_minutes: int = 60,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.max_generations = max_generations
        self.window_minutes = window_minutes
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    @classmethod
    def from_settings(cls) -> "GenerationRateLimiter":
        return cls(
            max_generations=settings.GENERATION_RATE_LIMIT,
            window_minutes=settings.GENERATION_RATE_WINDOW_MINUTES,
        )

    def retry_after_seconds(self, oldest: Optional[datetime], now: datetime) -> int:
        """Seconds until the oldest counted event leaves the window"""
        window_seconds = self.window_minutes * 60
        if oldest is None:
            return window_seconds
        expires_at = oldest + timedelta(minutes=self.window_minutes)
        remaining = int((expires_at - now).total_seconds()) + 1
        return max(1, min(remaining, window_seconds))

    async def check(self, events, user_id: str) -> None:
        """Raise RateLimitExceededError when the caller has no generations left"""
        now = self.clock()
        try:
            count, oldest = await events.window_stats(user_id, GENERATED_EVENT, self.window_minutes, now)
        except SQLAlchemyError as e:
            # Fail open
            logger.warning("Rate limit check failed", user_id=user_id, error=str(e))
            await events.rollback()
            return

        if count >= self.max_generations:
            retry_after = self.retry_after_seconds(oldest, now)
            logger.warning(
                "Generation rate limit exceeded",
                user_id=user_id,
                count=count,
                limit=self.max_generations,
                retry_after=retry_after,
            )
            raise RateLimitExceededError(retry_after)
