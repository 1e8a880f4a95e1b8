"""
Savor AI Events Service
Per-user analytics event log; generation events also feed the rate limiter
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from models.profile_models import Event

logger = structlog.get_logger()

PROMPT_PREVIEW_CHARS = 256


def as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; every stored timestamp is UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class EventsService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_event(self, user_id: str, type: str, payload: Optional[Any] = None) -> Event:
        row = Event(user_id=user_id, type=type, payload=payload)
        self.session.add(row)
        await self.session.flush()
        logger.debug("Event stored", user_id=user_id, event_type=type)
        return row

    async def record_event(self, user_id: str, type: str, payload: Optional[Any] = None) -> bool:
        """
        Best-effort write used alongside other operations.

        Work already pending on the session is committed first, so a failing
        event insert can only lose the event itself.
        """
        await self.session.commit()
        try:
            await self.create_event(user_id, type, payload)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.warning("Failed to record event", user_id=user_id, event_type=type, error=str(e))
            return False
        return True

    async def rollback(self) -> None:
        await self.session.rollback()

    async def window_stats(
        self,
        user_id: str,
        type: str,
        window_minutes: int = 60,
        now: Optional[datetime] = None,
    ) -> Tuple[int, Optional[datetime]]:
        """Count and oldest timestamp of ``type`` events inside the trailing window"""
        window_start = (now or datetime.now(timezone.utc)) - timedelta(minutes=window_minutes)
        stmt = select(func.count(), func.min(Event.occurred_at)).where(
            Event.user_id == user_id,
            Event.type == type,
            Event.occurred_at > window_start,
        )
        count, oldest = (await self.session.execute(stmt)).one()
        return count, as_utc(oldest) if oldest is not None else None

    async def count_events_in_window(
        self,
        user_id: str,
        type: str,
        window_minutes: int = 60,
        now: Optional[datetime] = None,
    ) -> int:
        count, _ = await self.window_stats(user_id, type, window_minutes, now)
        return count

    @staticmethod
    def truncate_prompt(prompt: str, max_length: int = PROMPT_PREVIEW_CHARS) -> str:
        if len(prompt) <= max_length:
            return prompt
        return prompt[:max_length] + "..."
