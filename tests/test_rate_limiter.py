from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import OperationalError

from core.exceptions import ErrorKind, RateLimitExceededError
from models.profile_models import Event
from services.events_service import EventsService
from utils.rate_limiter import GENERATED_EVENT, GenerationRateLimiter

USER = "user-1"
NOW = datetime(2025, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


class BrokenEvents:
    def __init__(self):
        self.rolled_back = False

    async def window_stats(self, user_id, type, window_minutes, now):
        raise OperationalError("SELECT count(*) FROM events", {}, Exception("database is down"))

    async def rollback(self) -> None:
        self.rolled_back = True


async def _seed_generations(session, minutes_ago):
    for minutes in minutes_ago:
        session.add(Event(user_id=USER, type=GENERATED_EVENT, occurred_at=NOW - timedelta(minutes=minutes)))
    await session.flush()


async def test_allows_requests_under_the_limit(db_session) -> None:
    await _seed_generations(db_session, range(9))
    limiter = GenerationRateLimiter(max_generations=10, window_minutes=60, clock=lambda: NOW)

    await limiter.check(EventsService(db_session), USER)


async def test_blocks_at_limit_with_retry_after_from_oldest_event(db_session) -> None:
    await _seed_generations(db_session, [40] + [5] * 9)
    limiter = GenerationRateLimiter(max_generations=10, window_minutes=60, clock=lambda: NOW)

    with pytest.raises(RateLimitExceededError) as excinfo:
        await limiter.check(EventsService(db_session), USER)

    assert excinfo.value.kind == ErrorKind.RATE_LIMITED
    # Oldest counted event leaves the window in 20 minutes
    assert excinfo.value.retry_after == 20 * 60 + 1


async def test_events_outside_window_do_not_count(db_session) -> None:
    await _seed_generations(db_session, [61, 90, 120] + [1] * 9)
    limiter = GenerationRateLimiter(max_generations=10, window_minutes=60, clock=lambda: NOW)

    await limiter.check(EventsService(db_session), USER)


async def test_other_users_do_not_count(db_session) -> None:
    for _ in range(10):
        db_session.add(Event(user_id="user-2", type=GENERATED_EVENT, occurred_at=NOW))
    await db_session.flush()
    limiter = GenerationRateLimiter(clock=lambda: NOW)

    await limiter.check(EventsService(db_session), USER)


async def test_store_failure_fails_open() -> None:
    events = BrokenEvents()
    limiter = GenerationRateLimiter(clock=lambda: NOW)

    await limiter.check(events, USER)

    assert events.rolled_back is True


@pytest.mark.parametrize(
    "oldest, expected",
    [
        (None, 3600),
        (NOW - timedelta(minutes=59, seconds=30), 31),
        (NOW - timedelta(minutes=90), 1),
        (NOW, 3600),
    ],
)
def test_retry_after_seconds(oldest, expected) -> None:
    limiter = GenerationRateLimiter(window_minutes=60)

    assert limiter.retry_after_seconds(oldest, NOW) == expected
