from __future__ import annotations

import sys
from pathlib import Path

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool


# Ensure `import core...` works when running `pytest` from repo root.
REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT))


def make_recipe_payload(**overrides) -> dict:
    payload = {
        "title": "Lemon Herb Chicken",
        "summary": "Bright roast chicken",
        "description": "Chicken roasted with lemon and thyme.",
        "prep_time_minutes": 15,
        "cook_time_minutes": 45,
        "servings": 4,
        "difficulty": "medium",
        "cuisine": "French",
        "ingredients": ["1 whole chicken", "2 lemons", "Fresh thyme"],
        "instructions": ["Season the chicken", "Roast for 45 minutes"],
        "tags": ["dinner", "roast"],
        "dietary_info": {"gluten_free": True, "dairy_free": True},
        "nutrition": {"calories": 450, "protein_g": 38, "carbs_g": 4, "fat_g": 28},
    }
    payload.update(overrides)
    return payload


async def _no_sleep(seconds: float) -> None:
    return None


@pytest.fixture
def recipe_payload() -> dict:
    return make_recipe_payload()


@pytest.fixture
def no_sleep():
    return _no_sleep


@pytest.fixture
async def db_session():
    from core.database import Base
    import models  # noqa: F401

    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)
    async with factory() as session:
        yield session

    await engine.dispose()
