from __future__ import annotations

import asyncio
import json
import random
from typing import List, Optional

import pytest

from core.exceptions import (
    AIProviderError,
    AITimeoutError,
    AIValidationError,
    RecipeSizeLimitError,
)
from schemas.recipe_schemas import PreferenceProfile
from services.ai_providers import AIProvider
from services.ai_service import AIService
from services.mock_provider import MockProvider
from tests.conftest import make_recipe_payload


class ScriptedProvider(AIProvider):
    """Replays a fixed sequence of outcomes: exceptions are raised, strings returned"""

    name = "Scripted"

    def __init__(self, outcomes: list):
        super().__init__()
        self.outcomes = list(outcomes)
        self.calls: List[Optional[str]] = []

    async def generate(self, prompt, profile=None, lang=None) -> str:
        self.calls.append(lang)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


class SleepRecorder:
    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


def _service(provider: AIProvider, **kwargs) -> tuple:
    sleeper = SleepRecorder()
    kwargs.setdefault("rng", random.Random(0))
    return AIService(provider, sleep=sleeper, **kwargs), sleeper


VALID = json.dumps(make_recipe_payload())


async def test_success_on_first_attempt_does_not_sleep() -> None:
    provider = ScriptedProvider([VALID])
    service, sleeper = _service(provider)

    recipe = await service.generate_recipe("roast chicken")

    assert recipe.title == "Lemon Herb Chicken"
    assert len(provider.calls) == 1
    assert sleeper.delays == []


async def test_two_server_errors_then_success_sleeps_twice() -> None:
    provider = ScriptedProvider([
        AIProviderError(503, "busy"),
        AIProviderError(503, "still busy"),
        VALID,
    ])
    service, sleeper = _service(provider, max_retries=2)

    recipe = await service.generate_recipe("roast chicken")

    assert recipe.servings == 4
    assert len(provider.calls) == 3
    assert len(sleeper.delays) == 2
    assert 0.5 <= sleeper.delays[0] <= 0.65
    assert 1.0 <= sleeper.delays[1] <= 1.3


async def test_client_error_is_not_retried() -> None:
    error = AIProviderError(404, "model not found")
    provider = ScriptedProvider([error, VALID])
    service, sleeper = _service(provider, max_retries=3)

    with pytest.raises(AIProviderError) as excinfo:
        await service.generate_recipe("roast chicken")

    assert excinfo.value is error
    assert len(provider.calls) == 1
    assert sleeper.delays == []


async def test_provider_error_without_status_is_not_retried() -> None:
    provider = ScriptedProvider([AIProviderError(None, "No content in Scripted response"), VALID])
    service, _ = _service(provider)

    with pytest.raises(AIProviderError):
        await service.generate_recipe("roast chicken")

    assert len(provider.calls) == 1


async def test_validation_error_is_retried() -> None:
    provider = ScriptedProvider(["not json at all", VALID])
    service, sleeper = _service(provider)

    recipe = await service.generate_recipe("roast chicken")

    assert recipe.title == "Lemon Herb Chicken"
    assert len(provider.calls) == 2
    assert len(sleeper.delays) == 1


async def test_exhaustion_reraises_last_error_unchanged() -> None:
    last = AIValidationError("Recipe schema validation failed: servings")
    provider = ScriptedProvider([AIProviderError(502, "bad gateway"), last])
    service, _ = _service(provider, max_retries=1)

    with pytest.raises(AIValidationError) as excinfo:
        await service.generate_recipe("roast chicken")

    assert excinfo.value is last


async def test_attempt_timeout_raises_timeout_error() -> None:
    class SlowProvider(AIProvider):
        async def generate(self, prompt, profile=None, lang=None) -> str:
            await asyncio.sleep(1)
            return VALID

    service, sleeper = _service(SlowProvider(), max_retries=1, timeout_ms=10)

    with pytest.raises(AITimeoutError):
        await service.generate_recipe("roast chicken")

    assert len(sleeper.delays) == 1


async def test_oversized_recipe_fails_immediately() -> None:
    huge = json.dumps(make_recipe_payload(
        ingredients=["ż" * 500] * 100,
        instructions=["ż" * 2000] * 50,
    ))
    provider = ScriptedProvider([huge, VALID])
    service, sleeper = _service(provider, max_retries=3)

    with pytest.raises(RecipeSizeLimitError) as excinfo:
        await service.generate_recipe("everything")

    assert excinfo.value.retryable is False
    assert excinfo.value.size_bytes >= 204800
    assert len(provider.calls) == 1
    assert sleeper.delays == []


async def test_unexpected_exceptions_propagate_without_retry() -> None:
    provider = ScriptedProvider([RuntimeError("boom"), VALID])
    service, _ = _service(provider)

    with pytest.raises(RuntimeError):
        await service.generate_recipe("roast chicken")

    assert len(provider.calls) == 1


async def test_language_resolution_order() -> None:
    provider = ScriptedProvider([VALID, VALID, VALID])
    service, _ = _service(provider, default_language="en")
    profile = PreferenceProfile(preferred_language="pl")

    await service.generate_recipe("x", profile, "en")
    await service.generate_recipe("x", profile)
    await service.generate_recipe("x")

    assert provider.calls == ["en", "pl", "en"]


def test_backoff_is_capped_and_jittered() -> None:
    service = AIService(ScriptedProvider([]), rng=random.Random(3))

    for attempt in range(1, 4):
        base = 0.5 * 2 ** (attempt - 1)
        assert base <= service.compute_backoff(attempt) <= base * 1.3

    assert service.compute_backoff(10) == 5.0


async def test_quick_vegan_pasta_end_to_end(no_sleep) -> None:
    provider = MockProvider(rng=random.Random(5), sleep=no_sleep)
    service, sleeper = _service(provider)

    recipe = await service.generate_recipe(
        "quick vegan pasta",
        PreferenceProfile(diet_type="vegan"),
        "en",
    )

    assert recipe.title == "Creamy Garlic Pasta"
    assert recipe.dietary_info.vegan is True
    assert recipe.dietary_info.dairy_free is True
    assert "vegan" in recipe.tags
    assert sleeper.delays == []


def test_from_settings_builds_mock_provider() -> None:
    from core.config import Settings

    config = Settings(AI_PROVIDER="mock", AI_MAX_RETRIES=2, AI_TIMEOUT_MS=5000, DEFAULT_LANGUAGE="PL")
    service = AIService.from_settings(config)

    assert isinstance(service.provider, MockProvider)
    assert service.max_retries == 2
    assert service.timeout_ms == 5000
    assert service.default_language == "pl"
