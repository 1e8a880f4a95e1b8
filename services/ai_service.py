"""
Savor AI Recipe Generation Service
Retry orchestrator around the configured provider adapter
"""

import asyncio
import random
import time
from typing import Any, Awaitable, Callable, Optional
import structlog

from core.config import settings
from core.exceptions import AIConfigError, AITimeoutError, RecipeServiceError, RecipeSizeLimitError
from middleware.logging import log_business_event
from schemas.recipe_schemas import MAX_RECIPE_BYTES, PreferenceProfile, RecipeSchema
from services.ai_providers import AIProvider, GoogleProvider, OpenRouterProvider
from services.mock_provider import MockProvider
from services.prompt_engineering import RecipePromptBuilder
from services.recipe_parser import parse_and_validate

logger = structlog.get_logger()

BASE_DELAY_MS = 500
MAX_DELAY_MS = 5000
JITTER_RATIO = 0.3


def create_provider(
    name: str,
    api_key: Optional[str] = None,
    model: Optional[str] = None,
    timeout_ms: int = 30000,
    temperature: float = 0.7,
    max_tokens: int = 4000,
    prompt_builder: Optional[RecipePromptBuilder] = None,
    **kwargs: Any,
) -> AIProvider:
    """Build a provider adapter by name (openrouter, google or mock)"""
    provider = (name or "").lower()

    if provider == "mock":
        return MockProvider(timeout_ms=timeout_ms, prompt_builder=prompt_builder, **kwargs)

    if provider == "openrouter":
        provider_class = OpenRouterProvider
    elif provider == "google":
        provider_class = GoogleProvider
    else:
        raise AIConfigError(f"Unknown AI provider: {name}")

    return provider_class(
        api_key=api_key,
        model=model,
        timeout_ms=timeout_ms,
        temperature=temperature,
        max_tokens=max_tokens,
        prompt_builder=prompt_builder,
        **kwargs,
    )


class AIService:
    """
    Generates validated recipes with bounded retries.

    Each attempt runs under its own deadline. Timeouts, 5xx provider errors
    and malformed model output are retried with exponential backoff and
    jitter; every other typed error is raised at once. Once attempts are
    exhausted the last error is re-raised unchanged.
    """

    def __init__(
        self,
        provider: AIProvider,
        max_retries: int = 1,
        timeout_ms: int = 30000,
        default_language: str = "en",
        base_delay_ms: int = BASE_DELAY_MS,
        max_delay_ms: int = MAX_DELAY_MS,
        rng: Optional[random.Random] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        if max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if timeout_ms <= 0:
            raise ValueError("timeout_ms must be positive")

        self.provider = provider
        self.max_retries = max_retries
        self.timeout_ms = timeout_ms
        self.default_language = default_language
        self.base_delay_ms = base_delay_ms
        self.max_delay_ms = max_delay_ms
        self.rng = rng or random.Random()
        self._sleep = sleep

    @classmethod
    def from_settings(cls, config=None, **kwargs: Any) -> "AIService":
        """Build the service and its provider from application settings"""
        config = config or settings

        provider_name = config.AI_PROVIDER
        api_key = {
            "openrouter": config.OPENROUTER_API_KEY,
            "google": config.GOOGLE_API_KEY,
        }.get(provider_name)

        provider = create_provider(
            provider_name,
            api_key=api_key,
            model=config.AI_MODEL,
            timeout_ms=config.AI_TIMEOUT_MS,
            temperature=config.AI_TEMPERATURE,
            max_tokens=config.AI_MAX_TOKENS,
            prompt_builder=RecipePromptBuilder(config.DEFAULT_LANGUAGE),
        )

        logger.info(
            "AI service configured",
            provider=provider_name,
            model=getattr(provider, "model", None),
            max_retries=config.AI_MAX_RETRIES,
            timeout_ms=config.AI_TIMEOUT_MS,
        )

        return cls(
            provider,
            max_retries=config.AI_MAX_RETRIES,
            timeout_ms=config.AI_TIMEOUT_MS,
            default_language=config.DEFAULT_LANGUAGE,
            **kwargs,
        )

    def resolve_language(self, profile: Optional[PreferenceProfile] = None, lang: Optional[str] = None) -> str:
        """Explicit override, then the profile's preferred language, then the default"""
        if lang:
            return lang
        if profile is not None and profile.preferred_language:
            return profile.preferred_language
        return self.default_language

    def compute_backoff(self, attempt: int) -> float:
        """Delay in seconds before retry number ``attempt`` (1-based)"""
        exponential = self.base_delay_ms * (2 ** (attempt - 1))
        jittered = exponential * (1 + self.rng.random() * JITTER_RATIO)
        return min(jittered, self.max_delay_ms) / 1000

    async def generate_recipe(
        self,
        prompt: str,
        profile: Optional[PreferenceProfile] = None,
        lang: Optional[str] = None,
    ) -> RecipeSchema:
        language = self.resolve_language(profile, lang)
        attempts = self.max_retries + 1
        last_error: Optional[RecipeServiceError] = None

        log_business_event("ai_prompt_sent", {
            "provider": self.provider.name,
            "language": language,
            "prompt_length": len(prompt),
            "has_profile": profile is not None,
        })

        for attempt in range(attempts):
            if attempt > 0:
                delay = self.compute_backoff(attempt)
                logger.info(
                    "Retrying recipe generation",
                    attempt=attempt + 1,
                    max_attempts=attempts,
                    delay_seconds=round(delay, 3),
                    error_kind=last_error.kind.value if last_error else None,
                )
                await self._sleep(delay)

            started = time.monotonic()
            try:
                recipe = await self._attempt(prompt, profile, language)
            except RecipeServiceError as e:
                logger.warning(
                    "Recipe generation attempt failed",
                    attempt=attempt + 1,
                    max_attempts=attempts,
                    error_kind=e.kind.value,
                    status_code=e.status_code,
                    retryable=e.retryable,
                    error=e.message,
                )
                if not e.retryable:
                    raise
                last_error = e
                continue

            size_bytes = recipe.serialized_size()
            if size_bytes >= MAX_RECIPE_BYTES:
                raise RecipeSizeLimitError(size_bytes, MAX_RECIPE_BYTES)

            log_business_event("ai_recipe_generated", {
                "provider": self.provider.name,
                "language": language,
                "attempt": attempt + 1,
                "duration_ms": int((time.monotonic() - started) * 1000),
                "size_bytes": size_bytes,
                "title": recipe.title,
            })
            return recipe

        logger.error(
            "Recipe generation failed after all attempts",
            attempts=attempts,
            error_kind=last_error.kind.value,
            error=last_error.message,
        )
        raise last_error

    async def _attempt(self, prompt: str, profile: Optional[PreferenceProfile], language: str) -> RecipeSchema:
        try:
            raw = await asyncio.wait_for(
                self.provider.generate(prompt, profile, language),
                timeout=self.timeout_ms / 1000,
            )
        except asyncio.TimeoutError as e:
            raise AITimeoutError(f"AI request timed out after {self.timeout_ms}ms") from e

        return parse_and_validate(raw)

    async def aclose(self) -> None:
        await self.provider.aclose()
