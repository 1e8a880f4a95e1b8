"""
Savor AI Provider Adapters
One adapter per model backend; each turns a prompt into raw model text
"""

from typing import Any, Dict, Optional, Sequence, Union
import structlog
import httpx

from core.exceptions import AIConfigError, AIProviderError, AITimeoutError
from schemas.recipe_schemas import PreferenceProfile
from services.prompt_engineering import RecipePromptBuilder

logger = structlog.get_logger()

DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 4000
DEFAULT_TIMEOUT_MS = 30000
MAX_LOGGED_BODY_CHARS = 1000


class AIProvider:
    """
    Common interface for recipe generation backends.

    ``generate`` returns the raw text produced by the model; parsing and
    schema validation happen in the orchestrator.
    """

    name = "AI"

    def __init__(self, prompt_builder: Optional[RecipePromptBuilder] = None):
        self.prompt_builder = prompt_builder or RecipePromptBuilder()

    async def generate(
        self,
        prompt: str,
        profile: Optional[PreferenceProfile] = None,
        lang: Optional[str] = None,
    ) -> str:
        raise NotImplementedError

    async def aclose(self) -> None:
        return None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()


class HTTPAIProvider(AIProvider):
    """Shared request handling for network-backed providers"""

    default_model = ""
    content_path: Sequence[Union[str, int]] = ()

    def __init__(
        self,
        api_key: str,
        model: Optional[str] = None,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        temperature: float = DEFAULT_TEMPERATURE,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        prompt_builder: Optional[RecipePromptBuilder] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__(prompt_builder)
        if not api_key:
            raise AIConfigError(f"{self.name} API key is not configured")

        self.api_key = api_key
        self.model = model or self.default_model
        self.timeout_ms = timeout_ms
        self.temperature = temperature
        self.max_tokens = max_tokens
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=timeout_ms / 1000)

    def build_request(self, system_prompt: str, user_prompt: str) -> Dict[str, Any]:
        """Return keyword arguments for ``httpx.AsyncClient.post``"""
        raise NotImplementedError

    async def generate(
        self,
        prompt: str,
        profile: Optional[PreferenceProfile] = None,
        lang: Optional[str] = None,
    ) -> str:
        prompts = self.prompt_builder.build_prompts(prompt, profile, lang)
        request = self.build_request(prompts.system, prompts.user)

        try:
            response = await self.client.post(**request)
        except httpx.TimeoutException as e:
            logger.warning("AI provider request timed out", provider=self.name, model=self.model)
            raise AITimeoutError(f"{self.name} request timed out after {self.timeout_ms}ms") from e
        except httpx.RequestError as e:
            logger.error("AI provider request failed", provider=self.name, error_type=type(e).__name__, error=str(e))
            raise AIProviderError(
                None, f"{self.name} request failed: {type(e).__name__}", detail=str(e)
            ) from e

        if not response.is_success:
            logger.error(
                "AI provider returned error",
                provider=self.name,
                status=response.status_code,
                body=response.text[:MAX_LOGGED_BODY_CHARS],
            )
            raise AIProviderError(
                response.status_code,
                f"{self.name} API error (HTTP {response.status_code})",
                detail=response.text[:MAX_LOGGED_BODY_CHARS],
            )

        try:
            data = response.json()
        except ValueError as e:
            raise AIProviderError(None, f"{self.name} request failed: invalid JSON response") from e

        return self.extract_content(data)

    def extract_content(self, data: Any) -> str:
        current = data
        for key in self.content_path:
            try:
                current = current[key]
            except (KeyError, IndexError, TypeError):
                current = None
                break

        if not isinstance(current, str) or not current.strip():
            raise AIProviderError(None, f"No content in {self.name} response")
        return current

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()


class OpenRouterProvider(HTTPAIProvider):
    """Chat-completions style backend (OpenRouter)"""

    name = "OpenRouter"
    base_url = "https://openrouter.ai/api/v1"
    default_model = "deepseek/deepseek-r1-0528:free"
    content_path = ("choices", 0, "message", "content")

    def build_request(self, system_prompt: str, user_prompt: str) -> Dict[str, Any]:
        return {
            "url": f"{self.base_url}/chat/completions",
            "headers": {
                "Content-Type": "application/json",
                "Authorization": f"Bearer {self.api_key}",
                "HTTP-Referer": "https://savor-ai.app",
                "X-Title": "Savor AI Recipe Generator",
            },
            "json": {
                "model": self.model,
                "messages": [
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                "temperature": self.temperature,
                "max_tokens": self.max_tokens,
            },
        }


class GoogleProvider(HTTPAIProvider):
    """Single-shot generateContent backend (Google AI Studio / Gemini)"""

    name = "Google AI"
    base_url = "https://generativelanguage.googleapis.com/v1beta"
    default_model = "gemini-1.5-flash"
    content_path = ("candidates", 0, "content", "parts", 0, "text")

    def build_request(self, system_prompt: str, user_prompt: str) -> Dict[str, Any]:
        return {
            "url": f"{self.base_url}/models/{self.model}:generateContent",
            "params": {"key": self.api_key},
            "headers": {"Content-Type": "application/json"},
            "json": {
                "contents": [
                    {
                        "role": "user",
                        "parts": [{"text": f"{system_prompt}\n\n{user_prompt}"}],
                    }
                ],
                "generationConfig": {
                    "temperature": self.temperature,
                    "maxOutputTokens": self.max_tokens,
                    "responseMimeType": "application/json",
                },
            },
        }
