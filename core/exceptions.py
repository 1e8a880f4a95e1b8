"""
Savor AI Error Taxonomy
Typed errors shared by the generation pipeline, recipe listing and the API layer
"""

from enum import Enum
from typing import List, Optional


class ErrorKind(str, Enum):
    TIMEOUT = "timeout"
    PROVIDER = "provider"
    VALIDATION = "validation"
    SIZE_LIMIT = "size_limit"
    INVALID_CURSOR = "invalid_cursor"
    INVALID_QUERY = "invalid_query"
    CONFIG = "config"
    NOT_FOUND = "not_found"
    RATE_LIMITED = "rate_limited"
    CONFLICT = "conflict"
    DISLIKED_INGREDIENT = "disliked_ingredient"


class RecipeServiceError(Exception):
    """Base class for every error the recipe pipeline raises on purpose"""

    kind: ErrorKind = ErrorKind.PROVIDER

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    @property
    def retryable(self) -> bool:
        return False

    def __repr__(self) -> str:
        return f"{type(self).__name__}(kind={self.kind.value!r}, message={self.message!r})"


class AITimeoutError(RecipeServiceError):
    """A single generation attempt ran past its deadline"""

    kind = ErrorKind.TIMEOUT

    def __init__(self, message: str = "AI request timed out"):
        super().__init__(message)

    @property
    def retryable(self) -> bool:
        return True


class AIProviderError(RecipeServiceError):
    """
    Upstream model API failed; only 5xx responses are worth another attempt.

    ``detail`` keeps the upstream body or transport error for logs and is
    never part of ``message``.
    """

    kind = ErrorKind.PROVIDER

    def __init__(self, status_code: Optional[int], message: str, detail: Optional[str] = None):
        super().__init__(message, status_code=status_code)
        self.detail = detail

    @property
    def retryable(self) -> bool:
        return self.status_code is not None and self.status_code >= 500


class AIValidationError(RecipeServiceError):
    """Model output was not valid JSON or did not match the recipe schema"""

    kind = ErrorKind.VALIDATION

    @property
    def retryable(self) -> bool:
        return True


class RecipeSizeLimitError(RecipeServiceError):
    """Serialized recipe reached the storage size ceiling"""

    kind = ErrorKind.SIZE_LIMIT

    def __init__(self, size_bytes: int, limit_bytes: int):
        super().__init__(
            f"Recipe size ({size_bytes} bytes) exceeds maximum allowed size ({limit_bytes} bytes)"
        )
        self.size_bytes = size_bytes
        self.limit_bytes = limit_bytes


class InvalidCursorError(RecipeServiceError):
    kind = ErrorKind.INVALID_CURSOR

    def __init__(self, message: str = "Invalid cursor"):
        super().__init__(message)


class InvalidQueryError(RecipeServiceError):
    kind = ErrorKind.INVALID_QUERY


class AIConfigError(RecipeServiceError):
    """Provider selected without the credentials it needs"""

    kind = ErrorKind.CONFIG


class RecipeNotFoundError(RecipeServiceError):
    kind = ErrorKind.NOT_FOUND

    def __init__(self, message: str = "Recipe not found"):
        super().__init__(message)



class RateLimitExceededError(RecipeServiceError):
    """Caller used up their generation allowance for the current window"""

    kind = ErrorKind.RATE_LIMITED

    def __init__(self, retry_after: int, message: str = "Generation limit exceeded. Please try again later."):
        super().__init__(message)
        self.retry_after = retry_after


class ProfileNotFoundError(RecipeServiceError):
    kind = ErrorKind.NOT_FOUND

    def __init__(self, message: str = "Profile not found; use POST /api/v1/profile to create"):
        super().__init__(message)


class ProfileConflictError(RecipeServiceError):
    kind = ErrorKind.CONFLICT

    def __init__(self, message: str = "Profile already exists; use PUT /api/v1/profile to update"):
        super().__init__(message)


class DislikedIngredientError(RecipeServiceError):
    """Recipe lists an ingredient the caller marked as disliked"""

    kind = ErrorKind.DISLIKED_INGREDIENT

    def __init__(self, ingredients: List[str]):
        super().__init__(f"Recipe contains disliked ingredients: {', '.join(ingredients)}")
        self.ingredients = ingredients


__all__ = [
    "ErrorKind",
    "RecipeServiceError",
    "AITimeoutError",
    "AIProviderError",
    "AIValidationError",
    "RecipeSizeLimitError",
    "InvalidCursorError",
    "InvalidQueryError",
    "AIConfigError",
    "RecipeNotFoundError",
    "RateLimitExceededError",
    "ProfileNotFoundError",
    "ProfileConflictError",
    "DislikedIngredientError",
]
