"""
Savor AI Services Module
Recipe generation pipeline and saved recipe persistence
"""

from .prompt_engineering import RecipePromptBuilder, RecipePrompts
from .recipe_parser import extract_json, parse_and_validate
from .ai_providers import AIProvider, HTTPAIProvider, OpenRouterProvider, GoogleProvider
from .mock_provider import MockProvider
from .ai_service import AIService, create_provider
from .recipes_service import RecipesService
from .profiles_service import ProfilesService
from .events_service import EventsService

__all__ = [
    # Prompt Engineering
    "RecipePromptBuilder",
    "RecipePrompts",

    # Parsing
    "extract_json",
    "parse_and_validate",

    # Providers
    "AIProvider",
    "HTTPAIProvider",
    "OpenRouterProvider",
    "GoogleProvider",
    "MockProvider",
    "create_provider",

    # Orchestration
    "AIService",

    # Persistence
    "RecipesService",
    "ProfilesService",
    "EventsService",
]
