"""
Savor AI Database Models
Central import module for all database models
"""

from .recipe_models import Recipe, RecipeTag
from .profile_models import Profile, Event

__all__ = [
    "Recipe",
    "RecipeTag",
    "Profile",
    "Event",
]
