"""
Savor AI Recipe Models
Database models for saved recipes and their tags
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, Text, DateTime, ForeignKey, JSON, Uuid, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from core.database import Base


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Recipe(Base):
    """Saved recipe; the full generated payload lives in the ``recipe`` JSON column"""
    __tablename__ = "recipes"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(String(64), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    summary = Column(String(500))
    language = Column(String(8), nullable=False, default="en")

    # Full recipe payload (validated RecipeSchema)
    recipe = Column(JSON, nullable=False)

    # Denormalized helpers for listing and search
    ingredients_text = Column(Text, nullable=False, default="")
    tags = Column(JSON, nullable=False, default=list)

    # Timestamps
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, server_default=func.now(), onupdate=utc_now)

    # Relationships
    tag_rows = relationship("RecipeTag", back_populates="recipe", cascade="all, delete-orphan")

    __table_args__ = (
        Index("ix_recipes_user_created_id", "user_id", "created_at", "id"),
    )

    def to_list_item(self) -> dict:
        """Minimal data for list display (no full recipe payload)"""
        return {
            "id": self.id,
            "title": self.title,
            "summary": self.summary,
            "tags": list(self.tags or []),
            "language": self.language,
            "created_at": self.created_at,
        }

    def to_dict(self) -> dict:
        """Convert recipe to dictionary"""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "title": self.title,
            "summary": self.summary,
            "tags": list(self.tags or []),
            "language": self.language,
            "recipe": self.recipe,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


class RecipeTag(Base):
    """One row per (recipe, tag); backs the OR tag filter"""
    __tablename__ = "recipe_tags"

    recipe_id = Column(Uuid, ForeignKey("recipes.id", ondelete="CASCADE"), primary_key=True)
    tag = Column(String(50), primary_key=True, index=True)

    recipe = relationship("Recipe", back_populates="tag_rows")
