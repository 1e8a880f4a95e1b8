"""
Savor AI Profile and Event Models
Stored dietary preferences and the per-user analytics event log
"""

import uuid

from sqlalchemy import Column, String, DateTime, JSON, Uuid, Index
from sqlalchemy.sql import func
from core.database import Base
from models.recipe_models import utc_now


class Profile(Base):
    """One preference profile per user"""
    __tablename__ = "profiles"

    user_id = Column(String(64), primary_key=True)
    diet_type = Column(String(32))
    disliked_ingredients = Column(JSON, nullable=False, default=list)
    preferred_cuisines = Column(JSON, nullable=False, default=list)
    preferred_language = Column(String(8))

    # Timestamps
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, server_default=func.now(), onupdate=utc_now)

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "diet_type": self.diet_type,
            "disliked_ingredients": list(self.disliked_ingredients or []),
            "preferred_cuisines": list(self.preferred_cuisines or []),
            "preferred_language": self.preferred_language,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


class Event(Base):
    """Append-only analytics event; also backs the generation rate limit"""
    __tablename__ = "events"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(String(64), nullable=False)
    type = Column(String(32), nullable=False)
    payload = Column(JSON)
    occurred_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, server_default=func.now())

    __table_args__ = (
        Index("ix_events_user_type_occurred", "user_id", "type", "occurred_at"),
    )
