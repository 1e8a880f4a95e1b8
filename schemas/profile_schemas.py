"""
Savor AI Profile and Event Schemas
Request and response models for stored preferences and client-reported events
"""

import json
from datetime import datetime
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator, model_validator

from schemas.recipe_schemas import DietType, LanguageCode, PreferenceProfile, ProfileItem, normalize_tags
from utils.cursor import format_timestamp


MAX_EVENT_PAYLOAD_BYTES = 8192

EventType = Literal[
    "session_start",
    "profile_edited",
    "ai_prompt_sent",
    "ai_recipe_generated",
    "recipe_saved",
]


class ProfileCreateRequest(BaseModel):
    """Body for creating a profile; every field is optional"""

    model_config = ConfigDict(extra="forbid")

    diet_type: Optional[DietType] = None
    disliked_ingredients: Optional[List[ProfileItem]] = Field(None, max_length=100)
    preferred_cuisines: Optional[List[ProfileItem]] = Field(None, max_length=100)
    preferred_language: Optional[LanguageCode] = None

    @field_validator("disliked_ingredients", "preferred_cuisines", mode="after")
    @classmethod
    def normalize_items(cls, v):
        if v is None:
            return v
        return normalize_tags(v)


class ProfileUpdateRequest(ProfileCreateRequest):
    """
    Partial update. Only fields present in the body are written; an explicit
    null clears ``diet_type`` or ``preferred_language``.
    """

    @model_validator(mode="after")
    def check_not_empty(self):
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided for update")
        return self


class ProfileResponse(BaseModel):
    user_id: str
    diet_type: Optional[DietType] = None
    disliked_ingredients: List[str] = Field(default_factory=list)
    preferred_cuisines: List[str] = Field(default_factory=list)
    preferred_language: Optional[LanguageCode] = None
    created_at: datetime
    updated_at: datetime

    @field_serializer("created_at", "updated_at")
    def serialize_timestamps(self, value: datetime) -> str:
        return format_timestamp(value)

    def to_preferences(self) -> PreferenceProfile:
        return PreferenceProfile(
            diet_type=self.diet_type,
            disliked_ingredients=self.disliked_ingredients,
            preferred_cuisines=self.preferred_cuisines,
            preferred_language=self.preferred_language,
        )


class EventCreateRequest(BaseModel):
    """Client-reported analytics event"""

    model_config = ConfigDict(extra="forbid")

    type: EventType
    payload: Optional[Any] = None

    @field_validator("payload")
    @classmethod
    def check_payload_size(cls, v):
        if v is None:
            return v
        size = len(json.dumps(v, separators=(",", ":"), ensure_ascii=False).encode("utf-8"))
        if size > MAX_EVENT_PAYLOAD_BYTES:
            raise ValueError(f"Payload size must not exceed {MAX_EVENT_PAYLOAD_BYTES} bytes when serialized")
        return v
