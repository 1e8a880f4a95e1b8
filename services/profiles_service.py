"""
Savor AI Profiles Service
Stored dietary preferences, one profile per user
"""

from enum import Enum
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from core.exceptions import ProfileConflictError, ProfileNotFoundError
from models.profile_models import Profile
from models.recipe_models import utc_now
from schemas.profile_schemas import ProfileCreateRequest, ProfileResponse, ProfileUpdateRequest
from schemas.recipe_schemas import PreferenceProfile

logger = structlog.get_logger()

LIST_FIELDS = ("disliked_ingredients", "preferred_cuisines")


def _stored_value(field: str, value):
    if value is None and field in LIST_FIELDS:
        return []
    if isinstance(value, Enum):
        return value.value
    return value


class ProfilesService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_profile(self, user_id: str) -> Optional[ProfileResponse]:
        row = await self.session.get(Profile, user_id)
        if row is None:
            return None
        return ProfileResponse.model_validate(row.to_dict())

    async def get_preferences(self, user_id: str) -> Optional[PreferenceProfile]:
        """Stored profile in the shape the generation pipeline reads"""
        profile = await self.get_profile(user_id)
        return profile.to_preferences() if profile is not None else None

    async def create_profile(self, user_id: str, request: ProfileCreateRequest) -> ProfileResponse:
        if await self.session.get(Profile, user_id) is not None:
            raise ProfileConflictError()

        row = Profile(
            user_id=user_id,
            **{field: _stored_value(field, getattr(request, field)) for field in ProfileCreateRequest.model_fields},
        )
        self.session.add(row)
        try:
            await self.session.flush()
        except IntegrityError as e:
            # Concurrent create for the same user
            await self.session.rollback()
            raise ProfileConflictError() from e

        logger.info("Profile created", user_id=user_id)
        return ProfileResponse.model_validate(row.to_dict())

    async def update_profile(self, user_id: str, request: ProfileUpdateRequest) -> ProfileResponse:
        """Write only the fields present in the request"""
        row = await self.session.get(Profile, user_id)
        if row is None:
            raise ProfileNotFoundError()

        changed = sorted(request.model_fields_set)
        for field in changed:
            setattr(row, field, _stored_value(field, getattr(request, field)))
        row.updated_at = utc_now()
        await self.session.flush()

        logger.info("Profile updated", user_id=user_id, changed_fields=changed)
        return ProfileResponse.model_validate(row.to_dict())
