"""
Savor AI Profile Endpoints
Read, create and update the caller's stored dietary preferences
"""

from fastapi import APIRouter, status
import structlog

from core.dependencies import CurrentUserId, EventsServiceDep, ProfilesServiceDep
from core.exceptions import ProfileNotFoundError
from middleware.logging import get_request_id, log_business_event
from schemas.profile_schemas import ProfileCreateRequest, ProfileResponse, ProfileUpdateRequest

logger = structlog.get_logger()
router = APIRouter()


@router.get("", response_model=ProfileResponse)
async def get_profile(user_id: CurrentUserId, profiles_service: ProfilesServiceDep):
    profile = await profiles_service.get_profile(user_id)
    if profile is None:
        raise ProfileNotFoundError()
    return profile


@router.post("", response_model=ProfileResponse, status_code=status.HTTP_201_CREATED)
async def create_profile(
    request: ProfileCreateRequest,
    user_id: CurrentUserId,
    profiles_service: ProfilesServiceDep,
    events_service: EventsServiceDep,
):
    """Create the caller's profile; 409 when one already exists"""
    profile = await profiles_service.create_profile(user_id, request)
    await events_service.record_event(user_id, "profile_edited", {
        "action": "created",
        "request_id": get_request_id(),
    })
    log_business_event("profile_created", {})
    return profile


@router.put("", response_model=ProfileResponse)
async def update_profile(
    request: ProfileUpdateRequest,
    user_id: CurrentUserId,
    profiles_service: ProfilesServiceDep,
    events_service: EventsServiceDep,
):
    """Partially update the caller's profile; 404 when none exists yet"""
    profile = await profiles_service.update_profile(user_id, request)
    changed_fields = sorted(request.model_fields_set)
    await events_service.record_event(user_id, "profile_edited", {
        "action": "updated",
        "changed_fields": changed_fields,
        "request_id": get_request_id(),
    })
    log_business_event("profile_updated", {"changed_fields": changed_fields})
    return profile
