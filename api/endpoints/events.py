"""
Savor AI Event Endpoints
Client-reported analytics events
"""

from fastapi import APIRouter, Response, status

from core.dependencies import CurrentUserId, EventsServiceDep
from schemas.profile_schemas import EventCreateRequest

router = APIRouter()


@router.post("", status_code=status.HTTP_204_NO_CONTENT)
async def create_event(request: EventCreateRequest, user_id: CurrentUserId, events_service: EventsServiceDep):
    """Store an event; events are write-only for clients"""
    await events_service.create_event(user_id, request.type, request.payload)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
