from fastapi import APIRouter, Depends
from uuid import UUID

from engagement_engine.auth.dependencies import CurrentUser, is_recruiter
from engagement_engine.routes.deps import get_lifecycle
from engagement_engine.schemas.event import EventCreate, EventUpdate, EventRead, EventWithCounts
from engagement_engine.services.event_lifecycle import EventLifecycleManager

router = APIRouter(
    prefix="/recruiter/events",
    tags=["Recruiter Event Endpoints"]
)


@router.post(
    "/create-event",
    response_model=EventRead,
    status_code=201
)
async def create_event(
    event_in: EventCreate,
    current_user: CurrentUser = Depends(is_recruiter),
    lifecycle: EventLifecycleManager = Depends(get_lifecycle),
):
    # New events always start as drafts
    return await lifecycle.create(current_user.id, event_in.model_dump(exclude_none=True))


@router.get(
    "/my-events",
    response_model=list[EventWithCounts],
)
async def list_my_events(
    current_user: CurrentUser = Depends(is_recruiter),
    lifecycle: EventLifecycleManager = Depends(get_lifecycle),
):
    events = await lifecycle.list_owned(current_user.id)

    return [
        EventWithCounts(
            **EventRead.model_validate(event).model_dump(),
            **counts,
        )
        for event, counts in events
    ]


@router.get(
    "/event-details/{event_id}",
    response_model=EventRead,
)
async def get_event_details(
    event_id: UUID,
    current_user: CurrentUser = Depends(is_recruiter),
    lifecycle: EventLifecycleManager = Depends(get_lifecycle),
):
    return await lifecycle.get_owned(current_user.id, event_id)


@router.patch(
    "/update-event/{event_id}",
    response_model=EventRead,
)
async def update_event(
    event_id: UUID,
    event_in: EventUpdate,
    current_user: CurrentUser = Depends(is_recruiter),
    lifecycle: EventLifecycleManager = Depends(get_lifecycle),
):
    # Only fields sent by the client are applied
    return await lifecycle.update(current_user.id, event_id, event_in.model_dump(exclude_unset=True))


@router.post(
    "/publish-event/{event_id}",
    response_model=EventRead,
)
async def publish_event(
    event_id: UUID,
    current_user: CurrentUser = Depends(is_recruiter),
    lifecycle: EventLifecycleManager = Depends(get_lifecycle),
):
    return await lifecycle.publish(current_user.id, event_id)


@router.delete(
    "/delete-event/{event_id}",
    status_code=204
)
async def delete_event(
    event_id: UUID,
    current_user: CurrentUser = Depends(is_recruiter),
    lifecycle: EventLifecycleManager = Depends(get_lifecycle),
):
    # Questions, registrations and submissions go with the event
    await lifecycle.delete(current_user.id, event_id)
    return None
