from typing import Optional
from fastapi import APIRouter, Depends
from uuid import UUID

from engagement_engine.auth.dependencies import CurrentUser, is_candidate
from engagement_engine.clock import SystemClock, get_clock
from engagement_engine.helpers.event_status import derive_status
from engagement_engine.models import Event, EventType
from engagement_engine.routes.deps import get_lifecycle
from engagement_engine.schemas.event import PublishedEventRead
from engagement_engine.services.event_lifecycle import EventLifecycleManager

router = APIRouter(
    prefix="/candidate/events",
    tags=["Candidate Event Endpoints"]
)


def _published_view(event: Event, clock: SystemClock) -> PublishedEventRead:
    return PublishedEventRead(
        id=event.id,
        job_id=event.job_id,
        event_type=event.event_type,
        title=event.title,
        description=event.description,
        platform=event.platform,
        start_time=event.start_time,
        end_time=event.end_time,
        time_limit_minutes=event.time_limit_minutes,
        submission_deadline=event.submission_deadline,
        max_file_size_mb=event.max_file_size_mb,
        allowed_file_types=event.allowed_file_types,
        status=derive_status(event, clock.now()),
    )


@router.get(
    "/published-events",
    response_model=list[PublishedEventRead],
)
async def list_published_events(
    event_type: Optional[EventType] = None,
    job_id: Optional[UUID] = None,
    current_user: CurrentUser = Depends(is_candidate),
    lifecycle: EventLifecycleManager = Depends(get_lifecycle),
    clock: SystemClock = Depends(get_clock),
):
    # Drafts never show up here
    events = await lifecycle.list_published(event_type=event_type, job_id=job_id)
    return [_published_view(event, clock) for event in events]


@router.get(
    "/event-details/{event_id}",
    response_model=PublishedEventRead,
)
async def get_published_event(
    event_id: UUID,
    current_user: CurrentUser = Depends(is_candidate),
    lifecycle: EventLifecycleManager = Depends(get_lifecycle),
    clock: SystemClock = Depends(get_clock),
):
    event = await lifecycle.get_published(event_id)
    return _published_view(event, clock)
