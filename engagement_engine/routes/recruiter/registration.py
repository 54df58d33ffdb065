from fastapi import APIRouter, Depends
from uuid import UUID

from engagement_engine.auth.dependencies import CurrentUser, is_recruiter
from engagement_engine.routes.deps import get_registration_tracker
from engagement_engine.schemas.registration import RegistrationRead
from engagement_engine.services.webinar_registration import WebinarRegistrationTracker

router = APIRouter(
    prefix="/recruiter/registrations",
    tags=["Recruiter Webinar Registration Endpoints"]
)


@router.get(
    "/list-registrations/{event_id}",
    response_model=list[RegistrationRead],
)
async def list_registrations(
    event_id: UUID,
    current_user: CurrentUser = Depends(is_recruiter),
    tracker: WebinarRegistrationTracker = Depends(get_registration_tracker),
):
    return await tracker.list_registrations(current_user.id, event_id)
