from fastapi import APIRouter, Depends, HTTPException, Response
from uuid import UUID

from engagement_engine.auth.dependencies import CurrentUser, is_candidate
from engagement_engine.errors import AlreadyRegistered
from engagement_engine.routes.deps import get_registration_tracker
from engagement_engine.schemas.event import JoinLinkResponse
from engagement_engine.schemas.registration import RegistrationRead
from engagement_engine.services.webinar_registration import WebinarRegistrationTracker

router = APIRouter(
    prefix="/candidate/webinar",
    tags=["Candidate Webinar Endpoints"]
)


@router.post(
    "/register/{event_id}",
    response_model=RegistrationRead,
    status_code=201,
)
async def register_for_webinar(
    event_id: UUID,
    response: Response,
    current_user: CurrentUser = Depends(is_candidate),
    tracker: WebinarRegistrationTracker = Depends(get_registration_tracker),
):
    try:
        return await tracker.register(event_id, current_user.id)
    except AlreadyRegistered as exc:
        response.status_code = 200
        return exc.record


@router.get(
    "/my-registrations",
    response_model=list[RegistrationRead],
)
async def list_my_registrations(
    current_user: CurrentUser = Depends(is_candidate),
    tracker: WebinarRegistrationTracker = Depends(get_registration_tracker),
):
    return await tracker.list_my_registrations(current_user.id)


@router.get(
    "/my-registration/{event_id}",
    response_model=RegistrationRead,
)
async def get_my_registration(
    event_id: UUID,
    current_user: CurrentUser = Depends(is_candidate),
    tracker: WebinarRegistrationTracker = Depends(get_registration_tracker),
):
    registration = await tracker.get_my_registration(event_id, current_user.id)
    if not registration:
        raise HTTPException(404, "You are not registered for this webinar")
    return registration


@router.get(
    "/join-link/{event_id}",
    response_model=JoinLinkResponse,
)
async def get_join_link(
    event_id: UUID,
    current_user: CurrentUser = Depends(is_candidate),
    tracker: WebinarRegistrationTracker = Depends(get_registration_tracker),
):
    link = await tracker.join_link(event_id, current_user.id)
    return JoinLinkResponse(event_id=event_id, meeting_link=link)
