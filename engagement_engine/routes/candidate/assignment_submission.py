from fastapi import APIRouter, Depends, HTTPException, UploadFile, File, Response
from uuid import UUID

from engagement_engine.auth.dependencies import CurrentUser, is_candidate
from engagement_engine.routes.deps import get_assignment_intake
from engagement_engine.schemas.assignment_submission import AssignmentSubmissionRead
from engagement_engine.services.assignment_intake import AssignmentIntakeEngine

router = APIRouter(
    prefix="/candidate/assignment-submission",
    tags=["Candidate Assignment Endpoints"]
)


# ---------------------------
# Submit Assignment
# ---------------------------
@router.post(
    "/submit-assignment/{event_id}",
    response_model=AssignmentSubmissionRead,
    status_code=201,
)
async def submit_assignment(
    event_id: UUID,
    file: UploadFile = File(...),
    current_user: CurrentUser = Depends(is_candidate),
    intake: AssignmentIntakeEngine = Depends(get_assignment_intake),
):
    content = await file.read()
    return await intake.submit(event_id, current_user.id, file.filename or "", content)


# ---------------------------
# Current candidate's submission
# ---------------------------
@router.get(
    "/my-submission/{event_id}",
    response_model=AssignmentSubmissionRead,
)
async def get_my_submission(
    event_id: UUID,
    current_user: CurrentUser = Depends(is_candidate),
    intake: AssignmentIntakeEngine = Depends(get_assignment_intake),
):
    submission = await intake.get_my_submission(event_id, current_user.id)
    if not submission:
        raise HTTPException(404, "You have not submitted this assignment")
    return submission


@router.get("/download/{submission_id}")
async def download_my_file(
    submission_id: UUID,
    current_user: CurrentUser = Depends(is_candidate),
    intake: AssignmentIntakeEngine = Depends(get_assignment_intake),
):
    submission, data = await intake.read_file(submission_id, current_user.id)
    return Response(
        content=data,
        media_type="application/octet-stream",
        headers={"Content-Disposition": f'attachment; filename="{submission.file_name}"'},
    )
