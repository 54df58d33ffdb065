from fastapi import APIRouter, Depends, Response
from uuid import UUID

from engagement_engine.auth.dependencies import CurrentUser, is_recruiter
from engagement_engine.routes.deps import get_assignment_intake, get_grading_service
from engagement_engine.schemas.assignment_submission import (
    AssignmentSubmissionOwnerRead, AssignmentSubmissionGrade,
)
from engagement_engine.services.assignment_intake import AssignmentIntakeEngine
from engagement_engine.services.grading import GradingService

router = APIRouter(
    prefix="/recruiter/assignment-submission",
    tags=["Recruiter Assignment Submission Endpoints"]
)


# ------------------------------------
# List all candidate submissions
# ------------------------------------
@router.get(
    "/list-submissions/{event_id}",
    response_model=list[AssignmentSubmissionOwnerRead]
)
async def list_assignment_submissions(
    event_id: UUID,
    current_user: CurrentUser = Depends(is_recruiter),
    intake: AssignmentIntakeEngine = Depends(get_assignment_intake),
):
    return await intake.list_submissions(current_user.id, event_id)


# ------------------------------------
# Download a submitted file
# ------------------------------------
@router.get("/download/{submission_id}")
async def download_submission_file(
    submission_id: UUID,
    current_user: CurrentUser = Depends(is_recruiter),
    intake: AssignmentIntakeEngine = Depends(get_assignment_intake),
):
    submission, data = await intake.read_file(submission_id, current_user.id)
    return Response(
        content=data,
        media_type="application/octet-stream",
        headers={"Content-Disposition": f'attachment; filename="{submission.file_name}"'},
    )


# ---------------------------
# Grade Assignment Submission (Recruiter)
# ---------------------------
@router.patch(
    "/grade-submission/{submission_id}",
    response_model=AssignmentSubmissionOwnerRead
)
async def grade_assignment_submission(
    submission_id: UUID,
    grade_in: AssignmentSubmissionGrade,
    current_user: CurrentUser = Depends(is_recruiter),
    grading: GradingService = Depends(get_grading_service),
):
    return await grading.grade_assignment(
        current_user.id, submission_id, grade_in.score, grade_in.feedback
    )
