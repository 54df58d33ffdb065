from fastapi import APIRouter, Depends
from uuid import UUID

from engagement_engine.auth.dependencies import CurrentUser, is_recruiter
from engagement_engine.models import QuizSubmission
from engagement_engine.routes.deps import get_quiz_engine, get_grading_service
from engagement_engine.schemas.quiz_submission import (
    QuizSubmissionListItem, QuizSubmissionDetailView, QuizGrade,
)
from engagement_engine.services.grading import GradingService
from engagement_engine.services.quiz_session import QuizSessionEngine

router = APIRouter(
    prefix="/recruiter/quiz-submission",
    tags=["Recruiter Quiz Submission Endpoints"]
)


def _list_item(sub: QuizSubmission) -> dict:
    return dict(
        submission_id=sub.id,
        event_id=sub.event_id,
        participant_id=sub.participant_id,
        status="submitted" if sub.is_submitted else "in_progress",
        started_at=sub.started_at,
        submitted_at=sub.submitted_at,
        time_taken_seconds=sub.time_taken_seconds,
        auto_submitted=sub.auto_submitted,
        score=sub.score,
        max_score=sub.max_score,
        graded_at=sub.graded_at,
    )


def _detail(sub: QuizSubmission) -> QuizSubmissionDetailView:
    return QuizSubmissionDetailView(
        **_list_item(sub),
        answers=sub.answers or {},
        graded_by=sub.graded_by,
    )


@router.get(
    "/list-submissions/{event_id}",
    response_model=list[QuizSubmissionListItem],
)
async def list_quiz_submissions(
    event_id: UUID,
    current_user: CurrentUser = Depends(is_recruiter),
    quiz_engine: QuizSessionEngine = Depends(get_quiz_engine),
):
    # Expired sessions are submitted before they are listed
    submissions = await quiz_engine.list_submissions(current_user.id, event_id)
    return [QuizSubmissionListItem(**_list_item(sub)) for sub in submissions]


@router.get(
    "/submission-detail/{submission_id}",
    response_model=QuizSubmissionDetailView,
)
async def get_quiz_submission_detail(
    submission_id: UUID,
    current_user: CurrentUser = Depends(is_recruiter),
    quiz_engine: QuizSessionEngine = Depends(get_quiz_engine),
):
    submission = await quiz_engine.get_submission_for_owner(current_user.id, submission_id)
    return _detail(submission)


@router.patch(
    "/grade-submission/{submission_id}",
    response_model=QuizSubmissionDetailView,
)
async def grade_quiz_submission(
    submission_id: UUID,
    grade_in: QuizGrade,
    current_user: CurrentUser = Depends(is_recruiter),
    grading: GradingService = Depends(get_grading_service),
):
    submission = await grading.grade_quiz(current_user.id, submission_id, grade_in.score)
    return _detail(submission)
