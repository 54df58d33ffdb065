from fastapi import APIRouter, Depends, HTTPException, Response
from uuid import UUID

from engagement_engine.auth.dependencies import CurrentUser, is_candidate
from engagement_engine.clock import SystemClock, get_clock
from engagement_engine.errors import AlreadyStarted, AlreadySubmitted
from engagement_engine.models import QuizSubmission
from engagement_engine.routes.deps import get_quiz_engine
from engagement_engine.schemas.question import QuizDetailView, QuestionView
from engagement_engine.schemas.quiz_submission import AnswerSave, QuizSessionView
from engagement_engine.services.quiz_session import QuizSessionEngine, session_deadline, seconds_remaining

router = APIRouter(
    prefix="/candidate/quiz",
    tags=["Candidate Quiz Endpoints"]
)


def build_session_view(submission: QuizSubmission, clock: SystemClock) -> QuizSessionView:
    return QuizSessionView(
        submission_id=submission.id,
        event_id=submission.event_id,
        status="submitted" if submission.is_submitted else "in_progress",
        answers=submission.answers or {},
        started_at=submission.started_at,
        deadline=session_deadline(submission),
        seconds_remaining=seconds_remaining(submission, clock.now()),
        submitted_at=submission.submitted_at,
        time_taken_seconds=submission.time_taken_seconds,
        auto_submitted=submission.auto_submitted,
        score=submission.score,
        max_score=submission.max_score,
    )


@router.get(
    "/attend-quiz/{event_id}",
    response_model=QuizDetailView,
)
async def get_quiz_details(
    event_id: UUID,
    current_user: CurrentUser = Depends(is_candidate),
    quiz_engine: QuizSessionEngine = Depends(get_quiz_engine),
):
    event, questions = await quiz_engine.get_participant_quiz(event_id)

    # --------------------------
    # Response (correct answers never leave the engine)
    # --------------------------
    return QuizDetailView(
        event_id=event.id,
        title=event.title,
        description=event.description,
        time_limit_minutes=event.time_limit_minutes,
        total_points=sum(q.points for q in questions),
        questions=[QuestionView.model_validate(q) for q in questions],
    )


@router.post(
    "/start-quiz/{event_id}",
    response_model=QuizSessionView,
    status_code=201,
)
async def start_quiz(
    event_id: UUID,
    response: Response,
    current_user: CurrentUser = Depends(is_candidate),
    quiz_engine: QuizSessionEngine = Depends(get_quiz_engine),
    clock: SystemClock = Depends(get_clock),
):
    try:
        submission = await quiz_engine.start(event_id, current_user.id)
    except AlreadyStarted as exc:
        # Reconnecting client: resume the existing attempt
        response.status_code = 200
        submission = exc.record

    return build_session_view(submission, clock)


@router.get(
    "/my-session/{event_id}",
    response_model=QuizSessionView,
)
async def get_my_session(
    event_id: UUID,
    current_user: CurrentUser = Depends(is_candidate),
    quiz_engine: QuizSessionEngine = Depends(get_quiz_engine),
    clock: SystemClock = Depends(get_clock),
):
    submission = await quiz_engine.get_my_session(event_id, current_user.id)
    if not submission:
        raise HTTPException(404, "You have not started this quiz")
    return build_session_view(submission, clock)


@router.get(
    "/session/{submission_id}",
    response_model=QuizSessionView,
)
async def poll_session(
    submission_id: UUID,
    current_user: CurrentUser = Depends(is_candidate),
    quiz_engine: QuizSessionEngine = Depends(get_quiz_engine),
    clock: SystemClock = Depends(get_clock),
):
    submission = await quiz_engine.get_session(submission_id, current_user.id)
    return build_session_view(submission, clock)


@router.put(
    "/save-answer/{submission_id}",
    response_model=QuizSessionView,
)
async def save_answer(
    submission_id: UUID,
    payload: AnswerSave,
    current_user: CurrentUser = Depends(is_candidate),
    quiz_engine: QuizSessionEngine = Depends(get_quiz_engine),
    clock: SystemClock = Depends(get_clock),
):
    try:
        submission = await quiz_engine.save_answer(
            submission_id, current_user.id, payload.question_id, payload.answer
        )
    except AlreadySubmitted as exc:
        # Time is up or the quiz was submitted: the answer is not recorded
        submission = exc.record

    return build_session_view(submission, clock)


@router.post(
    "/submit-quiz/{submission_id}",
    response_model=QuizSessionView,
)
async def submit_quiz(
    submission_id: UUID,
    current_user: CurrentUser = Depends(is_candidate),
    quiz_engine: QuizSessionEngine = Depends(get_quiz_engine),
    clock: SystemClock = Depends(get_clock),
):
    submission = await quiz_engine.submit(submission_id, current_user.id)
    return build_session_view(submission, clock)
