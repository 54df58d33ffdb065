"""
Grading workflow for quiz and assignment submissions.

A grade is written once. The write is a conditional update on
``graded_at IS NULL`` so two near-simultaneous grade calls cannot both
succeed; repeating an identical grade is accepted as a no-op.
"""
import logging
from typing import Optional
from uuid import UUID

from engagement_engine.clock import SystemClock
from engagement_engine.errors import NotFound, NotAvailable, InvalidScore, AlreadyGraded
from engagement_engine.models import Event, QuizSubmission, AssignmentSubmission
from engagement_engine.services.quiz_session import QuizSessionEngine
from engagement_engine.stores.event_store import EventStore

logger = logging.getLogger(__name__)


def check_score(score: int, max_score: Optional[int]) -> None:
    if max_score is None or not isinstance(score, int) or isinstance(score, bool) or not 0 <= score <= max_score:
        raise InvalidScore(
            f"Score must be between 0 and {max_score}",
            score=score,
            max_score=max_score,
        )


class GradingService:

    def __init__(self, store: EventStore, clock: SystemClock, quiz_engine: Optional[QuizSessionEngine] = None):
        self.store = store
        self.clock = clock
        self.quiz_engine = quiz_engine or QuizSessionEngine(store, clock)

    async def _ensure_owner(self, owner_id: UUID, event_id: UUID) -> Event:
        event = await self.store.get(Event, event_id)
        if not event or event.owner_id != owner_id:
            raise NotFound("Submission not found")
        return event

    async def _write_grade(self, model, submission, grader_id: UUID, fields: dict):
        values = {**fields, "graded_at": self.clock.now(), "graded_by": grader_id}
        changed = await self.store.update_where(
            model, submission.id, values, model.graded_at.is_(None)
        )
        submission = await self.store.refresh(submission)

        if not changed:
            if all(getattr(submission, name) == value for name, value in fields.items()):
                return submission
            raise AlreadyGraded(
                "Submission has already been graded",
                graded_at=submission.graded_at.isoformat() if submission.graded_at else None,
            )
        return submission

    async def grade_quiz(self, owner_id: UUID, submission_id: UUID, score: int) -> QuizSubmission:
        # runs the lazy deadline check, so an expired session is gradable
        submission = await self.quiz_engine.get_submission_for_owner(owner_id, submission_id)

        if not submission.is_submitted:
            raise NotAvailable("Quiz is still in progress")

        check_score(score, submission.max_score)

        submission = await self._write_grade(QuizSubmission, submission, owner_id, {"score": score})
        logger.info("Graded quiz submission %s: %s/%s", submission.id, score, submission.max_score)
        return submission

    async def grade_assignment(
        self,
        owner_id: UUID,
        submission_id: UUID,
        score: int,
        feedback: Optional[str] = None,
    ) -> AssignmentSubmission:
        submission = await self.store.get(AssignmentSubmission, submission_id)
        if not submission:
            raise NotFound("Submission not found")
        await self._ensure_owner(owner_id, submission.event_id)

        check_score(score, submission.max_score)

        submission = await self._write_grade(
            AssignmentSubmission, submission, owner_id, {"score": score, "feedback": feedback}
        )
        logger.info("Graded assignment submission %s: %s/%s", submission.id, score, submission.max_score)
        return submission
