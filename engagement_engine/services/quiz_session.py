"""
Quiz session state machine.

States:
- NotStarted: no QuizSubmission row for (event, participant)
- InProgress: row exists, submitted_at is null
- Submitted: submitted_at is set (terminal)

The deadline is always derived from the stored started_at plus the time
limit snapshotted at start. It is checked lazily on every access: any read
or write that observes ``now >= deadline`` first submits the session with
the answers recorded so far. The forced record is stamped with the deadline
itself, so it does not matter when, or in which process, expiry is noticed.
"""
import logging
from datetime import datetime, timedelta
from typing import List, Optional, Tuple
from uuid import UUID

from engagement_engine.clock import SystemClock
from engagement_engine.errors import (
    NotFound, ValidationError, NotAvailable, AlreadyStarted, AlreadySubmitted, InvalidQuestion,
)
from engagement_engine.helpers.event_status import quiz_availability, AvailabilityStatus
from engagement_engine.helpers.quiz_answer_evaluator import evaluate_quiz_answers
from engagement_engine.helpers.record_locks import RecordLocks, submission_locks
from engagement_engine.models import Event, EventType, Question, QuizSubmission
from engagement_engine.stores.event_store import EventStore, DuplicateRecord

logger = logging.getLogger(__name__)


def session_deadline(submission: QuizSubmission) -> Optional[datetime]:
    if not submission.time_limit_minutes:
        return None
    return submission.started_at + timedelta(minutes=submission.time_limit_minutes)


def seconds_remaining(submission: QuizSubmission, now: datetime) -> Optional[int]:
    if submission.is_submitted:
        return 0
    deadline = session_deadline(submission)
    if deadline is None:
        return None
    return max(0, int((deadline - now).total_seconds()))


class QuizSessionEngine:

    def __init__(self, store: EventStore, clock: SystemClock, locks: RecordLocks = submission_locks):
        self.store = store
        self.clock = clock
        self.locks = locks

    # ---------------------------
    # Lookups
    # ---------------------------
    async def _get_published_quiz(self, event_id: UUID) -> Event:
        event = await self.store.get(Event, event_id)
        if not event or not event.is_published:
            raise NotFound("Event not found")
        if event.event_type != EventType.QUIZ:
            raise ValidationError("Event is not a quiz")
        return event

    async def _load(self, submission_id: UUID, participant_id: Optional[UUID] = None) -> QuizSubmission:
        submission = await self.store.get(QuizSubmission, submission_id, for_update=True)
        if not submission:
            raise NotFound("Quiz session not found")
        if participant_id is not None and submission.participant_id != participant_id:
            raise NotFound("Quiz session not found")
        return submission

    async def get_participant_quiz(self, event_id: UUID) -> Tuple[Event, List[Question]]:
        """Published quiz with its ordered questions. Callers must not expose correct_answer."""
        event = await self._get_published_quiz(event_id)
        questions = await self.store.list_by_event(Question, event_id, order_by=Question.position)
        return event, questions

    async def get_my_session(self, event_id: UUID, participant_id: UUID) -> Optional[QuizSubmission]:
        await self._get_published_quiz(event_id)
        submission = await self.store.get_for_participant(QuizSubmission, event_id, participant_id)
        if submission is None:
            return None
        return await self.get_session(submission.id, participant_id)

    # ---------------------------
    # Deadline enforcement
    # ---------------------------
    async def _finalize(self, submission: QuizSubmission, forced: bool) -> QuizSubmission:
        questions = await self.store.list_by_event(Question, submission.event_id)
        score, max_score = evaluate_quiz_answers(questions, submission.answers or {})

        if forced:
            submitted_at = session_deadline(submission)
            time_taken = submission.time_limit_minutes * 60
        else:
            submitted_at = self.clock.now()
            time_taken = max(0, int((submitted_at - submission.started_at).total_seconds()))

        submission = await self.store.update(submission, {
            "submitted_at": submitted_at,
            "time_taken_seconds": time_taken,
            "score": score,
            "max_score": max_score,
            "auto_submitted": forced,
        })
        logger.info(
            "%s quiz session %s: score %s/%s",
            "Force-submitted" if forced else "Submitted",
            submission.id, score, max_score,
        )
        return submission

    async def _enforce_deadline(self, submission: QuizSubmission) -> QuizSubmission:
        if submission.is_submitted:
            return submission

        deadline = session_deadline(submission)
        if deadline is not None and self.clock.now() >= deadline:
            return await self._finalize(submission, forced=True)
        return submission

    # ---------------------------
    # Transitions
    # ---------------------------
    async def start(self, event_id: UUID, participant_id: UUID) -> QuizSubmission:
        """
        NotStarted -> InProgress.
        An existing session is returned through AlreadyStarted so a client
        that reconnects resumes the same attempt.
        """
        event = await self._get_published_quiz(event_id)

        existing = await self.store.get_for_participant(QuizSubmission, event_id, participant_id)
        if existing:
            existing = await self.get_session(existing.id, participant_id)
            raise AlreadyStarted("Quiz already started", record=existing)

        now = self.clock.now()
        availability = quiz_availability(event, now)
        if availability == AvailabilityStatus.UPCOMING:
            raise NotAvailable("Quiz has not opened yet", opens_at=event.start_time.isoformat())
        if availability == AvailabilityStatus.CLOSED:
            raise NotAvailable("Quiz is closed", closed_at=event.end_time.isoformat())

        submission = QuizSubmission(
            event_id=event.id,
            participant_id=participant_id,
            answers={},
            started_at=now,
            time_limit_minutes=event.time_limit_minutes,
            auto_submitted=False,
        )
        try:
            submission = await self.store.create(submission)
        except DuplicateRecord:
            # lost a race with another start for the same participant
            existing = await self.store.get_for_participant(QuizSubmission, event_id, participant_id)
            raise AlreadyStarted("Quiz already started", record=existing)

        logger.info("Participant %s started quiz %s (session %s)", participant_id, event_id, submission.id)
        return submission

    async def get_session(self, submission_id: UUID, participant_id: UUID) -> QuizSubmission:
        """Client poll. Submits the session first if its deadline has passed."""
        async with self.locks.for_record(submission_id):
            submission = await self._load(submission_id, participant_id)
            return await self._enforce_deadline(submission)

    async def save_answer(
        self,
        submission_id: UUID,
        participant_id: UUID,
        question_id: UUID,
        answer_text: str,
    ) -> QuizSubmission:
        async with self.locks.for_record(submission_id):
            submission = await self._load(submission_id, participant_id)
            submission = await self._enforce_deadline(submission)

            if submission.is_submitted:
                raise AlreadySubmitted("Quiz has already been submitted", record=submission)

            question = await self.store.get(Question, question_id)
            if not question or question.event_id != submission.event_id:
                raise InvalidQuestion("Question does not belong to this quiz", question_id=str(question_id))

            answers = dict(submission.answers or {})
            answers[str(question_id)] = answer_text
            return await self.store.update(submission, {"answers": answers})

    async def submit(self, submission_id: UUID, participant_id: UUID) -> QuizSubmission:
        """InProgress -> Submitted. Repeated calls return the stored result unchanged."""
        async with self.locks.for_record(submission_id):
            submission = await self._load(submission_id, participant_id)
            if submission.is_submitted:
                return submission

            submission = await self._enforce_deadline(submission)
            if submission.is_submitted:
                return submission

            return await self._finalize(submission, forced=False)

    # ---------------------------
    # Owner views
    # ---------------------------
    async def _get_owned_quiz(self, owner_id: UUID, event_id: UUID) -> Event:
        event = await self.store.get(Event, event_id)
        if not event or event.owner_id != owner_id:
            raise NotFound("Event not found")
        if event.event_type != EventType.QUIZ:
            raise ValidationError("Event is not a quiz")
        return event

    async def list_submissions(self, owner_id: UUID, event_id: UUID) -> List[QuizSubmission]:
        await self._get_owned_quiz(owner_id, event_id)

        submissions = await self.store.list_by_event(QuizSubmission, event_id, order_by=QuizSubmission.started_at.desc())
        result = []
        for submission in submissions:
            if not submission.is_submitted:
                async with self.locks.for_record(submission.id):
                    submission = await self._enforce_deadline(await self._load(submission.id))
            result.append(submission)
        return result

    async def get_submission_for_owner(self, owner_id: UUID, submission_id: UUID) -> QuizSubmission:
        async with self.locks.for_record(submission_id):
            submission = await self._load(submission_id)
            event = await self.store.get(Event, submission.event_id)
            if not event or event.owner_id != owner_id:
                raise NotFound("Quiz session not found")
            return await self._enforce_deadline(submission)
