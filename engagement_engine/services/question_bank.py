import logging
from typing import Any, Dict, List
from uuid import UUID

from engagement_engine.errors import NotFound, ValidationError
from engagement_engine.helpers.record_locks import RecordLocks, question_locks
from engagement_engine.models import Event, EventType, Question, QuestionType
from engagement_engine.services.event_lifecycle import EventLifecycleManager, coerce_enum
from engagement_engine.stores.event_store import EventStore

logger = logging.getLogger(__name__)

QUESTION_FIELDS = ("question_text", "question_type", "options", "correct_answer", "points")


def validate_question(fields: Dict[str, Any]) -> None:
    """Checks a complete (merged) question definition."""

    text = fields.get("question_text")
    if not text or not str(text).strip():
        raise ValidationError("Question text is required", field="question_text")

    points = fields.get("points")
    if not isinstance(points, int) or isinstance(points, bool) or points < 1:
        raise ValidationError("Points must be a positive integer", field="points")

    if fields["question_type"] == QuestionType.MCQ:
        options = fields.get("options") or []
        if len(options) < 2:
            raise ValidationError("Multiple-choice questions need at least two options", field="options")
        if any(not str(opt).strip() for opt in options):
            raise ValidationError("Options cannot be blank", field="options")

        valid_answers = {str(index) for index in range(len(options))}
        if fields.get("correct_answer") not in valid_answers:
            raise ValidationError(
                "correct_answer must be the index of one of the options, e.g. '0'",
                field="correct_answer",
            )
    else:
        if fields.get("options"):
            raise ValidationError("Short-answer questions do not take options", field="options")
        if fields.get("correct_answer") is not None:
            raise ValidationError("Short-answer questions do not take a correct answer", field="correct_answer")


class QuestionBank:
    """
    Authoring of quiz questions. Positions stay zero-based and dense.

    Writes that assign positions (add, delete, reorder) hold the quiz's lock
    and its event row lock, so two of them never read the same position list.
    """

    def __init__(self, store: EventStore, lifecycle: EventLifecycleManager, locks: RecordLocks = question_locks):
        self.store = store
        self.lifecycle = lifecycle
        self.locks = locks

    async def _get_owned_quiz(self, owner_id: UUID, event_id: UUID) -> Event:
        event = await self.lifecycle.get_owned(owner_id, event_id)
        if event.event_type != EventType.QUIZ:
            raise ValidationError("Questions can only be added to quiz events")
        return event

    async def _get_owned_question(self, owner_id: UUID, question_id: UUID) -> Question:
        question = await self.store.get(Question, question_id)
        if not question:
            raise NotFound("Question not found")

        event = await self.store.get(Event, question.event_id)
        if not event or event.owner_id != owner_id:
            raise NotFound("Question not found")
        return question

    async def list_questions(self, owner_id: UUID, event_id: UUID) -> List[Question]:
        await self._get_owned_quiz(owner_id, event_id)
        return await self.store.list_by_event(Question, event_id, order_by=Question.position)

    async def total_points(self, event_id: UUID) -> int:
        return await self.store.total_points(event_id)

    async def add_question(self, owner_id: UUID, event_id: UUID, data: Dict[str, Any]) -> Question:
        fields = {name: data.get(name) for name in QUESTION_FIELDS}
        if fields["points"] is None:
            fields["points"] = 1

        async with self.locks.for_record(event_id):
            await self._get_owned_quiz(owner_id, event_id)

            if fields["question_type"] is None:
                raise ValidationError("question_type is required", field="question_type")
            fields["question_type"] = coerce_enum(QuestionType, fields["question_type"], "question_type")
            validate_question(fields)

            await self.store.get(Event, event_id, for_update=True)
            existing = await self.store.list_by_event(Question, event_id)
            position = max((q.position for q in existing), default=-1) + 1

            question = await self.store.create(Question(event_id=event_id, position=position, **fields))
        logger.info("Added question %s at position %d to event %s", question.id, position, event_id)
        return question

    async def update_question(self, owner_id: UUID, question_id: UUID, changes: Dict[str, Any]) -> Question:
        question = await self._get_owned_question(owner_id, question_id)

        unknown = [name for name in changes if name not in QUESTION_FIELDS]
        if unknown:
            raise ValidationError(f"Unknown field '{unknown[0]}'", field=unknown[0])

        changes = dict(changes)
        if "question_type" in changes:
            changes["question_type"] = coerce_enum(QuestionType, changes["question_type"], "question_type")

        merged = {name: getattr(question, name) for name in QUESTION_FIELDS}
        merged.update(changes)
        if merged["question_type"] == QuestionType.SHORT_ANSWER:
            # short answers never keep mcq-only columns
            for name in ("options", "correct_answer"):
                if name not in changes:
                    changes[name] = merged[name] = None
        validate_question(merged)

        return await self.store.update(question, changes)

    async def delete_question(self, owner_id: UUID, question_id: UUID) -> None:
        question = await self._get_owned_question(owner_id, question_id)
        event_id = question.event_id

        async with self.locks.for_record(event_id):
            await self.store.get(Event, event_id, for_update=True)
            await self.store.delete(question)

            remaining = await self.store.list_by_event(Question, event_id, order_by=Question.position)
            await self.store.update_many(
                (q, {"position": index})
                for index, q in enumerate(remaining)
                if q.position != index
            )

    async def reorder_questions(self, owner_id: UUID, event_id: UUID, ordered_ids: List[UUID]) -> List[Question]:
        async with self.locks.for_record(event_id):
            await self._get_owned_quiz(owner_id, event_id)
            await self.store.get(Event, event_id, for_update=True)
            questions = await self.store.list_by_event(Question, event_id)
            by_id = {q.id: q for q in questions}

            if len(ordered_ids) != len(by_id) or set(ordered_ids) != set(by_id):
                raise ValidationError("ordered_ids must list every question of the quiz exactly once")

            await self.store.update_many(
                (by_id[question_id], {"position": index})
                for index, question_id in enumerate(ordered_ids)
            )
        return [by_id[question_id] for question_id in ordered_ids]
