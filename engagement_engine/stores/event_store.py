import logging
from typing import Any, Dict, Iterable, List, Optional, Type
from uuid import UUID

from sqlalchemy import select, update, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from engagement_engine.database import Base
from engagement_engine.models import (
    Event, EventStatus, EventType, Question, Registration,
    QuizSubmission, AssignmentSubmission,
)

logger = logging.getLogger(__name__)


class DuplicateRecord(Exception):
    """A create hit a uniqueness constraint, e.g. a second submission for the same participant."""


class EventStore:
    """
    Persistence gateway for events and their child records.

    Every write commits before returning, so each engine operation is a
    single short transaction. Reads never cache across operations.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    # ---------------------------
    # Reads
    # ---------------------------
    async def get(self, model: Type[Base], record_id: UUID, for_update: bool = False):
        stmt = select(model).where(model.id == record_id)
        if for_update:
            # re-read the row even if this session already holds it
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def list_by_event(self, model: Type[Base], event_id: UUID, order_by=None) -> List[Any]:
        stmt = select(model).where(model.event_id == event_id)
        if order_by is not None:
            stmt = stmt.order_by(order_by)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get_for_participant(self, model: Type[Base], event_id: UUID, participant_id: UUID):
        result = await self.db.execute(
            select(model).where(
                model.event_id == event_id,
                model.participant_id == participant_id,
            )
        )
        return result.scalar_one_or_none()

    async def list_for_participant(self, model: Type[Base], participant_id: UUID) -> List[Any]:
        result = await self.db.execute(
            select(model).where(model.participant_id == participant_id)
        )
        return list(result.scalars().all())

    async def list_owned_events(self, owner_id: UUID) -> List[Event]:
        result = await self.db.execute(
            select(Event)
            .where(Event.owner_id == owner_id)
            .order_by(Event.created_at.desc())
        )
        return list(result.scalars().all())

    async def list_published_events(
        self,
        event_type: Optional[EventType] = None,
        job_id: Optional[UUID] = None,
    ) -> List[Event]:
        stmt = select(Event).where(Event.status == EventStatus.PUBLISHED)
        if event_type is not None:
            stmt = stmt.where(Event.event_type == event_type)
        if job_id is not None:
            stmt = stmt.where(Event.job_id == job_id)
        result = await self.db.execute(stmt.order_by(Event.created_at.desc()))
        return list(result.scalars().all())

    async def total_points(self, event_id: UUID) -> int:
        result = await self.db.execute(
            select(func.coalesce(func.sum(Question.points), 0))
            .where(Question.event_id == event_id)
        )
        return int(result.scalar() or 0)

    async def child_counts(self, event_ids: Iterable[UUID]) -> Dict[UUID, Dict[str, int]]:
        """
        Question, registration and submission counts for many events with
        one grouped query per child table.
        """
        event_ids = list(event_ids)
        counts = {
            event_id: {"questions_count": 0, "registrations_count": 0, "submissions_count": 0}
            for event_id in event_ids
        }
        if not event_ids:
            return counts

        for model, key in (
            (Question, "questions_count"),
            (Registration, "registrations_count"),
            (QuizSubmission, "submissions_count"),
            (AssignmentSubmission, "submissions_count"),
        ):
            result = await self.db.execute(
                select(model.event_id, func.count(model.id))
                .where(model.event_id.in_(event_ids))
                .group_by(model.event_id)
            )
            for event_id, count in result.all():
                counts[event_id][key] += count

        return counts

    # ---------------------------
    # Writes
    # ---------------------------
    async def create(self, record):
        self.db.add(record)
        try:
            await self.db.commit()
        except IntegrityError as exc:
            await self.db.rollback()
            raise DuplicateRecord(str(exc.orig)) from exc
        await self.db.refresh(record)
        return record

    async def update(self, record, fields: Dict[str, Any]):
        for name, value in fields.items():
            setattr(record, name, value)
        await self.db.commit()
        await self.db.refresh(record)
        return record

    async def update_many(self, records_fields: Iterable[tuple]) -> None:
        for record, fields in records_fields:
            for name, value in fields.items():
                setattr(record, name, value)
        await self.db.commit()

    async def update_where(self, model: Type[Base], record_id: UUID, fields: Dict[str, Any], *conditions) -> int:
        """
        Conditional update: only rows matching ``conditions`` are written.
        Returns the number of rows changed so callers can detect a lost race.
        """
        result = await self.db.execute(
            update(model)
            .where(model.id == record_id, *conditions)
            .values(**fields)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        return result.rowcount

    async def delete(self, record) -> None:
        await self.db.delete(record)
        await self.db.commit()

    async def delete_event(self, event_id: UUID) -> Optional[Event]:
        # Children are loaded up front so the ORM cascade can run without lazy IO.
        result = await self.db.execute(
            select(Event)
            .options(
                selectinload(Event.questions),
                selectinload(Event.registrations),
                selectinload(Event.quiz_submissions),
                selectinload(Event.assignment_submissions),
            )
            .where(Event.id == event_id)
        )
        event = result.scalar_one_or_none()
        if not event:
            return None

        await self.db.delete(event)
        await self.db.commit()
        logger.info("Deleted event %s with its questions, registrations and submissions", event_id)
        return event

    async def refresh(self, record):
        await self.db.refresh(record)
        return record
