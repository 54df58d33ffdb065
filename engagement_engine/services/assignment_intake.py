import logging
from typing import List, Optional
from uuid import UUID

from engagement_engine.clock import SystemClock
from engagement_engine.config import (
    DEFAULT_ALLOWED_FILE_TYPES, DEFAULT_MAX_FILE_SIZE_MB, DEFAULT_ASSIGNMENT_MAX_SCORE,
)
from engagement_engine.errors import (
    NotFound, ValidationError, NotAvailable, UnsupportedType, TooLarge, AlreadySubmitted,
)
from engagement_engine.helpers.event_status import assignment_availability, AvailabilityStatus
from engagement_engine.helpers.file_paths import file_extension, max_size_bytes, assignment_path_hint
from engagement_engine.models import Event, EventType, AssignmentSubmission
from engagement_engine.stores.event_store import EventStore, DuplicateRecord
from engagement_engine.stores.object_store import ObjectStore

logger = logging.getLogger(__name__)


class AssignmentIntakeEngine:
    """
    Single-shot file intake for assignment events.

    Checks run in a fixed order and all of them before anything is written:
    file type, file size, existing submission, deadline. The file is stored
    first and the record created second, so a record always points at a
    readable file.
    """

    def __init__(self, store: EventStore, object_store: ObjectStore, clock: SystemClock):
        self.store = store
        self.object_store = object_store
        self.clock = clock

    async def _get_published_assignment(self, event_id: UUID) -> Event:
        event = await self.store.get(Event, event_id)
        if not event or not event.is_published:
            raise NotFound("Event not found")
        if event.event_type != EventType.ASSIGNMENT:
            raise ValidationError("Event is not an assignment")
        return event

    async def _get_owned_assignment(self, owner_id: UUID, event_id: UUID) -> Event:
        event = await self.store.get(Event, event_id)
        if not event or event.owner_id != owner_id:
            raise NotFound("Event not found")
        if event.event_type != EventType.ASSIGNMENT:
            raise ValidationError("Event is not an assignment")
        return event

    async def submit(
        self,
        event_id: UUID,
        participant_id: UUID,
        file_name: str,
        content: bytes,
    ) -> AssignmentSubmission:
        event = await self._get_published_assignment(event_id)

        # 1️⃣ File type
        allowed = event.allowed_file_types or list(DEFAULT_ALLOWED_FILE_TYPES)
        ext = file_extension(file_name)
        if ext not in allowed:
            logger.info("Rejected upload %r for event %s: extension not allowed", file_name, event_id)
            raise UnsupportedType(
                f"Files of type '.{ext}' are not accepted. Allowed: {', '.join(allowed)}"
                if ext else f"File has no extension. Allowed: {', '.join(allowed)}",
                extension=ext,
                allowed=allowed,
            )

        # 2️⃣ File size
        limit_mb = event.max_file_size_mb or DEFAULT_MAX_FILE_SIZE_MB
        limit_bytes = max_size_bytes(limit_mb)
        size = len(content)
        if size > limit_bytes:
            logger.info("Rejected upload %r for event %s: %d bytes over limit", file_name, event_id, size)
            raise TooLarge(
                f"File is {size} bytes; the limit is {limit_mb} MB",
                size_bytes=size,
                limit_bytes=limit_bytes,
            )

        # 3️⃣ Prevent multiple submissions
        existing = await self.store.get_for_participant(AssignmentSubmission, event_id, participant_id)
        if existing:
            raise AlreadySubmitted("You have already submitted this assignment", record=existing)

        # 4️⃣ Deadline
        now = self.clock.now()
        if assignment_availability(event, now) == AvailabilityStatus.DEADLINE_PASSED:
            raise NotAvailable("Deadline has passed", deadline=event.submission_deadline.isoformat())

        # 5️⃣ Store the file, then create the record
        max_score = event.max_score or DEFAULT_ASSIGNMENT_MAX_SCORE
        locator = await self.object_store.put(
            assignment_path_hint(participant_id, event_id, ext, now),
            content,
        )

        submission = AssignmentSubmission(
            event_id=event_id,
            participant_id=participant_id,
            file_url=locator,
            file_name=file_name,
            file_size_bytes=size,
            submitted_at=now,
            max_score=max_score,
        )
        try:
            submission = await self.store.create(submission)
        except DuplicateRecord:
            await self._discard(locator)
            existing = await self.store.get_for_participant(AssignmentSubmission, event_id, participant_id)
            raise AlreadySubmitted("You have already submitted this assignment", record=existing)
        except Exception:
            await self._discard(locator)
            raise

        logger.info("Accepted assignment %s from participant %s for event %s", submission.id, participant_id, event_id)
        return submission

    async def _discard(self, locator: str) -> None:
        """Best-effort removal of a stored file that never got a record."""
        try:
            await self.object_store.delete(locator)
        except Exception:
            logger.warning("Left orphaned upload %s in the object store", locator, exc_info=True)

    async def get_my_submission(self, event_id: UUID, participant_id: UUID) -> Optional[AssignmentSubmission]:
        await self._get_published_assignment(event_id)
        return await self.store.get_for_participant(AssignmentSubmission, event_id, participant_id)

    async def list_submissions(self, owner_id: UUID, event_id: UUID) -> List[AssignmentSubmission]:
        await self._get_owned_assignment(owner_id, event_id)
        return await self.store.list_by_event(
            AssignmentSubmission, event_id, order_by=AssignmentSubmission.submitted_at.desc()
        )

    async def read_file(self, submission_id: UUID, caller_id: UUID) -> tuple:
        """
        Returns (submission, bytes) for the event owner or the submitting
        participant. Anyone else gets NotFound.
        """
        submission = await self.store.get(AssignmentSubmission, submission_id)
        if not submission:
            raise NotFound("Submission not found")

        if submission.participant_id != caller_id:
            event = await self.store.get(Event, submission.event_id)
            if not event or event.owner_id != caller_id:
                raise NotFound("Submission not found")

        data = await self.object_store.get(submission.file_url)
        return submission, data
