import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from engagement_engine.clock import SystemClock
from engagement_engine.config import (
    DEFAULT_MAX_FILE_SIZE_MB, DEFAULT_ALLOWED_FILE_TYPES, DEFAULT_ASSIGNMENT_MAX_SCORE,
)
from engagement_engine.errors import NotFound, ValidationError
from engagement_engine.helpers.file_paths import normalize_extension
from engagement_engine.models import (
    Event, EventStatus, EventType, WebinarPlatform, TYPE_FIELDS, ALL_TYPE_FIELDS, as_utc,
)
from engagement_engine.stores.event_store import EventStore
from engagement_engine.stores.object_store import ObjectStore

logger = logging.getLogger(__name__)

COMMON_FIELDS = ("title", "description", "job_id")
TIMESTAMP_FIELDS = ("start_time", "end_time", "submission_deadline")


def coerce_enum(enum_cls, value, field: str):
    if value is None or isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError(f"Invalid {field} '{value}'. Expected one of: {allowed}", field=field)


def _normalize_file_types(file_types) -> List[str]:
    if not isinstance(file_types, (list, tuple, set)):
        raise ValidationError("allowed_file_types must be a list of extensions", field="allowed_file_types")
    normalized = [normalize_extension(str(ext)) for ext in file_types]
    if not normalized or any(not ext for ext in normalized):
        raise ValidationError("allowed_file_types must contain at least one non-empty extension", field="allowed_file_types")
    # keep first-seen order, drop duplicates
    return list(dict.fromkeys(normalized))


def _normalize_timestamps(fields: Dict[str, Any]) -> None:
    """Timestamps without an offset are read as UTC; every instant is kept in UTC."""
    for name in TIMESTAMP_FIELDS:
        value = fields.get(name)
        if value is None:
            continue
        if not isinstance(value, datetime):
            raise ValidationError(f"{name} must be a datetime", field=name)
        fields[name] = as_utc(value)


def validate_event_fields(event_type: EventType, fields: Dict[str, Any]) -> None:
    """Checks a complete (merged) set of event fields for one event type."""

    title = fields.get("title")
    if not title or not str(title).strip():
        raise ValidationError("Title is required", field="title")

    if fields.get("job_id") is None:
        raise ValidationError("job_id is required", field="job_id")

    start_time = fields.get("start_time")
    end_time = fields.get("end_time")
    if start_time is not None and end_time is not None and end_time < start_time:
        raise ValidationError("end_time must not be before start_time", field="end_time")

    if event_type == EventType.QUIZ:
        limit = fields.get("time_limit_minutes")
        if limit is not None and (not isinstance(limit, int) or limit <= 0):
            raise ValidationError("Quiz time limit must be a positive number of minutes", field="time_limit_minutes")

    if event_type == EventType.ASSIGNMENT:
        size = fields.get("max_file_size_mb")
        if size is None or not isinstance(size, int) or size <= 0:
            raise ValidationError("max_file_size_mb must be a positive integer", field="max_file_size_mb")

        max_score = fields.get("max_score")
        if max_score is None or not isinstance(max_score, int) or max_score <= 0:
            raise ValidationError("max_score must be a positive integer", field="max_score")

        _normalize_file_types(fields.get("allowed_file_types"))


class EventLifecycleManager:
    """
    Authoring side of events: draft -> published, plus delete.
    Every lookup is scoped to the owner; other owners' events are NotFound.
    """

    def __init__(self, store: EventStore, clock: SystemClock, object_store: Optional[ObjectStore] = None):
        self.store = store
        self.clock = clock
        self.object_store = object_store

    async def get_owned(self, owner_id: UUID, event_id: UUID) -> Event:
        event = await self.store.get(Event, event_id)
        if not event or event.owner_id != owner_id:
            raise NotFound("Event not found")
        return event

    async def create(self, owner_id: UUID, definition: Dict[str, Any]) -> Event:
        if definition.get("event_type") is None:
            raise ValidationError("event_type is required", field="event_type")
        event_type = coerce_enum(EventType, definition["event_type"], "event_type")

        # Only the columns of this event type are kept; the rest stay null.
        fields = {name: definition.get(name) for name in COMMON_FIELDS}
        for name in TYPE_FIELDS[event_type]:
            if definition.get(name) is not None:
                fields[name] = definition[name]

        if event_type == EventType.ASSIGNMENT:
            fields.setdefault("max_file_size_mb", DEFAULT_MAX_FILE_SIZE_MB)
            fields.setdefault("allowed_file_types", list(DEFAULT_ALLOWED_FILE_TYPES))
            fields.setdefault("max_score", DEFAULT_ASSIGNMENT_MAX_SCORE)

        if "platform" in fields:
            fields["platform"] = coerce_enum(WebinarPlatform, fields["platform"], "platform")
        _normalize_timestamps(fields)

        validate_event_fields(event_type, fields)

        if "allowed_file_types" in fields:
            fields["allowed_file_types"] = _normalize_file_types(fields["allowed_file_types"])

        now = self.clock.now()
        event = Event(
            owner_id=owner_id,
            event_type=event_type,
            status=EventStatus.DRAFT,
            created_at=now,
            updated_at=now,
            **fields,
        )
        event = await self.store.create(event)
        logger.info("Created %s event %s for owner %s", event_type.value, event.id, owner_id)
        return event

    async def update(self, owner_id: UUID, event_id: UUID, changes: Dict[str, Any]) -> Event:
        event = await self.get_owned(owner_id, event_id)

        if "event_type" in changes:
            raise ValidationError("Event type cannot be changed after creation", field="event_type")
        if "status" in changes:
            raise ValidationError("Use publish to change the event status", field="status")

        allowed = set(COMMON_FIELDS) | set(TYPE_FIELDS[event.event_type])
        for name in changes:
            if name in ALL_TYPE_FIELDS and name not in allowed:
                raise ValidationError(
                    f"Field '{name}' does not apply to {event.event_type.value} events",
                    field=name,
                )
            if name not in allowed:
                raise ValidationError(f"Unknown field '{name}'", field=name)

        changes = dict(changes)
        if "platform" in changes:
            changes["platform"] = coerce_enum(WebinarPlatform, changes["platform"], "platform")
        _normalize_timestamps(changes)
        if event.event_type == EventType.ASSIGNMENT:
            if "allowed_file_types" in changes and changes["allowed_file_types"] is None:
                changes["allowed_file_types"] = list(DEFAULT_ALLOWED_FILE_TYPES)
            if "max_file_size_mb" in changes and changes["max_file_size_mb"] is None:
                changes["max_file_size_mb"] = DEFAULT_MAX_FILE_SIZE_MB
            if "max_score" in changes and changes["max_score"] is None:
                changes["max_score"] = DEFAULT_ASSIGNMENT_MAX_SCORE

        merged = {name: getattr(event, name) for name in allowed}
        merged.update(changes)
        validate_event_fields(event.event_type, merged)

        if "allowed_file_types" in changes:
            changes["allowed_file_types"] = _normalize_file_types(changes["allowed_file_types"])

        changes["updated_at"] = self.clock.now()
        event = await self.store.update(event, changes)
        logger.info("Updated event %s (%s)", event.id, ", ".join(sorted(changes)))
        return event

    async def publish(self, owner_id: UUID, event_id: UUID) -> Event:
        event = await self.get_owned(owner_id, event_id)

        if event.status == EventStatus.PUBLISHED:
            return event

        event = await self.store.update(event, {
            "status": EventStatus.PUBLISHED,
            "updated_at": self.clock.now(),
        })
        logger.info("Published event %s", event.id)
        return event

    async def delete(self, owner_id: UUID, event_id: UUID) -> None:
        await self.get_owned(owner_id, event_id)

        deleted = await self.store.delete_event(event_id)
        if deleted is None:
            raise NotFound("Event not found")

        if self.object_store is None:
            return

        for submission in deleted.assignment_submissions:
            try:
                await self.object_store.delete(submission.file_url)
            except Exception:
                logger.warning(
                    "Could not remove stored file %s of deleted event %s", submission.file_url, event_id,
                    exc_info=True,
                )

    async def list_owned(self, owner_id: UUID) -> List[Tuple[Event, Dict[str, int]]]:
        events = await self.store.list_owned_events(owner_id)
        counts = await self.store.child_counts(e.id for e in events)
        return [(event, counts[event.id]) for event in events]

    # ---------------------------
    # Participant discovery
    # ---------------------------
    async def list_published(
        self,
        event_type: Optional[EventType] = None,
        job_id: Optional[UUID] = None,
    ) -> List[Event]:
        return await self.store.list_published_events(event_type=event_type, job_id=job_id)

    async def get_published(self, event_id: UUID) -> Event:
        event = await self.store.get(Event, event_id)
        if not event or not event.is_published:
            raise NotFound("Event not found")
        return event
