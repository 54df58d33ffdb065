import logging
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from engagement_engine.clock import SystemClock
from engagement_engine.errors import NotFound, ValidationError, NotAvailable, AlreadyRegistered
from engagement_engine.helpers.event_status import webinar_status, WebinarStatus
from engagement_engine.models import Event, EventType, Registration, RegistrationStatus
from engagement_engine.stores.event_store import EventStore, DuplicateRecord

logger = logging.getLogger(__name__)


def status_of(event: Event, now: datetime) -> WebinarStatus:
    """Derived webinar status. Pure; never stored."""
    return webinar_status(event, now)


class WebinarRegistrationTracker:

    def __init__(self, store: EventStore, clock: SystemClock):
        self.store = store
        self.clock = clock

    async def _get_published_webinar(self, event_id: UUID) -> Event:
        event = await self.store.get(Event, event_id)
        if not event or not event.is_published:
            raise NotFound("Event not found")
        if event.event_type != EventType.WEBINAR:
            raise ValidationError("Event is not a webinar")
        return event

    async def register(self, event_id: UUID, participant_id: UUID) -> Registration:
        event = await self._get_published_webinar(event_id)

        existing = await self.store.get_for_participant(Registration, event_id, participant_id)
        if existing:
            raise AlreadyRegistered("Already registered for this webinar", record=existing)

        now = self.clock.now()
        if status_of(event, now) == WebinarStatus.ENDED:
            raise NotAvailable("Webinar has ended")

        registration = Registration(
            event_id=event_id,
            participant_id=participant_id,
            status=RegistrationStatus.REGISTERED,
            registered_at=now,
        )
        try:
            registration = await self.store.create(registration)
        except DuplicateRecord:
            existing = await self.store.get_for_participant(Registration, event_id, participant_id)
            raise AlreadyRegistered("Already registered for this webinar", record=existing)

        logger.info("Participant %s registered for webinar %s", participant_id, event_id)
        return registration

    async def get_my_registration(self, event_id: UUID, participant_id: UUID) -> Optional[Registration]:
        await self._get_published_webinar(event_id)
        return await self.store.get_for_participant(Registration, event_id, participant_id)

    async def list_my_registrations(self, participant_id: UUID) -> List[Registration]:
        return await self.store.list_for_participant(Registration, participant_id)

    async def list_registrations(self, owner_id: UUID, event_id: UUID) -> List[Registration]:
        event = await self.store.get(Event, event_id)
        if not event or event.owner_id != owner_id:
            raise NotFound("Event not found")
        if event.event_type != EventType.WEBINAR:
            raise ValidationError("Event is not a webinar")
        return await self.store.list_by_event(Registration, event_id, order_by=Registration.registered_at.desc())

    async def join_link(self, event_id: UUID, participant_id: UUID) -> str:
        """Meeting link, handed out only to registered participants while the webinar is live."""
        event = await self._get_published_webinar(event_id)

        registration = await self.store.get_for_participant(Registration, event_id, participant_id)
        if not registration:
            raise NotAvailable("Register for this webinar to get the meeting link")

        if status_of(event, self.clock.now()) != WebinarStatus.LIVE:
            raise NotAvailable("The meeting link is available while the webinar is live")
        if not event.meeting_link:
            raise NotAvailable("No meeting link has been set for this webinar")

        return event.meeting_link
