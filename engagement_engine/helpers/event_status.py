"""
Participant-facing status of an event, derived from stored timestamps and
the current time. These values are never persisted: any caller holding the
same event and instant gets the same answer.
"""
import enum
from datetime import datetime

from engagement_engine.models import Event, EventType


class WebinarStatus(str, enum.Enum):
    UNSCHEDULED = "unscheduled"
    UPCOMING = "upcoming"
    LIVE = "live"
    ENDED = "ended"


class AvailabilityStatus(str, enum.Enum):
    UPCOMING = "upcoming"
    OPEN = "open"
    CLOSED = "closed"
    DEADLINE_PASSED = "deadline_passed"


def webinar_status(event: Event, now: datetime) -> WebinarStatus:
    """
    Ended once now is past end_time (start_time when no end is set),
    Upcoming before start_time, Live in between with both bounds included.
    """
    if event.start_time is None:
        return WebinarStatus.UNSCHEDULED

    ends_at = event.end_time or event.start_time
    if now > ends_at:
        return WebinarStatus.ENDED
    if now < event.start_time:
        return WebinarStatus.UPCOMING
    return WebinarStatus.LIVE


def quiz_availability(event: Event, now: datetime) -> AvailabilityStatus:
    if event.start_time is not None and now < event.start_time:
        return AvailabilityStatus.UPCOMING
    if event.end_time is not None and now > event.end_time:
        return AvailabilityStatus.CLOSED
    return AvailabilityStatus.OPEN


def assignment_availability(event: Event, now: datetime) -> AvailabilityStatus:
    if event.submission_deadline is not None and now > event.submission_deadline:
        return AvailabilityStatus.DEADLINE_PASSED
    return AvailabilityStatus.OPEN


def derive_status(event: Event, now: datetime) -> str:
    if event.event_type == EventType.WEBINAR:
        return webinar_status(event, now).value
    if event.event_type == EventType.QUIZ:
        return quiz_availability(event, now).value
    return assignment_availability(event, now).value
