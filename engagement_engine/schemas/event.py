from pydantic import BaseModel
from typing import Optional, List
from uuid import UUID
from datetime import datetime

from engagement_engine.models import EventType, EventStatus, WebinarPlatform


#For Recruiters
class EventCreate(BaseModel):
    job_id: UUID
    event_type: EventType
    title: str
    description: Optional[str] = None

    # Webinar
    meeting_link: Optional[str] = None
    platform: Optional[WebinarPlatform] = None

    # Webinar schedule / quiz window
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None

    # Quiz
    time_limit_minutes: Optional[int] = None

    # Assignment
    submission_deadline: Optional[datetime] = None
    max_file_size_mb: Optional[int] = None
    allowed_file_types: Optional[List[str]] = None
    max_score: Optional[int] = None


class EventUpdate(BaseModel):
    """Partial update. Only fields present in the request body are applied."""
    job_id: Optional[UUID] = None
    event_type: Optional[EventType] = None
    status: Optional[EventStatus] = None
    title: Optional[str] = None
    description: Optional[str] = None
    meeting_link: Optional[str] = None
    platform: Optional[WebinarPlatform] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    time_limit_minutes: Optional[int] = None
    submission_deadline: Optional[datetime] = None
    max_file_size_mb: Optional[int] = None
    allowed_file_types: Optional[List[str]] = None
    max_score: Optional[int] = None

    model_config = {"extra": "forbid"}


class EventRead(BaseModel):
    id: UUID
    owner_id: UUID
    job_id: UUID
    event_type: EventType
    status: EventStatus
    title: str
    description: Optional[str]
    meeting_link: Optional[str]
    platform: Optional[WebinarPlatform]
    start_time: Optional[datetime]
    end_time: Optional[datetime]
    time_limit_minutes: Optional[int]
    submission_deadline: Optional[datetime]
    max_file_size_mb: Optional[int]
    allowed_file_types: Optional[List[str]]
    max_score: Optional[int]
    created_at: datetime
    updated_at: datetime

    model_config = {
        "from_attributes": True
    }


class EventWithCounts(EventRead):
    questions_count: int = 0
    registrations_count: int = 0
    submissions_count: int = 0


#For Candidates
class PublishedEventRead(BaseModel):
    """Candidate view. The meeting link is handed out separately once the webinar is live."""
    id: UUID
    job_id: UUID
    event_type: EventType
    title: str
    description: Optional[str]
    platform: Optional[WebinarPlatform]
    start_time: Optional[datetime]
    end_time: Optional[datetime]
    time_limit_minutes: Optional[int]
    submission_deadline: Optional[datetime]
    max_file_size_mb: Optional[int]
    allowed_file_types: Optional[List[str]]
    status: str   # derived: upcoming / live / ended / open / closed / deadline_passed

    model_config = {
        "from_attributes": True
    }


class JoinLinkResponse(BaseModel):
    event_id: UUID
    meeting_link: str
