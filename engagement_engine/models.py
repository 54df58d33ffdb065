import uuid
import enum
from datetime import datetime, timezone
from sqlalchemy import Column, String, Boolean, DateTime, Integer, Enum, ForeignKey, Text, JSON, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.types import TypeDecorator
from engagement_engine.database import Base


def now_utc():
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Naive values are taken to be UTC; aware values are converted to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# ---------------------------
# UTC timestamp column
# ---------------------------
class UTCDateTime(TypeDecorator):
    """
    Stores instants as UTC and always hands back timezone-aware values.
    SQLite drops the offset on the way in, so it is re-attached on load.
    """
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return None if value is None else as_utc(value)

    def process_result_value(self, value, dialect):
        return None if value is None else as_utc(value)


# ---------------------------
# Enums
# ---------------------------
class EventType(str, enum.Enum):
    WEBINAR = "webinar"
    QUIZ = "quiz"
    ASSIGNMENT = "assignment"


class EventStatus(str, enum.Enum):
    DRAFT = "draft"
    PUBLISHED = "published"


class QuestionType(str, enum.Enum):
    MCQ = "mcq"
    SHORT_ANSWER = "short_answer"


class RegistrationStatus(str, enum.Enum):
    REGISTERED = "registered"
    ATTENDED = "attended"


class WebinarPlatform(str, enum.Enum):
    GOOGLE_MEET = "google_meet"
    ZOOM = "zoom"
    OTHER = "other"


WEBINAR_FIELDS = ("meeting_link", "platform")
QUIZ_FIELDS = ("time_limit_minutes",)
SCHEDULE_FIELDS = ("start_time", "end_time")
ASSIGNMENT_FIELDS = ("submission_deadline", "max_file_size_mb", "allowed_file_types", "max_score")

# Type-specific columns each event type is allowed to carry.
TYPE_FIELDS = {
    EventType.WEBINAR: WEBINAR_FIELDS + SCHEDULE_FIELDS,
    EventType.QUIZ: QUIZ_FIELDS + SCHEDULE_FIELDS,
    EventType.ASSIGNMENT: ASSIGNMENT_FIELDS,
}
ALL_TYPE_FIELDS = WEBINAR_FIELDS + QUIZ_FIELDS + SCHEDULE_FIELDS + ASSIGNMENT_FIELDS


# ---------------------------
# Event Model
# ---------------------------
class Event(Base):
    __tablename__ = "events"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    owner_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    job_id = Column(UUID(as_uuid=True), nullable=False, index=True)

    event_type = Column(Enum(EventType, name="event_type_enum"), nullable=False)
    status = Column(Enum(EventStatus, name="event_status_enum"), nullable=False, default=EventStatus.DRAFT)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)

    # Webinar
    meeting_link = Column(Text, nullable=True)
    platform = Column(Enum(WebinarPlatform, name="webinar_platform_enum"), nullable=True)

    # Webinar schedule / quiz availability window
    start_time = Column(UTCDateTime, nullable=True)
    end_time = Column(UTCDateTime, nullable=True)

    # Quiz
    time_limit_minutes = Column(Integer, nullable=True)

    # Assignment
    submission_deadline = Column(UTCDateTime, nullable=True)
    max_file_size_mb = Column(Integer, nullable=True)
    allowed_file_types = Column(JSON, nullable=True)
    max_score = Column(Integer, nullable=True)

    created_at = Column(UTCDateTime, default=now_utc)
    updated_at = Column(UTCDateTime, default=now_utc, onupdate=now_utc)

    questions = relationship(
        "Question",
        back_populates="event",
        cascade="all, delete-orphan",
        order_by="Question.position",
    )
    registrations = relationship("Registration", back_populates="event", cascade="all, delete-orphan")
    quiz_submissions = relationship("QuizSubmission", back_populates="event", cascade="all, delete-orphan")
    assignment_submissions = relationship("AssignmentSubmission", back_populates="event", cascade="all, delete-orphan")

    @property
    def is_published(self) -> bool:
        return self.status == EventStatus.PUBLISHED


# ---------------------------
# Question Model
# ---------------------------
class Question(Base):
    __tablename__ = "event_questions"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    event_id = Column(UUID(as_uuid=True), ForeignKey("events.id", ondelete="CASCADE"), nullable=False)

    position = Column(Integer, nullable=False)
    question_text = Column(Text, nullable=False)
    question_type = Column(Enum(QuestionType, name="question_type_enum"), nullable=False)
    options = Column(JSON, nullable=True)
    correct_answer = Column(String(20), nullable=True)
    points = Column(Integer, nullable=False, default=1)

    created_at = Column(UTCDateTime, default=now_utc)

    event = relationship("Event", back_populates="questions")


# ---------------------------
# Registration Model
# ---------------------------
class Registration(Base):
    __tablename__ = "event_registrations"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    event_id = Column(UUID(as_uuid=True), ForeignKey("events.id", ondelete="CASCADE"), nullable=False)
    participant_id = Column(UUID(as_uuid=True), nullable=False, index=True)

    status = Column(Enum(RegistrationStatus, name="registration_status_enum"), nullable=False, default=RegistrationStatus.REGISTERED)
    registered_at = Column(UTCDateTime, nullable=False)
    attended_at = Column(UTCDateTime, nullable=True)

    event = relationship("Event", back_populates="registrations")

    __table_args__ = (
        UniqueConstraint("event_id", "participant_id", name="unique_event_registration"),
    )


# ---------------------------
# Quiz Submission Model
# ---------------------------
class QuizSubmission(Base):
    __tablename__ = "quiz_submissions"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    event_id = Column(UUID(as_uuid=True), ForeignKey("events.id", ondelete="CASCADE"), nullable=False)
    participant_id = Column(UUID(as_uuid=True), nullable=False, index=True)

    answers = Column(JSON, nullable=False, default=dict)
    started_at = Column(UTCDateTime, nullable=False)
    time_limit_minutes = Column(Integer, nullable=True)  # snapshot taken at start

    submitted_at = Column(UTCDateTime, nullable=True)
    time_taken_seconds = Column(Integer, nullable=True)
    auto_submitted = Column(Boolean, nullable=False, default=False)

    score = Column(Integer, nullable=True)
    max_score = Column(Integer, nullable=True)  # snapshot taken at submit

    graded_at = Column(UTCDateTime, nullable=True)
    graded_by = Column(UUID(as_uuid=True), nullable=True)

    event = relationship("Event", back_populates="quiz_submissions")

    __table_args__ = (
        UniqueConstraint("event_id", "participant_id", name="unique_quiz_submission"),
    )

    @property
    def is_submitted(self) -> bool:
        return self.submitted_at is not None


# ---------------------------
# Assignment Submission Model
# ---------------------------
class AssignmentSubmission(Base):
    __tablename__ = "assignment_submissions"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    event_id = Column(UUID(as_uuid=True), ForeignKey("events.id", ondelete="CASCADE"), nullable=False)
    participant_id = Column(UUID(as_uuid=True), nullable=False, index=True)

    file_url = Column(Text, nullable=False)
    file_name = Column(String(255), nullable=False)
    file_size_bytes = Column(Integer, nullable=False)
    submitted_at = Column(UTCDateTime, nullable=False)

    score = Column(Integer, nullable=True)
    max_score = Column(Integer, nullable=False)
    feedback = Column(Text, nullable=True)
    graded_at = Column(UTCDateTime, nullable=True)
    graded_by = Column(UUID(as_uuid=True), nullable=True)

    event = relationship("Event", back_populates="assignment_submissions")

    __table_args__ = (
        UniqueConstraint("event_id", "participant_id", name="unique_assignment_submission"),
    )
