import os
import uuid
from datetime import datetime, timedelta, timezone

import pytest

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

from engagement_engine.database import Base, build_engine, build_session_factory  # noqa: E402
from engagement_engine.helpers.record_locks import RecordLocks  # noqa: E402
from engagement_engine.services.assignment_intake import AssignmentIntakeEngine  # noqa: E402
from engagement_engine.services.event_lifecycle import EventLifecycleManager  # noqa: E402
from engagement_engine.services.grading import GradingService  # noqa: E402
from engagement_engine.services.question_bank import QuestionBank  # noqa: E402
from engagement_engine.services.quiz_session import QuizSessionEngine  # noqa: E402
from engagement_engine.services.webinar_registration import WebinarRegistrationTracker  # noqa: E402
from engagement_engine.stores.event_store import EventStore  # noqa: E402
from engagement_engine.stores.object_store import LocalObjectStore  # noqa: E402

T0 = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


class ManualClock:
    """Clock the tests move by hand."""

    def __init__(self, start: datetime = T0):
        self.current = start

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> datetime:
        self.current = self.current + timedelta(**kwargs)
        return self.current

    def set(self, moment: datetime) -> datetime:
        self.current = moment
        return self.current


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
async def engine(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'engine.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def store(db):
    return EventStore(db)


@pytest.fixture
def uploads_dir(tmp_path):
    path = tmp_path / "uploads"
    path.mkdir()
    return path


@pytest.fixture
def object_store(uploads_dir):
    return LocalObjectStore(str(uploads_dir))


@pytest.fixture
def lifecycle(store, clock, object_store):
    return EventLifecycleManager(store, clock, object_store)


@pytest.fixture
def questions(store, lifecycle):
    return QuestionBank(store, lifecycle, RecordLocks())


@pytest.fixture
def quiz_engine(store, clock):
    return QuizSessionEngine(store, clock, RecordLocks())


@pytest.fixture
def intake(store, object_store, clock):
    return AssignmentIntakeEngine(store, object_store, clock)


@pytest.fixture
def tracker(store, clock):
    return WebinarRegistrationTracker(store, clock)


@pytest.fixture
def grading(store, clock, quiz_engine):
    return GradingService(store, clock, quiz_engine)


@pytest.fixture
def owner_id():
    return uuid.uuid4()


@pytest.fixture
def participant_id():
    return uuid.uuid4()


@pytest.fixture
def job_id():
    return uuid.uuid4()


def stored_files(uploads_dir):
    return [p for p in uploads_dir.rglob("*") if p.is_file()]


@pytest.fixture
def make_quiz(lifecycle, questions, owner_id, job_id):
    """
    Creates a quiz with two mcq questions (2 and 3 points, correct "1" and
    "0") unless other question specs are given. Returns (event, questions).
    """
    async def _make(time_limit_minutes=10, question_specs=None, publish=True, **fields):
        if question_specs is None:
            question_specs = [
                {"question_text": "Q1", "question_type": "mcq", "options": ["a", "b"], "correct_answer": "1", "points": 2},
                {"question_text": "Q2", "question_type": "mcq", "options": ["c", "d"], "correct_answer": "0", "points": 3},
            ]
        event = await lifecycle.create(owner_id, {
            "job_id": job_id,
            "event_type": "quiz",
            "title": "Screening quiz",
            "time_limit_minutes": time_limit_minutes,
            **fields,
        })
        created = [await questions.add_question(owner_id, event.id, q) for q in question_specs]
        if publish:
            event = await lifecycle.publish(owner_id, event.id)
        return event, created

    return _make


@pytest.fixture
def make_assignment(lifecycle, owner_id, job_id):
    async def _make(publish=True, **fields):
        event = await lifecycle.create(owner_id, {
            "job_id": job_id,
            "event_type": "assignment",
            "title": "Take-home task",
            **fields,
        })
        if publish:
            event = await lifecycle.publish(owner_id, event.id)
        return event

    return _make


@pytest.fixture
def make_webinar(lifecycle, owner_id, job_id):
    async def _make(publish=True, **fields):
        event = await lifecycle.create(owner_id, {
            "job_id": job_id,
            "event_type": "webinar",
            "title": "Meet the team",
            "meeting_link": "https://meet.example.com/abc",
            "platform": "google_meet",
            **fields,
        })
        if publish:
            event = await lifecycle.publish(owner_id, event.id)
        return event

    return _make
