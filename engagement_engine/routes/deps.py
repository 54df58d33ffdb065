from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from engagement_engine.clock import SystemClock, get_clock
from engagement_engine.database import get_db
from engagement_engine.services.assignment_intake import AssignmentIntakeEngine
from engagement_engine.services.event_lifecycle import EventLifecycleManager
from engagement_engine.services.grading import GradingService
from engagement_engine.services.question_bank import QuestionBank
from engagement_engine.services.quiz_session import QuizSessionEngine
from engagement_engine.services.webinar_registration import WebinarRegistrationTracker
from engagement_engine.stores.event_store import EventStore
from engagement_engine.stores.object_store import ObjectStore, get_object_store


# ---------------------------
# Per-request service wiring
# ---------------------------
def get_event_store(db: AsyncSession = Depends(get_db)) -> EventStore:
    return EventStore(db)


def get_lifecycle(
    store: EventStore = Depends(get_event_store),
    clock: SystemClock = Depends(get_clock),
    object_store: ObjectStore = Depends(get_object_store),
) -> EventLifecycleManager:
    return EventLifecycleManager(store, clock, object_store)


def get_question_bank(
    store: EventStore = Depends(get_event_store),
    lifecycle: EventLifecycleManager = Depends(get_lifecycle),
) -> QuestionBank:
    return QuestionBank(store, lifecycle)


def get_quiz_engine(
    store: EventStore = Depends(get_event_store),
    clock: SystemClock = Depends(get_clock),
) -> QuizSessionEngine:
    return QuizSessionEngine(store, clock)


def get_assignment_intake(
    store: EventStore = Depends(get_event_store),
    object_store: ObjectStore = Depends(get_object_store),
    clock: SystemClock = Depends(get_clock),
) -> AssignmentIntakeEngine:
    return AssignmentIntakeEngine(store, object_store, clock)


def get_registration_tracker(
    store: EventStore = Depends(get_event_store),
    clock: SystemClock = Depends(get_clock),
) -> WebinarRegistrationTracker:
    return WebinarRegistrationTracker(store, clock)


def get_grading_service(
    store: EventStore = Depends(get_event_store),
    clock: SystemClock = Depends(get_clock),
    quiz_engine: QuizSessionEngine = Depends(get_quiz_engine),
) -> GradingService:
    return GradingService(store, clock, quiz_engine)
