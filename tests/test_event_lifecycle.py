import logging
from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from engagement_engine.errors import NotFound, ValidationError
from engagement_engine.helpers.event_status import derive_status
from engagement_engine.models import (
    AssignmentSubmission, EventStatus, EventType, Question, QuizSubmission, Registration,
)
from tests.conftest import T0, stored_files


async def test_new_event_starts_as_draft(lifecycle, owner_id, job_id):
    event = await lifecycle.create(owner_id, {
        "job_id": job_id, "event_type": "quiz", "title": "Backend quiz", "time_limit_minutes": 15,
    })

    assert event.status == EventStatus.DRAFT
    assert event.event_type == EventType.QUIZ
    assert event.owner_id == owner_id
    assert event.created_at == T0


async def test_fields_of_other_types_are_dropped_on_create(lifecycle, owner_id, job_id):
    event = await lifecycle.create(owner_id, {
        "job_id": job_id,
        "event_type": "quiz",
        "title": "Backend quiz",
        "time_limit_minutes": 15,
        "meeting_link": "https://meet.example.com/x",
        "max_file_size_mb": 5,
    })

    assert event.meeting_link is None
    assert event.max_file_size_mb is None
    assert event.time_limit_minutes == 15


async def test_assignment_gets_defaults(lifecycle, owner_id, job_id):
    event = await lifecycle.create(owner_id, {"job_id": job_id, "event_type": "assignment", "title": "Task"})

    assert event.max_file_size_mb == 10
    assert event.allowed_file_types == ["pdf", "doc", "docx"]
    assert event.max_score == 100


async def test_file_types_are_normalized(lifecycle, owner_id, job_id):
    event = await lifecycle.create(owner_id, {
        "job_id": job_id, "event_type": "assignment", "title": "Task",
        "allowed_file_types": [".PDF", "zip", "pdf"],
    })

    assert event.allowed_file_types == ["pdf", "zip"]


@pytest.mark.parametrize("definition, field", [
    ({"event_type": "quiz", "title": "Q", "time_limit_minutes": 0}, "time_limit_minutes"),
    ({"event_type": "quiz", "title": "  "}, "title"),
    ({"event_type": "assignment", "title": "A", "max_file_size_mb": -1}, "max_file_size_mb"),
    ({"event_type": "assignment", "title": "A", "allowed_file_types": []}, "allowed_file_types"),
    ({"event_type": "webinar", "title": "W", "platform": "skype"}, "platform"),
    ({"event_type": "party", "title": "P"}, "event_type"),
])
async def test_invalid_definitions_are_rejected(lifecycle, owner_id, job_id, definition, field):
    with pytest.raises(ValidationError) as exc:
        await lifecycle.create(owner_id, {"job_id": job_id, **definition})

    assert exc.value.details["field"] == field


async def test_end_before_start_is_rejected(lifecycle, owner_id, job_id):
    with pytest.raises(ValidationError):
        await lifecycle.create(owner_id, {
            "job_id": job_id, "event_type": "webinar", "title": "W",
            "start_time": T0, "end_time": T0 - timedelta(minutes=1),
        })


async def test_timestamps_without_offset_are_read_as_utc(lifecycle, owner_id, job_id):
    event = await lifecycle.create(owner_id, {
        "job_id": job_id, "event_type": "webinar", "title": "W",
        "start_time": datetime(2026, 3, 2, 9, 0), "end_time": T0 + timedelta(hours=1),
    })

    assert event.start_time == T0
    assert event.start_time.tzinfo is not None

    updated = await lifecycle.update(owner_id, event.id, {"end_time": datetime(2026, 3, 2, 11, 0)})
    assert updated.end_time == T0 + timedelta(hours=2)

    with pytest.raises(ValidationError) as exc:
        await lifecycle.update(owner_id, event.id, {"end_time": datetime(2026, 3, 2, 8, 0)})
    assert exc.value.details["field"] == "end_time"


async def test_offset_timestamps_are_stored_in_utc(lifecycle, owner_id, job_id):
    plus_two = timezone(timedelta(hours=2))
    event = await lifecycle.create(owner_id, {
        "job_id": job_id, "event_type": "assignment", "title": "A",
        "submission_deadline": datetime(2026, 3, 2, 11, 0, tzinfo=plus_two),
    })

    assert event.submission_deadline == T0
    assert event.submission_deadline.utcoffset() == timedelta(0)


async def test_update_rejects_fields_of_other_types(make_webinar, lifecycle, owner_id):
    webinar = await make_webinar()

    with pytest.raises(ValidationError) as exc:
        await lifecycle.update(owner_id, webinar.id, {"time_limit_minutes": 10})
    assert exc.value.details["field"] == "time_limit_minutes"

    with pytest.raises(ValidationError):
        await lifecycle.update(owner_id, webinar.id, {"event_type": "quiz"})
    with pytest.raises(ValidationError):
        await lifecycle.update(owner_id, webinar.id, {"status": "draft"})


async def test_update_changes_fields(make_webinar, lifecycle, owner_id, clock):
    webinar = await make_webinar()

    clock.advance(minutes=5)
    updated = await lifecycle.update(owner_id, webinar.id, {"title": "Meet the founders", "platform": "zoom"})

    assert updated.title == "Meet the founders"
    assert updated.platform.value == "zoom"
    assert updated.updated_at == T0 + timedelta(minutes=5)


async def test_publish_is_idempotent(make_quiz, lifecycle, owner_id, clock):
    quiz, _ = await make_quiz(publish=False)

    published = await lifecycle.publish(owner_id, quiz.id)
    clock.advance(minutes=1)
    again = await lifecycle.publish(owner_id, quiz.id)

    assert published.status == again.status == EventStatus.PUBLISHED
    assert again.updated_at == T0


async def test_drafts_are_hidden_from_participants(make_quiz, lifecycle, owner_id, job_id):
    quiz, _ = await make_quiz(publish=False)

    assert await lifecycle.list_published() == []
    with pytest.raises(NotFound):
        await lifecycle.get_published(quiz.id)

    await lifecycle.publish(owner_id, quiz.id)

    [listed] = await lifecycle.list_published(job_id=job_id)
    assert listed.id == quiz.id
    assert (await lifecycle.get_published(quiz.id)).id == quiz.id


async def test_discovery_filters(make_quiz, make_webinar, lifecycle):
    quiz, _ = await make_quiz()
    webinar = await make_webinar()

    assert [e.id for e in await lifecycle.list_published(event_type=EventType.WEBINAR)] == [webinar.id]
    assert {e.id for e in await lifecycle.list_published()} == {quiz.id, webinar.id}
    assert await lifecycle.list_published(job_id=uuid4()) == []


async def test_other_owners_see_not_found(make_quiz, lifecycle):
    quiz, _ = await make_quiz(publish=False)
    stranger = uuid4()

    with pytest.raises(NotFound):
        await lifecycle.update(stranger, quiz.id, {"title": "Mine now"})
    with pytest.raises(NotFound):
        await lifecycle.publish(stranger, quiz.id)
    with pytest.raises(NotFound):
        await lifecycle.delete(stranger, quiz.id)


async def test_delete_removes_children_and_files(
    make_quiz, make_assignment, lifecycle, quiz_engine, intake, tracker, make_webinar,
    store, owner_id, participant_id, uploads_dir,
):
    quiz, (q1, _) = await make_quiz()
    session = await quiz_engine.start(quiz.id, participant_id)
    assignment = await make_assignment()
    upload = await intake.submit(assignment.id, participant_id, "answer.pdf", b"%PDF")
    webinar = await make_webinar()
    registration = await tracker.register(webinar.id, participant_id)

    for event in (quiz, assignment, webinar):
        await lifecycle.delete(owner_id, event.id)

    assert await store.get(Question, q1.id) is None
    assert await store.get(QuizSubmission, session.id) is None
    assert await store.get(AssignmentSubmission, upload.id) is None
    assert await store.get(Registration, registration.id) is None
    assert stored_files(uploads_dir) == []
    with pytest.raises(NotFound):
        await lifecycle.get_owned(owner_id, quiz.id)


async def test_list_owned_reports_counts(make_quiz, make_webinar, lifecycle, quiz_engine, tracker, owner_id):
    quiz, _ = await make_quiz()
    webinar = await make_webinar()
    await quiz_engine.start(quiz.id, uuid4())
    await tracker.register(webinar.id, uuid4())
    await tracker.register(webinar.id, uuid4())

    counts = {event.id: c for event, c in await lifecycle.list_owned(owner_id)}

    assert counts[quiz.id]["questions_count"] == 2
    assert counts[quiz.id]["submissions_count"] == 1
    assert counts[webinar.id]["registrations_count"] == 2


async def test_derived_status_per_type(make_quiz, make_assignment):
    quiz, _ = await make_quiz(end_time=T0 + timedelta(hours=1))
    assignment = await make_assignment(submission_deadline=T0 + timedelta(days=1))

    assert derive_status(quiz, T0) == "open"
    assert derive_status(quiz, T0 + timedelta(hours=2)) == "closed"
    assert derive_status(assignment, T0) == "open"
    assert derive_status(assignment, T0 + timedelta(days=2)) == "deadline_passed"


async def test_failed_file_cleanup_is_logged_with_traceback(
    make_assignment, lifecycle, intake, object_store, store, owner_id, participant_id, monkeypatch, caplog,
):
    assignment = await make_assignment()
    upload = await intake.submit(assignment.id, participant_id, "answer.pdf", b"%PDF")

    async def broken_delete(locator):
        raise OSError("disk unavailable")

    monkeypatch.setattr(object_store, "delete", broken_delete)
    with caplog.at_level(logging.WARNING, logger="engagement_engine.services.event_lifecycle"):
        await lifecycle.delete(owner_id, assignment.id)

    assert await store.get(AssignmentSubmission, upload.id) is None
    [record] = [r for r in caplog.records if r.levelno == logging.WARNING]
    assert upload.file_url in record.getMessage()
    assert record.exc_info is not None
    assert isinstance(record.exc_info[1], OSError)
