import asyncio
from datetime import timedelta

import pytest

from engagement_engine.errors import (
    AlreadyStarted, AlreadySubmitted, InvalidQuestion, NotAvailable, NotFound, ValidationError,
)
from engagement_engine.helpers.record_locks import RecordLocks
from engagement_engine.services.quiz_session import QuizSessionEngine, seconds_remaining, session_deadline
from tests.conftest import T0

pytestmark = pytest.mark.asyncio


async def test_start_creates_in_progress_session(make_quiz, quiz_engine, participant_id):
    quiz, _ = await make_quiz()

    session = await quiz_engine.start(quiz.id, participant_id)

    assert session.started_at == T0
    assert session.submitted_at is None
    assert session.answers == {}
    assert session.time_limit_minutes == 10
    assert session_deadline(session) == T0 + timedelta(minutes=10)


async def test_second_start_returns_existing_session(make_quiz, quiz_engine, participant_id, clock):
    quiz, _ = await make_quiz()
    first = await quiz_engine.start(quiz.id, participant_id)

    clock.advance(minutes=2)
    with pytest.raises(AlreadyStarted) as exc:
        await quiz_engine.start(quiz.id, participant_id)

    assert exc.value.record.id == first.id
    assert exc.value.record.started_at == T0


async def test_draft_quiz_cannot_be_started(make_quiz, quiz_engine, participant_id):
    quiz, _ = await make_quiz(publish=False)

    with pytest.raises(NotFound):
        await quiz_engine.start(quiz.id, participant_id)


async def test_quiz_outside_window_cannot_be_started(make_quiz, quiz_engine, participant_id, clock):
    quiz, _ = await make_quiz(start_time=T0 + timedelta(hours=1), end_time=T0 + timedelta(hours=2))

    with pytest.raises(NotAvailable):
        await quiz_engine.start(quiz.id, participant_id)

    clock.advance(hours=3)
    with pytest.raises(NotAvailable):
        await quiz_engine.start(quiz.id, participant_id)


async def test_start_on_non_quiz_event(make_webinar, quiz_engine, participant_id):
    webinar = await make_webinar()

    with pytest.raises(ValidationError):
        await quiz_engine.start(webinar.id, participant_id)


async def test_partial_credit_score(make_quiz, quiz_engine, participant_id):
    quiz, (q1, q2) = await make_quiz()
    session = await quiz_engine.start(quiz.id, participant_id)

    await quiz_engine.save_answer(session.id, participant_id, q1.id, "1")
    await quiz_engine.save_answer(session.id, participant_id, q2.id, "1")
    result = await quiz_engine.submit(session.id, participant_id)

    assert result.score == 2
    assert result.max_score == 5
    assert result.auto_submitted is False


async def test_answers_match_exactly(make_quiz, quiz_engine, participant_id):
    quiz, (q1, q2) = await make_quiz()
    session = await quiz_engine.start(quiz.id, participant_id)

    await quiz_engine.save_answer(session.id, participant_id, q1.id, " 1")
    await quiz_engine.save_answer(session.id, participant_id, q2.id, "00")
    result = await quiz_engine.submit(session.id, participant_id)

    assert result.score == 0


async def test_later_answer_replaces_earlier_one(make_quiz, quiz_engine, participant_id):
    quiz, (q1, _) = await make_quiz()
    session = await quiz_engine.start(quiz.id, participant_id)

    await quiz_engine.save_answer(session.id, participant_id, q1.id, "0")
    session = await quiz_engine.save_answer(session.id, participant_id, q1.id, "1")

    assert session.answers == {str(q1.id): "1"}


async def test_submit_is_idempotent(make_quiz, quiz_engine, participant_id, clock):
    quiz, (q1, _) = await make_quiz()
    session = await quiz_engine.start(quiz.id, participant_id)
    await quiz_engine.save_answer(session.id, participant_id, q1.id, "1")

    clock.advance(minutes=3)
    first = await quiz_engine.submit(session.id, participant_id)
    clock.advance(minutes=1)
    second = await quiz_engine.submit(session.id, participant_id)

    assert first.submitted_at == T0 + timedelta(minutes=3)
    assert second.submitted_at == first.submitted_at
    assert second.score == first.score == 2
    assert second.time_taken_seconds == 180


async def test_expired_session_is_submitted_at_deadline(make_quiz, quiz_engine, participant_id, clock):
    quiz, (q1, q2) = await make_quiz(time_limit_minutes=10)
    session = await quiz_engine.start(quiz.id, participant_id)

    clock.advance(minutes=5)
    await quiz_engine.save_answer(session.id, participant_id, q1.id, "1")

    clock.advance(minutes=6)
    with pytest.raises(AlreadySubmitted) as exc:
        await quiz_engine.save_answer(session.id, participant_id, q2.id, "0")

    record = exc.value.record
    assert record.submitted_at == T0 + timedelta(minutes=10)
    assert record.auto_submitted is True
    assert record.time_taken_seconds == 600
    assert record.answers == {str(q1.id): "1"}
    assert record.score == 2


async def test_save_at_exact_deadline_is_refused(make_quiz, quiz_engine, participant_id, clock):
    quiz, (q1, q2) = await make_quiz(time_limit_minutes=10)
    session = await quiz_engine.start(quiz.id, participant_id)

    clock.advance(minutes=9, seconds=59)
    session = await quiz_engine.save_answer(session.id, participant_id, q1.id, "1")
    assert session.submitted_at is None

    clock.advance(seconds=1)
    with pytest.raises(AlreadySubmitted) as exc:
        await quiz_engine.save_answer(session.id, participant_id, q2.id, "0")

    record = exc.value.record
    assert record.auto_submitted is True
    assert record.submitted_at == T0 + timedelta(minutes=10)
    assert str(q2.id) not in record.answers
    assert record.answers == {str(q1.id): "1"}


async def test_poll_after_deadline_finalizes_session(make_quiz, quiz_engine, participant_id, clock):
    quiz, _ = await make_quiz(time_limit_minutes=10)
    session = await quiz_engine.start(quiz.id, participant_id)

    clock.advance(minutes=4)
    polled = await quiz_engine.get_session(session.id, participant_id)
    assert polled.submitted_at is None
    assert seconds_remaining(polled, clock.now()) == 360

    clock.advance(hours=2)
    polled = await quiz_engine.get_session(session.id, participant_id)
    assert polled.submitted_at == T0 + timedelta(minutes=10)
    assert seconds_remaining(polled, clock.now()) == 0


async def test_deadline_holds_for_a_fresh_engine(make_quiz, store, clock, participant_id):
    quiz, (q1, _) = await make_quiz(time_limit_minutes=10)
    session = await QuizSessionEngine(store, clock, RecordLocks()).start(quiz.id, participant_id)

    clock.advance(minutes=30)
    restarted = QuizSessionEngine(store, clock, RecordLocks())
    with pytest.raises(AlreadySubmitted):
        await restarted.save_answer(session.id, participant_id, q1.id, "1")

    result = await restarted.submit(session.id, participant_id)
    assert result.submitted_at == T0 + timedelta(minutes=10)
    assert result.score == 0


async def test_quiz_without_time_limit_is_never_forced(make_quiz, quiz_engine, participant_id, clock):
    quiz, (q1, _) = await make_quiz(time_limit_minutes=None)
    session = await quiz_engine.start(quiz.id, participant_id)

    clock.advance(days=3)
    session = await quiz_engine.save_answer(session.id, participant_id, q1.id, "1")

    assert session.submitted_at is None
    assert seconds_remaining(session, clock.now()) is None


async def test_time_limit_is_fixed_at_start(make_quiz, quiz_engine, lifecycle, owner_id, participant_id, clock):
    quiz, (q1, _) = await make_quiz(time_limit_minutes=10)
    session = await quiz_engine.start(quiz.id, participant_id)

    await lifecycle.update(owner_id, quiz.id, {"time_limit_minutes": 60})

    clock.advance(minutes=15)
    with pytest.raises(AlreadySubmitted) as exc:
        await quiz_engine.save_answer(session.id, participant_id, q1.id, "1")
    assert exc.value.record.submitted_at == T0 + timedelta(minutes=10)


async def test_max_score_is_fixed_at_submission(make_quiz, quiz_engine, questions, owner_id, participant_id):
    quiz, _ = await make_quiz()
    session = await quiz_engine.start(quiz.id, participant_id)
    await quiz_engine.submit(session.id, participant_id)

    await questions.add_question(owner_id, quiz.id, {
        "question_text": "Q3", "question_type": "mcq", "options": ["x", "y"], "correct_answer": "0", "points": 7,
    })

    [listed] = await quiz_engine.list_submissions(owner_id, quiz.id)
    assert listed.max_score == 5
    assert await questions.total_points(quiz.id) == 12


async def test_short_answer_counts_towards_max_only(make_quiz, quiz_engine, participant_id):
    quiz, (mcq, short) = await make_quiz(question_specs=[
        {"question_text": "Pick", "question_type": "mcq", "options": ["a", "b"], "correct_answer": "0", "points": 1},
        {"question_text": "Explain", "question_type": "short_answer", "points": 4},
    ])
    session = await quiz_engine.start(quiz.id, participant_id)

    await quiz_engine.save_answer(session.id, participant_id, mcq.id, "0")
    await quiz_engine.save_answer(session.id, participant_id, short.id, "Because it scales")
    result = await quiz_engine.submit(session.id, participant_id)

    assert result.score == 1
    assert result.max_score == 5


async def test_answer_to_foreign_question_is_rejected(make_quiz, quiz_engine, participant_id):
    quiz, _ = await make_quiz()
    _, (foreign, _) = await make_quiz()
    session = await quiz_engine.start(quiz.id, participant_id)

    with pytest.raises(InvalidQuestion):
        await quiz_engine.save_answer(session.id, participant_id, foreign.id, "1")


async def test_session_is_private_to_its_participant(make_quiz, quiz_engine, participant_id):
    quiz, (q1, _) = await make_quiz()
    session = await quiz_engine.start(quiz.id, participant_id)

    stranger = quiz.owner_id
    with pytest.raises(NotFound):
        await quiz_engine.get_session(session.id, stranger)
    with pytest.raises(NotFound):
        await quiz_engine.save_answer(session.id, stranger, q1.id, "1")


async def test_concurrent_answers_are_all_kept(make_quiz, quiz_engine, participant_id):
    quiz, (q1, q2) = await make_quiz()
    session = await quiz_engine.start(quiz.id, participant_id)

    await asyncio.gather(
        quiz_engine.save_answer(session.id, participant_id, q1.id, "1"),
        quiz_engine.save_answer(session.id, participant_id, q2.id, "0"),
    )

    session = await quiz_engine.get_session(session.id, participant_id)
    assert session.answers == {str(q1.id): "1", str(q2.id): "0"}


async def test_owner_listing_finalizes_expired_sessions(make_quiz, quiz_engine, owner_id, participant_id, clock):
    quiz, _ = await make_quiz(time_limit_minutes=10)
    await quiz_engine.start(quiz.id, participant_id)

    clock.advance(minutes=20)
    [listed] = await quiz_engine.list_submissions(owner_id, quiz.id)

    assert listed.auto_submitted is True
    assert listed.submitted_at == T0 + timedelta(minutes=10)


async def test_get_my_session_without_start(make_quiz, quiz_engine, participant_id):
    quiz, _ = await make_quiz()

    assert await quiz_engine.get_my_session(quiz.id, participant_id) is None
