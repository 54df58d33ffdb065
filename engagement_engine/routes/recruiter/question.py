from fastapi import APIRouter, Depends
from uuid import UUID

from engagement_engine.auth.dependencies import CurrentUser, is_recruiter
from engagement_engine.helpers.quiz_answer_evaluator import has_manual_questions
from engagement_engine.routes.deps import get_question_bank
from engagement_engine.schemas.question import (
    QuestionCreate, QuestionUpdate, QuestionReorder, QuestionRead, QuestionList,
)
from engagement_engine.services.question_bank import QuestionBank

router = APIRouter(
    prefix="/recruiter/questions",
    tags=["Recruiter Question Endpoints"]
)


@router.post(
    "/add-question/{event_id}",
    response_model=QuestionRead,
    status_code=201
)
async def add_question(
    event_id: UUID,
    question_in: QuestionCreate,
    current_user: CurrentUser = Depends(is_recruiter),
    questions: QuestionBank = Depends(get_question_bank),
):
    return await questions.add_question(current_user.id, event_id, question_in.model_dump())


@router.get(
    "/list-questions/{event_id}",
    response_model=QuestionList,
)
async def list_questions(
    event_id: UUID,
    current_user: CurrentUser = Depends(is_recruiter),
    questions: QuestionBank = Depends(get_question_bank),
):
    items = await questions.list_questions(current_user.id, event_id)

    return QuestionList(
        event_id=event_id,
        total_points=await questions.total_points(event_id),
        needs_manual_grading=has_manual_questions(items),
        questions=[QuestionRead.model_validate(q) for q in items],
    )


@router.patch(
    "/update-question/{question_id}",
    response_model=QuestionRead,
)
async def update_question(
    question_id: UUID,
    question_in: QuestionUpdate,
    current_user: CurrentUser = Depends(is_recruiter),
    questions: QuestionBank = Depends(get_question_bank),
):
    return await questions.update_question(
        current_user.id, question_id, question_in.model_dump(exclude_unset=True)
    )


@router.delete(
    "/delete-question/{question_id}",
    status_code=204
)
async def delete_question(
    question_id: UUID,
    current_user: CurrentUser = Depends(is_recruiter),
    questions: QuestionBank = Depends(get_question_bank),
):
    await questions.delete_question(current_user.id, question_id)
    return None


@router.put(
    "/reorder-questions/{event_id}",
    response_model=list[QuestionRead],
)
async def reorder_questions(
    event_id: UUID,
    reorder_in: QuestionReorder,
    current_user: CurrentUser = Depends(is_recruiter),
    questions: QuestionBank = Depends(get_question_bank),
):
    return await questions.reorder_questions(current_user.id, event_id, reorder_in.ordered_ids)
