from pydantic import BaseModel
from typing import Optional, List
from uuid import UUID

from engagement_engine.models import QuestionType


class QuestionCreate(BaseModel):
    question_text: str
    question_type: QuestionType
    options: Optional[List[str]] = None
    correct_answer: Optional[str] = None   # index of the right option, as a string
    points: int = 1


class QuestionUpdate(BaseModel):
    question_text: Optional[str] = None
    question_type: Optional[QuestionType] = None
    options: Optional[List[str]] = None
    correct_answer: Optional[str] = None
    points: Optional[int] = None

    model_config = {"extra": "forbid"}


class QuestionReorder(BaseModel):
    ordered_ids: List[UUID]


#For Recruiters
class QuestionRead(BaseModel):
    id: UUID
    event_id: UUID
    position: int
    question_text: str
    question_type: QuestionType
    options: Optional[List[str]]
    correct_answer: Optional[str]
    points: int

    model_config = {
        "from_attributes": True
    }


class QuestionList(BaseModel):
    event_id: UUID
    total_points: int
    needs_manual_grading: bool   # short-answer points are in max_score but never auto-scored
    questions: List[QuestionRead]


#For Candidates (never carries the correct answer)
class QuestionView(BaseModel):
    id: UUID
    position: int
    question_text: str
    question_type: QuestionType
    options: Optional[List[str]]
    points: int

    model_config = {
        "from_attributes": True
    }


class QuizDetailView(BaseModel):
    event_id: UUID
    title: str
    description: Optional[str]
    time_limit_minutes: Optional[int]
    total_points: int
    questions: List[QuestionView]
