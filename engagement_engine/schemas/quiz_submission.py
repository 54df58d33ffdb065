from pydantic import BaseModel
from typing import Dict, Optional
from uuid import UUID
from datetime import datetime


#for candidates
class AnswerSave(BaseModel):
    question_id: UUID
    answer: str


class QuizSessionView(BaseModel):
    submission_id: UUID
    event_id: UUID
    status: str   # in_progress / submitted
    answers: Dict[str, str]
    started_at: datetime
    deadline: Optional[datetime]
    seconds_remaining: Optional[int]
    submitted_at: Optional[datetime]
    time_taken_seconds: Optional[int]
    auto_submitted: bool
    score: Optional[int]
    max_score: Optional[int]


#for recruiters
class QuizSubmissionListItem(BaseModel):
    submission_id: UUID
    event_id: UUID
    participant_id: UUID
    status: str
    started_at: datetime
    submitted_at: Optional[datetime]
    time_taken_seconds: Optional[int]
    auto_submitted: bool
    score: Optional[int]
    max_score: Optional[int]
    graded_at: Optional[datetime]


class QuizSubmissionDetailView(QuizSubmissionListItem):
    answers: Dict[str, str]
    graded_by: Optional[UUID]


class QuizGrade(BaseModel):
    score: int
