from pydantic import BaseModel
from typing import Optional
from uuid import UUID
from datetime import datetime


#for candidates
class AssignmentSubmissionRead(BaseModel):
    id: UUID
    event_id: UUID
    participant_id: UUID
    file_name: str
    file_size_bytes: int
    submitted_at: datetime
    score: Optional[int] = None
    max_score: int
    feedback: Optional[str] = None
    graded_at: Optional[datetime] = None

    model_config = {
        "from_attributes": True
    }


#for recruiters
class AssignmentSubmissionOwnerRead(AssignmentSubmissionRead):
    file_url: str
    graded_by: Optional[UUID] = None


class AssignmentSubmissionGrade(BaseModel):
    score: int
    feedback: Optional[str] = None
