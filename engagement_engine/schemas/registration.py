from pydantic import BaseModel
from typing import Optional
from uuid import UUID
from datetime import datetime

from engagement_engine.models import RegistrationStatus


class RegistrationRead(BaseModel):
    id: UUID
    event_id: UUID
    participant_id: UUID
    status: RegistrationStatus
    registered_at: datetime
    attended_at: Optional[datetime] = None

    model_config = {
        "from_attributes": True
    }
