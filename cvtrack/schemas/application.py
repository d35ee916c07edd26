from pydantic import BaseModel, ConfigDict
from typing import Optional
from datetime import datetime

from cvtrack.models.application import ApplicationStatus, ApplicationType

class ApplicationStatusUpdate(BaseModel):
    status: ApplicationStatus
    review_notes: Optional[str] = None

class ApplicationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    resume_id: int
    job_position_id: Optional[int]
    application_type: ApplicationType
    status: ApplicationStatus
    applied_at: Optional[datetime]
    reviewed_at: Optional[datetime]
    review_notes: Optional[str]
