from pydantic import BaseModel, Field
from typing import Literal, Optional

from cvtrack.models.application import ApplicationType
from cvtrack.schemas.cv import AIModel

class AIJobDetection(AIModel):
    job_position_id: Optional[int]
    confidence: int = Field(ge=0, le=100)
    reason: str
    application_type: Optional[Literal["direct", "spontaneous"]] = None

class JobDetectionResult(BaseModel):
    job_position_id: Optional[int] = None
    confidence: int = 0
    reason: str
    application_type: ApplicationType = ApplicationType.spontaneous

    @classmethod
    def spontaneous(cls, reason: str, confidence: int) -> "JobDetectionResult":
        return cls(
            job_position_id=None,
            confidence=confidence,
            reason=reason,
            application_type=ApplicationType.spontaneous,
        )
