from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import List, Optional
from datetime import datetime

from cvtrack.models.resume import ResumeStatus

# --- AI RESPONSE SHAPES ---
# Keys are camelCase on the wire; a missing required key is a parse failure.

class AIModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

class CVValidationResult(AIModel):
    is_cv: bool = Field(alias="isCV")
    confidence: int = Field(ge=0, le=100)
    reason: str

class ExperienceEntry(AIModel):
    company: Optional[str] = None
    position: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    description: Optional[str] = None

class EducationEntry(AIModel):
    institution: Optional[str] = None
    degree: Optional[str] = None
    field: Optional[str] = None
    graduation_year: Optional[str] = None

    @field_validator("graduation_year", mode="before")
    @classmethod
    def _year_as_text(cls, v):
        return str(v) if isinstance(v, int) else v

class LanguageEntry(AIModel):
    language: str
    level: Optional[str] = None

class ExtractedCandidateData(AIModel):
    first_name: Optional[str]
    last_name: Optional[str]
    email: Optional[str]
    phone: Optional[str]
    summary: Optional[str]
    years_of_experience: Optional[int] = None
    technical_skills: Optional[List[str]]
    soft_skills: Optional[List[str]]
    experience: Optional[List[ExperienceEntry]]
    education: Optional[List[EducationEntry]]
    certifications: Optional[List[str]] = None
    languages: Optional[List[LanguageEntry]] = None
    key_achievements: Optional[List[str]] = None
    linkedin_url: Optional[str] = None
    location: Optional[str] = None

    @field_validator(
        "technical_skills", "soft_skills", "experience", "education",
        "certifications", "languages", "key_achievements",
    )
    @classmethod
    def _null_list_is_empty(cls, v):
        return v if v is not None else []

    def to_candidate_fields(self) -> dict:
        """Column values for a Candidate row (JSON columns get plain dicts)."""
        return self.model_dump(mode="json")

# --- PROCESSING OUTCOMES ---

class CVProcessingOutcome(BaseModel):
    success: bool
    is_cv: bool = False
    candidate_id: Optional[int] = None
    error: Optional[str] = None

class PendingProcessingResult(BaseModel):
    processed: int = 0
    errors: int = 0

class ResumeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    team_id: int
    candidate_id: Optional[int]
    file_name: str
    file_size: Optional[int]
    email_subject: Optional[str]
    email_from: Optional[str]
    email_date: Optional[datetime]
    status: ResumeStatus
    ai_validation_score: Optional[int]
    ai_validation_reason: Optional[str]
    processed_at: Optional[datetime]
