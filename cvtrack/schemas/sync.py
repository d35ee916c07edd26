from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List, Optional
from datetime import datetime, timezone

from cvtrack.core.config import settings

class CVCandidateScore(BaseModel):
    score: int
    should_download: bool
    reasons: List[str] = Field(default_factory=list)

class SyncOptions(BaseModel):
    max_results: int = Field(default=settings.sync.max_results, ge=1, le=500)
    query: Optional[str] = None  # raw provider query, overrides the built one
    since_date: Optional[datetime] = None
    filter_threshold: int = Field(default=settings.sync.filter_threshold, ge=0, le=100)
    include_spam_trash: bool = False

class SyncRequest(SyncOptions):
    """Sync options as accepted from callers; future dates are refused here."""

    @field_validator("since_date")
    @classmethod
    def _not_in_future(cls, v: Optional[datetime]) -> Optional[datetime]:
        if v is None:
            return v
        aware = v if v.tzinfo else v.replace(tzinfo=timezone.utc)
        if aware > datetime.now(timezone.utc):
            raise ValueError("since_date cannot be in the future")
        return v

class SyncResult(BaseModel):
    total_messages: int = 0
    pdf_attachments: int = 0
    new_resumes: int = 0
    filtered_out: int = 0
    errors: List[str] = Field(default_factory=list)

class SyncStatus(BaseModel):
    connected: bool
    email: str
    last_sync_at: Optional[datetime]
    sync_from_date: Optional[datetime]
    total_resumes: int
    pending_resumes: int
    processed_resumes: int

class MailConnectionCreate(BaseModel):
    user_id: int
    email: str
    access_token: str

class MailConnectionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    team_id: int
    email: str
    is_active: bool
    last_sync_at: Optional[datetime]
    sync_from_date: Optional[datetime]
