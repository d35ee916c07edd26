from pydantic import BaseModel, Field
from typing import List, Literal, Optional

from cvtrack.models.match import MatchType
from cvtrack.schemas.cv import AIModel

class AIMatchAssessment(AIModel):
    match_score: int = Field(ge=0, le=100)
    ai_analysis: str
    strengths: List[str]
    weaknesses: List[str]
    summary: str

class MatchOptions(BaseModel):
    min_score: int = Field(default=0, ge=0, le=100)
    max_results: int = Field(default=50, ge=1)
    match_type: Literal["all", "direct", "cross"] = "all"
    include_cross: bool = True

class MatchResult(BaseModel):
    candidate_id: int
    resume_id: int
    candidate_name: str
    match_score: int
    ai_analysis: str = ""
    strengths: List[str] = Field(default_factory=list)
    weaknesses: List[str] = Field(default_factory=list)
    summary: str = ""
    email: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None
    match_type: MatchType = MatchType.cross
    application_id: Optional[int] = None

class MatchRequest(BaseModel):
    rematch: bool = False
    min_score: int = Field(default=0, ge=0, le=100)
    max_results: int = Field(default=50, ge=1)

class MatchResponse(BaseModel):
    success: bool = True
    matches: List[MatchResult]
    total_matches: int
