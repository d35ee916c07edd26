from sqlalchemy import Column, Integer, Text, DateTime, ForeignKey, JSON, UniqueConstraint, Enum as SQLEnum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
from cvtrack.database import Base

class MatchType(str, enum.Enum):
    direct = "direct"  # candidate applied for this position
    cross = "cross"  # suggested, never applied

class CandidateMatch(Base):
    __tablename__ = "candidate_matches"
    __table_args__ = (
        UniqueConstraint("job_position_id", "candidate_id", "resume_id", name="uq_match_position_candidate_resume"),
    )

    id = Column(Integer, primary_key=True, index=True)
    job_position_id = Column(Integer, ForeignKey("job_positions.id"), nullable=False, index=True)
    candidate_id = Column(Integer, ForeignKey("candidates.id"), nullable=False)
    resume_id = Column(Integer, ForeignKey("resumes.id"), nullable=False)
    application_id = Column(Integer, ForeignKey("applications.id"), nullable=True)
    match_type = Column(SQLEnum(MatchType), default=MatchType.cross, nullable=False)
    match_score = Column(Integer, nullable=False)
    ai_analysis = Column(Text)
    summary = Column(Text)
    strengths = Column(JSON, default=list)
    weaknesses = Column(JSON, default=list)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    candidate = relationship("Candidate")
