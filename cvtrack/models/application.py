from sqlalchemy import Column, Integer, Text, DateTime, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
from cvtrack.database import Base

class ApplicationType(str, enum.Enum):
    direct = "direct"
    spontaneous = "spontaneous"

class ApplicationStatus(str, enum.Enum):
    pending = "pending"
    reviewing = "reviewing"
    interview = "interview"
    rejected = "rejected"
    accepted = "accepted"

class Application(Base):
    __tablename__ = "applications"

    id = Column(Integer, primary_key=True, index=True)
    resume_id = Column(Integer, ForeignKey("resumes.id"), nullable=False, index=True)
    job_position_id = Column(Integer, ForeignKey("job_positions.id"), nullable=True, index=True)  # NULL = spontaneous
    application_type = Column(SQLEnum(ApplicationType), default=ApplicationType.direct, nullable=False)
    status = Column(SQLEnum(ApplicationStatus), default=ApplicationStatus.pending, nullable=False)
    applied_at = Column(DateTime(timezone=True), server_default=func.now())
    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    review_notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    resume = relationship("Resume", back_populates="applications")
    job_position = relationship("JobPosition")
