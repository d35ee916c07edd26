from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, UniqueConstraint, Enum as SQLEnum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
from cvtrack.database import Base

class ResumeStatus(str, enum.Enum):
    pending = "pending"
    processing = "processing"
    processed = "processed"
    rejected = "rejected"
    error = "error"

class Resume(Base):
    __tablename__ = "resumes"
    __table_args__ = (
        UniqueConstraint("source_message_id", "file_name", name="uq_resume_message_file"),
    )
    
    id = Column(Integer, primary_key=True, index=True)
    team_id = Column(Integer, nullable=False, index=True)
    candidate_id = Column(Integer, ForeignKey("candidates.id"), nullable=True)
    file_name = Column(String(255), nullable=False)
    file_key = Column(Text, nullable=False)
    file_size = Column(Integer)
    mime_type = Column(String(100), default="application/pdf")
    parsed_text = Column(Text, nullable=True)

    # Provenance
    source_message_id = Column(String(255), index=True)
    email_subject = Column(String(500))
    email_from = Column(String(255))
    email_date = Column(DateTime(timezone=True))

    status = Column(SQLEnum(ResumeStatus), default=ResumeStatus.pending, nullable=False, index=True)
    ai_validation_score = Column(Integer)
    ai_validation_reason = Column(Text)
    uploaded_at = Column(DateTime(timezone=True), server_default=func.now())
    processed_at = Column(DateTime(timezone=True), nullable=True)

    candidate = relationship("Candidate", back_populates="resumes")
    applications = relationship("Application", back_populates="resume")

    def __repr__(self):
        return f"<Resume {self.id} {self.file_name} ({self.status.value if self.status else None})>"
