from sqlalchemy import Column, Integer, String, Text, DateTime, Enum as SQLEnum
from sqlalchemy.sql import func
import enum
from cvtrack.database import Base

class JobPositionStatus(str, enum.Enum):
    active = "active"
    draft = "draft"
    closed = "closed"

class JobPosition(Base):
    """Read-only input to detection and matching; CRUD lives elsewhere."""
    __tablename__ = "job_positions"
    
    id = Column(Integer, primary_key=True, index=True)
    team_id = Column(Integer, nullable=False, index=True)
    created_by = Column(Integer, nullable=True)
    title = Column(String(200), nullable=False, index=True)
    description = Column(Text, nullable=False, default="")
    requirements = Column(Text, nullable=False, default="")
    responsibilities = Column(Text)
    location = Column(String(200))
    employment_type = Column(String(50))
    salary_range = Column(String(100))
    status = Column(SQLEnum(JobPositionStatus), default=JobPositionStatus.active, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
