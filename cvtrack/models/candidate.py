from sqlalchemy import Column, Integer, String, Text, DateTime, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from cvtrack.database import Base

class Candidate(Base):
    __tablename__ = "candidates"

    id = Column(Integer, primary_key=True, index=True)
    team_id = Column(Integer, nullable=False, index=True)
    first_name = Column(String(100))
    last_name = Column(String(100))
    email = Column(String(255))
    phone = Column(String(50))
    summary = Column(Text)
    years_of_experience = Column(Integer)
    technical_skills = Column(JSON, default=list)
    soft_skills = Column(JSON, default=list)
    experience = Column(JSON, default=list)  # [{company, position, start_date, end_date, description}]
    education = Column(JSON, default=list)  # [{institution, degree, field, graduation_year}]
    certifications = Column(JSON, default=list)
    languages = Column(JSON, default=list)  # [{language, level}]
    key_achievements = Column(JSON, default=list)
    linkedin_url = Column(String(500))
    location = Column(String(200))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    resumes = relationship("Resume", back_populates="candidate")

    @property
    def full_name(self) -> str:
        return " ".join(p for p in (self.first_name, self.last_name) if p) or "Unknown"

    def __repr__(self):
        return f"<Candidate {self.id} {self.full_name}>"
