# Models package
# Importing modules here ensures they are registered with SQLAlchemy Base
from . import mail_connection, candidate, resume, job, application, match

# Explicit class exports for cleaner imports
from .mail_connection import MailConnection
from .candidate import Candidate
from .resume import Resume, ResumeStatus
from .job import JobPosition, JobPositionStatus
from .application import Application, ApplicationType, ApplicationStatus
from .match import CandidateMatch, MatchType

__all__ = [
    "MailConnection",
    "Candidate",
    "Resume",
    "ResumeStatus",
    "JobPosition",
    "JobPositionStatus",
    "Application",
    "ApplicationType",
    "ApplicationStatus",
    "CandidateMatch",
    "MatchType",
]
