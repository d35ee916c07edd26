import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.orm import Session

from cvtrack.core.exceptions import NotFoundError
from cvtrack.models.application import Application, ApplicationStatus, ApplicationType
from cvtrack.models.resume import Resume

logger = logging.getLogger(__name__)


def _team_applications(db: Session, team_id: int):
    return db.query(Application).join(Resume, Application.resume_id == Resume.id).filter(Resume.team_id == team_id)


def create_application(
    db: Session,
    resume_id: int,
    job_position_id: Optional[int],
    application_type: ApplicationType = ApplicationType.direct,
) -> Application:
    """Record that a résumé applies to a posting (or to none, if spontaneous)."""
    application = Application(
        resume_id=resume_id,
        job_position_id=job_position_id,
        application_type=application_type,
        status=ApplicationStatus.pending,
        applied_at=datetime.now(timezone.utc),
    )
    db.add(application)
    try:
        db.commit()
        db.refresh(application)
    except Exception:
        db.rollback()
        raise
    logger.info(
        f"Created {application_type.value} application {application.id} "
        f"for resume {resume_id} (position {job_position_id})"
    )
    return application


def update_application_status(
    db: Session,
    team_id: int,
    application_id: int,
    status: ApplicationStatus,
    review_notes: Optional[str] = None,
) -> Application:
    application = _team_applications(db, team_id).filter(Application.id == application_id).first()
    if not application:
        raise NotFoundError("Application not found")

    application.status = status
    application.review_notes = review_notes
    application.reviewed_at = datetime.now(timezone.utc)
    try:
        db.commit()
        db.refresh(application)
    except Exception:
        db.rollback()
        raise
    return application


def get_applications_for_position(db: Session, team_id: int, job_position_id: int) -> List[Application]:
    return _team_applications(db, team_id).filter(Application.job_position_id == job_position_id).all()


def get_spontaneous_applications(db: Session, team_id: int) -> List[Application]:
    return _team_applications(db, team_id).filter(Application.job_position_id.is_(None)).all()


def get_application_for_resume(
    db: Session, team_id: int, resume_id: int, job_position_id: Optional[int] = None
) -> Optional[Application]:
    query = _team_applications(db, team_id).filter(Application.resume_id == resume_id)
    if job_position_id is not None:
        query = query.filter(Application.job_position_id == job_position_id)
    return query.first()


def has_applied_for_position(db: Session, team_id: int, resume_id: int, job_position_id: int) -> bool:
    return get_application_for_resume(db, team_id, resume_id, job_position_id) is not None


def get_application_by_id(db: Session, team_id: int, application_id: int) -> Optional[Application]:
    return _team_applications(db, team_id).filter(Application.id == application_id).first()
