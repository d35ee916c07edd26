from typing import List, Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from cvtrack.core.exceptions import NotFoundError
from cvtrack.database import get_db
from cvtrack.models.resume import Resume, ResumeStatus
from cvtrack.routers.deps import get_current_team, get_file_storage
from cvtrack.schemas.cv import CVProcessingOutcome, PendingProcessingResult, ResumeResponse
from cvtrack.services.cv_processor import CVProcessor
from cvtrack.services.file_storage import FileStorage

router = APIRouter(prefix="/cvs", tags=["CV Processing"])


@router.get("/", response_model=List[ResumeResponse])
def list_cvs(
    status: Optional[ResumeStatus] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    team_id: int = Depends(get_current_team),
):
    query = db.query(Resume).filter(Resume.team_id == team_id)
    if status:
        query = query.filter(Resume.status == status)
    return query.order_by(Resume.id.desc()).offset(skip).limit(limit).all()


@router.delete("/orphaned")
def delete_orphaned(
    db: Session = Depends(get_db),
    team_id: int = Depends(get_current_team),
    storage: FileStorage = Depends(get_file_storage),
):
    """Drop CV records whose file is no longer in storage."""
    deleted = CVProcessor(db, storage=storage).delete_orphaned_resumes(team_id)
    return {"success": True, "deleted_count": deleted}


@router.get("/{resume_id}/download")
def download_cv(
    resume_id: int,
    db: Session = Depends(get_db),
    team_id: int = Depends(get_current_team),
    storage: FileStorage = Depends(get_file_storage),
):
    resume = db.query(Resume).filter(Resume.id == resume_id, Resume.team_id == team_id).first()
    if not resume:
        raise NotFoundError("CV not found")
    return Response(
        content=storage.read(resume.file_key),
        media_type=resume.mime_type or "application/pdf",
        headers={"Content-Disposition": f"attachment; filename*=UTF-8''{quote(resume.file_name)}"},
    )


@router.post("/process", response_model=PendingProcessingResult)
def process_pending(
    db: Session = Depends(get_db),
    team_id: int = Depends(get_current_team),
    storage: FileStorage = Depends(get_file_storage),
):
    """Classify and extract every pending résumé of the team."""
    return CVProcessor(db, storage=storage).process_all_pending(team_id)


@router.post("/{resume_id}/process", response_model=CVProcessingOutcome)
def process_one(
    resume_id: int,
    db: Session = Depends(get_db),
    team_id: int = Depends(get_current_team),
    storage: FileStorage = Depends(get_file_storage),
):
    return CVProcessor(db, storage=storage).process_cv_by_id(resume_id, team_id)
