from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from cvtrack.core.exceptions import NotFoundError
from cvtrack.database import get_db
from cvtrack.routers.deps import get_current_team
from cvtrack.schemas.application import ApplicationResponse, ApplicationStatusUpdate
from cvtrack.services import application_manager

router = APIRouter(prefix="/applications", tags=["Applications"])


@router.get("/spontaneous", response_model=List[ApplicationResponse])
def list_spontaneous(
    db: Session = Depends(get_db),
    team_id: int = Depends(get_current_team),
):
    return application_manager.get_spontaneous_applications(db, team_id)


@router.get("/{application_id}", response_model=ApplicationResponse)
def get_application(
    application_id: int,
    db: Session = Depends(get_db),
    team_id: int = Depends(get_current_team),
):
    application = application_manager.get_application_by_id(db, team_id, application_id)
    if not application:
        raise NotFoundError("Application not found")
    return application


@router.patch("/{application_id}", response_model=ApplicationResponse)
def update_status(
    application_id: int,
    update: ApplicationStatusUpdate,
    db: Session = Depends(get_db),
    team_id: int = Depends(get_current_team),
):
    return application_manager.update_application_status(
        db, team_id, application_id, update.status, update.review_notes
    )
