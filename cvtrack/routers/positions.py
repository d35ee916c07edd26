from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from cvtrack.database import get_db
from cvtrack.routers.deps import get_current_team, get_file_storage
from cvtrack.schemas.application import ApplicationResponse
from cvtrack.schemas.match import MatchOptions, MatchRequest, MatchResponse
from cvtrack.services import application_manager
from cvtrack.services.candidate_matcher import CandidateMatcher
from cvtrack.services.cv_processor import CVProcessor
from cvtrack.services.file_storage import FileStorage

router = APIRouter(prefix="/positions", tags=["Positions"])


@router.post("/{position_id}/match", response_model=MatchResponse)
def match_candidates(
    position_id: int,
    request: Optional[MatchRequest] = None,
    db: Session = Depends(get_db),
    team_id: int = Depends(get_current_team),
    storage: FileStorage = Depends(get_file_storage),
):
    """
    Score candidates against a position.

    Stored matches are reused, filtered the same way, unless ``rematch`` is set, in which case
    they are discarded and every candidate is scored again.
    """
    request = request or MatchRequest()
    matcher = CandidateMatcher(db, processor=CVProcessor(db, storage=storage))
    options = MatchOptions(min_score=request.min_score, max_results=request.max_results)
    if request.rematch:
        matches = matcher.rematch(position_id, team_id, options)
    else:
        matches = matcher.find_or_match(position_id, team_id, options)
    return MatchResponse(matches=matches, total_matches=len(matches))


@router.get("/{position_id}/match", response_model=MatchResponse)
def get_matches(
    position_id: int,
    db: Session = Depends(get_db),
    team_id: int = Depends(get_current_team),
):
    matches = CandidateMatcher(db).get_existing_matches(position_id, team_id)
    return MatchResponse(matches=matches, total_matches=len(matches))


@router.get("/{position_id}/applications", response_model=List[ApplicationResponse])
def list_applications(
    position_id: int,
    db: Session = Depends(get_db),
    team_id: int = Depends(get_current_team),
):
    return application_manager.get_applications_for_position(db, team_id, position_id)
