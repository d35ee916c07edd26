import logging
from typing import Optional

from fastapi import Header, HTTPException, status

from cvtrack.services.file_storage import FileStorage, get_storage

logger = logging.getLogger(__name__)


def get_current_team(x_team_id: Optional[int] = Header(default=None)) -> int:
    """
    Resolves the calling team from the ``X-Team-ID`` header.
    Authentication is terminated upstream; this only scopes the request.
    """
    if x_team_id is None:
        logger.warning("Team validation failed: missing X-Team-ID header")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Team context required",
        )
    return x_team_id


def get_mail_client():
    """None means: build a Gmail client from the stored connection token."""
    return None


def get_file_storage() -> FileStorage:
    return get_storage()
