from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from cvtrack.database import get_db
from cvtrack.routers.deps import get_current_team, get_file_storage, get_mail_client
from cvtrack.schemas.sync import MailConnectionCreate, MailConnectionResponse, SyncRequest, SyncResult, SyncStatus
from cvtrack.services.file_storage import FileStorage
from cvtrack.services.mail_sync import MailSyncService

router = APIRouter(prefix="/mail", tags=["Mail Sync"])


@router.post("/connections", response_model=MailConnectionResponse)
def connect_mailbox(
    connection_in: MailConnectionCreate,
    db: Session = Depends(get_db),
    team_id: int = Depends(get_current_team),
):
    """Register a mailbox with the access token issued by the identity provider."""
    return MailSyncService(db).connect_mailbox(
        team_id, connection_in.user_id, connection_in.email, connection_in.access_token
    )


@router.post("/{account_id}/sync", response_model=SyncResult)
def sync_mailbox(
    account_id: int,
    request: Optional[SyncRequest] = None,
    db: Session = Depends(get_db),
    team_id: int = Depends(get_current_team),
    mail_client=Depends(get_mail_client),
    storage: FileStorage = Depends(get_file_storage),
):
    """
    Pull CV-looking PDF attachments from a connected mailbox.
    Per-message failures are reported in ``errors``; the call itself succeeds.
    """
    service = MailSyncService(db, mail_client=mail_client, storage=storage)
    return service.sync(account_id, team_id, request)


@router.get("/{account_id}/status", response_model=SyncStatus)
def sync_status(
    account_id: int,
    db: Session = Depends(get_db),
    team_id: int = Depends(get_current_team),
):
    return MailSyncService(db).get_sync_status(account_id, team_id)
