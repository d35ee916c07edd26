"""
Mailbox ingestion.

Walks a mailbox query, pre-filters PDF attachments, downloads the survivors
once, stores them as pending résumés and files an Application for each.
"""
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from cvtrack.core.exceptions import NotFoundError
from cvtrack.core.security import decrypt_data, encrypt_data
from cvtrack.models.application import ApplicationType
from cvtrack.models.mail_connection import MailConnection
from cvtrack.models.resume import Resume, ResumeStatus
from cvtrack.schemas.sync import SyncOptions, SyncResult, SyncStatus
from cvtrack.services import application_manager
from cvtrack.services.base import BaseService
from cvtrack.services.cv_filters import build_cv_search_query, score_attachment
from cvtrack.services.file_storage import FileStorage, get_storage
from cvtrack.services.job_detector import detect_job_position
from cvtrack.services.mail_client import (
    AttachmentRef, GmailClient, MailMessage, extract_body_text, find_attachments, header, message_date
)

DEFAULT_FILENAME = "cv.pdf"


def client_for_connection(connection: MailConnection) -> GmailClient:
    return GmailClient(decrypt_data(connection.access_token))


class MailSyncService(BaseService):
    """
    ``mail_client`` is any object exposing ``list_messages``, ``get_message``
    and ``get_attachment``; when omitted a Gmail client is built from the
    connection's access token.
    """

    def __init__(self, db: Session, mail_client=None, storage: Optional[FileStorage] = None):
        super().__init__(db)
        self.mail_client = mail_client
        self.storage = storage or get_storage()

    def connect_mailbox(self, team_id: int, user_id: int, email: str, access_token: str) -> MailConnection:
        """Store (or refresh) the access token for a team mailbox; the token is encrypted at rest."""
        connection = self.db.query(MailConnection).filter(
            MailConnection.team_id == team_id,
            MailConnection.email == email,
        ).first()
        if connection is None:
            connection = MailConnection(team_id=team_id, email=email)
            self.db.add(connection)

        connection.user_id = user_id
        connection.access_token = encrypt_data(access_token)
        connection.is_active = True
        self.commit()
        self.db.refresh(connection)
        self.log_info(f"Mailbox {email} connected for team {team_id}")
        return connection

    def _get_connection(self, account_id: int, team_id: int) -> MailConnection:
        connection = self.db.query(MailConnection).filter(
            MailConnection.id == account_id,
            MailConnection.team_id == team_id,
            MailConnection.is_active == True,  # noqa: E712
        ).first()
        if not connection:
            raise NotFoundError("Mailbox connection not found")
        return connection

    def sync(self, account_id: int, team_id: int, options: Optional[SyncOptions] = None) -> SyncResult:
        options = options or SyncOptions()
        connection = self._get_connection(account_id, team_id)
        result = SyncResult()

        if options.since_date:
            connection.sync_from_date = options.since_date
            self.commit()

        query = options.query or build_cv_search_query(options.since_date or connection.sync_from_date)
        self.log_info(f"Syncing mailbox {connection.email} for team {team_id} | query: {query}")

        try:
            client = self.mail_client or client_for_connection(connection)
            message_ids = client.list_messages(query, options.max_results, options.include_spam_trash)
        except Exception as e:
            self.log_error(f"Mailbox sync failed for account {account_id}: {e}")
            result.errors.append(f"Mail sync error: {e}")
            return result

        result.total_messages = len(message_ids)

        for message_id in message_ids:
            try:
                self._process_message(client, message_id, team_id, options.filter_threshold, result)
            except Exception as e:
                self.db.rollback()
                self.log_error(f"Error processing message {message_id}: {e}")
                result.errors.append(f"Message {message_id}: {e}")

        self._touch_last_sync(account_id)
        self.log_info(
            f"Sync done: {result.total_messages} messages, {result.pdf_attachments} PDFs, "
            f"{result.new_resumes} new, {result.filtered_out} filtered, {len(result.errors)} errors"
        )
        return result

    def _already_ingested(self, message_id: str) -> bool:
        return self.db.query(Resume.id).filter(Resume.source_message_id == message_id).first() is not None

    def _process_message(self, client, message_id: str, team_id: int, filter_threshold: int, result: SyncResult):
        if self._already_ingested(message_id):
            return

        message = client.get_message(message_id)
        subject = header(message, "subject")
        sender = header(message, "from")
        sent_at = message_date(message)
        body = extract_body_text(message.payload)

        pdf_attachments = [a for a in find_attachments(message.payload) if a.is_pdf]
        result.pdf_attachments += len(pdf_attachments)

        for attachment in pdf_attachments:
            try:
                self._process_attachment(
                    client, message, attachment, team_id, subject, sender, sent_at, body, filter_threshold, result
                )
            except Exception as e:
                self.db.rollback()
                self.log_error(f"Error processing attachment {attachment.filename}: {e}")
                result.errors.append(f"Attachment {attachment.filename}: {e}")

    def _process_attachment(
        self,
        client,
        message: MailMessage,
        attachment: AttachmentRef,
        team_id: int,
        subject: str,
        sender: str,
        sent_at: datetime,
        body: str,
        filter_threshold: int,
        result: SyncResult,
    ):
        filename = attachment.filename or DEFAULT_FILENAME
        verdict = score_attachment(subject, sender, filename, body)
        self.log_info(f"[CV Filter] {filename} - Score: {verdict.score}/100 | " + " | ".join(verdict.reasons))

        if not verdict.should_download or verdict.score < filter_threshold:
            result.filtered_out += 1
            self.log_info(f"[CV Filter] SKIPPED: {filename} (score: {verdict.score})")
            return

        data = client.get_attachment(message.id, attachment.attachment_id)
        if not data:
            self.log_warning(f"Attachment {filename} on message {message.id} has no data")
            return

        file_key = self.storage.save(data, filename, team_id)
        resume = Resume(
            team_id=team_id,
            file_name=filename,
            file_key=file_key,
            file_size=len(data),
            mime_type=attachment.mime_type or "application/pdf",
            source_message_id=message.id,
            email_subject=subject[:500],
            email_from=sender[:255],
            email_date=sent_at,
            status=ResumeStatus.pending,
        )
        self.db.add(resume)
        try:
            self.commit()
        except Exception:
            self.storage.delete(file_key)
            raise
        self.db.refresh(resume)
        result.new_resumes += 1

        self._file_application(resume, team_id, subject, body)

    def _file_application(self, resume: Resume, team_id: int, subject: str, body: str):
        try:
            detection = detect_job_position(self.db, team_id, subject, body)
            self.log_info(
                f"[Job Detection] {resume.file_name}: position={detection.job_position_id or 'spontaneous'} "
                f"confidence={detection.confidence}% reason={detection.reason}"
            )
            application_manager.create_application(
                self.db, resume.id, detection.job_position_id, detection.application_type
            )
        except Exception as e:
            self.db.rollback()
            self.log_error(f"Job detection or application creation failed for resume {resume.id}: {e}")
            try:
                application_manager.create_application(self.db, resume.id, None, ApplicationType.spontaneous)
            except Exception as fallback_error:
                self.log_error(f"Fallback spontaneous application failed for resume {resume.id}: {fallback_error}")

    def _touch_last_sync(self, account_id: int):
        try:
            connection = self.db.get(MailConnection, account_id)
            connection.last_sync_at = datetime.now(timezone.utc)
            self.commit()
        except Exception as e:
            self.log_error(f"Could not update last sync time for account {account_id}: {e}")

    def get_sync_status(self, account_id: int, team_id: int) -> SyncStatus:
        connection = self._get_connection(account_id, team_id)
        counts = dict(
            self.db.query(Resume.status, func.count(Resume.id))
            .filter(Resume.team_id == team_id)
            .group_by(Resume.status)
            .all()
        )
        return SyncStatus(
            connected=True,
            email=connection.email,
            last_sync_at=connection.last_sync_at,
            sync_from_date=connection.sync_from_date,
            total_resumes=sum(counts.values()),
            pending_resumes=counts.get(ResumeStatus.pending, 0),
            processed_resumes=counts.get(ResumeStatus.processed, 0),
        )
