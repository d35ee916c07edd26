from datetime import datetime, timezone

import pytest

from cvtrack.core.exceptions import AIError, MailProviderError, NotFoundError
from cvtrack.models.application import Application, ApplicationType
from cvtrack.models.mail_connection import MailConnection
from cvtrack.models.resume import Resume, ResumeStatus
from cvtrack.schemas.sync import SyncOptions
from cvtrack.services.ai_orchestrator import AIDomain
from cvtrack.services.mail_client import MessagePart
from cvtrack.services.mail_sync import MailSyncService, client_for_connection

from factories import OTHER_TEAM_ID, TEAM_ID, build_message, pdf_part


@pytest.fixture
def service(db_session, mail_client, storage):
    return MailSyncService(db_session, mail_client=mail_client, storage=storage)


@pytest.fixture
def no_positions(fake_ai):
    """No active postings: detection never reaches the model."""
    return fake_ai


def test_ingests_cv_and_files_spontaneous_application(db_session, service, mail_client, storage, connection, no_positions):
    mail_client.add(
        build_message("m1", subject="Application", sender="jan@example.com", attachments=[pdf_part("cv.pdf", "a1")]),
        {"a1": b"%PDF-cv"},
    )

    result = service.sync(connection.id, TEAM_ID)

    assert result.total_messages == 1
    assert result.pdf_attachments == 1
    assert result.new_resumes == 1
    assert result.filtered_out == 0
    assert result.errors == []

    resume = db_session.query(Resume).one()
    assert resume.status == ResumeStatus.pending
    assert resume.source_message_id == "m1"
    assert resume.email_subject == "Application"
    assert resume.email_from == "jan@example.com"
    assert resume.file_size == len(b"%PDF-cv")
    assert storage.read(resume.file_key) == b"%PDF-cv"

    application = db_session.query(Application).one()
    assert application.resume_id == resume.id
    assert application.job_position_id is None
    assert application.application_type == ApplicationType.spontaneous


def test_second_run_creates_nothing(db_session, service, mail_client, connection, no_positions):
    mail_client.add(
        build_message("m1", subject="CV", attachments=[pdf_part("cv.pdf", "a1")]),
        {"a1": b"%PDF-cv"},
    )

    service.sync(connection.id, TEAM_ID)
    second = service.sync(connection.id, TEAM_ID)

    assert second.total_messages == 1
    assert second.new_resumes == 0
    assert db_session.query(Resume).count() == 1
    assert db_session.query(Application).count() == 1
    assert len(mail_client.downloads) == 1


def test_blacklisted_attachment_is_counted_and_not_downloaded(db_session, service, mail_client, connection, no_positions):
    mail_client.add(
        build_message("m1", subject="Documents", sender="jan@example.com", attachments=[
            pdf_part("jan_kowalski.pdf", "a1"),
            pdf_part("invoice_march.pdf", "a2"),
        ]),
        {"a1": b"%PDF-cv", "a2": b"%PDF-invoice"},
    )

    result = service.sync(connection.id, TEAM_ID)

    assert result.pdf_attachments == 2
    assert result.filtered_out == 1
    assert result.new_resumes == 1
    assert mail_client.downloads == [("m1", "a1")]
    assert db_session.query(Resume).one().file_name == "jan_kowalski.pdf"


def test_threshold_filters_weak_attachments(service, mail_client, connection, no_positions):
    mail_client.add(
        build_message("m1", subject="hello", attachments=[pdf_part("scan001.pdf", "a1")]),
        {"a1": b"%PDF-scan"},
    )

    result = service.sync(connection.id, TEAM_ID, SyncOptions(filter_threshold=60))

    assert result.filtered_out == 1
    assert result.new_resumes == 0


def test_nested_attachments_and_non_pdfs(db_session, service, mail_client, connection, no_positions):
    nested = MessagePart(mime_type="multipart/alternative", parts=[
        MessagePart(mime_type="multipart/mixed", parts=[pdf_part("resume_deep.pdf", "a1")]),
    ])
    mail_client.add(
        build_message("m1", subject="CV", attachments=[
            nested,
            pdf_part("photo.jpg", "a2", mime_type="image/jpeg"),
            pdf_part("Anna_Nowak.PDF", "a3", mime_type="application/octet-stream"),
        ]),
        {"a1": b"%PDF-deep", "a3": b"%PDF-anna"},
    )

    result = service.sync(connection.id, TEAM_ID)

    assert result.pdf_attachments == 2
    assert result.new_resumes == 2
    names = sorted(r.file_name for r in db_session.query(Resume).all())
    assert names == ["Anna_Nowak.PDF", "resume_deep.pdf"]


def test_empty_attachment_is_skipped(db_session, service, mail_client, connection, no_positions):
    mail_client.add(build_message("m1", subject="CV", attachments=[pdf_part("cv.pdf", "a1")]))

    result = service.sync(connection.id, TEAM_ID)

    assert result.new_resumes == 0
    assert db_session.query(Resume).count() == 0


def test_detected_position_files_direct_application(db_session, service, mail_client, connection, fake_ai, make_position):
    position = make_position()
    fake_ai.set(AIDomain.JOB_DETECTION, {"jobPositionId": position.id, "confidence": 90, "reason": "Title in subject"})
    mail_client.add(
        build_message("m1", subject="Python Developer - CV", body="I am applying for the Python role",
                      attachments=[pdf_part("cv.pdf", "a1")]),
        {"a1": b"%PDF-cv"},
    )

    service.sync(connection.id, TEAM_ID)

    application = db_session.query(Application).one()
    assert application.job_position_id == position.id
    assert application.application_type == ApplicationType.direct
    assert "I am applying for the Python role" in fake_ai.calls_for(AIDomain.JOB_DETECTION)[0]


def test_detection_failure_still_files_spontaneous(db_session, service, mail_client, connection, fake_ai, make_position):
    make_position()
    fake_ai.set(AIDomain.JOB_DETECTION, AIError("down"))
    mail_client.add(
        build_message("m1", subject="CV", attachments=[pdf_part("cv.pdf", "a1")]),
        {"a1": b"%PDF-cv"},
    )

    result = service.sync(connection.id, TEAM_ID)

    assert result.new_resumes == 1
    application = db_session.query(Application).one()
    assert application.application_type == ApplicationType.spontaneous
    assert application.job_position_id is None


def test_message_failure_is_isolated(db_session, service, mail_client, connection, no_positions):
    mail_client.add(build_message("bad", subject="CV", attachments=[pdf_part("cv.pdf", "x")]))
    mail_client.add(
        build_message("good", subject="CV", attachments=[pdf_part("cv.pdf", "a1")]),
        {"a1": b"%PDF-cv"},
    )
    mail_client.broken_messages.add("bad")

    result = service.sync(connection.id, TEAM_ID)

    assert result.total_messages == 2
    assert result.new_resumes == 1
    assert len(result.errors) == 1
    assert "bad" in result.errors[0]
    assert db_session.get(MailConnection, connection.id).last_sync_at is not None


def test_listing_failure_is_reported_without_raising(db_session, service, mail_client, connection):
    mail_client.list_error = MailProviderError("Gmail API returned 401")

    result = service.sync(connection.id, TEAM_ID)

    assert result.total_messages == 0
    assert len(result.errors) == 1
    assert "401" in result.errors[0]
    assert db_session.get(MailConnection, connection.id).last_sync_at is None


def test_since_date_is_persisted_and_used_in_query(db_session, service, mail_client, connection):
    since = datetime(2025, 9, 1, tzinfo=timezone.utc)

    service.sync(connection.id, TEAM_ID, SyncOptions(since_date=since))
    service.sync(connection.id, TEAM_ID)

    assert mail_client.queries[0].startswith("after:2025/09/01 ")
    assert mail_client.queries[1].startswith("after:2025/09/01 ")
    stored = db_session.get(MailConnection, connection.id).sync_from_date
    assert (stored.year, stored.month, stored.day) == (2025, 9, 1)


def test_raw_query_overrides_built_query(service, mail_client, connection):
    service.sync(connection.id, TEAM_ID, SyncOptions(query="from:careers@acme.example has:attachment"))
    assert mail_client.queries == ["from:careers@acme.example has:attachment"]


def test_unknown_or_foreign_account_raises(service, connection):
    with pytest.raises(NotFoundError):
        service.sync(connection.id + 1, TEAM_ID)
    with pytest.raises(NotFoundError):
        service.sync(connection.id, OTHER_TEAM_ID)


def test_sync_status_counts(db_session, service, mail_client, connection, no_positions):
    mail_client.add(
        build_message("m1", subject="CV", attachments=[pdf_part("cv.pdf", "a1")]),
        {"a1": b"%PDF-cv"},
    )
    service.sync(connection.id, TEAM_ID)

    status = service.get_sync_status(connection.id, TEAM_ID)

    assert status.connected is True
    assert status.email == "hr@acme.example"
    assert status.total_resumes == 1
    assert status.pending_resumes == 1
    assert status.processed_resumes == 0
    assert status.last_sync_at is not None


def test_access_token_is_encrypted_at_rest(db_session, service, connection):
    stored = db_session.get(MailConnection, connection.id)
    assert stored.access_token != "ya29.token"
    assert client_for_connection(stored).session.headers["Authorization"] == "Bearer ya29.token"


def test_reconnecting_refreshes_the_same_row(db_session, service, connection):
    again = service.connect_mailbox(TEAM_ID, 11, "hr@acme.example", "ya29.new")

    assert again.id == connection.id
    assert db_session.query(MailConnection).count() == 1
    assert client_for_connection(again).session.headers["Authorization"] == "Bearer ya29.new"
