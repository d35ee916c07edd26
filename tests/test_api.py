from datetime import datetime, timedelta, timezone

from fastapi import status

from cvtrack.models.application import Application, ApplicationStatus
from cvtrack.models.resume import Resume
from cvtrack.services import application_manager
from cvtrack.services.ai_orchestrator import AIDomain

from factories import build_message, extraction_reply, match_reply, pdf_part, validation_reply


def test_health_check(client):
    response = client.get("/health")
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["status"] == "up"
    assert "version" in data
    assert "timestamp" in data


def test_readiness_check(client):
    response = client.get("/readiness")
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["components"]["database"] == "connected"


def test_team_header_is_required(client, connection):
    del client.headers["X-Team-ID"]
    response = client.get(f"/api/mail/{connection.id}/status")
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_sync_rejects_future_since_date(client, connection, mail_client):
    future = (datetime.now(timezone.utc) + timedelta(days=2)).isoformat()

    response = client.post(f"/api/mail/{connection.id}/sync", json={"since_date": future})

    assert response.status_code == 422
    assert response.json()["success"] is False
    assert mail_client.queries == []


def test_sync_unknown_account_is_404(client):
    response = client.post("/api/mail/999/sync", json={})
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["errors"][0]["code"] == "NOT_FOUND"


def test_sync_process_and_match_over_http(client, connection, mail_client, make_position, fake_ai, pdf_text):
    position = make_position()
    mail_client.add(
        build_message("m1", subject="CV - Python Developer", attachments=[pdf_part("cv.pdf", "a1")]),
        {"a1": b"%PDF-cv"},
    )
    pdf_text[b"%PDF-cv"] = "Jan Kowalski"
    fake_ai.set(AIDomain.JOB_DETECTION, {"jobPositionId": position.id, "confidence": 88, "reason": "Subject"})
    fake_ai.set(AIDomain.CV_VALIDATION, validation_reply())
    fake_ai.set(AIDomain.CV_EXTRACTION, extraction_reply())
    fake_ai.set(AIDomain.CANDIDATE_MATCHING, match_reply(77))

    sync = client.post(f"/api/mail/{connection.id}/sync", json={"max_results": 10})
    assert sync.status_code == 200
    assert sync.json()["new_resumes"] == 1

    processed = client.post("/api/cvs/process")
    assert processed.json() == {"processed": 1, "errors": 0}

    match = client.post(f"/api/positions/{position.id}/match", json={"min_score": 50})
    assert match.status_code == 200
    body = match.json()
    assert body["success"] is True
    assert body["total_matches"] == 1
    assert body["matches"][0]["match_type"] == "direct"
    assert body["matches"][0]["match_score"] == 77

    # Stored matches are reused without another model call
    calls = len(fake_ai.calls)
    again = client.post(f"/api/positions/{position.id}/match")
    assert again.json()["total_matches"] == 1
    assert len(fake_ai.calls) == calls

    fake_ai.set(AIDomain.CANDIDATE_MATCHING, match_reply(30))
    redone = client.post(f"/api/positions/{position.id}/match", json={"rematch": True, "min_score": 50})
    assert redone.json()["total_matches"] == 0
    assert client.get(f"/api/positions/{position.id}/match").json()["total_matches"] == 0


def test_application_review_flow(client, db_session, connection, mail_client, fake_ai):
    mail_client.add(
        build_message("m1", subject="Open application", attachments=[pdf_part("cv.pdf", "a1")]),
        {"a1": b"%PDF-cv"},
    )
    client.post(f"/api/mail/{connection.id}/sync", json={})

    spontaneous = client.get("/api/applications/spontaneous").json()
    assert len(spontaneous) == 1
    assert spontaneous[0]["application_type"] == "spontaneous"

    response = client.patch(
        f"/api/applications/{spontaneous[0]['id']}",
        json={"status": "interview", "review_notes": "Strong Python background"},
    )
    assert response.status_code == 200
    assert response.json()["status"] == "interview"
    application = db_session.get(Application, spontaneous[0]["id"])
    assert application.status == ApplicationStatus.interview
    assert application.reviewed_at is not None

    other_team = client.get("/api/applications/spontaneous", headers={"X-Team-ID": "2"})
    assert other_team.json() == []


def test_process_single_cv_not_found(client):
    response = client.post("/api/cvs/12345/process")
    assert response.status_code == 200
    assert response.json()["success"] is False


def test_connect_mailbox_and_read_status(client):
    response = client.post(
        "/api/mail/connections",
        json={"user_id": 5, "email": "jobs@acme.example", "access_token": "ya29.secret"},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["email"] == "jobs@acme.example"
    assert "access_token" not in body

    status_response = client.get(f"/api/mail/{body['id']}/status")
    assert status_response.status_code == 200
    assert status_response.json()["total_resumes"] == 0


def test_list_cvs_and_application_lookup(client, db_session, connection, mail_client, make_position, fake_ai):
    position = make_position()
    fake_ai.set(AIDomain.JOB_DETECTION, {"jobPositionId": position.id, "confidence": 80, "reason": "Subject"})
    mail_client.add(
        build_message("m1", subject="CV Python Developer", attachments=[pdf_part("cv.pdf", "a1")]),
        {"a1": b"%PDF-cv"},
    )
    client.post(f"/api/mail/{connection.id}/sync", json={})

    cvs = client.get("/api/cvs/", params={"status": "pending"}).json()
    assert [cv["file_name"] for cv in cvs] == ["cv.pdf"]
    assert client.get("/api/cvs/", params={"status": "processed"}).json() == []

    applications = client.get(f"/api/positions/{position.id}/applications").json()
    assert len(applications) == 1
    assert applications[0]["resume_id"] == cvs[0]["id"]

    single = client.get(f"/api/applications/{applications[0]['id']}")
    assert single.json()["job_position_id"] == position.id
    assert client.get("/api/applications/999").status_code == 404
    assert application_manager.has_applied_for_position(db_session, 1, cvs[0]["id"], position.id)
    assert not application_manager.has_applied_for_position(db_session, 2, cvs[0]["id"], position.id)


def test_download_and_orphan_cleanup(client, db_session, connection, mail_client, storage, fake_ai):
    mail_client.add(
        build_message("m1", subject="CV", attachments=[pdf_part("życiorys.pdf", "a1"), pdf_part("resume.pdf", "a2")]),
        {"a1": b"%PDF-first", "a2": b"%PDF-second"},
    )
    client.post(f"/api/mail/{connection.id}/sync", json={})
    first, second = sorted(db_session.query(Resume).all(), key=lambda r: r.file_name)

    download = client.get(f"/api/cvs/{second.id}/download")
    assert download.status_code == 200
    assert download.content == b"%PDF-first"
    assert download.headers["content-type"] == "application/pdf"
    assert client.get(f"/api/cvs/{second.id}/download", headers={"X-Team-ID": "2"}).status_code == 404

    storage.delete(first.file_key)
    cleanup = client.delete("/api/cvs/orphaned")
    assert cleanup.json() == {"success": True, "deleted_count": 1}
    assert [r.file_name for r in db_session.query(Resume).all()] == ["życiorys.pdf"]
    assert db_session.query(Application).count() == 1
