import pytest
import os
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Set env before importing app components
os.environ["APP_ENV"] = "testing"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"

from cvtrack.database import Base, get_db
from cvtrack.main import app
from cvtrack.models.job import JobPosition, JobPositionStatus
from cvtrack.routers.deps import get_file_storage, get_mail_client
from cvtrack.services import cv_processor
from cvtrack.services.ai_orchestrator import AIOrchestrator
from cvtrack.services.file_storage import FileStorage
from cvtrack.services.mail_sync import MailSyncService
from fastapi.testclient import TestClient

from factories import FakeAI, FakeMailClient, TEAM_ID


@pytest.fixture(scope="function")
def db_session():
    """
    Fresh in-memory database per test. Services roll back on failure, so an
    outer-transaction fixture would lose the test's own setup rows.
    """
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()

    yield session

    session.close()
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def storage(tmp_path):
    return FileStorage(str(tmp_path / "uploads"))


@pytest.fixture(scope="function")
def mail_client():
    return FakeMailClient()


@pytest.fixture(scope="function")
def fake_ai(monkeypatch):
    """Replaces the model provider; configure replies per AIDomain."""
    ai = FakeAI()
    monkeypatch.setattr(AIOrchestrator, "complete", staticmethod(ai.complete))
    return ai


@pytest.fixture(scope="function")
def pdf_text(monkeypatch):
    """Maps stored file bytes to extracted text; unknown bytes fail like a corrupt PDF."""
    texts = {}

    def fake_extract(data):
        if data not in texts:
            raise cv_processor.CVProcessingError("Failed to extract text from PDF: not a PDF")
        return texts[data]

    monkeypatch.setattr(cv_processor, "extract_text_from_pdf", fake_extract)
    return texts


@pytest.fixture(scope="function")
def connection(db_session, storage):
    return MailSyncService(db_session, storage=storage).connect_mailbox(TEAM_ID, 10, "hr@acme.example", "ya29.token")


@pytest.fixture(scope="function")
def make_position(db_session):
    def _make(title="Python Developer", team_id=TEAM_ID, status=JobPositionStatus.active, **kwargs):
        position = JobPosition(
            team_id=team_id,
            title=title,
            description=kwargs.pop("description", f"{title} working on backend services"),
            requirements=kwargs.pop("requirements", "Python, SQL"),
            status=status,
            **kwargs,
        )
        db_session.add(position)
        db_session.commit()
        return position
    return _make


@pytest.fixture(scope="function")
def client(db_session, mail_client, storage):
    """TestClient bound to the test database, mailbox fake and temp storage."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_mail_client] = lambda: mail_client
    app.dependency_overrides[get_file_storage] = lambda: storage
    with TestClient(app) as c:
        c.headers.update({"X-Team-ID": str(TEAM_ID)})
        yield c
    app.dependency_overrides.clear()
