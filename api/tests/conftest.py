import os
from datetime import datetime, timezone
from io import BytesIO
from typing import Dict

import pytest
from fastapi.testclient import TestClient
from pypdf import PdfReader
from sqlmodel import SQLModel, Session, create_engine

os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")
os.environ.setdefault("CELERY_TASK_ALWAYS_EAGER", "1")

from traintrack.main import app  # noqa: E402
from traintrack import db as db_module  # noqa: E402
from traintrack.db import get_session  # noqa: E402
from traintrack import storage as storage_module  # noqa: E402
from traintrack import worker as worker_module  # noqa: E402
from traintrack.records import Course, Participant, ValidityPeriod, build_certificate_record  # noqa: E402
from traintrack.routers import certificates as certificates_router  # noqa: E402

ISSUED_AT = datetime(2024, 3, 2, 9, 30, tzinfo=timezone.utc)
COMPLETED_AT = datetime(2024, 3, 1, 14, 15, tzinfo=timezone.utc)


def _pdf_text(pdf_bytes: bytes) -> str:
    reader = PdfReader(BytesIO(pdf_bytes))
    return "\n".join(page.extract_text() or "" for page in reader.pages)


@pytest.fixture
def pdf_text():
    return _pdf_text


@pytest.fixture
def make_record():
    def _make(
        name="Jane Doe",
        course="Workplace Safety",
        score=95,
        course_type="one-time",
        validity=None,
        participant_id="emp-1",
        course_id="course-1",
        completion_instant=COMPLETED_AT,
        **kwargs,
    ):
        kwargs.setdefault("issued_at", ISSUED_AT)
        return build_certificate_record(
            Participant(id=participant_id, name=name),
            Course(id=course_id, title=course),
            score,
            completion_instant,
            course_type,
            validity,
            **kwargs,
        )
    return _make


@pytest.fixture
def recurring_record(make_record):
    return make_record(course_type="recurring", validity=ValidityPeriod(months=12))


@pytest.fixture(scope="session")
def test_engine(tmp_path_factory):
    db_path = tmp_path_factory.mktemp("data") / "test.db"
    engine = create_engine(
        f"sqlite:///{db_path}",
        connect_args={"check_same_thread": False},
    )
    return engine


@pytest.fixture
def setup_db(test_engine):
    SQLModel.metadata.drop_all(test_engine)
    SQLModel.metadata.create_all(test_engine)
    yield
    SQLModel.metadata.drop_all(test_engine)


@pytest.fixture
def mock_storage(monkeypatch) -> Dict[str, bytes]:
    store: Dict[str, bytes] = {}

    def fake_put_bytes(key: str, data: bytes, content_type: str = "application/octet-stream"):
        store[key] = bytes(data)

    def fake_get_bytes(key: str) -> bytes:
        return store[key]

    for target in (storage_module, worker_module, certificates_router):
        if hasattr(target, "put_bytes"):
            monkeypatch.setattr(target, "put_bytes", fake_put_bytes)
        if hasattr(target, "get_bytes"):
            monkeypatch.setattr(target, "get_bytes", fake_get_bytes)
    return store


@pytest.fixture
def client(test_engine, setup_db, mock_storage):
    db_module.engine = test_engine

    def override_session():
        with Session(test_engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_session
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
