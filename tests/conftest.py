import os
import tempfile

_TMP = tempfile.mkdtemp(prefix="taskhub-tests-")
os.environ.setdefault("SECRET_KEY", "test-secret")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP, 'test.db')}"
os.environ["UPLOAD_DIR"] = os.path.join(_TMP, "uploads")
os.environ["RATE_LIMIT_MAX_CALLS"] = "10000"

import pytest
from fastapi.testclient import TestClient

from taskhub.auth.service import issue_token, register_user
from taskhub.config import settings
from taskhub.db.session import Base, SessionLocal, engine
from taskhub.main import create_app
from taskhub.models.user import ROLE_ADMIN, ROLE_USER

PASSWORD = "password123"


@pytest.fixture(autouse=True)
def _schema():
    from taskhub.models import task, user  # noqa: F401
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture()
def upload_dir(tmp_path, monkeypatch):
    path = tmp_path / "uploads"
    path.mkdir()
    monkeypatch.setattr(settings, "upload_dir", str(path))
    return path


@pytest.fixture()
def app(upload_dir):
    return create_app()


@pytest.fixture()
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def make_user(db):
    def _make(email: str, role: str = ROLE_USER):
        return register_user(db, email, PASSWORD, role=role)
    return _make


@pytest.fixture()
def alice(make_user):
    return make_user("alice@example.com")


@pytest.fixture()
def bob(make_user):
    return make_user("bob@example.com")


@pytest.fixture()
def admin(make_user):
    return make_user("admin@example.com", role=ROLE_ADMIN)


def auth(user) -> dict[str, str]:
    return {"Authorization": f"Bearer {issue_token(user)}"}


def pdf(name: str = "doc.pdf", size: int = 64, content_type: str = "application/pdf"):
    return ("documents", (name, b"%PDF-1.4\n" + b"0" * size, content_type))


def task_form(assignee_id: int, **overrides) -> dict[str, str]:
    form = {
        "title": "T",
        "description": "D",
        "dueDate": "2025-01-01",
        "assignedTo": str(assignee_id),
    }
    form.update({k: str(v) for k, v in overrides.items()})
    return form


@pytest.fixture()
def create_task(client):
    def _create(user, assignee=None, files=None, **overrides):
        assignee_id = (assignee or user).id
        r = client.post("/tasks", headers=auth(user), data=task_form(assignee_id, **overrides), files=files)
        assert r.status_code == 201, r.text
        return r.json()
    return _create
