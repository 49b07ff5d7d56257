"""Shared fixtures: a throwaway SQLite database, accounts, logged-in clients
and a stand-in for the text-generation service."""

import os
import tempfile

_TMP_DIR = tempfile.mkdtemp(prefix="btf-tests-")
os.environ["WRITE_DATABASE_URL"] = "sqlite:///" + os.path.join(_TMP_DIR, "test.db")
os.environ["READ_DATABASE_URL"] = os.environ["WRITE_DATABASE_URL"]
os.environ["LOG_DIR"] = os.path.join(_TMP_DIR, "logs")
os.environ["GENERATION_API_KEY"] = "test-key"
os.environ["SESSION_SECRET_KEY"] = "test-secret"

import pytest
from fastapi.testclient import TestClient

from database import reset_db, WriteSessionLocal
from database.enums import Role
from main import app
from services import account_service
import services.generation_client as generation_client_module

PASSWORD = "password123"


@pytest.fixture(autouse=True)
def fresh_database():
    """Recreate every table before each test."""
    reset_db()
    yield


@pytest.fixture
def db():
    session = WriteSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_account(db):
    """Create a confirmed account: make_account("a@b.com", role="rd")."""

    def _make(email, role=Role.PATIENT.value, full_name="Test User", password=PASSWORD):
        return account_service.create_account(db, email, password, full_name, role=role, confirmed=True)

    return _make


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def client_for():
    """Return a new TestClient already logged in as the given account."""

    def _client_for(account, password=PASSWORD):
        c = TestClient(app)
        resp = c.post("/api/auth/login", json={"email": account.email, "password": password})
        assert resp.status_code == 200, resp.text
        return c

    return _client_for


class FakeResponse:
    def __init__(self, status_code=200, content="[]", body=None):
        self.status_code = status_code
        self.ok = 200 <= status_code < 300
        self._body = body if body is not None else {"choices": [{"message": {"content": content}}]}
        self.text = str(self._body)

    def json(self):
        return self._body


class FakeGenerationService:
    """Records outgoing completion requests and answers with a canned reply."""

    def __init__(self):
        self.status_code = 200
        self.content = "[]"
        self.calls = []

    def post(self, url, json=None, headers=None, timeout=None):
        self.calls.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        if self.status_code >= 400:
            return FakeResponse(self.status_code, body={"error": "upstream exploded: secret-internal-detail"})
        return FakeResponse(self.status_code, content=self.content)

    @property
    def last_prompt(self):
        return self.calls[-1]["json"]["messages"][1]["content"]


@pytest.fixture
def fake_generation(monkeypatch):
    service = FakeGenerationService()
    monkeypatch.setattr(generation_client_module.requests, "post", service.post)
    return service
