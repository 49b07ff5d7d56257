"""Test signup, login, and the auth callback redirects."""
from datetime import datetime, timedelta

import pytest
from sqlalchemy.exc import SQLAlchemyError

from database import models
from services import account_service


def _code_for(db, email):
    account = db.query(models.Account).filter(models.Account.email == email).one()
    return db.query(models.AuthCode).filter(models.AuthCode.account_id == account.id).one().code


def test_patient_signup_then_callback_lands_on_dashboard(db, client):
    resp = client.post("/api/auth/signup", json={
        "full_name": "Pat Patient", "email": "Pat@Example.com", "password": "password123",
    })
    assert resp.status_code == 201

    # unconfirmed accounts cannot log in yet
    resp = client.post("/api/auth/login", json={"email": "pat@example.com", "password": "password123"})
    assert resp.status_code == 403

    resp = client.get(f"/auth/callback?code={_code_for(db, 'pat@example.com')}", follow_redirects=False)
    assert resp.status_code == 307
    assert resp.headers["location"] == "/dashboard"
    assert client.get("/api/auth/me").json()["role"] == "patient"


def test_rd_signup_then_callback_lands_on_rd_area(db, client):
    resp = client.post("/rd/signup", json={
        "full_name": "Dana RD", "email": "dana@example.com", "password": "password123",
        "license_number": "RD-1234", "license_state": "CA",
    })
    assert resp.status_code == 201
    assert db.get(models.RDProfile, db.query(models.Account).one().id).license_number == "RD-1234"

    resp = client.get(f"/auth/callback?code={_code_for(db, 'dana@example.com')}", follow_redirects=False)
    assert resp.headers["location"] == "/rd"
    assert client.get("/rd", follow_redirects=False).status_code == 200


def test_callback_honours_local_next_only(db, client):
    account = account_service.create_account(db, "pat@example.com", "password123", "Pat")
    code = account_service.issue_auth_code(db, account)
    resp = client.get(f"/auth/callback?code={code}&next=/dashboard/tracking", follow_redirects=False)
    assert resp.headers["location"] == "/dashboard/tracking"

    code = account_service.issue_auth_code(db, account)
    resp = client.get(f"/auth/callback?code={code}&next=//evil.example.com", follow_redirects=False)
    assert resp.headers["location"] == "/dashboard"


def test_callback_rejects_reused_expired_and_missing_codes(db, client):
    account = account_service.create_account(db, "pat@example.com", "password123", "Pat")
    code = account_service.issue_auth_code(db, account)
    assert client.get(f"/auth/callback?code={code}", follow_redirects=False).headers["location"] == "/dashboard"

    resp = client.get(f"/auth/callback?code={code}", follow_redirects=False)
    assert resp.headers["location"] == "/login?error=auth"

    expired = account_service.issue_auth_code(db, account)
    row = db.query(models.AuthCode).filter(models.AuthCode.code == expired).one()
    row.expires_at = datetime.utcnow() - timedelta(minutes=1)
    db.commit()
    assert client.get(f"/auth/callback?code={expired}", follow_redirects=False).headers["location"] == "/login?error=auth"

    assert client.get("/auth/callback", follow_redirects=False).headers["location"] == "/login?error=auth"
    assert client.get("/login?error=auth").json() == {"error": "auth"}


def test_duplicate_signup_is_409(client):
    body = {"full_name": "Pat", "email": "pat@example.com", "password": "password123"}
    assert client.post("/api/auth/signup", json=body).status_code == 201
    body["email"] = " PAT@example.com"
    assert client.post("/api/auth/signup", json=body).status_code == 409


def test_login_with_wrong_password_is_401(make_account, client):
    make_account("pat@example.com")
    resp = client.post("/api/auth/login", json={"email": "pat@example.com", "password": "wrong-password"})
    assert resp.status_code == 401
    assert resp.json()["error"]["message"] == "Invalid email or password"


def test_login_reports_home_area(make_account, client):
    make_account("rd@example.com", role="rd")
    resp = client.post("/api/auth/login", json={"email": "RD@example.com", "password": "password123"})
    assert resp.status_code == 200
    assert resp.json()["redirect_to"] == "/rd"


def test_me_requires_session(client):
    assert client.get("/api/auth/me").status_code == 401


def test_rd_signup_keeps_no_account_when_profile_insert_fails(db, monkeypatch):
    """Account and RD profile are committed together or not at all."""

    def failing_profile(**kwargs):
        raise SQLAlchemyError("profile insert failed")

    monkeypatch.setattr(models, "RDProfile", failing_profile)
    with pytest.raises(SQLAlchemyError):
        account_service.create_rd_account(db, "dana@example.com", "password123", "Dana", "RD-1", "CA")
    monkeypatch.undo()

    assert db.query(models.Account).count() == 0
    assert db.query(models.RDProfile).count() == 0


def test_rd_account_created_with_profile(db):
    account = account_service.create_rd_account(db, "dana@example.com", "password123", "Dana", " RD-1 ", "CA")
    profile = db.get(models.RDProfile, account.id)
    assert account.role == "rd"
    assert profile.license_number == "RD-1"
    assert profile.accepting_patients is True
