"""Account routes: signup, public RD registration, login, logout and the auth callback.

The auth callback exchanges a one-time code for a session and sends the
browser to the right home area. Failures there always land on the login
page with ``?error=auth``.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session
from typing import Optional

from core.access_control import LOGIN_PATH, PUBLIC_RD_SIGNUP_PATH, home_path_for_role, RD_AREA, PATIENT_AREA
from core.auth import start_session, end_session, get_current_account
from core.logger import get_logger
from database import models
from database.deps import get_db_write
from database.enums import Role
from schemas.account_schema import (
    SignupRequest, RDSignupRequest, SignupResponse, LoginRequest, LoginResponse, AccountResponse,
)
from services import account_service

logger = get_logger("api.auth")
router = APIRouter(tags=["auth"])

RD_SPECIALIZATIONS = [
    "Blenderized Tube Feeding",
    "Pediatric Nutrition",
    "Adult Enteral Nutrition",
    "GI Disorders",
    "Oncology Nutrition",
    "Neurological Conditions",
    "Weight Management",
    "Food Allergies",
]


def _is_local_path(path: Optional[str]) -> bool:
    return bool(path) and path.startswith("/") and not path.startswith("//") and "\\" not in path


@router.post("/api/auth/signup", response_model=SignupResponse, status_code=201)
def signup(payload: SignupRequest, db: Session = Depends(get_db_write)):
    """Register a patient account and issue its email confirmation code.

    Raises:
        ConflictError: Email already registered.
    """
    account = account_service.create_account(db, payload.email, payload.password, payload.full_name)
    account_service.issue_auth_code(db, account)
    return SignupResponse()


@router.get(PUBLIC_RD_SIGNUP_PATH)
def rd_signup_page():
    """Page data for the public RD registration form."""
    return {
        "role": Role.RD.value,
        "fields": ["full_name", "email", "password", "license_number", "license_state"],
        "specializations": RD_SPECIALIZATIONS,
    }


@router.post(PUBLIC_RD_SIGNUP_PATH, response_model=SignupResponse, status_code=201)
def rd_signup(payload: RDSignupRequest, db: Session = Depends(get_db_write)):
    """Register an RD account. Reachable without a session.

    Raises:
        ConflictError: Email already registered.
    """
    account = account_service.create_rd_account(
        db,
        email=payload.email,
        password=payload.password,
        full_name=payload.full_name,
        license_number=payload.license_number,
        license_state=payload.license_state,
    )
    account_service.issue_auth_code(db, account)
    return SignupResponse(message="Check your email to activate your RD account")


@router.get(LOGIN_PATH)
def login_page(error: Optional[str] = None):
    """Page data for the login form; echoes the callback error flag."""
    return {"error": error}


@router.post("/api/auth/login", response_model=LoginResponse)
def login(payload: LoginRequest, request: Request, db: Session = Depends(get_db_write)):
    """Check credentials and start a session.

    Raises:
        UnauthorizedError: Unknown email or wrong password.
        ForbiddenError: Email not confirmed.
    """
    account = account_service.authenticate(db, payload.email, payload.password)
    start_session(request, account)
    logger.info("Login: account=%s role=%s", account.id, account.role)
    return LoginResponse(
        id=account.id,
        role=account.role,
        full_name=account.full_name,
        redirect_to=home_path_for_role(account.role),
    )


@router.post("/api/auth/logout")
def logout(request: Request):
    end_session(request)
    return {"success": True}


@router.get("/api/auth/me", response_model=AccountResponse)
def me(account: models.Account = Depends(get_current_account)):
    return AccountResponse(id=account.id, email=account.email, role=account.role, full_name=account.full_name)


@router.get("/auth/callback")
def auth_callback(request: Request, code: Optional[str] = None, next: Optional[str] = None,
                  db: Session = Depends(get_db_write)):
    """Exchange an authorization code for a session and redirect.

    An explicit local `next` path wins; otherwise RDs go to the RD area and
    everyone else to the patient area.
    """
    account = account_service.exchange_auth_code(db, code) if code else None
    if account is None:
        return RedirectResponse(url=f"{LOGIN_PATH}?error=auth")

    start_session(request, account)
    if _is_local_path(next):
        return RedirectResponse(url=next)
    destination = RD_AREA if account.role == Role.RD.value else PATIENT_AREA
    return RedirectResponse(url=destination)
