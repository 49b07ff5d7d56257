"""Account service: signup, password login and authorization-code exchange.

Signup issues a one-time code that confirms the email when it comes back
through the auth callback. Delivering the code (email) is handled outside
this service; only the issuance is logged here.
"""

import json
import secrets
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from core import config
from core.exceptions import ConflictError, UnauthorizedError, ForbiddenError
from core.logger import get_logger
from core.repository import save
from database import models
from database.enums import Role

logger = get_logger("services.account_service")


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def _new_account(db: Session, email: str, password: str, full_name: str, role: str,
                 confirmed: bool) -> models.Account:
    email = normalize_email(email)
    if db.query(models.Account.id).filter(models.Account.email == email).first():
        raise ConflictError("An account with this email already exists", resource="Account")

    account = models.Account(
        email=email,
        role=role,
        full_name=full_name.strip() if full_name else None,
        email_confirmed_at=datetime.utcnow() if confirmed else None,
    )
    account.set_password(password)
    return account


def create_account(
    db: Session,
    email: str,
    password: str,
    full_name: str,
    role: str = Role.PATIENT.value,
    confirmed: bool = False,
) -> models.Account:
    """Create an account with a hashed password.

    Raises:
        ConflictError: An account already uses this email.
    """
    account = _new_account(db, email, password, full_name, role, confirmed)
    try:
        account = save(db, account)
    except IntegrityError:
        db.rollback()
        raise ConflictError("An account with this email already exists", resource="Account")
    logger.info("Account created: id=%s role=%s", account.id, account.role)
    return account


def create_rd_account(db: Session, email: str, password: str, full_name: str,
                      license_number: str, license_state: str) -> models.Account:
    """Create an RD account together with its RD profile in one transaction.

    Raises:
        ConflictError: An account already uses this email.
        SQLAlchemyError: Either insert failed; neither row is kept.
    """
    account = _new_account(db, email, password, full_name, Role.RD.value, confirmed=False)
    try:
        db.add(account)
        db.flush()
        db.add(models.RDProfile(
            account_id=account.id,
            license_number=license_number.strip(),
            license_state=license_state.strip(),
            specializations=json.dumps([]),
            accepting_patients=True,
        ))
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("An account with this email already exists", resource="Account")
    except SQLAlchemyError:
        db.rollback()
        raise
    db.refresh(account)
    logger.info("Account created: id=%s role=%s", account.id, account.role)
    return account


def issue_auth_code(db: Session, account: models.Account) -> str:
    """Create a one-time code for `account` and return it."""
    code = secrets.token_urlsafe(32)
    save(db, models.AuthCode(
        code=code,
        account_id=account.id,
        expires_at=datetime.utcnow() + timedelta(minutes=config.AUTH_CODE_TTL_MINUTES),
    ))
    logger.info("Confirmation code issued for account id=%s", account.id)
    return code


def exchange_auth_code(db: Session, code: str) -> Optional[models.Account]:
    """Consume `code` and return its account, or None if it is unusable.

    A code is usable once, before it expires. Exchanging it confirms the
    account's email.
    """
    if not code:
        return None
    auth_code = db.query(models.AuthCode).filter(models.AuthCode.code == code).first()
    now = datetime.utcnow()
    if auth_code is None or auth_code.used_at is not None or auth_code.expires_at < now:
        logger.warning("Rejected auth code exchange")
        return None

    account = db.get(models.Account, auth_code.account_id)
    if account is None:
        return None
    auth_code.used_at = now
    if account.email_confirmed_at is None:
        account.email_confirmed_at = now
    db.commit()
    db.refresh(account)
    return account


def authenticate(db: Session, email: str, password: str) -> models.Account:
    """Check credentials and return the account.

    Raises:
        UnauthorizedError: Unknown email or wrong password.
        ForbiddenError: The email has not been confirmed yet.
    """
    account = db.query(models.Account).filter(models.Account.email == normalize_email(email)).first()
    if account is None or not account.check_password(password or ""):
        raise UnauthorizedError("Invalid email or password")
    if account.email_confirmed_at is None:
        raise ForbiddenError("Email not confirmed")
    return account
