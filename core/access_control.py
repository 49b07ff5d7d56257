"""Per-request access control for the patient and RD page areas.

`classify_request` is a pure decision over (authenticated, role, path)
with exactly four outcomes. The middleware applies it using the session
cookie and answers with a redirect, never an error, so the existence of an
area is not revealed. It never reads or writes the database.
"""

from enum import Enum
from typing import Optional

from fastapi import Request
from fastapi.responses import RedirectResponse

from core.logger import get_logger
from database.enums import Role, CLINICIAN_ROLES

logger = get_logger("core.access_control")

PATIENT_AREA = "/dashboard"
RD_AREA = "/rd"
PUBLIC_RD_SIGNUP_PATH = "/rd/signup"
LOGIN_PATH = "/login"

SESSION_ACCOUNT_KEY = "account_id"
SESSION_ROLE_KEY = "role"


class AccessDecision(str, Enum):
    ALLOW = "allow"
    REDIRECT_LOGIN = "redirect_login"
    REDIRECT_PATIENT_HOME = "redirect_patient_home"
    REDIRECT_RD_HOME = "redirect_rd_home"


REDIRECT_TARGETS = {
    AccessDecision.REDIRECT_LOGIN: LOGIN_PATH,
    AccessDecision.REDIRECT_PATIENT_HOME: PATIENT_AREA,
    AccessDecision.REDIRECT_RD_HOME: RD_AREA,
}


def _in_area(path: str, area: str) -> bool:
    return path == area or path.startswith(area + "/")


def _is_public_rd_signup(path: str) -> bool:
    return path.rstrip("/") == PUBLIC_RD_SIGNUP_PATH


def home_path_for_role(role: Optional[str]) -> str:
    return RD_AREA if role in CLINICIAN_ROLES else PATIENT_AREA


def classify_request(authenticated: bool, role: Optional[str], path: str) -> AccessDecision:
    """Decide what happens to a request for `path`.

    Args:
        authenticated: Whether the request carries a session principal.
        role: The principal's role; missing means patient.
        path: Request path.

    Returns:
        The `AccessDecision` for the request.
    """
    in_patient_area = _in_area(path, PATIENT_AREA)
    in_rd_area = _in_area(path, RD_AREA)

    if _is_public_rd_signup(path):
        return AccessDecision.ALLOW

    if not authenticated:
        if in_patient_area or in_rd_area:
            return AccessDecision.REDIRECT_LOGIN
        return AccessDecision.ALLOW

    role = role or Role.PATIENT.value
    if role in CLINICIAN_ROLES:
        if in_patient_area:
            return AccessDecision.REDIRECT_RD_HOME
        return AccessDecision.ALLOW

    if in_rd_area:
        return AccessDecision.REDIRECT_PATIENT_HOME
    return AccessDecision.ALLOW


async def access_control_middleware(request: Request, call_next):
    """Redirect requests whose session does not fit the requested area.

    Requires the session middleware to be installed outside this one.
    """
    session = request.scope.get("session") or {}
    authenticated = session.get(SESSION_ACCOUNT_KEY) is not None
    decision = classify_request(authenticated, session.get(SESSION_ROLE_KEY), request.url.path)

    if decision is AccessDecision.ALLOW:
        return await call_next(request)

    target = REDIRECT_TARGETS[decision]
    logger.info("Access %s for %s -> %s", decision.value, request.url.path, target)
    return RedirectResponse(url=target, status_code=307)
