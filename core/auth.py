"""Authentication dependencies and session helpers.

The session cookie stores only the account id and role. API handlers use
`get_current_account` to resolve the full account (401 when missing) and
`require_roles` to gate by role (403), in that order.
"""

from typing import Callable

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from core.access_control import SESSION_ACCOUNT_KEY, SESSION_ROLE_KEY
from core.exceptions import UnauthorizedError, ForbiddenError
from database import models
from database.deps import get_db_read


def start_session(request: Request, account: models.Account) -> None:
    request.session.clear()
    request.session[SESSION_ACCOUNT_KEY] = account.id
    request.session[SESSION_ROLE_KEY] = account.role


def end_session(request: Request) -> None:
    request.session.clear()


def get_current_account(request: Request, db: Session = Depends(get_db_read)) -> models.Account:
    """Resolve the account behind the request's session.

    Raises:
        UnauthorizedError: No session, or the session's account no longer exists.
    """
    account_id = request.session.get(SESSION_ACCOUNT_KEY)
    if account_id is None:
        raise UnauthorizedError()
    account = db.get(models.Account, account_id)
    if account is None:
        end_session(request)
        raise UnauthorizedError()
    return account


def require_roles(*roles: str) -> Callable[..., models.Account]:
    """Build a dependency that admits only accounts holding one of `roles`."""

    def dependency(account: models.Account = Depends(get_current_account)) -> models.Account:
        if account.role not in roles:
            raise ForbiddenError(required_roles=list(roles))
        return account

    return dependency
