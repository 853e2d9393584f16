"""
FastAPI dependencies guarding the back-office routes.
"""

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from buysoft.auth.csrf import tokens_match, validate_origin
from buysoft.auth.session import validate_session
from buysoft.config import get_settings
from buysoft.core import CSRFError, SessionExpiredError, UnauthorizedError, user_id_ctx
from buysoft.db import get_db
from buysoft.db.models import AdminSession, AdminUser

SAFE_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})

AdminAuth = tuple[AdminUser, AdminSession]


def _load_admin(request: Request, db: Session) -> AdminAuth | None:
    """(admin, session) for the request's session cookie, or None."""
    token = request.cookies.get(get_settings().session_cookie_name)
    if not token:
        return None
    result = validate_session(db, token)
    if result is None:
        return None
    session, user = result
    user_id_ctx.set(user.id)
    return user, session


async def get_current_admin(
    request: Request,
    db: Annotated[Session, Depends(get_db)],
) -> AdminAuth | None:
    """Signed-in admin, if any; never raises."""
    return _load_admin(request, db)


async def require_auth(
    request: Request,
    db: Annotated[Session, Depends(get_db)],
) -> AdminAuth:
    """
    Signed-in admin or an error.

    Raises:
        UnauthorizedError: No session cookie.
        SessionExpiredError: Cookie present but the session is gone or expired.
    """
    if not request.cookies.get(get_settings().session_cookie_name):
        raise UnauthorizedError()
    auth = _load_admin(request, db)
    if auth is None:
        raise SessionExpiredError("Session expired or invalid")
    return auth


async def validate_csrf(
    request: Request,
    db: Annotated[Session, Depends(get_db)],
) -> None:
    """
    Origin and double-submit token check for state-changing requests.

    Anonymous requests skip the token check; require_auth rejects them.
    """
    if request.method in SAFE_METHODS:
        return

    settings = get_settings()
    if not validate_origin(
        request.headers.get("origin"),
        request.headers.get("referer"),
        settings.cors_origins_list,
        allow_local_dev=not settings.is_production,
    ):
        raise CSRFError("Invalid origin")

    auth = _load_admin(request, db)
    if auth is None:
        return
    _, session = auth

    header_token = request.headers.get(settings.csrf_header_name)
    cookie_token = request.cookies.get(settings.csrf_cookie_name)
    if not header_token or not cookie_token:
        raise CSRFError("CSRF token missing")
    if not tokens_match(header_token, cookie_token, session.csrf_token):
        raise CSRFError("CSRF token mismatch")


CurrentAdmin = Annotated[AdminAuth | None, Depends(get_current_admin)]
RequireAuth = Annotated[AdminAuth, Depends(require_auth)]
ValidateCSRF = Annotated[None, Depends(validate_csrf)]
