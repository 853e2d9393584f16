"""
Authentication API endpoints.

Handles captcha issuance, admin login, logout, and session management.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Form, Request, Response
from pydantic import BaseModel
from sqlalchemy.orm import Session

from buysoft.api.common import client_meta
from buysoft.auth import (
    LockoutPolicy,
    LoginGuard,
    RequireAuth,
    ValidateCSRF,
    create_captcha,
    create_session,
    delete_session,
)
from buysoft.config import get_settings
from buysoft.core import (
    AccountLockedError,
    CaptchaExpiredError,
    CaptchaInvalidError,
    CaptchaWrongError,
    InvalidCredentialsError,
    get_logger,
    metrics,
)
from buysoft.db import get_db
from buysoft.db.repositories import (
    get_admin_by_email,
    log_account_locked,
    log_login,
    log_logout,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


class AdminResponse(BaseModel):
    """Admin identity response."""

    id: str
    email: str
    name: str | None


class CSRFResponse(BaseModel):
    """CSRF token response."""

    csrf_token: str


def _cookie_secure() -> bool:
    settings = get_settings()
    return settings.cookie_secure if settings.is_production else False


def set_session_cookie(response: Response, token: str) -> None:
    """Set session cookie on response."""
    settings = get_settings()
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        httponly=True,
        secure=_cookie_secure(),
        samesite=settings.cookie_samesite,
        domain=settings.cookie_domain or None,
        max_age=settings.session_ttl_seconds,
    )


def set_csrf_cookie(response: Response, token: str) -> None:
    """Set CSRF cookie on response (readable by JS)."""
    settings = get_settings()
    response.set_cookie(
        key=settings.csrf_cookie_name,
        value=token,
        httponly=False,  # Must be readable by JS
        secure=_cookie_secure(),
        samesite=settings.cookie_samesite,
        domain=settings.cookie_domain or None,
        max_age=settings.session_ttl_seconds,
    )


def set_captcha_cookie(response: Response, value: str) -> None:
    settings = get_settings()
    response.set_cookie(
        key=settings.captcha_cookie_name,
        value=value,
        path="/",
        httponly=True,
        secure=_cookie_secure(),
        samesite="strict",
        max_age=settings.captcha_ttl_seconds,
    )


def clear_captcha_cookie(response: Response) -> None:
    settings = get_settings()
    response.delete_cookie(key=settings.captcha_cookie_name, path="/")


def clear_auth_cookies(response: Response) -> None:
    """Clear session and CSRF cookies."""
    settings = get_settings()
    response.delete_cookie(
        key=settings.session_cookie_name,
        domain=settings.cookie_domain or None,
    )
    response.delete_cookie(
        key=settings.csrf_cookie_name,
        domain=settings.cookie_domain or None,
    )


@router.get("/captcha")
async def get_captcha() -> Response:
    """
    Issue a login captcha.

    The SVG challenge is returned in the body; the lowercased answer and its
    signature travel in a 5-minute HttpOnly cookie.
    """
    settings = get_settings()
    captcha = create_captcha(settings.secret_key, length=settings.captcha_length)

    response = Response(
        content=captcha.svg,
        media_type="image/svg+xml",
        headers={"Cache-Control": "no-store"},
    )
    set_captcha_cookie(response, captcha.cookie_value)
    metrics.increment("captchas_issued_total")
    return response


@router.post("/login")
async def login(
    request: Request,
    response: Response,
    db: Annotated[Session, Depends(get_db)],
    email: Annotated[str | None, Form()] = None,
    password: Annotated[str | None, Form()] = None,
    captcha: Annotated[str | None, Form()] = None,
) -> dict[str, Any]:
    """
    Log in with email, password and captcha answer.

    Returns the admin identity and sets session cookies.
    """
    settings = get_settings()
    meta = client_meta(request)
    guard = LoginGuard(db, settings.secret_key, LockoutPolicy.from_settings(settings))

    try:
        identity = guard.authorize(
            email,
            password,
            captcha,
            request.cookies.get(settings.captcha_cookie_name),
        )
    except (CaptchaExpiredError, CaptchaInvalidError, CaptchaWrongError) as exc:
        metrics.increment("captcha_rejections_total")
        logger.warning("Captcha rejected", data={"email": email, "code": exc.code.value})
        raise
    except AccountLockedError as exc:
        metrics.increment("login_failure_total")
        user = get_admin_by_email(db, email or "")
        newly_locked = bool(exc.details and exc.details.get("lockout_until"))
        if newly_locked and user:
            metrics.increment("account_lockouts_total")
            log_account_locked(db, user.id, exc.details["lockout_until"], **meta)
        log_login(
            db,
            user_id=user.id if user else None,
            email=email or "",
            success=False,
            reason="account_locked",
            **meta,
        )
        raise
    except InvalidCredentialsError:
        metrics.increment("login_failure_total")
        user = get_admin_by_email(db, email or "")
        log_login(
            db,
            user_id=user.id if user else None,
            email=email or "",
            success=False,
            reason="invalid_credentials",
            **meta,
        )
        raise

    session_data = create_session(db, identity.id, **meta)

    set_session_cookie(response, session_data.token)
    set_csrf_cookie(response, session_data.csrf_token)
    clear_captcha_cookie(response)

    metrics.increment("login_success_total")
    log_login(db, user_id=identity.id, email=identity.email, success=True, **meta)
    logger.info("Admin logged in", data={"user_id": identity.id})

    return {
        "user": AdminResponse(
            id=identity.id,
            email=identity.email,
            name=identity.name,
        ).model_dump(),
        "csrf_token": session_data.csrf_token,
    }


@router.post("/logout")
async def logout(
    request: Request,
    response: Response,
    auth: RequireAuth,
    _csrf: ValidateCSRF,
    db: Annotated[Session, Depends(get_db)],
) -> dict[str, str]:
    """
    Log out and invalidate current session.

    Requires authentication (valid session).
    """
    user, session = auth

    delete_session(db, session.id)
    clear_auth_cookies(response)
    log_logout(db, user_id=user.id, session_id=session.id, **client_meta(request))

    return {"status": "logged_out"}


@router.get("/me")
async def get_current_admin_info(auth: RequireAuth) -> dict[str, Any]:
    """
    Get current authenticated admin.

    Requires authentication (valid session).
    """
    user, _ = auth
    return {"user": AdminResponse(id=user.id, email=user.email, name=user.name).model_dump()}


@router.get("/csrf")
async def get_csrf_token(
    response: Response,
    auth: RequireAuth,
) -> CSRFResponse:
    """
    Return the session's CSRF token.

    Returns the token in both the response body and a cookie.
    Requires authentication (valid session).
    """
    _, session = auth
    set_csrf_cookie(response, session.csrf_token)
    return CSRFResponse(csrf_token=session.csrf_token)
