"""Admin authentication: captcha, login guard, sessions and CSRF."""

from buysoft.auth.captcha import create_captcha
from buysoft.auth.dependencies import CurrentAdmin, RequireAuth, ValidateCSRF
from buysoft.auth.login_guard import LockoutPolicy, LoginGuard
from buysoft.auth.session import cleanup_expired_sessions, create_session, delete_session

__all__ = [
    "create_captcha",
    "CurrentAdmin",
    "RequireAuth",
    "ValidateCSRF",
    "LockoutPolicy",
    "LoginGuard",
    "cleanup_expired_sessions",
    "create_session",
    "delete_session",
]
