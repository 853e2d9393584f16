"""
Server-side admin sessions.

The client holds a random token in an HttpOnly cookie; the database keeps
only its SHA-256 digest next to the session's CSRF token.
"""

import hashlib
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from buysoft.auth.csrf import generate_csrf_token
from buysoft.config import get_settings
from buysoft.core.time import utcnow
from buysoft.db.models import AdminSession, AdminUser

USER_AGENT_MAX_LENGTH = 512


@dataclass(frozen=True)
class SessionData:
    """What the login response hands to the browser."""

    session_id: str
    token: str
    csrf_token: str
    expires_at: datetime


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


def create_session(
    db: Session,
    user_id: str,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> SessionData:
    """Open a session lasting SESSION_TTL_SECONDS for the given admin."""
    token = secrets.token_urlsafe(32)
    session = AdminSession(
        user_id=user_id,
        token_hash=hash_token(token),
        csrf_token=generate_csrf_token(),
        expires_at=utcnow() + timedelta(seconds=get_settings().session_ttl_seconds),
        ip_address=ip_address,
        user_agent=user_agent[:USER_AGENT_MAX_LENGTH] if user_agent else None,
    )
    db.add(session)
    db.commit()
    return SessionData(session.id, token, session.csrf_token, session.expires_at)


def validate_session(db: Session, token: str) -> tuple[AdminSession, AdminUser] | None:
    """Live session and its admin for a cookie token, or None."""
    stmt = (
        select(AdminSession, AdminUser)
        .join(AdminUser, AdminSession.user_id == AdminUser.id)
        .where(AdminSession.token_hash == hash_token(token))
        .where(AdminSession.expires_at > utcnow())
    )
    row = db.execute(stmt).one_or_none()
    if row is None:
        return None
    return row[0], row[1]


def delete_session(db: Session, session_id: str) -> bool:
    result = db.execute(delete(AdminSession).where(AdminSession.id == session_id))
    db.commit()
    return result.rowcount > 0


def cleanup_expired_sessions(db: Session) -> int:
    """Drop sessions past their expiry; run at startup."""
    result = db.execute(delete(AdminSession).where(AdminSession.expires_at <= utcnow()))
    db.commit()
    return result.rowcount
