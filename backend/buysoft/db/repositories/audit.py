"""
Audit trail for logins and back-office changes.

Entries are append-only. ``details`` is stored as a JSON string and decoded
again with ``decode_details`` for the admin audit view.
"""

import json
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from buysoft.core.logging import request_id_ctx
from buysoft.db.models import AuditLog

USER_AGENT_MAX_LENGTH = 512
REQUEST_ID_MAX_LENGTH = 36


class AuditAction:
    """Values of AuditLog.action."""

    LOGIN = "login"
    LOGIN_FAILED = "login_failed"
    ACCOUNT_LOCKED = "account_locked"
    LOGOUT = "logout"

    PRODUCT_CREATE = "product_create"
    PRODUCT_UPDATE = "product_update"
    PRODUCT_DELETE = "product_delete"
    PLATFORM_CREATE = "platform_create"
    PLATFORM_UPDATE = "platform_update"
    PLATFORM_DELETE = "platform_delete"
    FRIEND_LINK_CREATE = "friend_link_create"
    FRIEND_LINK_UPDATE = "friend_link_update"
    FRIEND_LINK_DELETE = "friend_link_delete"
    SITE_CONFIG_UPDATE = "site_config_update"
    IMAGE_UPLOAD = "image_upload"


def log_audit(
    db: Session,
    action: str,
    actor_user_id: str | None = None,
    target_type: str | None = None,
    target_id: str | None = None,
    details: dict[str, Any] | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> AuditLog:
    """
    Append one entry and commit.

    The current request id is attached so an entry can be matched to its
    log lines.
    """
    request_id = request_id_ctx.get()
    entry = AuditLog(
        actor_user_id=actor_user_id,
        action=action,
        target_type=target_type,
        target_id=target_id,
        details=json.dumps(details, ensure_ascii=False, default=str) if details else None,
        ip_address=ip_address,
        user_agent=user_agent[:USER_AGENT_MAX_LENGTH] if user_agent else None,
        request_id=request_id[:REQUEST_ID_MAX_LENGTH] if request_id else None,
    )
    db.add(entry)
    db.commit()
    return entry


def decode_details(entry: AuditLog) -> dict[str, Any] | None:
    """Stored details as a dict; None when absent or unreadable."""
    if not entry.details:
        return None
    try:
        details = json.loads(entry.details)
    except json.JSONDecodeError:
        return None
    return details if isinstance(details, dict) else None


def log_login(
    db: Session,
    user_id: str | None,
    email: str,
    ip_address: str | None = None,
    user_agent: str | None = None,
    success: bool = True,
    reason: str | None = None,
) -> AuditLog:
    """Record a login attempt; failed attempts have no actor."""
    details: dict[str, Any] = {"success": success, "email": email}
    if reason:
        details["reason"] = reason
    return log_audit(
        db,
        action=AuditAction.LOGIN if success else AuditAction.LOGIN_FAILED,
        actor_user_id=user_id if success else None,
        target_type="admin_user",
        target_id=user_id,
        details=details,
        ip_address=ip_address,
        user_agent=user_agent,
    )


def log_account_locked(
    db: Session,
    user_id: str,
    lockout_until: str | None,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> AuditLog:
    return log_audit(
        db,
        action=AuditAction.ACCOUNT_LOCKED,
        target_type="admin_user",
        target_id=user_id,
        details={"lockout_until": lockout_until},
        ip_address=ip_address,
        user_agent=user_agent,
    )


def log_logout(
    db: Session,
    user_id: str,
    session_id: str,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> AuditLog:
    return log_audit(
        db,
        action=AuditAction.LOGOUT,
        actor_user_id=user_id,
        target_type="session",
        target_id=session_id,
        ip_address=ip_address,
        user_agent=user_agent,
    )


def list_audit_entries(
    db: Session,
    *,
    limit: int = 200,
    offset: int = 0,
    action: str | None = None,
) -> list[AuditLog]:
    """Newest entries first, optionally only one action."""
    stmt = select(AuditLog)
    if action:
        stmt = stmt.where(AuditLog.action == action)
    stmt = stmt.order_by(AuditLog.created_at.desc()).limit(limit).offset(offset)
    return list(db.execute(stmt).scalars().all())
