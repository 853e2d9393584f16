"""
Admin user repository.

Login counters are written with conditional UPDATE statements so two
concurrent failed attempts cannot both read N and write N+1.
"""

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from buysoft.core.time import utcnow
from buysoft.db.models import AdminUser


@dataclass(frozen=True)
class AttemptState:
    """Snapshot of the throttling columns of one admin user."""

    login_attempts: int
    last_attempt_time: datetime | None
    lockout_until: datetime | None

    @classmethod
    def of(cls, user: AdminUser) -> "AttemptState":
        return cls(
            login_attempts=user.login_attempts,
            last_attempt_time=user.last_attempt_time,
            lockout_until=user.lockout_until,
        )


def get_admin_by_email(db: Session, email: str) -> AdminUser | None:
    """Get admin by email (case-insensitive)."""
    if not email:
        return None
    stmt = select(AdminUser).where(func.lower(AdminUser.email) == email.strip().lower())
    return db.execute(stmt).scalar_one_or_none()


def admin_email_exists(db: Session, email: str) -> bool:
    return get_admin_by_email(db, email) is not None


def create_admin(
    db: Session,
    email: str,
    password_hash: str,
    name: str | None = None,
) -> AdminUser:
    """
    Create a new admin account.

    Args:
        db: Database session.
        email: Login email, stored lowercase.
        password_hash: Argon2id password hash.
        name: Optional display name.

    Returns:
        Created AdminUser.
    """
    user = AdminUser(
        email=email.strip().lower(),
        name=name,
        password_hash=password_hash,
        login_attempts=0,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def update_login_attempts(
    db: Session,
    user_id: str,
    *,
    expected: AttemptState,
    new: AttemptState,
) -> bool:
    """
    Compare-and-swap the throttling columns.

    The row is only written if its counter and last attempt time still
    equal ``expected``. Returns False when another request got there first;
    the caller should re-read and recompute.
    """
    if expected.last_attempt_time is None:
        last_attempt_matches = AdminUser.last_attempt_time.is_(None)
    else:
        last_attempt_matches = AdminUser.last_attempt_time == expected.last_attempt_time

    stmt = (
        update(AdminUser)
        .where(AdminUser.id == user_id)
        .where(AdminUser.login_attempts == expected.login_attempts)
        .where(last_attempt_matches)
        .values(
            login_attempts=new.login_attempts,
            last_attempt_time=new.last_attempt_time,
            lockout_until=new.lockout_until,
        )
        .execution_options(synchronize_session=False)
    )
    result = db.execute(stmt)
    db.commit()
    # Bulk UPDATE bypasses the identity map.
    db.expire_all()
    return result.rowcount == 1


def reset_login_attempts(db: Session, user_id: str, *, record_login: bool = False) -> None:
    """Zero the counter and clear the attempt/lockout timestamps."""
    values: dict = {
        "login_attempts": 0,
        "last_attempt_time": None,
        "lockout_until": None,
    }
    if record_login:
        values["last_login"] = utcnow()
    stmt = (
        update(AdminUser)
        .where(AdminUser.id == user_id)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    db.execute(stmt)
    db.commit()
    db.expire_all()


def update_password_hash(db: Session, user: AdminUser, password_hash: str) -> None:
    user.password_hash = password_hash
    db.commit()
