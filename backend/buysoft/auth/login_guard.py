"""
Credential login guard.

Decides whether an admin login attempt succeeds. A signed captcha must be
answered before any account is looked up, and repeated password failures
lock the account for a fixed period.

Failure counters are written with a compare-and-swap UPDATE so concurrent
failed attempts against one account cannot lose increments.
"""

import math
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from buysoft.auth.password import hash_password, needs_rehash, verify_password
from buysoft.config import Settings
from buysoft.core.errors import (
    AccountLockedError,
    CaptchaExpiredError,
    CaptchaInvalidError,
    CaptchaWrongError,
    InternalError,
    InvalidCredentialsError,
    MissingInputError,
)
from buysoft.core.logging import get_logger
from buysoft.core.signing import SignedValue
from buysoft.core.time import utcnow
from buysoft.db.models import AdminUser
from buysoft.db.repositories.admin_user import (
    AttemptState,
    get_admin_by_email,
    reset_login_attempts,
    update_login_attempts,
    update_password_hash,
)

logger = get_logger(__name__)


@dataclass(frozen=True)
class LockoutPolicy:
    """Thresholds for progressive lockout."""

    max_attempts: int = 5
    attempt_window: timedelta = timedelta(minutes=5)
    lockout_duration: timedelta = timedelta(minutes=60)

    @classmethod
    def from_settings(cls, settings: Settings) -> "LockoutPolicy":
        return cls(
            max_attempts=settings.login_max_attempts,
            attempt_window=timedelta(seconds=settings.login_attempt_window_seconds),
            lockout_duration=timedelta(seconds=settings.login_lockout_seconds),
        )


@dataclass(frozen=True)
class UserIdentity:
    """Authenticated admin returned by a successful attempt."""

    id: str
    email: str
    name: str | None


def remaining_lockout_minutes(lockout_until: datetime, now: datetime) -> int:
    """Whole minutes left on a lockout, rounded up."""
    remaining_ms = (lockout_until - now) / timedelta(milliseconds=1)
    return max(1, math.ceil(remaining_ms / 60000))


def _locked_error(lockout_until: datetime, now: datetime) -> AccountLockedError:
    minutes = remaining_lockout_minutes(lockout_until, now)
    return AccountLockedError(
        f"Account is locked, try again in {minutes} minutes",
        details={"retry_after_minutes": minutes},
    )


class LoginGuard:
    """
    Authorizes admin login attempts.

    Args:
        db: Database session used for user lookup and counter updates.
        secret: Server secret that signed the captcha cookie.
        policy: Lockout thresholds (defaults: 5 attempts, 5 min, 60 min).
        max_update_retries: Compare-and-swap attempts before giving up.
    """

    def __init__(
        self,
        db: Session,
        secret: str,
        policy: LockoutPolicy | None = None,
        max_update_retries: int = 3,
    ):
        if not secret:
            raise ValueError("LoginGuard requires a non-empty secret")
        self.db = db
        self.secret = secret
        self.policy = policy or LockoutPolicy()
        self.max_update_retries = max_update_retries

    def authorize(
        self,
        email: str | None,
        password: str | None,
        captcha_answer: str | None,
        captcha_cookie: str | None,
        now: datetime | None = None,
    ) -> UserIdentity:
        """
        Check one login attempt.

        Returns:
            Identity of the admin on success.

        Raises:
            MissingInputError, CaptchaExpiredError, CaptchaInvalidError,
            CaptchaWrongError, InvalidCredentialsError, AccountLockedError,
            InternalError (store failure).
        """
        if not email or not password or not captcha_answer:
            raise MissingInputError()

        self._check_captcha(captcha_answer, captcha_cookie)

        now = now or utcnow()
        try:
            return self._check_credentials(email, password, now)
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error(
                "Login store failure",
                data={"email": email, "error_type": type(exc).__name__},
            )
            raise InternalError("Login is temporarily unavailable") from exc

    def _check_captcha(self, answer: str, cookie: str | None) -> None:
        if not cookie:
            raise CaptchaExpiredError()

        signed = SignedValue.parse(cookie)
        if signed is None or not signed.verify(self.secret):
            raise CaptchaInvalidError()

        if answer.lower() != signed.value:
            raise CaptchaWrongError()

    def _check_credentials(self, email: str, password: str, now: datetime) -> UserIdentity:
        user = get_admin_by_email(self.db, email)
        if user is None:
            logger.warning("Login for unknown admin", data={"email": email})
            raise InvalidCredentialsError()

        if user.lockout_until is not None and user.lockout_until > now:
            logger.warning("Login attempt on locked account", data={"user_id": user.id})
            raise _locked_error(user.lockout_until, now)

        if not verify_password(password, user.password_hash):
            self._record_failure(user, now)

        if needs_rehash(user.password_hash):
            update_password_hash(self.db, user, hash_password(password))

        reset_login_attempts(self.db, user.id, record_login=True)
        return UserIdentity(id=user.id, email=user.email, name=user.name)

    def next_state(self, current: AttemptState, now: datetime) -> AttemptState:
        """Counter state after one more failure at ``now``."""
        window_start = now - self.policy.attempt_window
        if current.last_attempt_time is not None and current.last_attempt_time < window_start:
            attempts = 1
        else:
            attempts = current.login_attempts + 1

        lockout_until = current.lockout_until
        if attempts >= self.policy.max_attempts:
            lockout_until = now + self.policy.lockout_duration

        return AttemptState(
            login_attempts=attempts,
            last_attempt_time=now,
            lockout_until=lockout_until,
        )

    def _record_failure(self, user: AdminUser, now: datetime) -> None:
        """Persist one failed attempt, then raise the matching error."""
        user_id = user.id
        current = AttemptState.of(user)

        for _ in range(self.max_update_retries):
            new = self.next_state(current, now)
            if update_login_attempts(self.db, user_id, expected=current, new=new):
                break

            fresh = self.db.get(AdminUser, user_id)
            if fresh is None:
                raise InvalidCredentialsError()
            if fresh.lockout_until is not None and fresh.lockout_until > now:
                raise _locked_error(fresh.lockout_until, now)
            current = AttemptState.of(fresh)
        else:
            logger.error(
                "Login counter update kept conflicting",
                data={"user_id": user_id, "retries": self.max_update_retries},
            )
            raise InternalError("Could not record login attempt")

        if new.login_attempts >= self.policy.max_attempts:
            logger.warning(
                "Account locked after repeated failures",
                data={"user_id": user_id, "attempts": new.login_attempts},
            )
            raise AccountLockedError(
                f"Too many failed attempts, account locked for "
                f"{remaining_lockout_minutes(new.lockout_until, now)} minutes",
                details={
                    "retry_after_minutes": remaining_lockout_minutes(new.lockout_until, now),
                    "lockout_until": new.lockout_until.isoformat(),
                },
            )

        remaining = self.policy.max_attempts - new.login_attempts
        logger.warning(
            "Invalid password",
            data={"user_id": user_id, "attempts": new.login_attempts},
        )
        raise InvalidCredentialsError(
            f"Invalid email or password, {remaining} attempts remaining.",
            details={"attempts_remaining": remaining},
        )
