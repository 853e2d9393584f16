"""
Maintenance commands: admin seeding, platform defaults, lockout release.

Invoked through ``scripts/manage.py`` (or the ``buysoft-manage`` entry point).
"""

from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence
from dataclasses import dataclass

from sqlalchemy.orm import Session

from buysoft.auth.password import hash_password
from buysoft.db import get_session_factory
from buysoft.db.repositories import (
    admin_email_exists,
    create_admin,
    create_platform,
    get_admin_by_email,
    get_platform_by_name,
    reset_login_attempts,
    update_platform,
)

MIN_PASSWORD_LENGTH = 8


@dataclass(frozen=True)
class PlatformDefault:
    name: str
    icon: str | None
    sort_order: int


DEFAULT_PLATFORMS: tuple[PlatformDefault, ...] = (
    PlatformDefault("Windows", "windows", 0),
    PlatformDefault("macOS", "macos", 1),
    PlatformDefault("Linux", "linux", 2),
    PlatformDefault("iOS", "ios", 3),
    PlatformDefault("Android", "android", 4),
    PlatformDefault("Web", "web", 5),
    PlatformDefault("Chrome 扩展", "chrome", 6),
)

LEGACY_PLATFORM_NAMES = {"Mac": "macOS"}


class CommandError(Exception):
    """A maintenance command could not complete."""


def create_admin_account(db: Session, email: str, password: str, name: str | None = None) -> str:
    """Create an admin with an Argon2id hash. Returns the new id."""
    email = email.strip().lower()
    if not email or "@" not in email:
        raise CommandError(f"Invalid email: {email!r}")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise CommandError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    if admin_email_exists(db, email):
        raise CommandError(f"Admin {email} already exists")
    return create_admin(db, email=email, password_hash=hash_password(password), name=name).id


def ensure_default_platforms(db: Session) -> list[str]:
    """
    Make sure every default platform exists with its icon key.

    Legacy names are renamed in place so product tags survive. Returns a
    line per change made; an empty list means nothing needed doing.
    """
    changes: list[str] = []

    for legacy, current in LEGACY_PLATFORM_NAMES.items():
        old = get_platform_by_name(db, legacy)
        if old is not None and get_platform_by_name(db, current) is None:
            update_platform(db, old, {"name": current})
            changes.append(f"Renamed {legacy!r} to {current!r}")

    for default in DEFAULT_PLATFORMS:
        platform = get_platform_by_name(db, default.name)
        if platform is None:
            create_platform(
                db, name=default.name, icon=default.icon, sort_order=default.sort_order
            )
            changes.append(f"Created {default.name!r}")
        elif platform.icon != default.icon:
            update_platform(db, platform, {"icon": default.icon})
            changes.append(f"Set icon of {default.name!r} to {default.icon!r}")

    return changes


def unlock_admin(db: Session, email: str) -> None:
    """Clear the failure counter and lockout of one admin."""
    user = get_admin_by_email(db, email)
    if user is None:
        raise CommandError(f"No admin with email {email}")
    reset_login_attempts(db, user.id)


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="BuySoft maintenance")
    subparsers = parser.add_subparsers(dest="command", required=True)

    create = subparsers.add_parser("create-admin", help="Create a back-office admin")
    create.add_argument("--email", required=True)
    create.add_argument("--password", required=True)
    create.add_argument("--name", default=None)

    subparsers.add_parser("ensure-platforms", help="Create/repair the default platforms")

    unlock = subparsers.add_parser("unlock", help="Release a locked admin account")
    unlock.add_argument("--email", required=True)

    return parser.parse_args(argv)


def exit_with(message: str, code: int = 1) -> None:
    print(message, file=sys.stderr)
    raise SystemExit(code)


def main(argv: Sequence[str] | None = None) -> None:
    args = parse_args(argv)

    with get_session_factory()() as db:
        try:
            if args.command == "create-admin":
                user_id = create_admin_account(db, args.email, args.password, args.name)
                print(f"Created admin {args.email.strip().lower()} ({user_id})")
            elif args.command == "ensure-platforms":
                changes = ensure_default_platforms(db)
                for line in changes:
                    print(line)
                if not changes:
                    print("Platforms already up to date")
            elif args.command == "unlock":
                unlock_admin(db, args.email)
                print(f"Unlocked {args.email}")
        except CommandError as exc:
            exit_with(str(exc))


if __name__ == "__main__":
    main()
