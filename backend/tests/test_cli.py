"""
Tests for the maintenance commands.
"""

from datetime import timedelta

import pytest

from buysoft.auth.password import verify_password
from buysoft.cli import (
    DEFAULT_PLATFORMS,
    CommandError,
    create_admin_account,
    ensure_default_platforms,
    main,
    unlock_admin,
)
from buysoft.core.time import utcnow
from buysoft.db.models import AdminUser
from buysoft.db.repositories import create_platform, get_admin_by_email, list_platforms


class TestCreateAdmin:
    def test_creates_admin_with_argon2_hash(self, db_session):
        user_id = create_admin_account(db_session, " Boss@BuySoft.test ", "long-enough-pw", "Boss")

        user = db_session.get(AdminUser, user_id)
        assert user.email == "boss@buysoft.test"
        assert user.name == "Boss"
        assert user.password_hash.startswith("$argon2id$")
        assert verify_password("long-enough-pw", user.password_hash)

    @pytest.mark.parametrize(
        "email,password",
        [("not-an-email", "long-enough-pw"), ("boss@buysoft.test", "short")],
    )
    def test_rejects_bad_input(self, db_session, email, password):
        with pytest.raises(CommandError):
            create_admin_account(db_session, email, password)

    def test_rejects_duplicate(self, db_session):
        create_admin_account(db_session, "boss@buysoft.test", "long-enough-pw")
        with pytest.raises(CommandError):
            create_admin_account(db_session, "BOSS@buysoft.test", "another-password")


class TestEnsurePlatforms:
    def test_creates_all_defaults_once(self, db_session):
        changes = ensure_default_platforms(db_session)
        assert len(changes) == len(DEFAULT_PLATFORMS)

        names = [p.name for p in list_platforms(db_session)]
        assert names == [d.name for d in DEFAULT_PLATFORMS]
        assert ensure_default_platforms(db_session) == []

    def test_renames_legacy_mac_and_fixes_icons(self, db_session):
        mac = create_platform(db_session, name="Mac", sort_order=1)
        create_platform(db_session, name="Windows", icon="win", sort_order=0)

        changes = ensure_default_platforms(db_session)

        assert "Renamed 'Mac' to 'macOS'" in changes
        assert "Set icon of 'Windows' to 'windows'" in changes
        db_session.expire_all()
        platforms = {p.name: p for p in list_platforms(db_session)}
        assert "Mac" not in platforms
        assert platforms["macOS"].id == mac.id
        assert platforms["macOS"].icon == "macos"
        assert platforms["Windows"].icon == "windows"


class TestUnlock:
    def test_clears_lockout(self, db_session, admin_user):
        admin_user.login_attempts = 5
        admin_user.last_attempt_time = utcnow()
        admin_user.lockout_until = utcnow() + timedelta(minutes=30)
        db_session.commit()

        unlock_admin(db_session, admin_user.email)

        db_session.expire_all()
        user = get_admin_by_email(db_session, admin_user.email)
        assert user.login_attempts == 0
        assert user.lockout_until is None

    def test_unknown_admin(self, db_session):
        with pytest.raises(CommandError):
            unlock_admin(db_session, "ghost@buysoft.test")


class TestMain:
    def test_create_admin_command(self, migrated_db, db_session, capsys):
        main(["create-admin", "--email", "ops@buysoft.test", "--password", "ops-password-1"])

        assert "Created admin ops@buysoft.test" in capsys.readouterr().out
        assert get_admin_by_email(db_session, "ops@buysoft.test") is not None

    def test_ensure_platforms_command(self, migrated_db, capsys):
        main(["ensure-platforms"])
        assert "Created 'Windows'" in capsys.readouterr().out

        main(["ensure-platforms"])
        assert "Platforms already up to date" in capsys.readouterr().out

    def test_command_error_exits_nonzero(self, migrated_db, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["unlock", "--email", "ghost@buysoft.test"])
        assert exc_info.value.code == 1
        assert "No admin with email" in capsys.readouterr().err

    def test_subcommand_required(self):
        with pytest.raises(SystemExit):
            main([])
