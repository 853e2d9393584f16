"""
Shared fixtures.

Every database-backed test gets its own SQLite file, migrated with Alembic,
selected through DATABASE_URL.
"""

import os
from pathlib import Path

import pytest
from alembic import command
from alembic.config import Config
from fastapi.testclient import TestClient

TEST_SECRET = "test-secret-key-for-testing-only-min-16"

# buysoft.main builds the app at import time and settings require a secret.
os.environ.setdefault("SECRET_KEY", TEST_SECRET)

from buysoft.auth.password import hash_password  # noqa: E402
from buysoft.config import get_settings  # noqa: E402
from buysoft.core.metrics import metrics  # noqa: E402
from buysoft.core.signing import SignedValue  # noqa: E402
from buysoft.db import dispose_engine, get_session_factory, reset_session_factory  # noqa: E402
from buysoft.db.repositories import create_admin  # noqa: E402

BACKEND_DIR = Path(__file__).resolve().parent.parent

ADMIN_EMAIL = "admin@buysoft.test"
ADMIN_PASSWORD = "correct-horse-battery"
CAPTCHA_COOKIE = "auth-captcha"
CSRF_HEADER = "X-CSRF-Token"


def run_migrations(database_url: str) -> None:
    alembic_cfg = Config(str(BACKEND_DIR / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(BACKEND_DIR / "migrations"))
    alembic_cfg.set_main_option("sqlalchemy.url", database_url)
    command.upgrade(alembic_cfg, "head")


def _reset_state() -> None:
    dispose_engine()
    reset_session_factory()
    get_settings.cache_clear()


@pytest.fixture
def migrated_db(tmp_path, monkeypatch):
    """Fresh migrated SQLite database for one test."""
    database_url = f"sqlite:///{tmp_path / 'buysoft_test.db'}"
    monkeypatch.setenv("DATABASE_URL", database_url)
    monkeypatch.setenv("SECRET_KEY", TEST_SECRET)
    monkeypatch.setenv("COOKIE_SECURE", "false")
    monkeypatch.setenv("SMMS_TOKEN", "")
    _reset_state()

    run_migrations(database_url)

    yield database_url

    _reset_state()


@pytest.fixture
def db_session(migrated_db):
    session = get_session_factory()()
    yield session
    session.close()


@pytest.fixture
def client(migrated_db):
    """TestClient bound to the migrated database."""
    from buysoft.main import create_app

    metrics.reset()
    app = create_app()
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def admin_user(db_session):
    return create_admin(
        db_session,
        email=ADMIN_EMAIL,
        password_hash=hash_password(ADMIN_PASSWORD),
        name="Site Admin",
    )


def captcha_cookie(text: str, secret: str = TEST_SECRET) -> str:
    """Cookie value the captcha endpoint would have issued for ``text``."""
    return SignedValue.sign(text.lower(), secret).encode()


def solve_captcha(client: TestClient) -> str:
    """Fetch a captcha and read its answer back from the signed cookie."""
    response = client.get("/api/auth/captcha")
    assert response.status_code == 200
    return client.cookies[CAPTCHA_COOKIE].split(".", 1)[0]


def login(client: TestClient, email: str = ADMIN_EMAIL, password: str = ADMIN_PASSWORD):
    answer = solve_captcha(client)
    return client.post(
        "/api/auth/login",
        data={"email": email, "password": password, "captcha": answer},
    )


@pytest.fixture
def admin_client(client, admin_user):
    """Client logged in as the admin, sending the CSRF header."""
    response = login(client)
    assert response.status_code == 200, response.text
    client.headers[CSRF_HEADER] = response.json()["csrf_token"]
    return client
