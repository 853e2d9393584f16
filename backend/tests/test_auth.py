"""
Tests for authentication endpoints.

Tests captcha issuance, login, lockout, logout, sessions and CSRF.
"""

import json

from sqlalchemy import select

from buysoft.core.metrics import metrics
from buysoft.db.models import AdminSession, AuditLog

from conftest import (
    ADMIN_EMAIL,
    ADMIN_PASSWORD,
    CAPTCHA_COOKIE,
    CSRF_HEADER,
    captcha_cookie,
    login,
    solve_captcha,
)

SESSION_COOKIE = "buysoft_session"
CSRF_COOKIE = "buysoft_csrf"


def audit_entries(db_session, action=None):
    db_session.expire_all()
    stmt = select(AuditLog).order_by(AuditLog.created_at)
    if action:
        stmt = stmt.where(AuditLog.action == action)
    return list(db_session.execute(stmt).scalars().all())


class TestCaptcha:
    """Test captcha issuance."""

    def test_captcha_is_svg_and_not_cached(self, client):
        response = client.get("/api/auth/captcha")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("image/svg+xml")
        assert response.headers["cache-control"] == "no-store"
        assert response.text.startswith("<svg")

    def test_captcha_cookie_attributes(self, client):
        response = client.get("/api/auth/captcha")
        header = next(
            h for h in response.headers.get_list("set-cookie") if h.startswith(f"{CAPTCHA_COOKIE}=")
        )
        lowered = header.lower()
        assert "httponly" in lowered
        assert "samesite=strict" in lowered
        assert "max-age=300" in lowered
        assert "path=/" in lowered

    def test_captcha_metric(self, client):
        client.get("/api/auth/captcha")
        assert metrics.snapshot()["counters"]["captchas_issued_total"] == 1


class TestLogin:
    """Test login flow."""

    def test_login_success(self, client, admin_user):
        response = login(client)
        assert response.status_code == 200
        data = response.json()
        assert data["user"] == {"id": admin_user.id, "email": ADMIN_EMAIL, "name": "Site Admin"}
        assert data["csrf_token"]
        assert SESSION_COOKIE in response.cookies
        assert response.cookies[CSRF_COOKIE] == data["csrf_token"]

    def test_login_clears_captcha_cookie(self, client, admin_user):
        login(client)
        assert CAPTCHA_COOKIE not in client.cookies

    def test_login_writes_audit_entry(self, client, admin_user, db_session):
        login(client)
        entries = audit_entries(db_session, "login")
        assert len(entries) == 1
        assert entries[0].actor_user_id == admin_user.id
        assert json.loads(entries[0].details) == {"success": True, "email": ADMIN_EMAIL}

    def test_missing_fields(self, client, admin_user):
        solve_captcha(client)
        response = client.post("/api/auth/login", data={"email": ADMIN_EMAIL})
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "E2010"

    def test_missing_captcha_cookie(self, client, admin_user):
        response = client.post(
            "/api/auth/login",
            data={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD, "captcha": "abcd"},
        )
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "E2011"

    def test_forged_captcha_cookie(self, client, admin_user):
        client.cookies.set(CAPTCHA_COOKIE, captcha_cookie("abcd", secret="not-the-server-secret"))
        response = client.post(
            "/api/auth/login",
            data={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD, "captcha": "abcd"},
        )
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "E2012"

    def test_wrong_captcha(self, client, admin_user):
        answer = solve_captcha(client)
        response = client.post(
            "/api/auth/login",
            data={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD, "captcha": answer + "x"},
        )
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "E2013"
        assert metrics.snapshot()["counters"]["captcha_rejections_total"] == 1

    def test_wrong_captcha_keeps_cookie(self, client, admin_user):
        answer = solve_captcha(client)
        client.post(
            "/api/auth/login",
            data={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD, "captcha": answer + "x"},
        )
        assert CAPTCHA_COOKIE in client.cookies

    def test_uppercase_answer_is_accepted(self, client, admin_user):
        answer = solve_captcha(client)
        response = client.post(
            "/api/auth/login",
            data={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD, "captcha": answer.upper()},
        )
        assert response.status_code == 200

    def test_wrong_password(self, client, admin_user, db_session):
        response = login(client, password="not-the-password")
        assert response.status_code == 401
        error = response.json()["error"]
        assert error["code"] == "E2001"
        assert error["message"] == "Invalid email or password, 4 attempts remaining."
        assert error["details"] == {"attempts_remaining": 4}
        assert "request_id" in error

        entries = audit_entries(db_session, "login_failed")
        assert len(entries) == 1
        assert json.loads(entries[0].details)["reason"] == "invalid_credentials"

    def test_unknown_email(self, client, admin_user):
        response = login(client, email="nobody@buysoft.test")
        assert response.status_code == 401
        error = response.json()["error"]
        assert error["code"] == "E2001"
        assert error["message"] == "Invalid email or password"

    def test_lockout_after_five_failures(self, client, admin_user, db_session):
        for _ in range(4):
            assert login(client, password="not-the-password").status_code == 401

        response = login(client, password="not-the-password")
        assert response.status_code == 423
        error = response.json()["error"]
        assert error["code"] == "E2014"
        assert error["details"]["retry_after_minutes"] == 60

        # Even the right password is refused now.
        response = login(client)
        assert response.status_code == 423
        assert response.json()["error"]["message"].startswith("Account is locked, try again in")

        assert len(audit_entries(db_session, "account_locked")) == 1
        counters = metrics.snapshot()["counters"]
        assert counters["account_lockouts_total"] == 1
        assert counters["login_failure_total"] == 6


class TestSession:
    """Test session endpoints."""

    def test_me_requires_auth(self, client):
        response = client.get("/api/auth/me")
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "E2000"

    def test_me_with_invalid_session(self, client):
        client.cookies.set(SESSION_COOKIE, "not-a-real-session")
        response = client.get("/api/auth/me")
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "E2002"

    def test_me_returns_admin(self, admin_client, admin_user):
        response = admin_client.get("/api/auth/me")
        assert response.status_code == 200
        assert response.json()["user"]["email"] == ADMIN_EMAIL

    def test_csrf_endpoint_returns_session_token(self, admin_client):
        response = admin_client.get("/api/auth/csrf")
        assert response.status_code == 200
        assert response.json()["csrf_token"] == admin_client.headers[CSRF_HEADER]

    def test_session_token_is_stored_hashed(self, admin_client, db_session):
        token = admin_client.cookies[SESSION_COOKIE]
        sessions = db_session.execute(select(AdminSession)).scalars().all()
        assert len(sessions) == 1
        assert sessions[0].token_hash != token
        assert len(sessions[0].token_hash) == 64


class TestLogout:
    def test_logout_requires_csrf_header(self, admin_client):
        del admin_client.headers[CSRF_HEADER]
        response = admin_client.post("/api/auth/logout")
        assert response.status_code == 403
        assert response.json()["error"]["code"] == "E2003"

    def test_logout_rejects_mismatched_token(self, admin_client):
        admin_client.headers[CSRF_HEADER] = "forged-token"
        response = admin_client.post("/api/auth/logout")
        assert response.status_code == 403

    def test_logout_rejects_foreign_origin(self, admin_client):
        response = admin_client.post(
            "/api/auth/logout", headers={"Origin": "https://evil.example.com"}
        )
        assert response.status_code == 403

    def test_logout_invalidates_session(self, admin_client, db_session):
        response = admin_client.post("/api/auth/logout")
        assert response.status_code == 200
        assert response.json() == {"status": "logged_out"}

        assert admin_client.get("/api/auth/me").status_code == 401
        assert db_session.execute(select(AdminSession)).scalars().all() == []
        assert len(audit_entries(db_session, "logout")) == 1
