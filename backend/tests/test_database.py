"""
Tests for database functionality.

Tests Alembic migrations, model definitions, and database connectivity,
plus the health checks and request-id plumbing that sit on top of them.
"""

import pytest
from sqlalchemy import create_engine, inspect, text
from sqlalchemy.exc import IntegrityError

from buysoft.api.health import schema_is_migrated
from buysoft.config import get_settings
from buysoft.db import dispose_engine, verify_database_connection
from buysoft.db.engine import SQLITE_LOCK_TIMEOUT_SECONDS, engine_options

EXPECTED_TABLES = {
    "admin_users",
    "admin_sessions",
    "platforms",
    "channels",
    "products",
    "product_platforms",
    "friend_links",
    "site_config",
    "uploaded_images",
    "audit_log",
}


class TestMigrations:
    """Test Alembic migrations."""

    def test_all_tables_created(self, migrated_db):
        engine = create_engine(migrated_db)
        try:
            tables = set(inspect(engine).get_table_names())
        finally:
            engine.dispose()
        assert EXPECTED_TABLES <= tables
        assert "alembic_version" in tables

    def test_admin_user_columns(self, migrated_db):
        engine = create_engine(migrated_db)
        try:
            columns = {c["name"] for c in inspect(engine).get_columns("admin_users")}
        finally:
            engine.dispose()
        assert {
            "id",
            "email",
            "name",
            "password_hash",
            "login_attempts",
            "last_attempt_time",
            "lockout_until",
            "last_login",
            "created_at",
            "updated_at",
        } <= columns

    def test_product_columns(self, migrated_db):
        engine = create_engine(migrated_db)
        try:
            columns = {c["name"] for c in inspect(engine).get_columns("products")}
        finally:
            engine.dispose()
        assert {
            "slug",
            "cps_link",
            "original_price",
            "sale_price",
            "images",
            "click_count",
            "is_active",
            "channel_id",
        } <= columns

    def test_site_config_key_is_unique(self, migrated_db):
        engine = create_engine(migrated_db)
        insert = text(
            "INSERT INTO site_config (id, key, value, updated_at) "
            "VALUES (:id, 'site_name', 'x', '2026-01-01 00:00:00')"
        )
        try:
            with engine.begin() as conn:
                conn.execute(insert, {"id": "a"})
            with pytest.raises(IntegrityError):
                with engine.begin() as conn:
                    conn.execute(insert, {"id": "b"})
        finally:
            engine.dispose()


class TestConnectivity:
    def test_verify_database_connection(self, migrated_db):
        assert verify_database_connection() is True

    def test_unreachable_database_reports_false(self, tmp_path, monkeypatch):
        # A directory cannot be opened as a SQLite file.
        monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path}")
        get_settings.cache_clear()
        dispose_engine()
        try:
            assert verify_database_connection() is False
        finally:
            dispose_engine()
            get_settings.cache_clear()

    def test_sqlite_waits_on_locks(self, migrated_db):
        options = engine_options(get_settings())
        assert options["connect_args"]["timeout"] == SQLITE_LOCK_TIMEOUT_SECONDS
        assert options["connect_args"]["check_same_thread"] is False

    def test_server_database_uses_a_pool(self, migrated_db):
        settings = get_settings().model_copy(
            update={"database_url": "postgresql://shop@db.internal/buysoft"}
        )
        options = engine_options(settings)
        assert "connect_args" not in options
        assert options["pool_size"] == 5


class TestHealthEndpoints:
    """Test health check endpoints."""

    def test_healthz(self, client):
        response = client.get("/healthz")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert "version" in data

    def test_health_alias(self, client):
        assert client.get("/health").status_code == 200

    def test_readyz(self, client):
        response = client.get("/readyz")
        assert response.status_code == 200
        assert response.json()["checks"]["database"] is True

    def test_readyz_reports_schema(self, client):
        assert client.get("/readyz").json()["checks"]["schema"] is True

    def test_unmigrated_database_is_not_ready(self, tmp_path, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'empty.db'}")
        get_settings.cache_clear()
        dispose_engine()
        try:
            assert verify_database_connection() is True
            assert schema_is_migrated() is False
        finally:
            dispose_engine()
            get_settings.cache_clear()

    def test_request_id_is_generated(self, client):
        response = client.get("/healthz")
        assert response.headers.get("X-Request-ID")

    def test_request_id_is_echoed(self, client):
        response = client.get("/healthz", headers={"X-Request-ID": "req-12345"})
        assert response.headers["X-Request-ID"] == "req-12345"

    def test_error_envelope_carries_request_id(self, client):
        response = client.get("/api/products/missing", headers={"X-Request-ID": "req-404"})
        assert response.status_code == 404
        assert response.json()["error"]["request_id"] == "req-404"
