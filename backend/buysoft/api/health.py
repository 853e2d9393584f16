"""
Liveness and readiness checks.
"""

from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from sqlalchemy import inspect
from sqlalchemy.exc import SQLAlchemyError

from buysoft import __version__
from buysoft.db import get_engine, verify_database_connection

router = APIRouter(tags=["health"])

# Tables created by the first migration; their absence means
# `alembic upgrade head` has not run against this database.
REQUIRED_TABLES = ("admin_users", "products", "site_config")


def schema_is_migrated() -> bool:
    try:
        tables = set(inspect(get_engine()).get_table_names())
    except SQLAlchemyError:
        return False
    return all(name in tables for name in REQUIRED_TABLES)


@router.get("/health")
@router.get("/healthz")
async def healthcheck() -> dict[str, Any]:
    """The process is up; says nothing about the database."""
    return {
        "status": "ok",
        "version": __version__,
        "timestamp": datetime.now(UTC).isoformat(),
    }


@router.get("/readyz")
async def readiness() -> JSONResponse:
    """503 until the database answers and carries the migrated schema."""
    database = verify_database_connection()
    checks = {"database": database, "schema": database and schema_is_migrated()}
    ready = all(checks.values())
    return JSONResponse(
        status_code=status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "ready" if ready else "not_ready",
            "timestamp": datetime.now(UTC).isoformat(),
            "checks": checks,
        },
    )
