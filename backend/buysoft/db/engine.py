"""
Process-wide SQLAlchemy engine for the catalog and back-office tables.

SQLite is the default store. Concurrent login attempts update the same
admin row, so SQLite connections wait on a locked database instead of
failing immediately.
"""

from pathlib import Path
from typing import Any

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import SQLAlchemyError

from buysoft.config import Settings, get_settings
from buysoft.core import get_logger

logger = get_logger(__name__)

SQLITE_LOCK_TIMEOUT_SECONDS = 30

_engine: Engine | None = None


def engine_options(settings: Settings) -> dict[str, Any]:
    """Keyword arguments for create_engine() under the configured backend."""
    if settings.is_sqlite:
        return {
            "connect_args": {
                "check_same_thread": False,
                "timeout": SQLITE_LOCK_TIMEOUT_SECONDS,
            },
            "pool_pre_ping": True,
        }
    return {"pool_pre_ping": True, "pool_size": 5, "max_overflow": 10}


def _prepare_sqlite_file(database_url: str) -> None:
    database = make_url(database_url).database
    if not database or database == ":memory:":
        return
    parent = Path(database).parent
    if not parent.exists():
        parent.mkdir(parents=True, exist_ok=True)
        logger.info("Created database directory", data={"path": str(parent)})


def get_engine() -> Engine:
    """Engine for the configured DATABASE_URL, built on first use."""
    global _engine

    if _engine is None:
        settings = get_settings()
        if settings.is_sqlite:
            _prepare_sqlite_file(settings.database_url)
        _engine = create_engine(settings.database_url, **engine_options(settings))
        logger.info("Database engine created", data={"dialect": _engine.dialect.name})
    return _engine


def verify_database_connection() -> bool:
    """True when a trivial query succeeds; used by startup and /readyz."""
    try:
        with get_engine().connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.error(
            "Database connection failed",
            data={"error_type": type(exc).__name__, "reason": str(exc)},
        )
        return False
    return True


def dispose_engine() -> None:
    global _engine
    if _engine is not None:
        _engine.dispose()
        _engine = None
        logger.info("Database engine disposed")
