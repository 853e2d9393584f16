"""
BuySoft backend: the public catalog API plus the admin back office.

Run with ``uvicorn buysoft.main:app``. The schema is managed by Alembic;
startup only checks the connection and prunes expired admin sessions.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from buysoft import __version__
from buysoft.api import (
    admin_router,
    auth_router,
    catalog_router,
    friend_links_router,
    health_router,
    site_config_router,
    uploads_router,
)
from buysoft.auth import cleanup_expired_sessions
from buysoft.config import Settings, get_settings
from buysoft.core import get_logger, setup_logging
from buysoft.core.middleware import (
    RequestContextMiddleware,
    RequestSizeLimitMiddleware,
    setup_exception_handlers,
)
from buysoft.db import dispose_engine, get_session_factory, verify_database_connection

logger = get_logger(__name__)

API_PREFIX = "/api"
API_ROUTERS = (
    auth_router,
    catalog_router,
    friend_links_router,
    site_config_router,
    uploads_router,
    admin_router,
)
LOCAL_DEV_ORIGIN_REGEX = r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$"


def prune_expired_sessions() -> None:
    try:
        with get_session_factory()() as db:
            removed = cleanup_expired_sessions(db)
    except SQLAlchemyError as exc:
        logger.warning("Session cleanup skipped", data={"error": str(exc)})
        return
    if removed:
        logger.info("Removed expired sessions", data={"count": removed})


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    settings = get_settings()
    setup_logging(
        level=settings.log_level,
        json_output=not settings.debug,
        log_file=settings.log_file or None,
    )
    logger.info(
        "Starting BuySoft backend",
        data={
            "version": __version__,
            "environment": settings.environment,
            "database": settings.database_url.split(":", 1)[0],
            "cors_origins": settings.cors_origins_list,
        },
    )

    if verify_database_connection():
        prune_expired_sessions()
    else:
        logger.warning("Database unreachable; run 'alembic upgrade head' to initialize it")

    yield

    logger.info("Shutting down BuySoft backend")
    dispose_engine()


def add_middleware(app: FastAPI, settings: Settings) -> None:
    # Starlette runs the last-added middleware first: CORS, then request
    # context, then the size limit.
    app.add_middleware(
        RequestSizeLimitMiddleware,
        max_bytes=settings.max_request_bytes,
        upload_max_bytes=settings.upload_max_request_bytes,
    )
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_origin_regex=None if settings.is_production else LOCAL_DEV_ORIGIN_REGEX,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*", settings.csrf_header_name],
        expose_headers=["X-Request-ID"],
    )


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(
        title="BuySoft",
        description="Software deals catalog and admin back office",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )
    setup_exception_handlers(app)
    add_middleware(app, settings)

    app.include_router(health_router)
    for router in API_ROUTERS:
        app.include_router(router, prefix=API_PREFIX)
    return app


app = create_app()
