"""
Request middleware and the handlers that render the error envelope.
"""

import time
import uuid
from collections.abc import Callable
from typing import Any

from fastapi import FastAPI, Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from buysoft.core.errors import AppError, ErrorCode, ErrorResponse
from buysoft.core.logging import get_logger, request_id_ctx, user_id_ctx

logger = get_logger(__name__)

UPLOAD_PATH_PREFIX = "/api/upload"

# Framework-raised HTTP errors (unknown route, wrong method, missing auth).
HTTP_STATUS_CODES = {
    401: ErrorCode.UNAUTHORIZED,
    404: ErrorCode.NOT_FOUND,
    405: ErrorCode.NOT_FOUND,
    413: ErrorCode.REQUEST_TOO_LARGE,
}


def error_json(
    status_code: int,
    code: ErrorCode,
    message: str,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    request_id = request_id_ctx.get()
    body = ErrorResponse(code, message, request_id, details).to_dict()
    return JSONResponse(
        status_code=status_code,
        content=body,
        headers={"X-Request-ID": request_id} if request_id else {},
    )


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Bind a request id (client-supplied or generated) and log the outcome."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request_id_token = request_id_ctx.set(request_id)
        user_id_token = user_id_ctx.set(None)
        started = time.perf_counter()
        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            logger.info(
                f"{request.method} {request.url.path} -> {response.status_code}",
                data={"duration_ms": round((time.perf_counter() - started) * 1000, 2)},
            )
            return response
        finally:
            request_id_ctx.reset(request_id_token)
            user_id_ctx.reset(user_id_token)


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    """Refuse bodies whose Content-Length exceeds the route's limit.

    Image uploads get their own, larger limit.
    """

    def __init__(self, app: FastAPI, max_bytes: int, upload_max_bytes: int | None = None):
        super().__init__(app)
        self.max_bytes = max_bytes
        self.upload_max_bytes = upload_max_bytes or max_bytes

    def limit_for(self, path: str) -> int:
        if path.startswith(UPLOAD_PATH_PREFIX):
            return self.upload_max_bytes
        return self.max_bytes

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        content_length = request.headers.get("content-length", "")
        limit = self.limit_for(request.url.path)
        if content_length.isdigit() and int(content_length) > limit:
            logger.warning(
                "Request too large",
                data={"content_length": int(content_length), "max_bytes": limit},
            )
            return error_json(
                413, ErrorCode.REQUEST_TOO_LARGE, f"Request body exceeds {limit} bytes"
            )
        return await call_next(request)


def setup_exception_handlers(app: FastAPI) -> None:
    """Render every error, expected or not, as the JSON envelope."""

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(_request: Request, exc: RequestValidationError):
        return error_json(
            422,
            ErrorCode.VALIDATION_ERROR,
            "Validation error",
            {"errors": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(_request: Request, exc: StarletteHTTPException):
        fallback = ErrorCode.INTERNAL_ERROR if exc.status_code >= 500 else ErrorCode.VALIDATION_ERROR
        return error_json(
            exc.status_code,
            HTTP_STATUS_CODES.get(exc.status_code, fallback),
            str(exc.detail) if exc.detail else "HTTP error",
        )

    @app.exception_handler(AppError)
    async def app_error_handler(_request: Request, exc: AppError):
        log = logger.error if exc.status_code >= 500 else logger.warning
        log(
            f"Application error: {exc.message}",
            data={"code": exc.code.value, "details": exc.details},
        )
        return error_json(exc.status_code, exc.code, exc.message, exc.details)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.error(
            "Unhandled exception",
            exc_info=exc,
            data={"path": request.url.path, "method": request.method},
        )
        return error_json(500, ErrorCode.INTERNAL_ERROR, "An unexpected error occurred")
