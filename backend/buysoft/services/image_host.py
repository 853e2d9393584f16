"""
SM.MS image host client and upload orchestration.

Admins upload product images through this service; each image the host
accepts is recorded locally so the back office can browse its own upload
history without listing the whole SM.MS account.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from buysoft.config import Settings
from buysoft.core import (
    ImageHostError,
    ImageHostNotConfiguredError,
    ImageHostUnavailableError,
    InvalidUploadError,
    get_logger,
    metrics,
    request_id_ctx,
)
from buysoft.db.repositories.site_config import SMMS_TOKEN_KEY, get_config_value
from buysoft.db.repositories.uploaded_image import (
    create_uploaded_image,
    get_uploaded_image_by_url,
)

logger = get_logger(__name__)

ALLOWED_CONTENT_TYPES = frozenset(
    {"image/jpeg", "image/png", "image/gif", "image/webp", "image/bmp"}
)
USER_AGENT = "BuySoft/1.0"
IMAGE_REPEATED = "image_repeated"


@dataclass(frozen=True)
class UploadResult:
    """Public URL of an uploaded image."""

    url: str
    delete_url: str | None = None
    repeated: bool = False


def create_http_client(
    base_url: str,
    timeout_seconds: int,
    headers: dict[str, str] | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """
    Build an AsyncClient with consistent timeout settings.

    Args:
        base_url: Base URL of the image host API.
        timeout_seconds: Total timeout for requests.
        headers: Default headers to include.
        transport: Optional transport (used by tests with MockTransport).
    """
    timeout = httpx.Timeout(
        timeout_seconds, connect=timeout_seconds, read=timeout_seconds, write=timeout_seconds
    )
    return httpx.AsyncClient(
        base_url=base_url.rstrip("/"),
        timeout=timeout,
        headers=headers or {},
        transport=transport,
    )


class SmmsClient:
    """Thin async wrapper around the SM.MS v2 upload endpoint."""

    def __init__(
        self,
        token: str,
        base_url: str = "https://sm.ms/api/v2",
        timeout_seconds: int = 30,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._client = create_http_client(
            base_url,
            timeout_seconds,
            headers={"Authorization": token, "User-Agent": USER_AGENT},
            transport=transport,
        )

    async def __aenter__(self) -> SmmsClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def upload(self, filename: str, content: bytes, content_type: str) -> dict[str, Any]:
        """
        POST one file and return the decoded JSON body.

        Raises:
            ImageHostUnavailableError: Network failure or a non-JSON reply.
        """
        headers = {}
        request_id = request_id_ctx.get()
        if request_id:
            headers["X-Request-ID"] = request_id

        try:
            response = await self._client.post(
                "/upload",
                files={"smfile": (filename, content, content_type)},
                data={"format": "json"},
                headers=headers,
            )
        except httpx.HTTPError as exc:
            logger.warning(
                "Image host request failed",
                data={"error_type": type(exc).__name__, "reason": str(exc)},
            )
            raise ImageHostUnavailableError(details={"reason": str(exc)}) from exc

        try:
            body = response.json()
        except ValueError as exc:
            logger.warning(
                "Image host returned non-JSON response",
                data={"status_code": response.status_code},
            )
            raise ImageHostUnavailableError(
                "Image host returned an invalid response",
                details={"status_code": response.status_code},
            ) from exc

        if not isinstance(body, dict):
            raise ImageHostUnavailableError(
                "Image host returned an invalid response",
                details={"status_code": response.status_code},
            )
        return body


def validate_upload(
    filename: str | None,
    content_type: str | None,
    size: int,
    max_bytes: int,
) -> None:
    """Reject a missing file, an unsupported type or an oversized file."""
    if not filename or size == 0:
        raise InvalidUploadError("No file uploaded")
    if content_type not in ALLOWED_CONTENT_TYPES:
        raise InvalidUploadError(
            "Unsupported file type",
            details={"content_type": content_type, "allowed": sorted(ALLOWED_CONTENT_TYPES)},
        )
    if size > max_bytes:
        raise InvalidUploadError(
            f"File must not exceed {max_bytes // (1024 * 1024)}MB",
            details={"size": size, "max_bytes": max_bytes},
        )


def resolve_token(db: Session, settings: Settings) -> str:
    """Token from site config, falling back to the environment."""
    token = get_config_value(db, SMMS_TOKEN_KEY) or settings.smms_token
    if not token:
        raise ImageHostNotConfiguredError()
    return token


def _to_int(value: Any) -> int | None:
    if value in (None, ""):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _repeated_url(body: dict[str, Any]) -> str | None:
    if body.get("images"):
        return body["images"]
    data = body.get("data")
    if isinstance(data, str):
        return data
    if isinstance(data, dict):
        return data.get("url")
    return None


def _record(db: Session, *, skip_existing: bool = False, **fields: Any) -> None:
    """Save upload history; the upload itself already succeeded."""
    try:
        if skip_existing and get_uploaded_image_by_url(db, fields["url"]) is not None:
            return
        create_uploaded_image(db, **fields)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error(
            "Failed to record uploaded image",
            data={"url": fields.get("url"), "error_type": type(exc).__name__},
        )


async def upload_image(
    db: Session,
    settings: Settings,
    *,
    filename: str,
    content: bytes,
    content_type: str,
    transport: httpx.AsyncBaseTransport | None = None,
) -> UploadResult:
    """
    Push one image to SM.MS and record it in upload history.

    Args:
        db: Database session.
        settings: Application settings (token fallback, API URL, timeout).
        filename: Original client filename.
        content: File bytes.
        content_type: Declared MIME type.
        transport: Optional httpx transport (tests).

    Returns:
        UploadResult with the hosted URL.

    Raises:
        InvalidUploadError, ImageHostNotConfiguredError, ImageHostError,
        ImageHostUnavailableError.
    """
    validate_upload(filename, content_type, len(content), settings.upload_max_file_bytes)
    token = resolve_token(db, settings)

    async with SmmsClient(
        token,
        base_url=settings.smms_api_url,
        timeout_seconds=settings.smms_timeout_seconds,
        transport=transport,
    ) as client:
        body = await client.upload(filename, content, content_type)

    if body.get("success"):
        data = body.get("data")
        if not isinstance(data, dict):
            raise ImageHostUnavailableError(
                "Image host returned an invalid response",
                details={"data_type": type(data).__name__},
            )
        url = data.get("url")
        if not url:
            raise ImageHostUnavailableError("Image host response is missing the image URL")
        delete_url = data.get("delete")
        _record(
            db,
            url=url,
            filename=data.get("filename") or filename,
            width=_to_int(data.get("width")),
            height=_to_int(data.get("height")),
            size=_to_int(data.get("size")),
            hash=data.get("hash"),
            delete_url=delete_url,
        )
        metrics.increment("image_uploads_total")
        logger.info("Image uploaded", data={"url": url, "filename": filename})
        return UploadResult(url=url, delete_url=delete_url)

    if body.get("code") == IMAGE_REPEATED:
        url = _repeated_url(body)
        if not url:
            raise ImageHostError(body.get("message") or "Image upload failed")
        _record(db, skip_existing=True, url=url, filename=filename)
        logger.info("Image already on host", data={"url": url, "filename": filename})
        return UploadResult(url=url, repeated=True)

    message = body.get("message") or "Image upload failed"
    logger.warning(
        "Image host rejected upload",
        data={"code": body.get("code"), "message": message},
    )
    raise ImageHostError(message, details={"host_code": body.get("code")})
