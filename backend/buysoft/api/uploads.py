"""
Image upload endpoints (SM.MS).
"""

import math
from typing import Annotated, Any

import httpx
from fastapi import APIRouter, Depends, File, Query, Request, UploadFile
from sqlalchemy.orm import Session

from buysoft.api.common import client_meta
from buysoft.auth import RequireAuth, ValidateCSRF
from buysoft.config import get_settings
from buysoft.core import InvalidUploadError
from buysoft.db import get_db
from buysoft.db.repositories import AuditAction, list_uploaded_images, log_audit
from buysoft.services.image_host import upload_image

router = APIRouter(prefix="/upload", tags=["uploads"])


def get_image_host_transport() -> httpx.AsyncBaseTransport | None:
    """Transport for the image host client; overridden in tests."""
    return None


@router.post("/smms")
async def upload_to_smms(
    request: Request,
    auth: RequireAuth,
    _csrf: ValidateCSRF,
    db: Annotated[Session, Depends(get_db)],
    transport: Annotated[httpx.AsyncBaseTransport | None, Depends(get_image_host_transport)],
    file: Annotated[UploadFile | None, File()] = None,
) -> dict[str, Any]:
    """
    Upload one image to SM.MS.

    Returns the hosted URL (and the delete link for fresh uploads).
    """
    admin, _ = auth
    if file is None:
        raise InvalidUploadError("No file uploaded")

    content = await file.read()
    result = await upload_image(
        db,
        get_settings(),
        filename=file.filename or "",
        content=content,
        content_type=file.content_type or "",
        transport=transport,
    )

    log_audit(
        db,
        action=AuditAction.IMAGE_UPLOAD,
        actor_user_id=admin.id,
        target_type="image",
        details={"url": result.url, "filename": file.filename, "repeated": result.repeated},
        **client_meta(request),
    )

    response: dict[str, Any] = {"url": result.url}
    if result.delete_url:
        response["delete_url"] = result.delete_url
    return response


@router.get("/smms/history")
async def upload_history(
    _auth: RequireAuth,
    db: Annotated[Session, Depends(get_db)],
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    keyword: str | None = Query(None, max_length=255),
) -> dict[str, Any]:
    """Images uploaded through this site, newest first."""
    images, total = list_uploaded_images(db, page=page, limit=limit, keyword=keyword)
    return {
        "images": [
            {
                "url": image.url,
                "filename": image.filename,
                "created_at": image.created_at.isoformat(),
            }
            for image in images
        ],
        "pagination": {
            "total": total,
            "page": page,
            "limit": limit,
            "total_pages": math.ceil(total / limit) if total else 0,
        },
    }
