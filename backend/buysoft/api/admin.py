"""
Admin API endpoints.

Back-office management of products, platforms and channels, plus
metrics and audit log inspection. Every route requires an admin session;
state-changing routes also require the CSRF header.
"""

import re
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from buysoft.api.common import client_meta, platform_response, product_response
from buysoft.auth import RequireAuth, ValidateCSRF
from buysoft.core import (
    PlatformNameTakenError,
    PlatformNotFoundError,
    ProductNotFoundError,
    SlugTakenError,
    ValidationError,
)
from buysoft.core.metrics import metrics
from buysoft.db import get_db
from buysoft.db.models import Platform
from buysoft.db.repositories import (
    AuditAction,
    create_platform,
    create_product,
    decode_details,
    delete_platform,
    delete_product,
    get_or_create_channel,
    get_platform_by_id,
    get_platform_by_name,
    get_platforms_by_ids,
    get_product_by_id,
    list_audit_entries,
    list_channels,
    list_products,
    log_audit,
    slug_exists,
    update_platform,
    update_product,
)

router = APIRouter(prefix="/admin", tags=["admin"])

SLUG_PATTERN = r"^[a-z0-9]+(?:-[a-z0-9]+)*$"


# Request/Response schemas
class ProductFields(BaseModel):
    """Fields shared by product create and update payloads."""

    model_config = ConfigDict(extra="forbid")

    subtitle: str | None = Field(None, max_length=255)
    description: str | None = None
    original_price: float | None = Field(None, ge=0)
    original_price_text: str | None = Field(None, max_length=64)
    sale_price: float | None = Field(None, ge=0)
    sale_price_text: str | None = Field(None, max_length=64)
    download_url: str | None = Field(None, max_length=1024)
    official_site: str | None = Field(None, max_length=1024)
    cover_image: str | None = Field(None, max_length=1024)
    images: list[str] | None = None
    logo: str | None = Field(None, max_length=1024)
    slug: str | None = Field(None, max_length=128)
    is_active: bool | None = None
    sort_order: int | None = None
    platform_ids: list[str] | None = None
    channel_name: str | None = Field(None, max_length=64)


class CreateProductRequest(ProductFields):
    name: str = Field(..., min_length=1, max_length=255)
    cps_link: str = Field(..., min_length=1, max_length=1024)


class UpdateProductRequest(ProductFields):
    name: str | None = Field(None, min_length=1, max_length=255)
    cps_link: str | None = Field(None, min_length=1, max_length=1024)


class PlatformRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1, max_length=64)
    icon: str | None = Field(None, max_length=64)
    sort_order: int = 0


class UpdatePlatformRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(None, min_length=1, max_length=64)
    icon: str | None = Field(None, max_length=64)
    sort_order: int | None = None


class ChannelRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=64)


class AuditEntryResponse(BaseModel):
    """Response model for audit log entries."""

    id: str
    actor_user_id: str | None
    action: str
    target_type: str | None
    target_id: str | None
    details: dict[str, Any] | None
    ip_address: str | None
    created_at: str


def _audit_entry_response(entry) -> dict[str, Any]:
    return AuditEntryResponse(
        id=entry.id,
        actor_user_id=entry.actor_user_id,
        action=entry.action,
        target_type=entry.target_type,
        target_id=entry.target_id,
        details=decode_details(entry),
        ip_address=entry.ip_address,
        created_at=entry.created_at.isoformat(),
    ).model_dump()


def _resolve_platforms(db: Session, platform_ids: list[str]) -> list[Platform]:
    unique_ids = list(dict.fromkeys(platform_ids))
    platforms = get_platforms_by_ids(db, unique_ids)
    found = {p.id for p in platforms}
    missing = [pid for pid in unique_ids if pid not in found]
    if missing:
        raise ValidationError("Unknown platform", {"platform_ids": missing})
    return platforms


def _product_fields(db: Session, body: ProductFields, product_id: str | None = None) -> dict[str, Any]:
    """Turn a validated payload into model column values."""
    fields = body.model_dump(exclude_unset=True, exclude={"platform_ids", "channel_name"})

    if "slug" in fields:
        slug = (fields["slug"] or "").strip() or None
        if slug is not None:
            if not re.match(SLUG_PATTERN, slug):
                raise ValidationError(
                    "Slug may only contain lowercase letters, digits and hyphens",
                    {"slug": slug},
                )
            if slug_exists(db, slug, exclude_id=product_id):
                raise SlugTakenError()
        fields["slug"] = slug

    for key in ("original_price", "sale_price"):
        if key in fields and fields[key] is None:
            fields[key] = 0.0
    if "is_active" in fields and fields["is_active"] is None:
        fields["is_active"] = True
    if "sort_order" in fields and fields["sort_order"] is None:
        fields["sort_order"] = 0

    if "channel_name" in body.model_fields_set:
        name = (body.channel_name or "").strip()
        fields["channel_id"] = get_or_create_channel(db, name).id if name else None

    return fields


# Products


@router.get("/products")
async def list_admin_products(
    _auth: RequireAuth,
    db: Annotated[Session, Depends(get_db)],
    platform_id: str | None = Query(None, alias="platformId"),
) -> dict[str, Any]:
    """All products including inactive ones, newest first."""
    products = list_products(db, platform_id=platform_id, active_only=False, newest_first=True)
    return {"products": [product_response(p) for p in products]}


@router.post("/products", status_code=201)
async def create_product_route(
    request: Request,
    body: CreateProductRequest,
    auth: RequireAuth,
    _csrf: ValidateCSRF,
    db: Annotated[Session, Depends(get_db)],
) -> dict[str, Any]:
    admin, _ = auth
    platforms = _resolve_platforms(db, body.platform_ids or [])
    fields = _product_fields(db, body)

    product = create_product(db, fields, platforms)

    log_audit(
        db,
        action=AuditAction.PRODUCT_CREATE,
        actor_user_id=admin.id,
        target_type="product",
        target_id=product.id,
        details={"name": product.name},
        **client_meta(request),
    )
    return {"product": product_response(product)}


@router.put("/products/{product_id}")
async def update_product_route(
    request: Request,
    product_id: str,
    body: UpdateProductRequest,
    auth: RequireAuth,
    _csrf: ValidateCSRF,
    db: Annotated[Session, Depends(get_db)],
) -> dict[str, Any]:
    """Partial update; omitted fields keep their values."""
    admin, _ = auth
    product = get_product_by_id(db, product_id)
    if product is None:
        raise ProductNotFoundError()

    if "name" in body.model_fields_set and body.name is None:
        raise ValidationError("Product name is required")
    if "cps_link" in body.model_fields_set and body.cps_link is None:
        raise ValidationError("CPS link is required")

    platforms = None
    if body.platform_ids is not None:
        platforms = _resolve_platforms(db, body.platform_ids)
    fields = _product_fields(db, body, product_id=product.id)

    product = update_product(db, product, fields, platforms)

    log_audit(
        db,
        action=AuditAction.PRODUCT_UPDATE,
        actor_user_id=admin.id,
        target_type="product",
        target_id=product.id,
        details={"fields": sorted(body.model_fields_set)},
        **client_meta(request),
    )
    return {"product": product_response(product)}


@router.delete("/products/{product_id}")
async def delete_product_route(
    request: Request,
    product_id: str,
    auth: RequireAuth,
    _csrf: ValidateCSRF,
    db: Annotated[Session, Depends(get_db)],
) -> dict[str, Any]:
    admin, _ = auth
    product = get_product_by_id(db, product_id)
    if product is None:
        raise ProductNotFoundError()

    name = product.name
    delete_product(db, product)

    log_audit(
        db,
        action=AuditAction.PRODUCT_DELETE,
        actor_user_id=admin.id,
        target_type="product",
        target_id=product_id,
        details={"name": name},
        **client_meta(request),
    )
    return {"deleted": True, "id": product_id}


# Platforms


@router.post("/platforms", status_code=201)
async def create_platform_route(
    request: Request,
    body: PlatformRequest,
    auth: RequireAuth,
    _csrf: ValidateCSRF,
    db: Annotated[Session, Depends(get_db)],
) -> dict[str, Any]:
    admin, _ = auth
    name = body.name.strip()
    if get_platform_by_name(db, name):
        raise PlatformNameTakenError()

    platform = create_platform(db, name=name, icon=body.icon or None, sort_order=body.sort_order)

    log_audit(
        db,
        action=AuditAction.PLATFORM_CREATE,
        actor_user_id=admin.id,
        target_type="platform",
        target_id=platform.id,
        details={"name": platform.name},
        **client_meta(request),
    )
    return {"platform": platform_response(platform)}


@router.put("/platforms/{platform_id}")
async def update_platform_route(
    request: Request,
    platform_id: str,
    body: UpdatePlatformRequest,
    auth: RequireAuth,
    _csrf: ValidateCSRF,
    db: Annotated[Session, Depends(get_db)],
) -> dict[str, Any]:
    admin, _ = auth
    platform = get_platform_by_id(db, platform_id)
    if platform is None:
        raise PlatformNotFoundError()

    fields = body.model_dump(exclude_unset=True)
    if "name" in fields:
        if fields["name"] is None:
            raise ValidationError("Platform name is required")
        fields["name"] = fields["name"].strip()
        existing = get_platform_by_name(db, fields["name"])
        if existing and existing.id != platform.id:
            raise PlatformNameTakenError()
    if "sort_order" in fields and fields["sort_order"] is None:
        fields["sort_order"] = 0

    platform = update_platform(db, platform, fields)

    log_audit(
        db,
        action=AuditAction.PLATFORM_UPDATE,
        actor_user_id=admin.id,
        target_type="platform",
        target_id=platform.id,
        details={"fields": sorted(fields)},
        **client_meta(request),
    )
    return {"platform": platform_response(platform)}


@router.delete("/platforms/{platform_id}")
async def delete_platform_route(
    request: Request,
    platform_id: str,
    auth: RequireAuth,
    _csrf: ValidateCSRF,
    db: Annotated[Session, Depends(get_db)],
) -> dict[str, Any]:
    admin, _ = auth
    platform = get_platform_by_id(db, platform_id)
    if platform is None:
        raise PlatformNotFoundError()

    name = platform.name
    delete_platform(db, platform)

    log_audit(
        db,
        action=AuditAction.PLATFORM_DELETE,
        actor_user_id=admin.id,
        target_type="platform",
        target_id=platform_id,
        details={"name": name},
        **client_meta(request),
    )
    return {"deleted": True, "id": platform_id}


# Channels


@router.get("/channels")
async def list_channels_route(
    _auth: RequireAuth,
    db: Annotated[Session, Depends(get_db)],
) -> dict[str, Any]:
    return {"channels": [{"id": c.id, "name": c.name} for c in list_channels(db)]}


@router.post("/channels", status_code=201)
async def create_channel_route(
    body: ChannelRequest,
    _auth: RequireAuth,
    _csrf: ValidateCSRF,
    db: Annotated[Session, Depends(get_db)],
) -> dict[str, Any]:
    """Create a channel, or return the existing one with that name."""
    name = body.name.strip()
    if not name:
        raise ValidationError("Channel name is required")
    channel = get_or_create_channel(db, name)
    return {"channel": {"id": channel.id, "name": channel.name}}


# Observability


@router.get("/audit")
async def list_audit_route(
    _auth: RequireAuth,
    db: Annotated[Session, Depends(get_db)],
    limit: int = Query(200, ge=1, le=500),
    offset: int = Query(0, ge=0),
    action: str | None = Query(None, max_length=64),
) -> dict[str, Any]:
    """Recent audit entries, newest first, optionally filtered by action."""
    entries = list_audit_entries(db, limit=limit, offset=offset, action=action)
    return {
        "entries": [_audit_entry_response(entry) for entry in entries],
        "limit": limit,
        "offset": offset,
    }


@router.get("/metrics")
async def admin_metrics_route(
    _auth: RequireAuth,
) -> dict[str, Any]:
    """Return lightweight metrics for troubleshooting."""
    return {"metrics": metrics.snapshot()}
