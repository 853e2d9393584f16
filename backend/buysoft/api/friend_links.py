"""
Friend link endpoints.

The storefront footer reads active links anonymously; the back office
lists every link with ``?admin=true`` and manages them.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from buysoft.api.common import client_meta, friend_link_response
from buysoft.auth import CurrentAdmin, RequireAuth, ValidateCSRF
from buysoft.core import FriendLinkNotFoundError, UnauthorizedError, ValidationError
from buysoft.db import get_db
from buysoft.db.repositories import (
    AuditAction,
    create_friend_link,
    delete_friend_link,
    get_friend_link,
    list_friend_links,
    log_audit,
    update_friend_link,
)

router = APIRouter(prefix="/friend-links", tags=["friend-links"])


class CreateFriendLinkRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str = Field(..., min_length=1, max_length=128)
    url: str = Field(..., min_length=1, max_length=1024)
    logo: str | None = Field(None, max_length=1024)
    sort_order: int = 0
    is_active: bool = True


class UpdateFriendLinkRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str | None = Field(None, min_length=1, max_length=128)
    url: str | None = Field(None, min_length=1, max_length=1024)
    logo: str | None = Field(None, max_length=1024)
    sort_order: int | None = None
    is_active: bool | None = None


@router.get("")
async def list_friend_links_route(
    db: Annotated[Session, Depends(get_db)],
    current: CurrentAdmin,
    admin: bool = Query(False),
) -> dict[str, Any]:
    """Active links for visitors; all links for an authenticated admin view."""
    if admin and current is None:
        raise UnauthorizedError("Authentication required")
    links = list_friend_links(db, include_inactive=admin)
    return {"friend_links": [friend_link_response(link) for link in links]}


@router.post("", status_code=201)
async def create_friend_link_route(
    request: Request,
    body: CreateFriendLinkRequest,
    auth: RequireAuth,
    _csrf: ValidateCSRF,
    db: Annotated[Session, Depends(get_db)],
) -> dict[str, Any]:
    admin, _ = auth
    name = body.name.strip()
    url = body.url.strip()
    if not name or not url:
        raise ValidationError("Name and URL are required")

    link = create_friend_link(
        db,
        name=name,
        url=url,
        logo=body.logo,
        sort_order=body.sort_order,
        is_active=body.is_active,
    )

    log_audit(
        db,
        action=AuditAction.FRIEND_LINK_CREATE,
        actor_user_id=admin.id,
        target_type="friend_link",
        target_id=link.id,
        details={"name": link.name, "url": link.url},
        **client_meta(request),
    )
    return {"friend_link": friend_link_response(link)}


@router.put("/{link_id}")
async def update_friend_link_route(
    request: Request,
    link_id: str,
    body: UpdateFriendLinkRequest,
    auth: RequireAuth,
    _csrf: ValidateCSRF,
    db: Annotated[Session, Depends(get_db)],
) -> dict[str, Any]:
    """Partial update; omitted fields keep their values."""
    admin, _ = auth
    link = get_friend_link(db, link_id)
    if link is None:
        raise FriendLinkNotFoundError()

    fields = body.model_dump(exclude_unset=True)
    for key in ("name", "url"):
        if key in fields:
            value = (fields[key] or "").strip()
            if not value:
                raise ValidationError(f"Friend link {key} must not be empty")
            fields[key] = value
    if "logo" in fields:
        fields["logo"] = fields["logo"] or None
    if "sort_order" in fields and fields["sort_order"] is None:
        fields["sort_order"] = 0
    if "is_active" in fields and fields["is_active"] is None:
        fields["is_active"] = True

    link = update_friend_link(db, link, fields)

    log_audit(
        db,
        action=AuditAction.FRIEND_LINK_UPDATE,
        actor_user_id=admin.id,
        target_type="friend_link",
        target_id=link.id,
        details={"fields": sorted(fields)},
        **client_meta(request),
    )
    return {"friend_link": friend_link_response(link)}


@router.delete("/{link_id}")
async def delete_friend_link_route(
    request: Request,
    link_id: str,
    auth: RequireAuth,
    _csrf: ValidateCSRF,
    db: Annotated[Session, Depends(get_db)],
) -> dict[str, Any]:
    admin, _ = auth
    link = get_friend_link(db, link_id)
    if link is None:
        raise FriendLinkNotFoundError()

    name = link.name
    delete_friend_link(db, link)

    log_audit(
        db,
        action=AuditAction.FRIEND_LINK_DELETE,
        actor_user_id=admin.id,
        target_type="friend_link",
        target_id=link_id,
        details={"name": name},
        **client_meta(request),
    )
    return {"deleted": True, "id": link_id}
