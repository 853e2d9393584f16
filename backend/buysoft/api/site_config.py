"""
Site configuration endpoints.

Public routes expose only whitelisted keys; the admin routes read every
key (secrets masked) and upsert values.
"""

import re
from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, Request
from sqlalchemy.orm import Session

from buysoft.api.common import client_meta
from buysoft.auth import RequireAuth, ValidateCSRF
from buysoft.core import ValidationError
from buysoft.db import get_db
from buysoft.db.repositories import (
    PUBLIC_CONFIG_KEYS,
    SECRET_CONFIG_KEYS,
    AuditAction,
    get_config_values,
    list_config,
    log_audit,
    upsert_config,
)

router = APIRouter(tags=["site-config"])

DEFAULT_SITE_TITLE = "BuySoft - 正版软件导航平台"
DEFAULT_SITE_DESCRIPTION = "发现优质正版软件，享受专属优惠价格"
DEFAULT_SITE_KEYWORDS = "正版软件,软件优惠,软件导航,BuySoft"

MASKED_VALUE = "********"
CONFIG_KEY_PATTERN = re.compile(r"^[a-z][a-z0-9_]{0,127}$")


def mask_value(key: str, value: str) -> str:
    if key in SECRET_CONFIG_KEYS and value:
        return MASKED_VALUE
    return value


@router.get("/site-config")
async def public_site_config(
    db: Annotated[Session, Depends(get_db)],
) -> dict[str, Any]:
    """Storefront-visible configuration; unset keys are omitted."""
    return {"config": get_config_values(db, PUBLIC_CONFIG_KEYS)}


@router.get("/site-metadata")
async def site_metadata(
    db: Annotated[Session, Depends(get_db)],
) -> dict[str, str]:
    """Page title and description for the storefront <head>."""
    values = get_config_values(db, ("site_title", "site_description"))
    return {
        "title": values.get("site_title") or DEFAULT_SITE_TITLE,
        "description": values.get("site_description") or DEFAULT_SITE_DESCRIPTION,
        "keywords": DEFAULT_SITE_KEYWORDS,
    }


@router.get("/admin/site-config")
async def admin_site_config(
    _auth: RequireAuth,
    db: Annotated[Session, Depends(get_db)],
) -> dict[str, Any]:
    """Every stored key, secret values masked."""
    return {
        "config": {row.key: mask_value(row.key, row.value) for row in list_config(db)},
        "public_keys": list(PUBLIC_CONFIG_KEYS),
    }


@router.put("/admin/site-config")
async def update_site_config(
    request: Request,
    auth: RequireAuth,
    _csrf: ValidateCSRF,
    db: Annotated[Session, Depends(get_db)],
    values: Annotated[dict[str, str], Body()],
) -> dict[str, Any]:
    """
    Upsert configuration values.

    A secret key submitted with the masked placeholder keeps its stored
    value, so a form that round-trips the GET response does not wipe it.
    """
    admin, _ = auth
    invalid = [key for key in values if not CONFIG_KEY_PATTERN.match(key)]
    if invalid:
        raise ValidationError("Invalid configuration key", {"keys": invalid})

    updates = {
        key: value.strip()
        for key, value in values.items()
        if not (key in SECRET_CONFIG_KEYS and value == MASKED_VALUE)
    }
    if updates:
        upsert_config(db, updates)

    log_audit(
        db,
        action=AuditAction.SITE_CONFIG_UPDATE,
        actor_user_id=admin.id,
        target_type="site_config",
        details={"keys": sorted(updates)},
        **client_meta(request),
    )
    return {
        "config": {row.key: mask_value(row.key, row.value) for row in list_config(db)},
    }
