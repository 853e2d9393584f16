"""
Public catalog endpoints.

Serves the storefront: active products, hot list, product detail,
outbound click tracking and the platform list.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from buysoft.api.common import platform_response, product_response
from buysoft.core import ProductNotFoundError, get_logger, metrics
from buysoft.db import get_db
from buysoft.db.repositories import (
    get_product_by_slug_or_id,
    increment_click_count,
    list_hot_products,
    list_platforms,
    list_products,
)

logger = get_logger(__name__)

router = APIRouter(tags=["catalog"])


@router.get("/products")
async def list_products_route(
    db: Annotated[Session, Depends(get_db)],
    platform_id: str | None = Query(None, alias="platformId"),
    keyword: str | None = Query(None, max_length=100),
) -> dict[str, Any]:
    """Active products, optionally filtered by platform ("all" = no filter) and keyword."""
    products = list_products(db, platform_id=platform_id, keyword=keyword)
    return {"products": [product_response(p) for p in products]}


@router.get("/products/hot")
async def hot_products_route(
    db: Annotated[Session, Depends(get_db)],
) -> dict[str, Any]:
    """Top active products by click count."""
    return {"products": [product_response(p) for p in list_hot_products(db)]}


@router.get("/products/{slug_or_id}")
async def get_product_route(
    slug_or_id: str,
    db: Annotated[Session, Depends(get_db)],
) -> dict[str, Any]:
    product = get_product_by_slug_or_id(db, slug_or_id)
    if product is None:
        raise ProductNotFoundError()
    return {"product": product_response(product)}


@router.post("/products/{product_id}/click")
async def click_product_route(
    product_id: str,
    db: Annotated[Session, Depends(get_db)],
) -> dict[str, Any]:
    """
    Count an outbound click and return the affiliate link to follow.
    """
    product = get_product_by_slug_or_id(db, product_id)
    if product is None:
        raise ProductNotFoundError()

    url = product.cps_link
    if not increment_click_count(db, product.id):
        raise ProductNotFoundError()

    metrics.increment("product_clicks_total")
    return {"url": url}


@router.get("/platforms")
async def list_platforms_route(
    db: Annotated[Session, Depends(get_db)],
) -> dict[str, Any]:
    return {"platforms": [platform_response(p) for p in list_platforms(db)]}
