"""
Helpers shared by API routers.
"""

from typing import Any

from fastapi import Request

from buysoft.db.models import FriendLink, Platform, Product


def get_client_ip(request: Request) -> str | None:
    """Extract client IP address from request."""
    # Check X-Forwarded-For header first (for reverse proxies)
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client:
        return request.client.host
    return None


def client_meta(request: Request) -> dict[str, str | None]:
    """ip_address / user_agent keyword arguments for audit helpers."""
    return {
        "ip_address": get_client_ip(request),
        "user_agent": request.headers.get("user-agent"),
    }


def _iso(value) -> str | None:
    return value.isoformat() if value else None


def platform_response(platform: Platform) -> dict[str, Any]:
    return {
        "id": platform.id,
        "name": platform.name,
        "icon": platform.icon,
        "sort_order": platform.sort_order,
    }


def product_response(product: Product) -> dict[str, Any]:
    """Serialize a product with its platforms and channel."""
    return {
        "id": product.id,
        "name": product.name,
        "subtitle": product.subtitle,
        "description": product.description,
        "original_price": product.original_price,
        "original_price_text": product.original_price_text,
        "sale_price": product.sale_price,
        "sale_price_text": product.sale_price_text,
        "cps_link": product.cps_link,
        "download_url": product.download_url,
        "official_site": product.official_site,
        "cover_image": product.cover_image,
        "images": product.images or [],
        "logo": product.logo,
        "slug": product.slug,
        "is_active": product.is_active,
        "click_count": product.click_count,
        "sort_order": product.sort_order,
        "platforms": [platform_response(p) for p in product.platforms],
        "channel": (
            {"id": product.channel.id, "name": product.channel.name}
            if product.channel
            else None
        ),
        "created_at": _iso(product.created_at),
        "updated_at": _iso(product.updated_at),
    }


def friend_link_response(link: FriendLink) -> dict[str, Any]:
    return {
        "id": link.id,
        "name": link.name,
        "url": link.url,
        "logo": link.logo,
        "sort_order": link.sort_order,
        "is_active": link.is_active,
        "created_at": _iso(link.created_at),
        "updated_at": _iso(link.updated_at),
    }
