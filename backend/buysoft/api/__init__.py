"""API routers."""

from buysoft.api.admin import router as admin_router
from buysoft.api.auth import router as auth_router
from buysoft.api.catalog import router as catalog_router
from buysoft.api.friend_links import router as friend_links_router
from buysoft.api.health import router as health_router
from buysoft.api.site_config import router as site_config_router
from buysoft.api.uploads import router as uploads_router

__all__ = [
    "admin_router",
    "auth_router",
    "catalog_router",
    "friend_links_router",
    "health_router",
    "site_config_router",
    "uploads_router",
]
