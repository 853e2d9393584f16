"""Database repositories for data access."""

from buysoft.db.repositories.admin_user import (
    AttemptState,
    admin_email_exists,
    create_admin,
    get_admin_by_email,
    reset_login_attempts,
    update_login_attempts,
    update_password_hash,
)
from buysoft.db.repositories.audit import (
    AuditAction,
    decode_details,
    list_audit_entries,
    log_account_locked,
    log_audit,
    log_login,
    log_logout,
)
from buysoft.db.repositories.catalog import (
    create_platform,
    create_product,
    delete_platform,
    delete_product,
    get_or_create_channel,
    get_platform_by_id,
    get_platform_by_name,
    get_platforms_by_ids,
    get_product_by_id,
    get_product_by_slug_or_id,
    increment_click_count,
    list_channels,
    list_hot_products,
    list_platforms,
    list_products,
    slug_exists,
    update_platform,
    update_product,
)
from buysoft.db.repositories.friend_link import (
    create_friend_link,
    delete_friend_link,
    get_friend_link,
    list_friend_links,
    update_friend_link,
)
from buysoft.db.repositories.site_config import (
    PUBLIC_CONFIG_KEYS,
    SECRET_CONFIG_KEYS,
    SMMS_TOKEN_KEY,
    get_config_value,
    get_config_values,
    list_config,
    upsert_config,
)
from buysoft.db.repositories.uploaded_image import (
    create_uploaded_image,
    get_uploaded_image_by_url,
    list_uploaded_images,
)

__all__ = [
    # Admin users
    "AttemptState",
    "get_admin_by_email",
    "admin_email_exists",
    "create_admin",
    "update_login_attempts",
    "reset_login_attempts",
    "update_password_hash",
    # Audit
    "AuditAction",
    "decode_details",
    "list_audit_entries",
    "log_audit",
    "log_login",
    "log_account_locked",
    "log_logout",
    # Catalog
    "list_products",
    "list_hot_products",
    "get_product_by_id",
    "get_product_by_slug_or_id",
    "slug_exists",
    "create_product",
    "update_product",
    "delete_product",
    "increment_click_count",
    "list_platforms",
    "get_platform_by_id",
    "get_platform_by_name",
    "get_platforms_by_ids",
    "create_platform",
    "update_platform",
    "delete_platform",
    "list_channels",
    "get_or_create_channel",
    # Friend links
    "list_friend_links",
    "get_friend_link",
    "create_friend_link",
    "update_friend_link",
    "delete_friend_link",
    # Site config
    "PUBLIC_CONFIG_KEYS",
    "SECRET_CONFIG_KEYS",
    "SMMS_TOKEN_KEY",
    "get_config_value",
    "get_config_values",
    "list_config",
    "upsert_config",
    # Uploads
    "create_uploaded_image",
    "get_uploaded_image_by_url",
    "list_uploaded_images",
]
