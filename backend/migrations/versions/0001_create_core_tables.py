"""Create core tables

Revision ID: 0001
Revises:
Create Date: 2026-10-19

Creates the initial database schema:
- admin_users
- admin_sessions
- platforms
- channels
- products
- product_platforms
- friend_links
- site_config
- uploaded_images
- audit_log
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create all core tables."""
    # Admin users
    op.create_table(
        "admin_users",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("name", sa.String(128), nullable=True),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("login_attempts", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_attempt_time", sa.DateTime(), nullable=True),
        sa.Column("lockout_until", sa.DateTime(), nullable=True),
        sa.Column("last_login", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_admin_users")),
        sa.UniqueConstraint("email", name=op.f("uq_admin_users_email")),
    )
    op.create_index(op.f("ix_admin_users_email"), "admin_users", ["email"])

    # Admin sessions
    op.create_table(
        "admin_sessions",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("user_id", sa.String(36), nullable=False),
        sa.Column("token_hash", sa.String(255), nullable=False),
        sa.Column("csrf_token", sa.String(128), nullable=False),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("ip_address", sa.String(45), nullable=True),
        sa.Column("user_agent", sa.String(512), nullable=True),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_admin_sessions")),
        sa.ForeignKeyConstraint(
            ["user_id"], ["admin_users.id"],
            name=op.f("fk_admin_sessions_user_id_admin_users"),
            ondelete="CASCADE",
        ),
        sa.UniqueConstraint("token_hash", name=op.f("uq_admin_sessions_token_hash")),
    )
    op.create_index(op.f("ix_admin_sessions_user_id"), "admin_sessions", ["user_id"])
    op.create_index(op.f("ix_admin_sessions_expires_at"), "admin_sessions", ["expires_at"])

    # Platforms
    op.create_table(
        "platforms",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("name", sa.String(64), nullable=False),
        sa.Column("icon", sa.String(64), nullable=True),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_platforms")),
        sa.UniqueConstraint("name", name=op.f("uq_platforms_name")),
    )

    # Channels
    op.create_table(
        "channels",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("name", sa.String(64), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_channels")),
        sa.UniqueConstraint("name", name=op.f("uq_channels_name")),
    )

    # Products
    op.create_table(
        "products",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("subtitle", sa.String(255), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("original_price", sa.Float(), nullable=False, server_default="0"),
        sa.Column("original_price_text", sa.String(64), nullable=True),
        sa.Column("sale_price", sa.Float(), nullable=False, server_default="0"),
        sa.Column("sale_price_text", sa.String(64), nullable=True),
        sa.Column("cps_link", sa.String(1024), nullable=False),
        sa.Column("download_url", sa.String(1024), nullable=True),
        sa.Column("official_site", sa.String(1024), nullable=True),
        sa.Column("cover_image", sa.String(1024), nullable=True),
        sa.Column("images", sa.JSON(), nullable=True),
        sa.Column("logo", sa.String(1024), nullable=True),
        sa.Column("slug", sa.String(128), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("click_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("channel_id", sa.String(36), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_products")),
        sa.ForeignKeyConstraint(
            ["channel_id"], ["channels.id"],
            name=op.f("fk_products_channel_id_channels"),
            ondelete="SET NULL",
        ),
        sa.UniqueConstraint("slug", name=op.f("uq_products_slug")),
    )
    op.create_index(op.f("ix_products_is_active"), "products", ["is_active"])
    op.create_index(op.f("ix_products_click_count"), "products", ["click_count"])
    op.create_index(op.f("ix_products_created_at"), "products", ["created_at"])

    # Product <-> platform association
    op.create_table(
        "product_platforms",
        sa.Column("product_id", sa.String(36), nullable=False),
        sa.Column("platform_id", sa.String(36), nullable=False),
        sa.PrimaryKeyConstraint("product_id", "platform_id", name=op.f("pk_product_platforms")),
        sa.ForeignKeyConstraint(
            ["product_id"], ["products.id"],
            name=op.f("fk_product_platforms_product_id_products"),
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["platform_id"], ["platforms.id"],
            name=op.f("fk_product_platforms_platform_id_platforms"),
            ondelete="CASCADE",
        ),
    )

    # Friend links
    op.create_table(
        "friend_links",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("url", sa.String(1024), nullable=False),
        sa.Column("logo", sa.String(1024), nullable=True),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_friend_links")),
    )
    op.create_index(op.f("ix_friend_links_sort_order"), "friend_links", ["sort_order"])

    # Site configuration
    op.create_table(
        "site_config",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("key", sa.String(128), nullable=False),
        sa.Column("value", sa.Text(), nullable=False, server_default=""),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_site_config")),
        sa.UniqueConstraint("key", name=op.f("uq_site_config_key")),
    )

    # Uploaded images
    op.create_table(
        "uploaded_images",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("url", sa.String(1024), nullable=False),
        sa.Column("filename", sa.String(255), nullable=False),
        sa.Column("width", sa.Integer(), nullable=True),
        sa.Column("height", sa.Integer(), nullable=True),
        sa.Column("size", sa.Integer(), nullable=True),
        sa.Column("hash", sa.String(128), nullable=True),
        sa.Column("delete_url", sa.String(1024), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_uploaded_images")),
    )
    op.create_index(op.f("ix_uploaded_images_url"), "uploaded_images", ["url"])
    op.create_index(op.f("ix_uploaded_images_created_at"), "uploaded_images", ["created_at"])

    # Audit log
    op.create_table(
        "audit_log",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("actor_user_id", sa.String(36), nullable=True),
        sa.Column("action", sa.String(64), nullable=False),
        sa.Column("target_type", sa.String(64), nullable=True),
        sa.Column("target_id", sa.String(36), nullable=True),
        sa.Column("details", sa.Text(), nullable=True),
        sa.Column("ip_address", sa.String(45), nullable=True),
        sa.Column("user_agent", sa.String(512), nullable=True),
        sa.Column("request_id", sa.String(36), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_audit_log")),
        sa.ForeignKeyConstraint(
            ["actor_user_id"], ["admin_users.id"],
            name=op.f("fk_audit_log_actor_user_id_admin_users"),
            ondelete="SET NULL",
        ),
    )
    op.create_index(op.f("ix_audit_log_actor_user_id"), "audit_log", ["actor_user_id"])
    op.create_index(op.f("ix_audit_log_action"), "audit_log", ["action"])
    op.create_index(op.f("ix_audit_log_created_at"), "audit_log", ["created_at"])
    op.create_index(op.f("ix_audit_log_target"), "audit_log", ["target_type", "target_id"])


def downgrade() -> None:
    """Drop all core tables."""
    op.drop_table("audit_log")
    op.drop_table("uploaded_images")
    op.drop_table("site_config")
    op.drop_table("friend_links")
    op.drop_table("product_platforms")
    op.drop_table("products")
    op.drop_table("channels")
    op.drop_table("platforms")
    op.drop_table("admin_sessions")
    op.drop_table("admin_users")
