"""
SQLAlchemy ORM models.

Defines all database tables for the BuySoft application.
"""

from __future__ import annotations

from datetime import datetime
from uuid import uuid4

from sqlalchemy import JSON, Column, Float, ForeignKey, Index, Integer, String, Table, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from buysoft.core.time import utcnow
from buysoft.db.base import Base, TimestampMixin


def generate_uuid() -> str:
    """Generate a UUID string for primary keys."""
    return str(uuid4())


class AdminUser(Base, TimestampMixin):
    """Back-office account. Carries its own login throttling state."""

    __tablename__ = "admin_users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    name: Mapped[str | None] = mapped_column(String(128), nullable=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    login_attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_attempt_time: Mapped[datetime | None] = mapped_column(nullable=True)
    lockout_until: Mapped[datetime | None] = mapped_column(nullable=True)
    last_login: Mapped[datetime | None] = mapped_column(nullable=True)

    sessions: Mapped[list[AdminSession]] = relationship(
        back_populates="user", cascade="all, delete-orphan"
    )

    __table_args__ = (Index("ix_admin_users_email", "email"),)


class AdminSession(Base):
    """Server-side admin session; only the token hash is stored."""

    __tablename__ = "admin_sessions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("admin_users.id", ondelete="CASCADE"), nullable=False
    )
    token_hash: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    csrf_token: Mapped[str] = mapped_column(String(128), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(nullable=False)
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)
    ip_address: Mapped[str | None] = mapped_column(String(45), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(String(512), nullable=True)

    user: Mapped[AdminUser] = relationship(back_populates="sessions")

    __table_args__ = (
        Index("ix_admin_sessions_user_id", "user_id"),
        Index("ix_admin_sessions_expires_at", "expires_at"),
    )


product_platforms = Table(
    "product_platforms",
    Base.metadata,
    Column(
        "product_id",
        String(36),
        ForeignKey("products.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "platform_id",
        String(36),
        ForeignKey("platforms.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)


class Platform(Base):
    """Operating system / runtime a product is offered for."""

    __tablename__ = "platforms"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    name: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    icon: Mapped[str | None] = mapped_column(String(64), nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    products: Mapped[list[Product]] = relationship(
        secondary=product_platforms, back_populates="platforms"
    )


class Channel(Base):
    """Sales channel a product is sourced through."""

    __tablename__ = "channels"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    name: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)

    products: Mapped[list[Product]] = relationship(back_populates="channel")


class Product(Base, TimestampMixin):
    """Discounted software listing."""

    __tablename__ = "products"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    subtitle: Mapped[str | None] = mapped_column(String(255), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    original_price: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    original_price_text: Mapped[str | None] = mapped_column(String(64), nullable=True)
    sale_price: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    sale_price_text: Mapped[str | None] = mapped_column(String(64), nullable=True)
    cps_link: Mapped[str] = mapped_column(String(1024), nullable=False)
    download_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    official_site: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    cover_image: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    images: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    logo: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    slug: Mapped[str | None] = mapped_column(String(128), unique=True, nullable=True)
    is_active: Mapped[bool] = mapped_column(nullable=False, default=True)
    click_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    channel_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("channels.id", ondelete="SET NULL"), nullable=True
    )

    platforms: Mapped[list[Platform]] = relationship(
        secondary=product_platforms, back_populates="products", lazy="selectin"
    )
    channel: Mapped[Channel | None] = relationship(back_populates="products", lazy="selectin")

    __table_args__ = (
        Index("ix_products_is_active", "is_active"),
        Index("ix_products_click_count", "click_count"),
        Index("ix_products_created_at", "created_at"),
    )


class FriendLink(Base, TimestampMixin):
    """Partner site shown in the storefront footer."""

    __tablename__ = "friend_links"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    url: Mapped[str] = mapped_column(String(1024), nullable=False)
    logo: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(nullable=False, default=True)

    __table_args__ = (Index("ix_friend_links_sort_order", "sort_order"),)


class SiteConfig(Base):
    """Key/value site settings editable from the back office."""

    __tablename__ = "site_config"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    key: Mapped[str] = mapped_column(String(128), unique=True, nullable=False)
    value: Mapped[str] = mapped_column(Text, nullable=False, default="")
    updated_at: Mapped[datetime] = mapped_column(
        default=utcnow, onupdate=utcnow, nullable=False
    )


class UploadedImage(Base):
    """Image this site pushed to the external image host."""

    __tablename__ = "uploaded_images"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    url: Mapped[str] = mapped_column(String(1024), nullable=False)
    filename: Mapped[str] = mapped_column(String(255), nullable=False)
    width: Mapped[int | None] = mapped_column(Integer, nullable=True)
    height: Mapped[int | None] = mapped_column(Integer, nullable=True)
    size: Mapped[int | None] = mapped_column(Integer, nullable=True)
    hash: Mapped[str | None] = mapped_column(String(128), nullable=True)
    delete_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)

    __table_args__ = (
        Index("ix_uploaded_images_url", "url"),
        Index("ix_uploaded_images_created_at", "created_at"),
    )


class AuditLog(Base):
    """Audit log for security-relevant events."""

    __tablename__ = "audit_log"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    actor_user_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("admin_users.id", ondelete="SET NULL"), nullable=True
    )
    action: Mapped[str] = mapped_column(String(64), nullable=False)
    target_type: Mapped[str | None] = mapped_column(String(64), nullable=True)
    target_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    details: Mapped[str | None] = mapped_column(Text, nullable=True)  # JSON string
    ip_address: Mapped[str | None] = mapped_column(String(45), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(String(512), nullable=True)
    request_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)

    __table_args__ = (
        Index("ix_audit_log_actor_user_id", "actor_user_id"),
        Index("ix_audit_log_action", "action"),
        Index("ix_audit_log_created_at", "created_at"),
        Index("ix_audit_log_target", "target_type", "target_id"),
    )
