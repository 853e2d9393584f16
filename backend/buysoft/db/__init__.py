"""Database models, engine, and session management."""

from buysoft.db.base import Base, TimestampMixin
from buysoft.db.engine import dispose_engine, get_engine, verify_database_connection
from buysoft.db.models import (
    AdminSession,
    AdminUser,
    AuditLog,
    Channel,
    FriendLink,
    Platform,
    Product,
    SiteConfig,
    UploadedImage,
)
from buysoft.db.session import get_db, get_session_factory, reset_session_factory

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    # Engine
    "get_engine",
    "verify_database_connection",
    "dispose_engine",
    # Session
    "get_db",
    "get_session_factory",
    "reset_session_factory",
    # Models
    "AdminSession",
    "AdminUser",
    "AuditLog",
    "Channel",
    "FriendLink",
    "Platform",
    "Product",
    "SiteConfig",
    "UploadedImage",
]
