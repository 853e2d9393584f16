"""
Catalog repository: products, platforms and channels.
"""

from typing import Any

from sqlalchemy import func, or_, select, update
from sqlalchemy.orm import Session

from buysoft.db.models import Channel, Platform, Product

HOT_PRODUCTS_LIMIT = 10


# Products


def list_products(
    db: Session,
    *,
    platform_id: str | None = None,
    active_only: bool = True,
    keyword: str | None = None,
    newest_first: bool = False,
) -> list[Product]:
    """
    List products, optionally filtered by platform and name keyword.

    A platform_id of None or "all" disables the platform filter.
    """
    stmt = select(Product)
    if active_only:
        stmt = stmt.where(Product.is_active.is_(True))
    if platform_id and platform_id != "all":
        stmt = stmt.where(Product.platforms.any(Platform.id == platform_id))
    if keyword:
        needle = keyword.lower()
        stmt = stmt.where(
            or_(
                func.lower(Product.name).contains(needle, autoescape=True),
                func.lower(Product.subtitle).contains(needle, autoescape=True),
            )
        )
    if newest_first:
        stmt = stmt.order_by(Product.created_at.desc())
    else:
        stmt = stmt.order_by(Product.sort_order.asc(), Product.created_at.desc())
    return list(db.execute(stmt).scalars().all())


def list_hot_products(db: Session, limit: int = HOT_PRODUCTS_LIMIT) -> list[Product]:
    """Active products with the most outbound clicks."""
    stmt = (
        select(Product)
        .where(Product.is_active.is_(True))
        .order_by(Product.click_count.desc(), Product.created_at.desc())
        .limit(limit)
    )
    return list(db.execute(stmt).scalars().all())


def get_product_by_id(db: Session, product_id: str) -> Product | None:
    return db.get(Product, product_id)


def get_product_by_slug_or_id(
    db: Session, slug_or_id: str, *, active_only: bool = True
) -> Product | None:
    """Resolve a storefront path segment: slug first, then id."""
    stmt = select(Product).where(Product.slug == slug_or_id)
    product = db.execute(stmt).scalar_one_or_none()
    if product is None:
        product = db.get(Product, slug_or_id)
    if product is not None and active_only and not product.is_active:
        return None
    return product


def slug_exists(db: Session, slug: str, *, exclude_id: str | None = None) -> bool:
    stmt = select(Product.id).where(Product.slug == slug)
    if exclude_id:
        stmt = stmt.where(Product.id != exclude_id)
    return db.execute(stmt).first() is not None


def create_product(
    db: Session,
    fields: dict[str, Any],
    platforms: list[Platform],
) -> Product:
    product = Product(**fields)
    product.platforms = platforms
    db.add(product)
    db.commit()
    db.refresh(product)
    return product


def update_product(
    db: Session,
    product: Product,
    fields: dict[str, Any],
    platforms: list[Platform] | None = None,
) -> Product:
    """Apply a partial update; platforms are replaced only when given."""
    for key, value in fields.items():
        setattr(product, key, value)
    if platforms is not None:
        product.platforms = platforms
    db.commit()
    db.refresh(product)
    return product


def delete_product(db: Session, product: Product) -> None:
    db.delete(product)
    db.commit()


def increment_click_count(db: Session, product_id: str) -> bool:
    """Atomically bump click_count. Returns False if the product is absent."""
    stmt = (
        update(Product)
        .where(Product.id == product_id)
        .values(click_count=Product.click_count + 1)
        .execution_options(synchronize_session=False)
    )
    result = db.execute(stmt)
    db.commit()
    db.expire_all()
    return result.rowcount == 1


# Platforms


def list_platforms(db: Session) -> list[Platform]:
    stmt = select(Platform).order_by(Platform.sort_order.asc(), Platform.name.asc())
    return list(db.execute(stmt).scalars().all())


def get_platform_by_id(db: Session, platform_id: str) -> Platform | None:
    return db.get(Platform, platform_id)


def get_platform_by_name(db: Session, name: str) -> Platform | None:
    stmt = select(Platform).where(Platform.name == name)
    return db.execute(stmt).scalar_one_or_none()


def get_platforms_by_ids(db: Session, platform_ids: list[str]) -> list[Platform]:
    if not platform_ids:
        return []
    stmt = select(Platform).where(Platform.id.in_(platform_ids))
    return list(db.execute(stmt).scalars().all())


def create_platform(
    db: Session, name: str, icon: str | None = None, sort_order: int = 0
) -> Platform:
    platform = Platform(name=name, icon=icon, sort_order=sort_order)
    db.add(platform)
    db.commit()
    db.refresh(platform)
    return platform


def update_platform(db: Session, platform: Platform, fields: dict[str, Any]) -> Platform:
    for key, value in fields.items():
        setattr(platform, key, value)
    db.commit()
    db.refresh(platform)
    return platform


def delete_platform(db: Session, platform: Platform) -> None:
    db.delete(platform)
    db.commit()


# Channels


def list_channels(db: Session) -> list[Channel]:
    return list(db.execute(select(Channel).order_by(Channel.name.asc())).scalars().all())


def get_or_create_channel(db: Session, name: str) -> Channel:
    channel = db.execute(select(Channel).where(Channel.name == name)).scalar_one_or_none()
    if channel is None:
        channel = Channel(name=name)
        db.add(channel)
        db.commit()
        db.refresh(channel)
    return channel
