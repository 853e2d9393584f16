"""
Site configuration repository (key/value).
"""

from collections.abc import Iterable, Mapping

from sqlalchemy import select
from sqlalchemy.orm import Session

from buysoft.db.models import SiteConfig

# Keys the storefront may read without authentication.
PUBLIC_CONFIG_KEYS = (
    "site_name",
    "site_logo",
    "site_title",
    "site_description",
    "footer_copyright",
    "footer_description",
    "contact_service_link",
    "product_sidebar_ad_image",
    "product_sidebar_ad_link",
)

# Keys whose values are masked even for admins.
SECRET_CONFIG_KEYS = frozenset({"smms_token"})

SMMS_TOKEN_KEY = "smms_token"


def get_config_value(db: Session, key: str) -> str | None:
    stmt = select(SiteConfig.value).where(SiteConfig.key == key)
    return db.execute(stmt).scalar_one_or_none()


def get_config_values(db: Session, keys: Iterable[str]) -> dict[str, str]:
    """Return the stored subset of ``keys``; missing keys are omitted."""
    key_list = list(keys)
    if not key_list:
        return {}
    stmt = select(SiteConfig).where(SiteConfig.key.in_(key_list))
    return {row.key: row.value for row in db.execute(stmt).scalars()}


def list_config(db: Session) -> list[SiteConfig]:
    return list(db.execute(select(SiteConfig).order_by(SiteConfig.key.asc())).scalars().all())


def upsert_config(db: Session, values: Mapping[str, str]) -> list[SiteConfig]:
    """Insert or overwrite each key in one transaction."""
    existing = {
        row.key: row
        for row in db.execute(
            select(SiteConfig).where(SiteConfig.key.in_(list(values)))
        ).scalars()
    }
    rows = []
    for key, value in values.items():
        row = existing.get(key)
        if row is None:
            row = SiteConfig(key=key, value=value)
            db.add(row)
        else:
            row.value = value
        rows.append(row)
    db.commit()
    return rows
