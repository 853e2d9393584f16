"""
Friend link repository.
"""

from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from buysoft.db.models import FriendLink


def list_friend_links(db: Session, *, include_inactive: bool = False) -> list[FriendLink]:
    """Links ordered for display; inactive ones only for the back office."""
    stmt = select(FriendLink)
    if not include_inactive:
        stmt = stmt.where(FriendLink.is_active.is_(True))
    stmt = stmt.order_by(FriendLink.sort_order.asc(), FriendLink.created_at.asc())
    return list(db.execute(stmt).scalars().all())


def get_friend_link(db: Session, link_id: str) -> FriendLink | None:
    return db.get(FriendLink, link_id)


def create_friend_link(
    db: Session,
    name: str,
    url: str,
    logo: str | None = None,
    sort_order: int = 0,
    is_active: bool = True,
) -> FriendLink:
    link = FriendLink(
        name=name,
        url=url,
        logo=logo or None,
        sort_order=sort_order,
        is_active=is_active,
    )
    db.add(link)
    db.commit()
    db.refresh(link)
    return link


def update_friend_link(db: Session, link: FriendLink, fields: dict[str, Any]) -> FriendLink:
    for key, value in fields.items():
        setattr(link, key, value)
    db.commit()
    db.refresh(link)
    return link


def delete_friend_link(db: Session, link: FriendLink) -> None:
    db.delete(link)
    db.commit()
