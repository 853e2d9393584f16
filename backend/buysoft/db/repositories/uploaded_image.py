"""
Uploaded image history repository.
"""

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from buysoft.db.models import UploadedImage


def create_uploaded_image(
    db: Session,
    url: str,
    filename: str,
    width: int | None = None,
    height: int | None = None,
    size: int | None = None,
    hash: str | None = None,
    delete_url: str | None = None,
) -> UploadedImage:
    image = UploadedImage(
        url=url,
        filename=filename,
        width=width,
        height=height,
        size=size,
        hash=hash,
        delete_url=delete_url,
    )
    db.add(image)
    db.commit()
    db.refresh(image)
    return image


def get_uploaded_image_by_url(db: Session, url: str) -> UploadedImage | None:
    stmt = select(UploadedImage).where(UploadedImage.url == url).limit(1)
    return db.execute(stmt).scalars().first()


def list_uploaded_images(
    db: Session,
    *,
    page: int = 1,
    limit: int = 10,
    keyword: str | None = None,
) -> tuple[list[UploadedImage], int]:
    """
    Page through upload history, newest first.

    Args:
        db: Database session.
        page: 1-based page number.
        limit: Page size.
        keyword: Case-insensitive filename filter.

    Returns:
        (images on this page, total matching rows)
    """
    count_stmt = select(func.count()).select_from(UploadedImage)
    stmt = select(UploadedImage)
    if keyword:
        matches = func.lower(UploadedImage.filename).contains(
            keyword.lower(), autoescape=True
        )
        count_stmt = count_stmt.where(matches)
        stmt = stmt.where(matches)

    total = db.execute(count_stmt).scalar_one()

    stmt = (
        stmt
        .order_by(UploadedImage.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return list(db.execute(stmt).scalars().all()), total
