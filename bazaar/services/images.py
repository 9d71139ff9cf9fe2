from __future__ import annotations

from typing import Any, Dict, List

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..config import settings
from ..db import session_scope
from ..errors import ArchivedError, NotFoundError, NotOwnerError, ValidationError
from ..models.listing import ListingImage, ListingStatus
from ..models.user import User
from .listings import get_listing


def count_listing_images(db: Session, listing_id: int) -> int:
    return db.execute(
        select(func.count(ListingImage.id)).where(ListingImage.listing_id == listing_id)
    ).scalar_one()


def attach_images(db: Session, listing_id: int, user: User, images: List[Dict[str, Any]]) -> List[ListingImage]:
    listing = get_listing(db, listing_id)
    if listing.user_id != user.id:
        raise NotOwnerError("Добавлять фото можно только к своим объявлениям")
    if listing.status == ListingStatus.ARCHIVED:
        raise ArchivedError("Объявление в архиве и не может быть изменено")
    if not images:
        raise ValidationError("Нет фото для загрузки")

    cap = settings.MAX_IMAGES_PER_LISTING
    if count_listing_images(db, listing_id) + len(images) > cap:
        raise ValidationError(f"Не больше {cap} фото на объявление")

    rows = []
    for img in images:
        url = (img.get("url") or "").strip()
        if not url:
            raise ValidationError("Не указан адрес фото")
        rows.append(ListingImage(
            listing_id=listing_id,
            url=url,
            thumbnail_url=(img.get("thumbnail_url") or None),
            width=int(img.get("width") or 0),
            height=int(img.get("height") or 0),
            upload_order=int(img.get("upload_order") or 1),
        ))
    with session_scope(db):
        db.add_all(rows)
    db.expire(listing, ["images"])
    return rows


def delete_listing_image(db: Session, listing_id: int, image_id: int, user: User) -> int:
    listing = get_listing(db, listing_id)
    if listing.user_id != user.id:
        raise NotOwnerError("Удалять фото можно только у своих объявлений")
    img = db.get(ListingImage, image_id)
    if not img or img.listing_id != listing_id:
        raise NotFoundError("Фото не найдено")
    with session_scope(db):
        db.delete(img)
    db.expire(listing, ["images"])
    return image_id
