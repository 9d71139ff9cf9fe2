from __future__ import annotations

import datetime as dt
from typing import Optional

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..db import session_scope
from ..errors import ValidationError
from ..models.base import utcnow
from ..models.listing import Listing, ListingStatus
from ..models.user import User
from .lifecycle import is_terminal
from .listings import get_listing
from .notify import Notifier, archived_message
from .users import display_name, get_user
from ..utils.logging import get_logger

log = get_logger(__name__)


def archive_listing(db: Session, listing_id: int, reason: str, notifier: Optional[Notifier] = None,
                    *, now: Optional[dt.datetime] = None) -> Listing:
    """Админ переводит объявление в архив без проверок владельца и кулдауна.

    Владелец получает уведомление с причиной; если доставка не удалась,
    архивирование всё равно считается успешным.
    """
    listing = get_listing(db, listing_id)
    reason = (reason or "").strip()
    if not reason:
        raise ValidationError("Укажите причину")
    now = now or utcnow()

    if is_terminal(listing.status):
        # уже в архиве: повторно владельца не беспокоим
        return listing

    with session_scope(db):
        db.execute(
            update(Listing)
            .where(Listing.id == listing_id, Listing.status != ListingStatus.ARCHIVED)
            .values(status=ListingStatus.ARCHIVED, updated_at=now)
            .execution_options(synchronize_session=False)
        )
    listing = db.get(Listing, listing_id, populate_existing=True)
    log.info("listing %s archived: %s", listing_id, reason)

    if notifier is not None:
        try:
            name = display_name(db, listing.user_id)
        except SQLAlchemyError:
            # имя не обязательно: уведомление уходит и без него
            log.warning("owner lookup for listing %s failed", listing_id, exc_info=True)
            name = None
        try:
            notifier.notify(listing.owner_tg_id, archived_message(listing.title, reason, name))
        except Exception:
            log.warning("archive notification for listing %s failed", listing_id, exc_info=True)
    return listing


def set_user_banned(db: Session, user_id: int, banned: bool) -> User:
    u = get_user(db, user_id)
    with session_scope(db):
        u.is_banned = banned
    log.info("user %s banned=%s", user_id, banned)
    return u
