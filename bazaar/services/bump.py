from __future__ import annotations

import datetime as dt
import math
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import or_, update
from sqlalchemy.orm import Session

from ..db import session_scope
from ..errors import ArchivedError, CooldownError, NotFoundError, NotOwnerError
from ..models.base import utcnow
from ..models.listing import Listing, ListingStatus
from .lifecycle import bump_extension_days, cooldown, ensure_transition, expiry_after
from ..utils.logging import get_logger

log = get_logger(__name__)


@dataclass
class BumpDecision:
    allowed: bool
    reason: Optional[str] = None
    hours_until_eligible: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "ok": True,
            "can_bump": self.allowed,
            "reason": self.reason,
            "hours_until_eligible": self.hours_until_eligible,
        }


def _hours_remaining(last_bumped_at: dt.datetime, now: dt.datetime) -> int:
    left = cooldown() - (now - last_bumped_at)
    return max(math.ceil(left.total_seconds() / 3600), 0)


def check_bump(listing: Optional[Listing], user_id: int, now: dt.datetime) -> Listing:
    if listing is None:
        raise NotFoundError("Объявление не найдено")
    if listing.user_id != user_id:
        raise NotOwnerError("Поднимать можно только свои объявления")
    if listing.status == ListingStatus.ARCHIVED:
        raise ArchivedError("Объявление в архиве и не может быть поднято")
    if listing.last_bumped_at is not None and now - listing.last_bumped_at < cooldown():
        raise CooldownError(_hours_remaining(listing.last_bumped_at, now))
    return listing


def can_bump(db: Session, listing_id: int, user_id: int,
             *, now: Optional[dt.datetime] = None) -> BumpDecision:
    now = now or utcnow()
    try:
        check_bump(db.get(Listing, listing_id), user_id, now)
    except CooldownError as e:
        return BumpDecision(False, e.message, e.hours_remaining)
    except (NotFoundError, NotOwnerError, ArchivedError) as e:
        return BumpDecision(False, e.message)
    return BumpDecision(True)


def bump(db: Session, listing_id: int, user_id: int, paid: bool = False,
         *, now: Optional[dt.datetime] = None) -> Listing:
    """Поднимает объявление: срок = now + 3/7 дней, счётчик +1, статус active.

    Запись одним условным UPDATE: условие повторяет проверку владельца,
    архива и кулдауна, поэтому из двух одновременных запросов пройдёт один.
    """
    now = now or utcnow()
    listing = check_bump(db.get(Listing, listing_id), user_id, now)
    target = ensure_transition(listing.status, ListingStatus.ACTIVE)

    values = dict(
        expires_at=expiry_after(now, bump_extension_days(paid)),
        last_bumped_at=now,
        bump_count=Listing.bump_count + 1,
        status=target,
        updated_at=now,
    )
    if paid:
        values["is_payment_pending"] = False

    with session_scope(db):
        res = db.execute(
            update(Listing)
            .where(
                Listing.id == listing_id,
                Listing.user_id == user_id,
                Listing.status != ListingStatus.ARCHIVED,
                or_(Listing.last_bumped_at.is_(None), Listing.last_bumped_at <= now - cooldown()),
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )

    fresh = db.get(Listing, listing_id, populate_existing=True)
    if res.rowcount != 1:
        # Параллельный запрос успел раньше: объясняем отказ по свежему состоянию
        check_bump(fresh, user_id, now)
        raise CooldownError(_hours_remaining(fresh.last_bumped_at or now, now))

    log.info("listing %s bumped by user %s (paid=%s, count=%s)", listing_id, user_id, paid, fresh.bump_count)
    return fresh


def time_until_next_bump(db: Session, listing_id: int,
                         *, now: Optional[dt.datetime] = None) -> Optional[dt.timedelta]:
    listing = db.get(Listing, listing_id)
    if listing is None or listing.last_bumped_at is None:
        return None
    now = now or utcnow()
    left = cooldown() - (now - listing.last_bumped_at)
    return max(left, dt.timedelta(0))
