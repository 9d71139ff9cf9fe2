"""Состояния объявления и допустимые переходы между ними.

    active   --sweep-->   expired
    active   --bump--->   active
    expired  --bump--->   active
    active / expired --archive--> archived

archived терминален: из него не выходит ни один переход.
"""
from __future__ import annotations

import datetime as dt

from ..config import settings
from ..errors import ArchivedError, ValidationError
from ..models.listing import ListingStatus

ALLOWED_TRANSITIONS: dict[ListingStatus, frozenset[ListingStatus]] = {
    ListingStatus.ACTIVE: frozenset({ListingStatus.ACTIVE, ListingStatus.EXPIRED, ListingStatus.ARCHIVED}),
    ListingStatus.EXPIRED: frozenset({ListingStatus.ACTIVE, ListingStatus.ARCHIVED}),
    ListingStatus.ARCHIVED: frozenset(),
}


def ensure_transition(current: ListingStatus | str, target: ListingStatus | str) -> ListingStatus:
    current, target = ListingStatus(current), ListingStatus(target)
    if current is ListingStatus.ARCHIVED:
        raise ArchivedError("Объявление в архиве и не может быть изменено")
    if target not in ALLOWED_TRANSITIONS[current]:
        raise ValidationError(f"Недопустимый переход статуса: {current.value} -> {target.value}")
    return target


def is_terminal(status: ListingStatus | str) -> bool:
    return not ALLOWED_TRANSITIONS[ListingStatus(status)]


def bump_extension_days(paid: bool) -> int:
    return settings.PAID_BUMP_DAYS if paid else settings.FREE_BUMP_DAYS


def expiry_after(now: dt.datetime, days: int) -> dt.datetime:
    # Абсолютный сброс от "сейчас", остаток прежнего срока не суммируется
    return now + dt.timedelta(days=days)


def cooldown() -> dt.timedelta:
    return dt.timedelta(hours=settings.BUMP_COOLDOWN_HOURS)
