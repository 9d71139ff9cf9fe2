from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from functools import wraps
from typing import Any, Dict, List, Optional

from sqlalchemy import Select, and_, or_, select, update
from sqlalchemy.orm import Session, selectinload

from ..config import settings
from ..constants import CATEGORY_IDS
from ..db import session_scope
from ..errors import ArchivedError, NotFoundError, NotOwnerError, ValidationError
from ..models.base import utcnow
from ..models.listing import Listing, ListingStatus
from ..models.user import User
from ..schemas import ListingFilters
from .lifecycle import expiry_after
from .notify import Notifier, deleted_message
from .users import is_banned
from ..utils.logging import get_logger

log = get_logger(__name__)


@dataclass
class ListingPage:
    items: List[Listing] = field(default_factory=list)
    limit: int = 50
    offset: int = 0
    has_more: bool = False

    def to_dict(self) -> dict:
        return {
            "ok": True,
            "listings": [it.to_dict() for it in self.items],
            "pagination": {"limit": self.limit, "offset": self.offset, "hasMore": self.has_more},
        }


# ---------- Проверка полей ----------

def _clean_title(raw: Any) -> str:
    if not isinstance(raw, str) or not raw.strip():
        raise ValidationError("Укажите заголовок")
    title = raw.strip()
    if len(title) > settings.TITLE_MAX_LEN:
        raise ValidationError(f"Заголовок длиннее {settings.TITLE_MAX_LEN} символов")
    return title


def _clean_description(raw: Any) -> str:
    if not isinstance(raw, str) or not raw.strip():
        raise ValidationError("Укажите описание")
    if len(raw) > settings.DESCRIPTION_MAX_LEN:
        raise ValidationError(f"Описание длиннее {settings.DESCRIPTION_MAX_LEN} символов")
    return raw


def _clean_price(raw: Any) -> int:
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise ValidationError("Цена должна быть целым числом")
    if raw < settings.PRICE_MIN or raw > settings.PRICE_MAX:
        raise ValidationError(f"Цена должна быть от {settings.PRICE_MIN} до {settings.PRICE_MAX}")
    return raw


def _clean_category(raw: Any) -> str:
    if raw not in CATEGORY_IDS:
        raise ValidationError("Неизвестная категория")
    return raw


_CLEANERS = {
    "title": _clean_title,
    "description": _clean_description,
    "price": _clean_price,
    "category": _clean_category,
}


def validate_listing_payload(payload: Dict[str, Any], partial: bool = False) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for key, clean in _CLEANERS.items():
        if key not in payload or payload[key] is None:
            if partial:
                continue
            clean(None)  # выбросит ValidationError с понятным текстом
        out[key] = clean(payload[key])
    return out


# ---------- Автоматическое истечение ----------

def sweep_expired(db: Session, now: Optional[dt.datetime] = None) -> int:
    """Переводит все active с истёкшим сроком в expired. Возвращает число строк.

    Один UPDATE на всю таблицу; повторный вызов без новых записей ничего не меняет.
    archived не трогается: условие WHERE отбирает только active.
    """
    now = now or utcnow()
    with session_scope(db):
        res = db.execute(
            update(Listing)
            .where(Listing.status == ListingStatus.ACTIVE, Listing.expires_at <= now)
            .values(status=ListingStatus.EXPIRED, updated_at=now)
            .execution_options(synchronize_session=False)
        )
    count = res.rowcount or 0
    # загруженные в сессию объекты могли устареть
    db.expire_all()
    if count:
        log.info("expired %s listing(s)", count)
    return count


def sweeps_first(fn):
    """Любое чтение объявлений сначала прогоняет sweep_expired."""
    @wraps(fn)
    def wrapper(db: Session, *args, **kwargs):
        sweep_expired(db, now=kwargs.get("now"))
        return fn(db, *args, **kwargs)
    return wrapper


# ---------- Поиск и фильтры ----------

def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def build_listing_query(filters: ListingFilters, viewer_is_admin: bool = False) -> Select:
    conds = []

    # Без явного статуса — только active: истёкшие и архив в общую ленту не попадают
    conds.append(Listing.status.in_(filters.status or [ListingStatus.ACTIVE]))

    if filters.category:
        conds.append(Listing.category == filters.category)
    if filters.price_min is not None:
        conds.append(Listing.price >= filters.price_min)
    if filters.price_max is not None:
        conds.append(Listing.price <= filters.price_max)
    if filters.user_id is not None:
        conds.append(Listing.user_id == filters.user_id)
    if filters.search:
        term = f"%{_escape_like(filters.search)}%"
        conds.append(or_(
            Listing.title.ilike(term, escape="\\"),
            Listing.description.ilike(term, escape="\\"),
            Listing.category.ilike(term, escape="\\"),
        ))

    q = select(Listing).where(and_(*conds))

    # Объявления забаненных скрыты от всех, кроме админа
    if not viewer_is_admin:
        q = q.outerjoin(User, User.id == Listing.user_id).where(
            or_(User.id.is_(None), User.is_banned.is_(False))
        )

    column = Listing.price if filters.sort_by == "price" else Listing.created_at
    if filters.sort_order == "asc":
        q = q.order_by(column.asc(), Listing.id.asc())
    else:
        q = q.order_by(column.desc(), Listing.id.desc())

    return (
        q.options(selectinload(Listing.owner), selectinload(Listing.images))
        .limit(filters.limit)
        .offset(filters.offset)
    )


@sweeps_first
def list_listings(
    db: Session,
    filters: ListingFilters,
    viewer_is_admin: bool = False,
    *,
    now: Optional[dt.datetime] = None,
) -> ListingPage:
    return _fetch_page(db, filters, viewer_is_admin)


def _fetch_page(db: Session, filters: ListingFilters, viewer_is_admin: bool) -> ListingPage:
    items = db.execute(build_listing_query(filters, viewer_is_admin)).scalars().all()
    # hasMore приблизительный: полная страница => возможно, есть ещё
    return ListingPage(
        items=list(items),
        limit=filters.limit,
        offset=filters.offset,
        has_more=len(items) == filters.limit,
    )


@sweeps_first
def list_user_listings(
    db: Session,
    user_id: int,
    filters: ListingFilters,
    viewer_is_admin: bool = False,
    *,
    now: Optional[dt.datetime] = None,
) -> ListingPage:
    if not viewer_is_admin and is_banned(db, user_id):
        return ListingPage(limit=filters.limit, offset=filters.offset, has_more=False)
    scoped = filters.model_copy(update={"user_id": user_id})
    return _fetch_page(db, scoped, viewer_is_admin)


# ---------- CRUD ----------

def get_listing(db: Session, listing_id: int) -> Listing:
    it = db.get(Listing, listing_id)
    if not it:
        raise NotFoundError("Объявление не найдено")
    return it


@sweeps_first
def get_listing_detail(db: Session, listing_id: int, *, now: Optional[dt.datetime] = None) -> Listing:
    return get_listing(db, listing_id)


def create_listing(db: Session, user: User, payload: Dict[str, Any],
                   *, now: Optional[dt.datetime] = None) -> Listing:
    data = validate_listing_payload(payload)
    now = now or utcnow()
    it = Listing(
        user_id=user.id,
        owner_tg_id=user.telegram_id,
        status=ListingStatus.ACTIVE,
        expires_at=expiry_after(now, settings.DEFAULT_EXPIRY_DAYS),
        last_bumped_at=None,
        bump_count=0,
        is_payment_pending=False,
        created_at=now,
        updated_at=now,
        **data,
    )
    with session_scope(db):
        db.add(it)
    db.refresh(it)
    log.info("listing %s created by user %s", it.id, user.id)
    return it


def update_listing(db: Session, listing_id: int, user: User, payload: Dict[str, Any],
                   *, now: Optional[dt.datetime] = None) -> Listing:
    it = get_listing(db, listing_id)
    if it.user_id != user.id:
        raise NotOwnerError("Можно редактировать только свои объявления")
    if it.status == ListingStatus.ARCHIVED:
        raise ArchivedError("Объявление в архиве и не может быть изменено")
    data = validate_listing_payload(payload, partial=True)
    with session_scope(db):
        for k, v in data.items():
            setattr(it, k, v)
        it.updated_at = now or utcnow()
    return it


def delete_listing(db: Session, listing_id: int, user: User, is_admin: bool = False,
                   notifier: Optional[Notifier] = None) -> int:
    it = get_listing(db, listing_id)
    is_owner = it.user_id == user.id
    if not is_owner and not is_admin:
        raise NotOwnerError("Можно удалять только свои объявления")

    owner_tg_id = it.owner_tg_id
    with session_scope(db):
        db.delete(it)
    log.info("listing %s deleted by user %s (admin=%s)", listing_id, user.id, is_admin)

    if is_admin and not is_owner and notifier is not None:
        try:
            notifier.notify(owner_tg_id, deleted_message(listing_id))
        except Exception:
            log.warning("delete notification for listing %s failed", listing_id, exc_info=True)
    return listing_id

