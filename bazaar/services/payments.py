from __future__ import annotations

import datetime as dt
import uuid
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from ..config import settings
from ..db import session_scope
from ..errors import BazaarError, NotFoundError, ValidationError
from ..models.base import utcnow
from ..models.listing import Listing
from ..models.payment import Payment, PaymentStatus
from ..models.user import User
from .bump import bump, check_bump
from .listings import get_listing
from ..utils.logging import get_logger

log = get_logger(__name__)


def create_bump_invoice(db: Session, listing_id: int, user: User,
                        *, now: Optional[dt.datetime] = None) -> Payment:
    """Готовит оплату платного поднятия. Само поднятие — после подтверждения оплаты."""
    now = now or utcnow()
    listing = check_bump(db.get(Listing, listing_id), user.id, now)

    p = Payment(
        id=str(uuid.uuid4()),
        invoice_payload=f"bump:{listing_id}:{uuid.uuid4().hex}",
        user_id=user.id,
        listing_id=listing_id,
        payment_type="bump",
        star_amount=settings.BUMP_PRICE_STARS,
        status=PaymentStatus.CREATED,
    )
    with session_scope(db):
        db.add(p)
        db.flush()
        listing.payment_id = p.id
        listing.is_payment_pending = True
    log.info("bump invoice %s created for listing %s", p.id, listing_id)
    return p


def _confirmed_listing(db: Session, p: Payment, charge_id: str) -> Listing:
    if p.telegram_payment_charge_id != charge_id:
        raise ValidationError("Счёт уже оплачен другим платежом")
    return get_listing(db, p.listing_id)


def confirm_bump_payment(db: Session, invoice_payload: str, charge_id: str,
                         *, now: Optional[dt.datetime] = None) -> Listing:
    """Вызывается ботом после successful_payment. Повторный вызов с тем же charge_id ничего не меняет.

    Платёж забирается одним условным UPDATE: при двойной доставке
    поднимает объявление только тот запрос, который перевёл статус.
    """
    if not charge_id:
        raise ValidationError("Нет идентификатора платежа")
    p = db.execute(
        select(Payment).where(Payment.invoice_payload == invoice_payload)
    ).scalar_one_or_none()
    if not p:
        raise NotFoundError("Платёж не найден")
    if p.status == PaymentStatus.SUCCEEDED:
        return _confirmed_listing(db, p, charge_id)

    now = now or utcnow()
    payment_id = p.id
    with session_scope(db):
        res = db.execute(
            update(Payment)
            .where(Payment.id == payment_id, Payment.status != PaymentStatus.SUCCEEDED)
            .values(status=PaymentStatus.SUCCEEDED, telegram_payment_charge_id=charge_id, updated_at=now)
            .execution_options(synchronize_session=False)
        )
    if res.rowcount != 1:
        # другой запрос подтвердил платёж раньше
        db.expire_all()
        return _confirmed_listing(db, db.get(Payment, payment_id), charge_id)
    p = db.get(Payment, payment_id, populate_existing=True)

    try:
        listing = bump(db, p.listing_id, p.user_id, paid=True, now=now)
    except BazaarError:
        with session_scope(db):
            p.status = PaymentStatus.FAILED
            db.execute(
                update(Listing)
                .where(Listing.id == p.listing_id)
                .values(is_payment_pending=False)
                .execution_options(synchronize_session=False)
            )
        db.expire_all()
        log.error("paid bump for payment %s failed", payment_id)
        raise
    log.info("payment %s confirmed, listing %s bumped", p.id, p.listing_id)
    return listing
