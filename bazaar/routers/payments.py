from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..db import get_db
from ..deps import require_bot_secret
from ..schemas import PaymentConfirm
from ..services import payments as payment_service

router = APIRouter(prefix="/api/payments", tags=["payments"])


# Вызывает бот после successful_payment
@router.post("/bump/confirm", dependencies=[Depends(require_bot_secret)])
def api_confirm_bump(payload: PaymentConfirm, db: Session = Depends(get_db)):
    it = payment_service.confirm_bump_payment(db, payload.invoice_payload, payload.telegram_payment_charge_id)
    return {"ok": True, "listing": it.to_dict()}
