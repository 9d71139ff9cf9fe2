from __future__ import annotations

import enum
import uuid

from sqlalchemy import Column, Integer, BigInteger, String, DateTime, Enum, Index

from .base import Base, utcnow


class PaymentStatus(str, enum.Enum):
    CREATED   = "created"
    SUCCEEDED = "succeeded"
    FAILED    = "failed"


class Payment(Base):
    __tablename__ = "payments"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    invoice_payload = Column(String(64), nullable=False, unique=True)
    telegram_payment_charge_id = Column(String(128), nullable=True, unique=True)  # ключ идемпотентности

    user_id = Column(Integer, nullable=False)
    listing_id = Column(Integer, nullable=True)
    payment_type = Column(String(32), nullable=False, default="bump")
    star_amount = Column(Integer, nullable=False)
    status = Column(
        Enum(PaymentStatus, values_callable=lambda e: [m.value for m in e], native_enum=False, length=16),
        nullable=False,
        default=PaymentStatus.CREATED,
    )

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    __table_args__ = (
        Index("ix_payments_user_id", "user_id"),
        Index("ix_payments_listing_id", "listing_id"),
        Index("ix_payments_status", "status"),
    )
