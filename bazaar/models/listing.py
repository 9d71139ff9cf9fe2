from __future__ import annotations

import enum

from sqlalchemy import (
    Column, Integer, BigInteger, String, Text, Boolean, DateTime, ForeignKey, Enum, Index
)
from sqlalchemy.orm import relationship

from .base import Base, utcnow


class ListingStatus(str, enum.Enum):
    ACTIVE   = "active"
    EXPIRED  = "expired"
    ARCHIVED = "archived"   # терминальный статус


class Listing(Base):
    __tablename__ = "listings"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    owner_tg_id = Column(BigInteger, nullable=False)   # куда слать уведомления

    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    price = Column(Integer, nullable=False)            # в минимальных единицах валюты
    category = Column(String(32), nullable=False)

    status = Column(
        Enum(ListingStatus, values_callable=lambda e: [m.value for m in e], native_enum=False, length=16),
        nullable=False,
        default=ListingStatus.ACTIVE,
    )
    expires_at = Column(DateTime, nullable=False)
    last_bumped_at = Column(DateTime, nullable=True)
    bump_count = Column(Integer, nullable=False, default=0)

    # Платное поднятие
    payment_id = Column(String(36), ForeignKey("payments.id"), nullable=True)
    is_payment_pending = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, nullable=False)

    owner = relationship("User", backref="listings")
    images = relationship(
        "ListingImage",
        back_populates="listing",
        order_by="ListingImage.upload_order",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index("ix_listings_created_at", "created_at"),
        Index("ix_listings_user_id", "user_id"),
        Index("ix_listings_category", "category"),
        Index("ix_listings_status", "status"),
        Index("ix_listings_expires_at", "expires_at"),
        Index("ix_listings_price", "price"),
    )

    def to_dict(self) -> dict:
        owner = self.owner
        return {
            "id": self.id,
            "user_id": self.user_id,
            "display_name": owner.display_name if owner else None,
            "title": self.title,
            "description": self.description,
            "price": self.price,
            "category": self.category,
            "status": self.status.value if hasattr(self.status, "value") else self.status,
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
            "last_bumped_at": self.last_bumped_at.isoformat() if self.last_bumped_at else None,
            "bump_count": self.bump_count,
            "is_payment_pending": self.is_payment_pending,
            "images": [img.to_dict() for img in self.images],
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


class ListingImage(Base):
    __tablename__ = "listing_images"

    id = Column(Integer, primary_key=True)
    listing_id = Column(Integer, ForeignKey("listings.id", ondelete="CASCADE"), nullable=False)
    url = Column(String(1000), nullable=False)
    thumbnail_url = Column(String(1000), nullable=True)
    width = Column(Integer, nullable=False, default=0)
    height = Column(Integer, nullable=False, default=0)
    upload_order = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    listing = relationship("Listing", back_populates="images")

    __table_args__ = (
        Index("ix_listing_images_listing_order", "listing_id", "upload_order"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "url": self.url,
            "thumbnail_url": self.thumbnail_url,
            "width": self.width,
            "height": self.height,
            "upload_order": self.upload_order,
        }
