from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from .models.listing import ListingStatus

DEFAULT_PAGE_LIMIT = 50
MAX_PAGE_LIMIT = 100


class ListingFilters(BaseModel):
    status: Optional[list[ListingStatus]] = None
    category: Optional[str] = None
    price_min: Optional[int] = None
    price_max: Optional[int] = None
    search: Optional[str] = None
    user_id: Optional[int] = None
    sort_by: Literal["price", "date"] = "date"
    sort_order: Literal["asc", "desc"] = "desc"
    limit: int = DEFAULT_PAGE_LIMIT
    offset: int = 0

    # Мусор в limit/offset не ошибка: приводим к допустимым границам
    @field_validator("limit", mode="before")
    @classmethod
    def _clamp_limit(cls, v):
        try:
            v = int(v)
        except (TypeError, ValueError):
            return DEFAULT_PAGE_LIMIT
        if v == 0:
            return DEFAULT_PAGE_LIMIT
        return min(max(v, 1), MAX_PAGE_LIMIT)

    @field_validator("offset", mode="before")
    @classmethod
    def _clamp_offset(cls, v):
        try:
            return max(int(v), 0)
        except (TypeError, ValueError):
            return 0

    @field_validator("status", mode="before")
    @classmethod
    def _split_status(cls, v):
        # ?status=active,expired
        if isinstance(v, str):
            v = [s.strip() for s in v.split(",") if s.strip()]
        return v or None

    @field_validator("category", "search", mode="before")
    @classmethod
    def _blank_to_none(cls, v):
        if isinstance(v, str):
            v = v.strip()
        return v or None


class ListingCreate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    price: Optional[int] = None
    category: Optional[str] = None


class ListingUpdate(ListingCreate):
    pass


class BumpRequest(BaseModel):
    paid: bool = False


class ArchiveRequest(BaseModel):
    reason: Optional[str] = None


class ImageIn(BaseModel):
    url: str
    thumbnail_url: Optional[str] = None
    width: int = 0
    height: int = 0
    upload_order: int = 1


class ImagesIn(BaseModel):
    images: list[ImageIn] = Field(default_factory=list)


class PaymentConfirm(BaseModel):
    invoice_payload: str
    telegram_payment_charge_id: str
