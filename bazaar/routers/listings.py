from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from ..admin.security import is_admin_user
from ..db import get_db
from ..deps import get_current_user, get_optional_user, notifier_dep
from ..errors import ValidationError
from ..models.user import User
from ..schemas import BumpRequest, ImagesIn, ListingCreate, ListingFilters, ListingUpdate
from ..services import bump as bump_service
from ..services import images as image_service
from ..services import listings as listing_service
from ..services import payments as payment_service
from ..services.notify import Notifier

router = APIRouter(prefix="/api", tags=["listings"])


# ---------- helpers ----------
def parse_listing_filters(
    limit: Optional[str] = Query(None),
    offset: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    price_min: Optional[int] = Query(None, alias="priceMin"),
    price_max: Optional[int] = Query(None, alias="priceMax"),
    search: Optional[str] = Query(None),
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_order: Optional[str] = Query(None, alias="sortOrder"),
    status_: Optional[str] = Query(None, alias="status"),
) -> ListingFilters:
    raw = {
        "limit": limit,
        "offset": offset,
        "category": category,
        "price_min": price_min,
        "price_max": price_max,
        "search": search,
        "sort_by": sort_by or "date",
        "sort_order": sort_order or "desc",
        "status": status_,
    }
    try:
        return ListingFilters(**{k: v for k, v in raw.items() if v is not None})
    except PydanticValidationError as e:
        raise ValidationError(f"Некорректные фильтры: {e.errors()[0].get('msg')}")


# ---------- Лента ----------
@router.get("/listings")
def api_listings(
    filters: ListingFilters = Depends(parse_listing_filters),
    viewer: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    page = listing_service.list_listings(db, filters, is_admin_user(viewer))
    return page.to_dict()


@router.get("/users/{user_id}/listings")
def api_user_listings(
    user_id: int,
    filters: ListingFilters = Depends(parse_listing_filters),
    viewer: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    page = listing_service.list_user_listings(db, user_id, filters, is_admin_user(viewer))
    return page.to_dict()


@router.get("/listings/{listing_id}")
def api_listing_detail(listing_id: int, db: Session = Depends(get_db)):
    it = listing_service.get_listing_detail(db, listing_id)
    return {"ok": True, "listing": it.to_dict()}


# ---------- CRUD ----------
@router.post("/listings", status_code=status.HTTP_201_CREATED)
def api_listing_create(
    payload: ListingCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    it = listing_service.create_listing(db, user, payload.model_dump())
    return {"ok": True, "listing": it.to_dict()}


@router.patch("/listings/{listing_id}")
def api_listing_update(
    listing_id: int,
    payload: ListingUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    it = listing_service.update_listing(db, listing_id, user, payload.model_dump(exclude_unset=True))
    return {"ok": True, "listing": it.to_dict()}


@router.delete("/listings/{listing_id}")
def api_listing_delete(
    listing_id: int,
    user: User = Depends(get_current_user),
    notifier: Notifier = Depends(notifier_dep),
    db: Session = Depends(get_db),
):
    listing_service.delete_listing(db, listing_id, user, is_admin_user(user), notifier)
    return {"ok": True, "deleted": listing_id}


# ---------- Поднятие ----------
@router.get("/listings/{listing_id}/bump")
def api_bump_status(
    listing_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    out = bump_service.can_bump(db, listing_id, user.id).to_dict()
    left = bump_service.time_until_next_bump(db, listing_id)
    out["seconds_until_eligible"] = int(left.total_seconds()) if left else 0
    return out


@router.post("/listings/{listing_id}/bump")
def api_bump(
    listing_id: int,
    payload: BumpRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    # Платное поднятие: выставляем счёт, поднимет подтверждение оплаты от бота
    if payload.paid:
        p = payment_service.create_bump_invoice(db, listing_id, user)
        return {"ok": True, "invoice": {"payload": p.invoice_payload, "stars": p.star_amount}}
    it = bump_service.bump(db, listing_id, user.id, paid=False)
    return {"ok": True, "listing": it.to_dict()}


# ---------- Фото ----------
@router.post("/listings/{listing_id}/images", status_code=status.HTTP_201_CREATED)
def api_images_attach(
    listing_id: int,
    payload: ImagesIn,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    rows = image_service.attach_images(db, listing_id, user, [img.model_dump() for img in payload.images])
    return {"ok": True, "images": [r.to_dict() for r in rows]}


@router.delete("/listings/{listing_id}/images/{image_id}")
def api_image_delete(
    listing_id: int,
    image_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    image_service.delete_listing_image(db, listing_id, image_id, user)
    return {"ok": True, "deleted": image_id}
