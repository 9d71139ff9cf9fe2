from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..admin.security import require_admin
from ..db import get_db
from ..deps import notifier_dep
from ..schemas import ArchiveRequest
from ..services import admin as admin_service
from ..services.notify import Notifier

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.post("/listings/{listing_id}/archive")
def api_archive_listing(
    listing_id: int,
    payload: ArchiveRequest,
    _admin=Depends(require_admin),
    notifier: Notifier = Depends(notifier_dep),
    db: Session = Depends(get_db),
):
    it = admin_service.archive_listing(db, listing_id, payload.reason or "", notifier)
    return {"ok": True, "listing": it.to_dict()}


@router.post("/users/{user_id}/ban")
def api_ban_user(user_id: int, _admin=Depends(require_admin), db: Session = Depends(get_db)):
    u = admin_service.set_user_banned(db, user_id, True)
    return {"ok": True, "id": u.id, "is_banned": u.is_banned}


@router.post("/users/{user_id}/unban")
def api_unban_user(user_id: int, _admin=Depends(require_admin), db: Session = Depends(get_db)):
    u = admin_service.set_user_banned(db, user_id, False)
    return {"ok": True, "id": u.id, "is_banned": u.is_banned}
