# bazaar/routers/webapp.py
from fastapi import APIRouter, Depends, Form, HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ..admin.security import is_admin_user
from ..auth.telegram import verify_webapp_init_data
from ..config import settings
from ..db import get_db
from ..deps import get_current_user
from ..constants import CATEGORIES
from ..services.users import ensure_user_from_tg

router = APIRouter(tags=["webapp"])


@router.post("/api/tg/session")
def tg_session(request: Request, init_data: str = Form(...), db: Session = Depends(get_db)):
    """
    Принимает Telegram.WebApp.initData, проверяет подпись и сохраняет профиль в сессию.
    """
    data = verify_webapp_init_data(init_data, settings.BOT_TOKEN or "")
    if not data or not data.get("user"):
        raise HTTPException(status_code=400, detail="invalid initData")

    u = data["user"]
    tg_user = {
        "id": u.get("id"),
        "first_name": u.get("first_name"),
        "last_name": u.get("last_name"),
        "username": u.get("username"),
    }
    request.session["tg_user"] = tg_user
    user = ensure_user_from_tg(db, tg_user)
    # важно: ответ без кэша
    resp = JSONResponse({"ok": True, "user_id": user.id})
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.get("/api/me")
def me(user=Depends(get_current_user)):
    return {
        "ok": True,
        "user": {
            "id": user.id,
            "telegram_id": user.telegram_id,
            "display_name": user.display_name,
            "is_banned": user.is_banned,
        },
        "is_admin": is_admin_user(user),
    }


@router.get("/api/is_admin")
def api_is_admin(user=Depends(get_current_user)):
    return {"ok": True, "is_admin": bool(is_admin_user(user))}


@router.get("/api/categories")
def api_categories():
    return {"ok": True, "items": [{"id": k, "name": v} for k, v in CATEGORIES.items()]}
