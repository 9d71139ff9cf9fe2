# bazaar/deps.py
from __future__ import annotations

import hmac
from typing import Optional

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.orm import Session

from .auth.telegram import verify_webapp_init_data
from .config import settings
from .db import get_db
from .models.user import User
from .services.notify import Notifier, get_notifier
from .services.users import ensure_user_from_tg


# ------------------ Telegram WebApp session ------------------

def _save_tg_user_to_session(request: Request, data: dict) -> dict:
    u = data.get("user") or {}
    tg_user = {
        "id": u.get("id"),
        "first_name": u.get("first_name"),
        "last_name": u.get("last_name"),
        "username": u.get("username"),
    }
    request.session["tg_user"] = tg_user
    return tg_user


def get_optional_tg_user(
    request: Request,
    x_tg_init_data: Optional[str] = Header(None, alias="X-Tg-Init-Data"),
) -> Optional[dict]:
    # 1) уже есть в сессии
    sess = getattr(request, "session", None) or {}
    user = sess.get("tg_user")
    if user:
        return user

    # 2) пришло initData — проверим подпись и сохраним
    if x_tg_init_data:
        data = verify_webapp_init_data(x_tg_init_data, settings.BOT_TOKEN or "")
        if data and data.get("user"):
            return _save_tg_user_to_session(request, data)
    return None


def get_current_tg_user(tg_user: Optional[dict] = Depends(get_optional_tg_user)) -> dict:
    if not tg_user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Open via Telegram WebApp (no session)",
        )
    return tg_user


# ------------------ Users ------------------

def get_current_user(
    tg_user: dict = Depends(get_current_tg_user),
    db: Session = Depends(get_db),
) -> User:
    return ensure_user_from_tg(db, tg_user)


def get_optional_user(
    tg_user: Optional[dict] = Depends(get_optional_tg_user),
    db: Session = Depends(get_db),
) -> Optional[User]:
    return ensure_user_from_tg(db, tg_user) if tg_user else None


# ------------------ Collaborators ------------------

def notifier_dep() -> Notifier:
    return get_notifier()


def require_bot_secret(x_bot_secret: Optional[str] = Header(None, alias="X-Bot-Secret")) -> None:
    expected = settings.BOT_WEBHOOK_SECRET
    if not expected or not x_bot_secret or not hmac.compare_digest(expected, x_bot_secret):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="bad bot secret")
