from __future__ import annotations

from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..errors import NotFoundError, ValidationError
from ..models.user import User


def ensure_user_from_tg(db: Session, tg_user: dict) -> User:
    try:
        tgid = int(tg_user.get("id"))
    except (TypeError, ValueError):
        raise ValidationError("Нет Telegram ID пользователя")
    username = tg_user.get("username")
    first = tg_user.get("first_name") or ""
    last = tg_user.get("last_name") or ""
    name = (first + " " + last).strip() or None

    u = db.execute(select(User).where(User.telegram_id == tgid)).scalar_one_or_none()

    if u:
        # мягкий апдейт видимых полей
        changed = False
        if username and u.username != username:
            u.username = username; changed = True
        if name and u.name != name:
            u.name = name; changed = True
        if changed:
            db.add(u); db.commit(); db.refresh(u)
        return u

    u = User(
        telegram_id=tgid,
        username=username,
        name=name,
        role="user",
        is_banned=False,
    )
    db.add(u); db.commit(); db.refresh(u)
    return u


def get_user(db: Session, user_id: int) -> User:
    u = db.get(User, user_id)
    if not u:
        raise NotFoundError("Пользователь не найден")
    return u


def is_banned(db: Session, user_id: int) -> bool:
    u = db.get(User, user_id)
    return bool(u and u.is_banned)


def display_name(db: Session, user_id: int) -> Optional[str]:
    u = db.get(User, user_id)
    return u.display_name if u else None
