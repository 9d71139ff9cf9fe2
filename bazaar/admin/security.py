# bazaar/admin/security.py
from fastapi import Depends, HTTPException, status

from ..config import settings
from ..deps import get_current_user


def _parse_admin_ids() -> set[int]:
    ids: set[int] = set()
    # несколько через запятую
    if settings.ADMIN_TG_IDS:
        for part in settings.ADMIN_TG_IDS.replace(" ", ",").split(","):
            part = part.strip()
            if part.isdigit():
                ids.add(int(part))
    # одиночный id
    if settings.ADMIN_TG_ID:
        ids.add(int(settings.ADMIN_TG_ID))
    return ids


def is_admin_user(user) -> bool:
    """
    Админ — если:
    1) его Telegram ID есть в ADMIN_TG_IDS/ADMIN_TG_ID
    2) или users.role == 'admin'
    """
    if user is None:
        return False
    if getattr(user, "telegram_id", None) in _parse_admin_ids():
        return True
    return (getattr(user, "role", "") or "").lower() == "admin"


def require_admin(user=Depends(get_current_user)):
    if not is_admin_user(user):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="admin only")
    return user
