# bazaar/auth/telegram.py
from __future__ import annotations

import hashlib
import hmac
import json
import time
import urllib.parse
from typing import Any, Dict, Optional

# initData старше суток не принимаем
INIT_DATA_MAX_AGE_SEC = 24 * 60 * 60


def _data_check_string(params: Dict[str, str]) -> str:
    # key=value по алфавиту через \n, без hash
    return "\n".join(f"{k}={params[k]}" for k in sorted(params) if k != "hash")


def sign_init_data(params: Dict[str, str], bot_token: str) -> str:
    """Подпись initData так же, как это делает Telegram (нужна тестам и локальной отладке)."""
    secret_key = hmac.new(b"WebAppData", bot_token.encode("utf-8"), hashlib.sha256).digest()
    return hmac.new(secret_key, _data_check_string(params).encode("utf-8"), hashlib.sha256).hexdigest()


def verify_webapp_init_data(
    init_data: str,
    bot_token: str,
    max_age: Optional[int] = INIT_DATA_MAX_AGE_SEC,
    now: Optional[float] = None,
) -> Optional[Dict[str, Any]]:
    """
    Проверка initData Telegram WebApp:
    secret_key = HMAC_SHA256(key="WebAppData", msg=bot_token)
    hash = HMAC_SHA256(key=secret_key, msg=data_check_string)
    """
    if not init_data or not bot_token:
        return None

    q = urllib.parse.parse_qs(init_data, keep_blank_values=True)
    params: Dict[str, str] = {k: v[0] for k, v in q.items() if v}

    recv_hash = params.get("hash")
    if not recv_hash:
        return None
    if not hmac.compare_digest(sign_init_data(params, bot_token), recv_hash):
        return None

    if max_age is not None:
        try:
            auth_date = int(params.get("auth_date", "0"))
        except ValueError:
            return None
        if (now if now is not None else time.time()) - auth_date > max_age:
            return None

    data: Dict[str, Any] = {k: v for k, v in params.items() if k != "user"}
    try:
        data["user"] = json.loads(params["user"]) if "user" in params else None
    except ValueError:
        data["user"] = None
    return data
