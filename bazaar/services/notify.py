from __future__ import annotations

import html
from typing import Protocol

import httpx

from ..config import settings
from ..errors import NotificationError
from ..utils.logging import get_logger

log = get_logger(__name__)

TG_API = "https://api.telegram.org"


class Notifier(Protocol):
    def notify(self, chat_id: int | None, text: str) -> None: ...


class TelegramNotifier:
    """Отправка сообщений владельцам через Bot API (sendMessage)."""

    def __init__(self, bot_token: str | None = None, timeout: float = 10.0,
                 client: httpx.Client | None = None) -> None:
        self.bot_token = bot_token if bot_token is not None else (settings.BOT_TOKEN or "")
        self.timeout = timeout
        self._client = client

    @property
    def api_url(self) -> str | None:
        return f"{TG_API}/bot{self.bot_token}/sendMessage" if self.bot_token else None

    def notify(self, chat_id: int | None, text: str) -> None:
        if not self.api_url or not chat_id:
            log.warning("TG notify skipped (no token or chat_id)")
            return
        payload = {"chat_id": chat_id, "text": text, "parse_mode": "HTML"}
        try:
            if self._client is not None:
                r = self._client.post(self.api_url, json=payload, timeout=self.timeout)
            else:
                with httpx.Client(timeout=self.timeout) as c:
                    r = c.post(self.api_url, json=payload)
            data = r.json()
        except (httpx.HTTPError, ValueError) as e:
            raise NotificationError(f"TG notify error: {e}") from e
        if not isinstance(data, dict):
            raise NotificationError(f"TG notify bad response: HTTP {r.status_code}")
        if not data.get("ok"):
            raise NotificationError(f"TG notify rejected: {data.get('description') or data}")


def archived_message(title: str, reason: str, name: str | None = None) -> str:
    greeting = f"{html.escape(name)}, в" if name else "В"
    return (
        f"⚠️ {greeting}аше объявление «{html.escape(title)}» перенесено в архив администратором.\n\n"
        f"Причина: {html.escape(reason)}"
    )


def deleted_message(listing_id: int) -> str:
    return f"🗑 Ваше объявление #{listing_id} удалено администратором."


def get_notifier() -> Notifier:
    return TelegramNotifier()
