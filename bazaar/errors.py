# bazaar/errors.py
from __future__ import annotations


class BazaarError(Exception):
    """Базовая ошибка предметной области. Роутеры переводят её в HTTP-ответ."""

    status_code = 400

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"ok": False, "detail": self.message}


class NotFoundError(BazaarError, LookupError):
    status_code = 404


class NotOwnerError(BazaarError, PermissionError):
    status_code = 403


class CooldownError(BazaarError, ValueError):
    status_code = 429

    def __init__(self, hours_remaining: int) -> None:
        super().__init__(f"Поднять объявление снова можно через {hours_remaining} ч.")
        self.hours_remaining = hours_remaining

    def to_dict(self) -> dict:
        return {**super().to_dict(), "hours_until_eligible": self.hours_remaining}


class ArchivedError(BazaarError, ValueError):
    status_code = 409


class ValidationError(BazaarError, ValueError):
    status_code = 400


class StorageError(BazaarError):
    status_code = 503


class NotificationError(Exception):
    """Не удалось доставить уведомление. Наружу из ядра не пробрасывается."""
