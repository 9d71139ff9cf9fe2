from __future__ import annotations

import datetime as dt

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


def utcnow() -> dt.datetime:
    # Все времена в БД — наивные UTC
    return dt.datetime.now(dt.timezone.utc).replace(tzinfo=None)
