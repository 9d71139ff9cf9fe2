# bazaar/db.py
from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from .config import settings
from .errors import StorageError
from .models.base import Base
from .utils.logging import get_logger

log = get_logger(__name__)

# ---------- Engine / Session ----------
DATABASE_URL = settings.DATABASE_URL

# SQLite (dev/тесты) и PostgreSQL (прод)
if DATABASE_URL.startswith("sqlite"):
    # для sqlite нужен check_same_thread=False: сессия живёт в пуле потоков FastAPI
    engine = create_engine(
        DATABASE_URL,
        connect_args={"check_same_thread": False},
        pool_pre_ping=True,
    )
else:
    # postgres:// не принимается SQLAlchemy 2.x
    if DATABASE_URL.startswith("postgres://"):
        DATABASE_URL = DATABASE_URL.replace("postgres://", "postgresql+psycopg://", 1)
    engine = create_engine(
        DATABASE_URL,
        pool_pre_ping=True,
    )

SessionLocal = sessionmaker(
    bind=engine,
    autoflush=False,
    autocommit=False,
    expire_on_commit=False,
)

# Импорт моделей, чтобы create_all увидел все таблицы
from .models import user, listing, payment  # noqa: E402,F401


def init_db() -> None:
    Base.metadata.create_all(bind=engine)


@contextmanager
def session_scope(db: Session) -> Iterator[Session]:
    """Единица работы: commit при успехе, rollback при любой ошибке.

    Сбои SQLAlchemy наружу уходят как StorageError, остальные исключения
    пробрасываются как есть.
    """
    try:
        yield db
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        log.error("storage failure: %s", e)
        raise StorageError("Ошибка хранилища") from e
    except Exception:
        db.rollback()
        raise


# ---------- Dependency ----------
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
