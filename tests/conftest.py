"""
Pytest fixtures:
- in-memory SQLite (StaticPool) with a fresh schema per test
- user / listing factories
- recording notifier instead of the Telegram Bot API
- FastAPI TestClient with get_db and Telegram auth overridden
"""
import datetime as dt

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from bazaar.db import get_db
from bazaar.deps import get_optional_tg_user, notifier_dep
from bazaar.errors import NotificationError
from bazaar.main import app
from bazaar.models.base import Base
from bazaar.models.user import User
from bazaar.services import listings as listing_service

T0 = dt.datetime(2026, 1, 1, 12, 0, 0)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


class RecordingNotifier:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent: list[tuple[int, str]] = []

    def notify(self, chat_id, text):
        if self.fail:
            raise NotificationError("telegram is down")
        self.sent.append((chat_id, text))


class BrokenNotifier:
    def notify(self, chat_id, text):
        raise RuntimeError("connection pool exhausted")


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def make_user(db):
    def _make(tg_id: int, name: str | None = None, role: str = "user", banned: bool = False) -> User:
        u = User(telegram_id=tg_id, name=name or f"user{tg_id}", role=role, is_banned=banned)
        db.add(u)
        db.commit()
        db.refresh(u)
        return u
    return _make


@pytest.fixture
def make_listing(db):
    def _make(owner: User, now: dt.datetime | None = T0, **fields):
        payload = {
            "title": fields.pop("title", "Mountain bike"),
            "description": fields.pop("description", "Barely used, 21 gears"),
            "price": fields.pop("price", 15000),
            "category": fields.pop("category", "sports"),
        }
        it = listing_service.create_listing(db, owner, payload, now=now)
        if fields:
            for k, v in fields.items():
                setattr(it, k, v)
            db.commit()
            db.refresh(it)
        return it
    return _make


@pytest.fixture
def auth():
    """Кого видит API как текущего Telegram-пользователя (None — аноним)."""
    return {"tg_user": None}


@pytest.fixture
def client(db, notifier, auth):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_optional_tg_user] = lambda: auth["tg_user"]
    app.dependency_overrides[notifier_dep] = lambda: notifier

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture
def login(auth):
    def _login(user: User | None):
        auth["tg_user"] = {"id": user.telegram_id, "first_name": user.name} if user else None
    return _login
