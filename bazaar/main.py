# bazaar/main.py
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.sessions import SessionMiddleware

from .config import settings
from .db import init_db
from .errors import BazaarError, StorageError
from .utils.logging import get_logger

from .routers import (
    listings as listings_router,
    admin as admin_router,
    payments as payments_router,
    webapp as webapp_router,
)

log = get_logger("bazaar")

app = FastAPI(title="Bazaar WebApp")

# --- CORS ---
allowed_origins = (
    [o.strip() for o in settings.ALLOWED_ORIGINS.split(",")]
    if getattr(settings, "ALLOWED_ORIGINS", None)
    else ["*"]
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Сессии ---
app.add_middleware(
    SessionMiddleware,
    secret_key=settings.SECRET_KEY,
    session_cookie=settings.COOKIE_NAME,
    same_site=(settings.COOKIE_SAMESITE or "lax"),
    https_only=settings.COOKIE_SECURE,
)


# --- Ошибки предметной области -> HTTP ---
@app.exception_handler(BazaarError)
async def bazaar_error_handler(request: Request, exc: BazaarError):
    if isinstance(exc, StorageError):
        log.error("%s %s: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# --- Подключение роутеров ---
app.include_router(webapp_router.router)
app.include_router(listings_router.router)
app.include_router(admin_router.router)
app.include_router(payments_router.router)


# --- Инициализация БД ---
@app.on_event("startup")
def on_startup():
    init_db()
