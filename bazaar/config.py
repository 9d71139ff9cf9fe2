# bazaar/config.py
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, AliasChoices


class Settings(BaseSettings):
    # Настройки pydantic: читаем .env, не падаем на лишние ключи
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        case_sensitive=False,
    )

    # База данных и бот
    DATABASE_URL: str = "sqlite:///./bazaar.db"
    BOT_TOKEN: str | None = None
    BOT_WEBHOOK_SECRET: str | None = Field(
        default=None,
        validation_alias=AliasChoices("BOT_WEBHOOK_SECRET", "bot_webhook_secret"),
    )

    # Админы
    ADMIN_TG_ID: int | None = None              # одиночный ID
    ADMIN_TG_IDS: str | None = None             # несколько через запятую

    # Сессии и куки
    SECRET_KEY: str = "dev-secret"
    COOKIE_NAME: str = "bazaar_session"
    COOKIE_SECURE: bool = False
    COOKIE_SAMESITE: str = "lax"

    # CORS
    ALLOWED_ORIGINS: str = "*"

    LOG_LEVEL: str = "INFO"

    # Жизненный цикл объявлений
    DEFAULT_EXPIRY_DAYS: int = 3
    FREE_BUMP_DAYS: int = 3
    PAID_BUMP_DAYS: int = 7
    BUMP_COOLDOWN_HOURS: int = 24
    BUMP_PRICE_STARS: int = 1

    # Ограничения на содержимое (цена в копейках/центах)
    PRICE_MIN: int = 0
    PRICE_MAX: int = 100_000_000
    TITLE_MAX_LEN: int = 200
    DESCRIPTION_MAX_LEN: int = 4000
    MAX_IMAGES_PER_LISTING: int = 10


settings = Settings()
