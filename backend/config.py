import os
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from dotenv import load_dotenv

from backend.errors import ConfigError

# -----------------------------
# Настройки приложения
# -----------------------------
DEFAULT_DATABASE_URL = "sqlite:///./tasks.db"
SESSION_TTL_HOURS = 24


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _database_url() -> str:
    url = os.getenv("DATABASE_URL")
    if url:
        return url
    host = os.getenv("POSTGRES_HOST")
    if not host:
        return DEFAULT_DATABASE_URL
    port = os.getenv("POSTGRES_PORT", "5432")
    name = os.getenv("POSTGRES_DB")
    user = os.getenv("POSTGRES_USER")
    password = os.getenv("POSTGRES_PASSWORD")
    return f"postgresql+psycopg2://{user}:{password}@{host}:{port}/{name}"


@dataclass(frozen=True)
class Settings:
    session_secret: str
    database_url: str = DEFAULT_DATABASE_URL
    session_ttl: timedelta = timedelta(hours=SESSION_TTL_HOURS)
    cookie_secure: bool = False
    environment: str = "development"
    log_level: str = "INFO"
    host: str = "127.0.0.1"
    port: int = 8000

    @property
    def debug(self) -> bool:
        return self.environment == "development"

    def validate(self) -> "Settings":
        # Без нормального секрета подписи стартовать нельзя
        if not self.session_secret or "your-secret" in self.session_secret:
            raise ConfigError("Задайте корректный SESSION_SECRET в .env")
        if self.session_ttl <= timedelta(0):
            raise ConfigError("SESSION_TTL_HOURS должен быть положительным")
        return self


def load_settings(env_file: Optional[str] = None) -> Settings:
    """Собирает Settings из переменных окружения (+ .env, если есть)."""
    load_dotenv(env_file, override=False)
    settings = Settings(
        session_secret=os.getenv("SESSION_SECRET", ""),
        database_url=_database_url(),
        session_ttl=timedelta(hours=_env_int("SESSION_TTL_HOURS", SESSION_TTL_HOURS)),
        cookie_secure=_env_bool("COOKIE_SECURE", False),
        environment=os.getenv("ENVIRONMENT", "development"),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        host=os.getenv("HOST", "127.0.0.1"),
        port=_env_int("PORT", 8000),
    )
    return settings.validate()
