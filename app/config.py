"""Application configuration loaded from environment variables."""

import os
from dotenv import load_dotenv

load_dotenv()


def _build_database_url() -> str:
    """Assemble an asyncpg URL from the ``DB_*`` parts.

    An empty ``DB_HOST`` means no relational store is configured.
    """
    host = os.getenv("DB_HOST", "localhost")
    if not host:
        return ""
    user = os.getenv("DB_USER", "postgres")
    password = os.getenv("DB_PASSWORD", "postgres")
    port = os.getenv("DB_PORT", "5432")
    name = os.getenv("DB_NAME", "credpal")
    return f"postgresql+asyncpg://{user}:{password}@{host}:{port}/{name}"


class Settings:
    """Centralized application settings."""

    # Server
    APP_HOST: str = os.getenv("APP_HOST", "0.0.0.0")
    APP_PORT: int = int(os.getenv("PORT", "3000"))
    APP_ENV: str = os.getenv("APP_ENV", os.getenv("NODE_ENV", "production"))
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "info")

    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL") or _build_database_url()
    DB_POOL_SIZE: int = int(os.getenv("DB_POOL_SIZE", "20"))
    DB_POOL_TIMEOUT: float = float(os.getenv("DB_POOL_TIMEOUT", "2.0"))
    DB_IDLE_TIMEOUT: int = int(os.getenv("DB_IDLE_TIMEOUT", "30"))

    # Cache
    REDIS_HOST: str = os.getenv("REDIS_HOST", "redis")
    REDIS_PORT: int = int(os.getenv("REDIS_PORT", "6379"))

    # Per-dependency round-trip bound for /status
    HEALTH_CHECK_TIMEOUT: float = float(os.getenv("HEALTH_CHECK_TIMEOUT", "2.0"))

    @property
    def is_development(self) -> bool:
        return self.APP_ENV.lower() == "development"


settings = Settings()
