from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional
from pathlib import Path


BASE_DIR = Path(__file__).resolve().parent.parent.parent.parent


class Settings(BaseSettings):
    POSTGRES_DB: str = "cinema"
    POSTGRES_DB_PORT: int = 5432
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "postgres"
    POSTGRES_HOST: str = "localhost"
    DATABASE_URL: Optional[str] = None

    SECRET_KEY_ACCESS: str = "change-me"
    JWT_SIGNING_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    CELERY_BROKER_URL: str = "redis://localhost:6379/0"
    CELERY_RESULT_BACKEND: Optional[str] = None
    # shared change feed across API workers and Celery; unset keeps it in-process
    REDIS_URL: Optional[str] = None

    SEAT_ROWS: str = "ABCDEFGH"
    SEAT_COLUMNS: int = 8
    # a pending show older than this is treated as an interrupted seating
    SEATING_PENDING_GRACE_SECONDS: int = 300

    REALTIME_HEARTBEAT_SECONDS: float = 30.0

    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=(BASE_DIR / ".env"), env_file_encoding="utf-8", extra="ignore"
    )

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+asyncpg://"
            f"{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@"
            f"{self.POSTGRES_HOST}:{self.POSTGRES_DB_PORT}/"
            f"{self.POSTGRES_DB}"
        )

    @property
    def sync_database_url(self) -> str:
        return self.database_url.replace("+asyncpg", "+pg8000").replace(
            "+aiosqlite", ""
        )


settings = Settings()
