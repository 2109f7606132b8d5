"""
Chow Service - Configuration
All settings are read from environment variables (or .env file).
"""
import logging
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # ── Service ──────────────────────────────────────────────
    SERVICE_NAME: str = "chow-service"
    SERVICE_VERSION: str = "1.0.0"
    DEBUG: bool = False
    HOST: str = "0.0.0.0"
    PORT: int = 2345
    LOG_LEVEL: str = "INFO"
    API_BASE_PATH: str = ""

    # ── Database ──────────────────────────────────────────────
    DATABASE_URL: str | None = None
    POSTGRES_HOST: str = "chow-db"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "chow_db"
    POSTGRES_USER: str = "chow_user"
    POSTGRES_PASSWORD: str = "chow_pass"

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    # ── Redis ─────────────────────────────────────────────────
    REDIS_HOST: str = "redis"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0
    REDIS_PASSWORD: str = ""

    @property
    def redis_url(self) -> str:
        if self.REDIS_PASSWORD:
            return f"redis://:{self.REDIS_PASSWORD}@{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"

    # ── Eatery Cache ──────────────────────────────────────────
    EATERY_CACHE_ENABLED: bool = False
    EATERY_CACHE_TTL_SECONDS: int = 300

    # ── Optimistic Locking Retry ──────────────────────────────
    OPT_LOCK_MAX_RETRIES: int = 5
    OPT_LOCK_BASE_DELAY_MS: int = 10      # base exponential backoff delay in ms
    OPT_LOCK_MAX_DELAY_MS: int = 500      # max backoff cap in ms
    OPT_LOCK_JITTER_MS: int = 10          # random jitter range in ms

    # ── Orders / Search ───────────────────────────────────────
    ORDER_ID_RAND_DIGITS: int = 4
    LOCATE_DEFAULT_COUNT: int = 5
    DEFAULT_LAT: float = 42.087225457002376    # Binghamton University
    DEFAULT_LNG: float = -75.96795097953378

    # ── Observability ─────────────────────────────────────────
    METRICS_ENABLED: bool = True
    HEALTH_CHECK_TIMEOUT: float = 5.0


@lru_cache()
def get_settings() -> Settings:
    return Settings()


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
