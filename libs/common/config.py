from functools import lru_cache
from typing import Literal, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Global application settings."""

    # Application
    ENVIRONMENT: Literal["local", "test", "development", "production"] = "local"
    LOG_LEVEL: str = "INFO"
    SLOW_REQUEST_MS: int = 1000
    TIMEZONE: str = "Asia/Baghdad"

    # Database
    DATABASE_URL: str
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 10
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 1800
    DB_ECHO: bool = False

    # Redis (cache + arq worker). Caching is skipped entirely when unset.
    REDIS_URL: Optional[str] = None
    CACHE_ENABLED: bool = True
    CACHE_DEFAULT_TTL: int = 300

    # Auth
    # Placeholder keeps local/test runs working; real deployments override via env.
    JWT_SECRET: str = "test-jwt-secret"
    JWT_ALGORITHM: str = "HS256"

    # Settlements
    DEFAULT_COMMISSION_RATE: float = 0.10
    SUMMARY_WINDOW_DAYS: int = 30
    SUMMARY_CACHE_TTL: int = 60

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    @field_validator("DATABASE_URL")
    @classmethod
    def assemble_db_connection(cls, v: Optional[str]) -> str:
        if isinstance(v, str):
            if v.startswith("postgresql://"):
                return v.replace("postgresql://", "postgresql+psycopg://", 1)
        return v

    @field_validator("DEFAULT_COMMISSION_RATE")
    @classmethod
    def check_commission_rate(cls, v: float) -> float:
        if not 0 <= v <= 1:
            raise ValueError("DEFAULT_COMMISSION_RATE must be a fraction between 0 and 1")
        return v


@lru_cache
def get_settings() -> Settings:
    """
    Return the global settings instance, cached.
    """
    return Settings()
