from functools import lru_cache
from typing import Literal
from zoneinfo import ZoneInfo

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # APP
    APP_NAME: str = "Mile A Day Competitions"
    ENVIRONMENT: Literal["local", "staging", "production"] = "local"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL

    # DB
    DATABASE_URL: str

    # Scoring
    REFERENCE_TIMEZONE: str = "America/New_York"
    SCORING_MAX_CONCURRENT_FETCHES: int = 8
    SCORING_FETCH_TIMEOUT_SECONDS: float = 30.0

    # Activity provider (optional - local workouts table is used when unset)
    ACTIVITY_PROVIDER_URL: str | None = None
    ACTIVITY_PROVIDER_TOKEN: str | None = None

    # CORS
    CORS_ORIGINS: list[str] = ["*"]

    @property
    def reference_zone(self) -> ZoneInfo:
        """Time zone every interval key is computed in."""
        return ZoneInfo(self.REFERENCE_TIMEZONE)

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    """Cached settings only loads once"""
    return Settings()
