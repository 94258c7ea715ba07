"""Application configuration via environment variables."""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """App settings loaded from .env or environment."""

    DATABASE_URL: str = "sqlite+aiosqlite:///./eventfeed.db"
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:8081"
    EVENT_TIMEZONE: str = "UTC"  # IANA tz the stored event date/time are expressed in
    RSVP_AGGREGATE_THRESHOLD: int = 5
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"


settings = Settings()
