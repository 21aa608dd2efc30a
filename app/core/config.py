from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENV: str = "local"
    APP_NAME: str = "Mtokaa API"
    # Comma-separated origins for CORS (e.g. https://mtokaa.co.tz,https://app.mtokaa.co.tz). If empty, uses localhost defaults.
    CORS_ORIGINS: str = ""

    SECRET_KEY: str
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 1440
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7

    DATABASE_URL: str

    @field_validator("DATABASE_URL", mode="after")
    @classmethod
    def normalize_database_url(cls, v: str) -> str:
        """Render and others give postgres://; SQLAlchemy expects postgresql+psycopg2://."""
        if v and v.startswith("postgres://"):
            return "postgresql+psycopg2://" + v[11:]
        return v
    REDIS_URL: str = "redis://localhost:6379/0"

    LOG_LEVEL: str = "INFO"

    # Business dashboards
    BUSINESS_BOOKINGS_DEFAULT_LIMIT: int = 10
    MAX_PAGE_SIZE: int = 200

    # Cookie consent
    CONSENT_VERSION: str = "1.0"
    CONSENT_MAX_AGE_DAYS: int = 365

    # Celery beat cadence for the rating reconciliation job
    STATS_RATING_RECOMPUTE_SECONDS: float = 3600.0


settings = Settings()
