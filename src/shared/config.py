"""Process-wide settings shared by the ordering and notifications contexts."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings, read from the environment and `.env`."""

    # Application
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str | None = None
    LOG_DIR: str | None = None  # No log files unless set

    # Recipient phone normalization
    PHONE_COUNTRY_CODE: str = "62"
    PHONE_MIN_LENGTH: int = 10

    # Messaging providers
    PROVIDER_TIMEOUT_SECONDS: float = 30.0
    FONNTE_BASE_URL: str = "https://api.fonnte.com"

    # Background notification dispatch
    NOTIFICATION_WORKERS: int = 4

    # Subscription defaults, used when a tenant has no plan on record
    DEFAULT_STAFF_LIMIT: int = 2
    DEFAULT_PRODUCT_LIMIT: int = 50
    DEFAULT_TRANSACTION_LIMIT: int = 1000

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    return Settings()
