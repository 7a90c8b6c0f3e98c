from functools import lru_cache
from typing import Literal, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Global application settings."""

    # Application
    ENVIRONMENT: Literal["local", "development", "production"] = "local"
    LOG_LEVEL: str = "INFO"
    STORE_NAME: str = "Opulent Cosmetics"
    ADMIN_EMAIL: str = "admin@opulentcosmetics.com"
    FRONTEND_URL: str = "http://localhost:5173"
    CORS_ORIGINS: list[str] = ["http://localhost:5173"]

    # Database
    DATABASE_URL: str
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 10
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 1800

    # Store
    STORE_CURRENCY: str = "KES"
    STORE_COUNTRY_CODE: str = "KE"
    # Accepted gap between the paid amount and the order total, in minor units
    AMOUNT_TOLERANCE_MINOR: int = 100

    # Paystack (inline popup flow)
    PAYSTACK_SECRET_KEY: Optional[str] = None
    PAYSTACK_API_BASE_URL: str = "https://api.paystack.co"

    # Pesapal (hosted page flow)
    PESAPAL_ENV: Literal["sandbox", "live"] = "live"
    PESAPAL_CONSUMER_KEY: Optional[str] = None
    PESAPAL_CONSUMER_SECRET: Optional[str] = None
    PESAPAL_IPN_ID: Optional[str] = None

    GATEWAY_TIMEOUT_SECONDS: float = 30.0

    # Email (SMTP)
    SMTP_HOST: str = "smtp-relay.brevo.com"
    SMTP_PORT: int = 587
    SMTP_USERNAME: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None
    DEFAULT_FROM_EMAIL: str = "orders@opulentcosmetics.com"
    DEFAULT_FROM_NAME: str = "Opulent Cosmetics"

    # Rate limiting
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_STORAGE_URI: str = "memory://"

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

    @property
    def pesapal_base_url(self) -> str:
        if self.PESAPAL_ENV == "sandbox":
            return "https://cybqa.pesapal.com/pesapalv3"
        return "https://pay.pesapal.com/v3"


@lru_cache
def get_settings() -> Settings:
    """
    Return the global settings instance, cached.
    """
    return Settings()
