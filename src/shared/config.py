"""Storefront client settings.

Usage:
    from shared.config import get_settings
    settings = get_settings()
    print(settings.base_url)

Values come from ``STOREFRONT_*`` environment variables or a local ``.env``
file. Services receive a ``Settings`` instance explicitly; ``get_settings()``
only exists for the composition root.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="STOREFRONT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # --- Backend ---
    base_url: str = "http://localhost:8000"
    api_prefix: str = "/api/v1"

    # Upper bound (seconds) for a single request/response exchange
    request_timeout: float = Field(10.0, gt=0)

    # --- Session persistence ---
    # None keeps tokens in memory only
    token_store_path: Path | None = None

    # --- Mobile money (M-Pesa STK push) ---
    payment_poll_interval: float = Field(5.0, ge=0)
    payment_poll_attempts: int = Field(24, ge=1)
    paybill_business_number: str = "174379"
    paybill_business_name: str = "Dira Healthcare"

    # --- Application ---
    environment: str = "development"
    log_level: str | None = None

    def endpoint(self, path: str) -> str:
        """Prefix an API path with the configured version prefix."""
        prefix = self.api_prefix.rstrip("/")
        return f"{prefix}/{path.lstrip('/')}"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
