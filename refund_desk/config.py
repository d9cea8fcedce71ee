"""Application configuration via pydantic-settings."""

from __future__ import annotations

from decimal import Decimal
from functools import lru_cache
from typing import List, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Refund Desk"
    app_version: str = "1.0.0"
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = False
    api_prefix: str = "/api/v1"
    log_level: str = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    workers: int = 4

    # CORS
    cors_origins: List[str] = ["http://localhost:3000"]

    # Slow request threshold for request logging (seconds)
    slow_request_seconds: float = 1.0

    # Money
    currency: str = "EUR"

    # Built-in "standard" payment term
    default_payment_term_id: str = "standard"
    default_admin_fee_percentage: Decimal = Field(default=Decimal("10"), ge=0, le=100)
    default_admin_fee_flat: Decimal = Field(default=Decimal("0"), ge=0)
    default_travel_credit_for_non_refundable: bool = False
    reservation_fee_refundable_on_guest_cancel: bool = False


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
