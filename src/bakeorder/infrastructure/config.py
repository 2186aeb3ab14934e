"""Application settings loaded from the environment (prefix ``BAKEORDER_``)."""

from __future__ import annotations

from decimal import Decimal
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):

    # Storage
    data_dir: Path = Field(default=Path("data"), description="Directory of the JSON data files")

    # Pricing
    currency: str = Field(default="IDR", description="Currency of every price")
    service_fee: Decimal = Field(default=Decimal("5000"), description="Fixed fee added to each payment")

    # Payment gateway
    payment_base_url: str = Field(
        default="https://app.sandbox.midtrans.com", description="Payment gateway base URL"
    )
    payment_status_base_url: str = Field(
        default="https://api.sandbox.midtrans.com", description="Payment status API base URL"
    )
    payment_server_key: str = Field(default="", description="Payment gateway server key")
    payment_timeout_seconds: float = Field(default=10.0, description="Gateway request timeout")
    payment_expiry_minutes: int = Field(default=60, description="Minutes before an unpaid link expires")

    # Notifications
    notification_url: str = Field(
        default="https://api.fonnte.com/send", description="Messaging API endpoint"
    )
    notification_token: str = Field(default="", description="Messaging API token")
    notification_country_code: str = Field(default="62", description="Default phone country code")
    notification_timeout_seconds: float = Field(default=10.0, description="Messaging request timeout")
    notification_workers: int = Field(default=2, description="Threads delivering notifications")

    # Application
    frontend_base_url: str = Field(default="http://localhost:3000", description="Link sent in notices")
    log_level: str = Field(default="INFO", description="Logging level")
    log_json: bool = Field(default=False, description="Render logs as JSON")
    worker_id: int = Field(default=1, description="Id generator worker number (0-1023)")

    model_config = SettingsConfigDict(
        env_prefix="BAKEORDER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level. Must be one of: {valid_levels}")
        return v.upper()

    @field_validator("worker_id")
    @classmethod
    def validate_worker_id(cls, v: int) -> int:
        if not 0 <= v <= 1023:
            raise ValueError("worker_id must be between 0 and 1023")
        return v


@lru_cache()
def get_settings() -> Settings:
    return Settings()
