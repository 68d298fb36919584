"""Runtime configuration based on environment variables."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, Field, HttpUrl, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class ApiSettings(BaseModel):
    base_url: HttpUrl = Field(
        default="http://localhost:3000/api",
        description="Root of the backend API; endpoint paths are appended to it.",
    )
    token: SecretStr | None = None
    request_timeout_seconds: float = Field(default=15.0, gt=0, le=120)
    read_max_attempts: int = Field(default=3, ge=1, le=10)
    retry_base_delay: float = Field(default=0.5, ge=0)


class PaymentSettings(BaseModel):
    default_plan: str = Field(default="premium", min_length=1)
    plan_cache_seconds: int | None = Field(
        default=None,
        ge=1,
        description="Optional max age of the cached plan catalog; None keeps it for the session.",
    )
    notification_history_limit: int = Field(
        default=50,
        ge=1,
        description="Undrained notifications kept per session; older ones are dropped first.",
    )


class BillingSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="HUNTR_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    environment: Literal["dev", "staging", "prod"] = "dev"
    default_language: str = "en"

    api: ApiSettings = Field(default_factory=ApiSettings)
    payments: PaymentSettings = Field(default_factory=PaymentSettings)


@lru_cache
def get_settings() -> BillingSettings:
    """Return cached settings instance."""

    return BillingSettings()


__all__ = [
    "ApiSettings",
    "BillingSettings",
    "PaymentSettings",
    "get_settings",
]
