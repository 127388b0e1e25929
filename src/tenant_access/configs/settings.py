from __future__ import annotations

from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Central configuration.

    - Values loaded from `.env`
    - Comma-separated lists for multi-value settings like CORS_ORIGINS
    """

    # ----------------------------
    # Service
    # ----------------------------
    SERVICE_NAME: str = "tenant-access"
    ENVIRONMENT: str = "development"
    log_level: str = "INFO"

    # ----------------------------
    # Backing accounting API
    # ----------------------------
    api_base_url: str = "http://localhost:5000"
    client_permissions_path: str = "/api/clients/my/permissions"
    client_record_path: str = "/api/clients/my"
    user_permissions_path: str = "/api/user-permissions/me/effective"
    # None means no timeout; a hung request keeps the store loading
    http_timeout: float | None = None

    # ----------------------------
    # Capability store
    # ----------------------------
    # drop responses that land after a newer fetch was issued
    fence_refetch: bool = False

    # ----------------------------
    # Session
    # ----------------------------
    email_domain: str = "accountech.com"
    customer_logout_path: str = "/client-login"
    default_logout_path: str = "/login"

    # ----------------------------
    # CORS
    # ----------------------------
    # store as raw string list from env; we will normalize in code
    CORS_ORIGINS: Any = Field(default_factory=list)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


_settings: Settings | None = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
