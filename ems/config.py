# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Application configuration."""

from datetime import timedelta
from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ems.security import PASSWORD_MAX_BYTES, password_too_long

DEFAULT_RESERVED_USERNAME = "Admin"
DEFAULT_RESERVED_PASSWORD = "ems137245"  # nosec - documented bootstrap default  # noqa: S105


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables.

    Constructed once at process start and handed to the services that need it.
    Core logic never reads configuration from module globals.
    """

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Required: the process refuses to start without a signing key.
    secret_key: str = Field(repr=False)

    database_url: str = "sqlite:///./ems.db"
    environment: Literal["development", "production", "test"] = "development"
    log_level: str = "INFO"
    api_host: str = "127.0.0.1"
    api_port: int = 8000

    reserved_username: str = DEFAULT_RESERVED_USERNAME
    reserved_password: str = Field(default=DEFAULT_RESERVED_PASSWORD, repr=False)

    session_ttl_days: int = Field(default=7, gt=0)
    session_cookie_name: str = "ems_session"
    token_algorithm: str = "HS256"
    token_issuer: str = "ems"

    @field_validator("reserved_password")
    @classmethod
    def reserved_password_fits_hash(cls, v: str) -> str:
        if password_too_long(v):
            raise ValueError(f"must be at most {PASSWORD_MAX_BYTES} bytes")
        return v

    @property
    def session_ttl(self) -> timedelta:
        """Lifetime of an issued session token."""
        return timedelta(days=self.session_ttl_days)

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


def default_credentials_in_use(settings: Settings) -> bool:
    """Return True when the reserved account still uses built-in credentials."""
    return (
        "reserved_username" not in settings.model_fields_set
        or "reserved_password" not in settings.model_fields_set
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
