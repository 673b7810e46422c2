"""
Application configuration models and helpers.

Centralizes settings management so the HTTP service and the maintenance
scripts share a consistent configuration surface.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

import os

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _load_env_file(path: str = ".env") -> None:
    """Best-effort load key=value pairs from a .env file without extra deps."""
    env_path = Path(path)
    if not env_path.exists():
        return
    for raw_line in env_path.read_text().splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        key = key.strip()
        if not key or key in os.environ:
            continue
        cleaned = value.strip().strip('"').strip("'")
        os.environ[key] = cleaned


_load_env_file()


class RememberMeSettings(BaseSettings):
    """Behaviour of the persistent login cookie and its token triplets."""

    model_config = SettingsConfigDict(env_prefix="REMEMBERME_")

    cookie_name: str = "REMEMBERME"
    expire_time: int = Field(
        604800,
        gt=0,
        description="Seconds until both the cookie and the stored triplet expire.",
    )
    salt: str = Field(
        "",
        description="Out-of-band value appended to tokens before storage lookups.",
    )
    clean_stored_tokens_on_invalid_result: bool = True
    clean_expired_tokens_on_login: bool = False
    bind_to_client_address: bool = Field(
        False,
        description="Append the client address to the salt for every request.",
    )
    token_bytes: int = Field(16, ge=16)
    token_format: Literal["hex", "base64"] = "hex"
    cookie_path: str = "/"
    cookie_domain: Optional[str] = None
    cookie_secure: bool = True
    cookie_samesite: Literal["lax", "strict", "none"] = "lax"

    @field_validator("cookie_name")
    @classmethod
    def _reject_blank_cookie_name(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Cookie name must not be blank.")
        return value.strip()


class StorageSettings(BaseSettings):
    """Selects and configures the triplet storage backend."""

    model_config = SettingsConfigDict(env_prefix="STORAGE_")

    backend: Literal["sqlite", "memory", "dynamodb"] = "sqlite"
    sqlite_path: str = "data/rememberme.sqlite3"
    dynamodb_table_name: Optional[str] = None
    aws_region: str = Field("us-east-1", validation_alias="AWS_REGION")


class SecuritySettings(BaseSettings):
    """Security-related configuration."""

    model_config = SettingsConfigDict(env_prefix="SECURITY_")

    token_digest_secret: Optional[str] = Field(
        None,
        description=(
            "Secret keying the HMAC applied to tokens before they are persisted."
        ),
    )
    issuer_api_key: Optional[str] = Field(
        None,
        description="Shared key required by the cookie-issuing endpoint.",
    )


class AppSettings(BaseSettings):
    """Root settings object for the FastAPI application."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    environment: str = Field("development", validation_alias="APP_ENV")
    log_level: str = Field("INFO", validation_alias="APP_LOG_LEVEL")
    remember_me: RememberMeSettings = Field(default_factory=RememberMeSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    security: SecuritySettings = Field(default_factory=SecuritySettings)


@lru_cache()
def get_settings() -> AppSettings:
    """Return a cached settings object."""
    return AppSettings()


__all__ = [
    "AppSettings",
    "RememberMeSettings",
    "SecuritySettings",
    "StorageSettings",
    "get_settings",
]
