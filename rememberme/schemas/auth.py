"""Schemas for the remember-me endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from rememberme.models.triplet import COOKIE_DELIMITER


class RememberRequest(BaseModel):
    """Identity the application has already authenticated by other means."""

    identity: str = Field(..., min_length=1, description="User identifier to remember.")

    @field_validator("identity")
    @classmethod
    def _reject_delimiter(cls, value: str) -> str:
        if COOKIE_DELIMITER in value:
            raise ValueError(f"Identity must not contain {COOKIE_DELIMITER!r}.")
        return value


class RememberResponse(BaseModel):
    identity: str
    expires_at: datetime


class LoginResponse(BaseModel):
    authenticated: bool
    identity: Optional[str] = None
    token_was_invalid: bool = False


class CheckResponse(BaseModel):
    valid: bool


class LogoutResponse(BaseModel):
    cleared: bool


__all__ = [
    "CheckResponse",
    "LoginResponse",
    "LogoutResponse",
    "RememberRequest",
    "RememberResponse",
]
