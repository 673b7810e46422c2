"""Pydantic schemas exposed by the API."""

from .auth import (
    CheckResponse,
    LoginResponse,
    LogoutResponse,
    RememberRequest,
    RememberResponse,
)

__all__ = [
    "CheckResponse",
    "LoginResponse",
    "LogoutResponse",
    "RememberRequest",
    "RememberResponse",
]
