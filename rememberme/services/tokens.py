"""Random token generation for login triplets."""

from __future__ import annotations

import base64
import secrets
from typing import Protocol

MIN_TOKEN_BYTES = 16
TOKEN_FORMATS = ("hex", "base64")


class TokenGenerator(Protocol):
    def create_token(self) -> str:
        """Return a fresh, unpredictable token string."""


class DefaultTokenGenerator:
    """Draws tokens from the operating system CSPRNG."""

    def __init__(self, token_bytes: int = MIN_TOKEN_BYTES, token_format: str = "hex") -> None:
        if token_bytes < MIN_TOKEN_BYTES:
            raise ValueError(
                f"Tokens need at least {MIN_TOKEN_BYTES} random bytes, got {token_bytes}."
            )
        if token_format not in TOKEN_FORMATS:
            raise ValueError(f"Unsupported token format: {token_format!r}")
        self._token_bytes = token_bytes
        self._token_format = token_format

    @property
    def token_length(self) -> int:
        """Length of every token this generator produces."""
        if self._token_format == "hex":
            return self._token_bytes * 2
        return len(self._format(bytes(self._token_bytes)))

    def create_token(self) -> str:
        return self._format(secrets.token_bytes(self._token_bytes))

    def _format(self, raw: bytes) -> str:
        if self._token_format == "hex":
            return raw.hex()
        return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


__all__ = ["DefaultTokenGenerator", "MIN_TOKEN_BYTES", "TOKEN_FORMATS", "TokenGenerator"]
