"""
Domain models for persisted login triplets and the cookie that carries them.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

COOKIE_DELIMITER = "|"


class TripletState(str, Enum):
    """Outcome of looking up a presented triplet in storage."""

    FOUND = "found"
    NOT_FOUND = "not_found"
    INVALID = "invalid"


class Triplet(BaseModel):
    """Represents one persistent login chain as held by a storage backend."""

    identity: str = Field(..., description="Application supplied user identifier.")
    current_token: str = Field(..., description="One-time token, rotated on each login.")
    persistent_token: str = Field(
        ..., description="Token naming this chain; stable across rotations."
    )
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at <= now


@dataclass(frozen=True)
class CookieValue:
    """The three segments carried in the client-side cookie."""

    identity: str
    current_token: str
    persistent_token: str

    @classmethod
    def parse(cls, raw: Optional[str]) -> Optional["CookieValue"]:
        """
        Split a raw cookie value into its segments.

        Returns ``None`` when the value is absent or malformed. Splitting stops
        after the second delimiter, so anything past it belongs to the
        persistent token.
        """
        if not raw:
            return None
        parts = raw.split(COOKIE_DELIMITER, 2)
        if len(parts) < 3 or not all(parts):
            return None
        return cls(*parts)

    def serialize(self) -> str:
        return COOKIE_DELIMITER.join(
            (self.identity, self.current_token, self.persistent_token)
        )


@dataclass(frozen=True)
class LoginResult:
    """
    Result of a login attempt; truthy only when the user was authenticated.

    ``identity`` is the authenticated principal for FOUND and the identity the
    stale cookie claimed for INVALID, so callers can alert that user.
    """

    state: Optional[TripletState] = None
    identity: Optional[str] = None

    @property
    def authenticated(self) -> bool:
        return self.state is TripletState.FOUND and self.identity is not None

    @property
    def token_was_invalid(self) -> bool:
        """True when a stale token was presented for a live chain."""
        return self.state is TripletState.INVALID

    def __bool__(self) -> bool:
        return self.authenticated


__all__ = [
    "COOKIE_DELIMITER",
    "CookieValue",
    "LoginResult",
    "Triplet",
    "TripletState",
]
