"""Contracts for the external collaborators the authenticator depends on."""

from __future__ import annotations

import hmac
from datetime import datetime
from typing import Optional, Protocol

from rememberme.models.triplet import TripletState


def tokens_match(stored: str, presented: str) -> bool:
    """Constant-time token comparison that accepts any unicode input."""
    return hmac.compare_digest(stored.encode("utf-8"), presented.encode("utf-8"))


class TripletStore(Protocol):
    """Durable storage for login triplets keyed by identity and persistent token."""

    def find_triplet(
        self,
        identity: str,
        current_token: str,
        persistent_token: str,
        *,
        now: Optional[datetime] = None,
    ) -> TripletState:
        """
        Classify a presented triplet.

        FOUND when an unexpired triplet matches both tokens, INVALID when an
        unexpired triplet exists for the persistent token but holds a different
        current token, NOT_FOUND otherwise.
        """

    def store_triplet(
        self,
        identity: str,
        current_token: str,
        persistent_token: str,
        expires_at: datetime,
    ) -> None:
        """Create a triplet, overwriting one with the same persistent token."""

    def replace_triplet(
        self,
        identity: str,
        new_current_token: str,
        persistent_token: str,
        expires_at: datetime,
        *,
        expected_current_token: Optional[str] = None,
    ) -> bool:
        """
        Atomically set a new current token and expiry.

        With ``expected_current_token`` the update only applies while the stored
        current token still equals it. Returns whether a triplet was updated.
        """

    def clean_triplet(self, identity: str, persistent_token: str) -> bool:
        """Delete one triplet and report whether it existed."""

    def clean_all_triplets(self, identity: str) -> int:
        """Delete every triplet of ``identity`` and return how many were removed."""

    def clean_expired_tokens(self, cutoff: datetime) -> int:
        """Delete triplets expiring at or before ``cutoff``."""


class CookieTransport(Protocol):
    """Reads and writes a single named value on the client channel."""

    def read(self, name: str) -> Optional[str]:
        """Return the inbound value, or ``None`` when absent."""

    def write(self, name: str, value: str, expires_at: datetime) -> None:
        """Send a value; an expiry in the past deletes it on the client."""


__all__ = ["CookieTransport", "TripletStore", "tokens_match"]
