"""Store decorator that keeps only token digests in the wrapped backend."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from rememberme.clients.base import TripletStore
from rememberme.models.triplet import TripletState
from rememberme.services.token_digest import TokenDigestService


class HashedTripletStore:
    """
    Digest every token before delegating to ``inner``.

    The digest is deterministic, so lookups and compare-and-swap updates keep
    working while a dump of the backend no longer contains usable cookie values.
    """

    def __init__(self, inner: TripletStore, digest: TokenDigestService) -> None:
        self._inner = inner
        self._digest = digest

    @property
    def inner(self) -> TripletStore:
        return self._inner

    def find_triplet(
        self,
        identity: str,
        current_token: str,
        persistent_token: str,
        *,
        now: Optional[datetime] = None,
    ) -> TripletState:
        return self._inner.find_triplet(
            identity,
            self._digest.digest(current_token),
            self._digest.digest(persistent_token),
            now=now,
        )

    def store_triplet(
        self,
        identity: str,
        current_token: str,
        persistent_token: str,
        expires_at: datetime,
    ) -> None:
        self._inner.store_triplet(
            identity,
            self._digest.digest(current_token),
            self._digest.digest(persistent_token),
            expires_at,
        )

    def replace_triplet(
        self,
        identity: str,
        new_current_token: str,
        persistent_token: str,
        expires_at: datetime,
        *,
        expected_current_token: Optional[str] = None,
    ) -> bool:
        expected = None
        if expected_current_token is not None:
            expected = self._digest.digest(expected_current_token)
        return self._inner.replace_triplet(
            identity,
            self._digest.digest(new_current_token),
            self._digest.digest(persistent_token),
            expires_at,
            expected_current_token=expected,
        )

    def clean_triplet(self, identity: str, persistent_token: str) -> bool:
        return self._inner.clean_triplet(identity, self._digest.digest(persistent_token))

    def clean_all_triplets(self, identity: str) -> int:
        return self._inner.clean_all_triplets(identity)

    def clean_expired_tokens(self, cutoff: datetime) -> int:
        return self._inner.clean_expired_tokens(cutoff)


__all__ = ["HashedTripletStore"]
