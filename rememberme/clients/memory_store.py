"""Process-local triplet storage used for tests and single-worker deployments."""

from __future__ import annotations

import threading
from datetime import datetime, timezone
from typing import Dict, Optional, Tuple

from rememberme.clients.base import tokens_match
from rememberme.models.triplet import Triplet, TripletState


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class InMemoryTripletStore:
    """Dictionary of triplets keyed by ``(identity, persistent_token)``."""

    def __init__(self) -> None:
        self._triplets: Dict[Tuple[str, str], Triplet] = {}
        self._lock = threading.Lock()

    def find_triplet(
        self,
        identity: str,
        current_token: str,
        persistent_token: str,
        *,
        now: Optional[datetime] = None,
    ) -> TripletState:
        now = _as_utc(now or datetime.now(timezone.utc))
        with self._lock:
            triplet = self._triplets.get((identity, persistent_token))
        if triplet is None or triplet.is_expired(now):
            return TripletState.NOT_FOUND
        if not tokens_match(triplet.current_token, current_token):
            return TripletState.INVALID
        return TripletState.FOUND

    def store_triplet(
        self,
        identity: str,
        current_token: str,
        persistent_token: str,
        expires_at: datetime,
    ) -> None:
        triplet = Triplet(
            identity=identity,
            current_token=current_token,
            persistent_token=persistent_token,
            expires_at=_as_utc(expires_at),
        )
        with self._lock:
            self._triplets[(identity, persistent_token)] = triplet

    def replace_triplet(
        self,
        identity: str,
        new_current_token: str,
        persistent_token: str,
        expires_at: datetime,
        *,
        expected_current_token: Optional[str] = None,
    ) -> bool:
        key = (identity, persistent_token)
        with self._lock:
            triplet = self._triplets.get(key)
            if triplet is None:
                return False
            if (
                expected_current_token is not None
                and triplet.current_token != expected_current_token
            ):
                return False
            self._triplets[key] = triplet.model_copy(
                update={"current_token": new_current_token, "expires_at": _as_utc(expires_at)}
            )
        return True

    def clean_triplet(self, identity: str, persistent_token: str) -> bool:
        with self._lock:
            return self._triplets.pop((identity, persistent_token), None) is not None

    def clean_all_triplets(self, identity: str) -> int:
        with self._lock:
            keys = [key for key in self._triplets if key[0] == identity]
            for key in keys:
                del self._triplets[key]
        return len(keys)

    def clean_expired_tokens(self, cutoff: datetime) -> int:
        cutoff = _as_utc(cutoff)
        with self._lock:
            keys = [
                key
                for key, triplet in self._triplets.items()
                if triplet.is_expired(cutoff)
            ]
            for key in keys:
                del self._triplets[key]
        return len(keys)

    def list_triplets(self, identity: Optional[str] = None) -> list[Triplet]:
        """Return a snapshot of stored triplets, optionally for one identity."""
        with self._lock:
            return [
                triplet
                for (owner, _), triplet in self._triplets.items()
                if identity is None or owner == identity
            ]


__all__ = ["InMemoryTripletStore"]
