"""Keyed hashing for tokens persisted at rest."""

from __future__ import annotations

import hashlib

from cryptography.hazmat.primitives import hashes, hmac


class TokenDigestService:
    """Derive a deterministic HMAC-SHA256 digest for token values."""

    def __init__(self, *, secret: str) -> None:
        if not secret:
            raise ValueError("Token digest secret must be provided.")
        self._key = hashlib.sha256(secret.encode("utf-8")).digest()

    def digest(self, token: str) -> str:
        """Return the hex digest of ``token``."""
        mac = hmac.HMAC(self._key, hashes.SHA256())
        mac.update(token.encode("utf-8"))
        return mac.finalize().hex()


__all__ = ["TokenDigestService"]
