"""
Rotating-triplet protocol behind the persistent login cookie.

Every successful login swaps the current token for a fresh one while the
persistent token stays fixed. Presenting a persistent token together with a
current token that has already been rotated away is treated as evidence that
the cookie was copied, and the chain is revoked.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from rememberme.clients.base import CookieTransport, TripletStore
from rememberme.core.config import RememberMeSettings
from rememberme.models.triplet import (
    COOKIE_DELIMITER,
    CookieValue,
    LoginResult,
    TripletState,
)
from rememberme.services.tokens import DefaultTokenGenerator, TokenGenerator

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class AuthenticatorConfig:
    """Immutable protocol options; derive variants with ``dataclasses.replace``."""

    cookie_name: str = "REMEMBERME"
    expire_time: int = 604800
    salt: str = ""
    clean_stored_tokens_on_invalid_result: bool = True
    clean_expired_tokens_on_login: bool = False

    def __post_init__(self) -> None:
        if self.expire_time <= 0:
            raise ValueError("expire_time must be a positive number of seconds.")
        if not self.cookie_name:
            raise ValueError("cookie_name must not be empty.")

    @classmethod
    def from_settings(cls, settings: RememberMeSettings) -> "AuthenticatorConfig":
        return cls(
            cookie_name=settings.cookie_name,
            expire_time=settings.expire_time,
            salt=settings.salt,
            clean_stored_tokens_on_invalid_result=settings.clean_stored_tokens_on_invalid_result,
            clean_expired_tokens_on_login=settings.clean_expired_tokens_on_login,
        )


class Authenticator:
    """Creates, validates, rotates and revokes persistent login triplets."""

    def __init__(
        self,
        store: TripletStore,
        token_generator: Optional[TokenGenerator] = None,
        config: Optional[AuthenticatorConfig] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self._store = store
        self._tokens = token_generator or DefaultTokenGenerator()
        self._config = config or AuthenticatorConfig()
        self._clock = clock or _utcnow

    @property
    def config(self) -> AuthenticatorConfig:
        return self._config

    @property
    def store(self) -> TripletStore:
        return self._store

    def with_config(self, **changes) -> "Authenticator":
        """Return an authenticator sharing collaborators but with other options."""
        return Authenticator(
            self._store,
            self._tokens,
            replace(self._config, **changes),
            self._clock,
        )

    def with_salt(self, salt: str) -> "Authenticator":
        return self.with_config(salt=salt)

    def login(self, cookie: CookieTransport) -> LoginResult:
        """
        Authenticate from the cookie and rotate its current token.

        Returns a truthy result carrying the identity on success. A falsy
        result with ``token_was_invalid`` set means a stale token was
        presented for a live chain; the cookie has been cleared and, unless
        disabled, every chain of that identity revoked.
        """
        values = self._read_cookie(cookie)
        if values is None:
            logger.debug("No usable remember-me cookie on request.")
            return LoginResult()

        now = self._clock()
        if self._config.clean_expired_tokens_on_login:
            removed = self._store.clean_expired_tokens(now)
            logger.debug("Removed %s expired triplets before login.", removed)

        state = self._lookup(values, now)
        if state is TripletState.FOUND:
            if self._rotate(values, cookie, now):
                logger.info("Rotated remember-me token for identity %s.", values.identity)
                return LoginResult(TripletState.FOUND, values.identity)
            state = self._lookup(values, now)
            if state is TripletState.FOUND:
                # The chain changed between lookup and rotation; never accept it.
                state = TripletState.NOT_FOUND

        if state is TripletState.INVALID:
            self._handle_invalid(values, cookie, now)
            return LoginResult(TripletState.INVALID, values.identity)

        logger.debug("No live triplet for identity %s.", values.identity)
        return LoginResult(TripletState.NOT_FOUND)

    def cookie_is_valid(self, cookie: CookieTransport) -> bool:
        """Check the cookie against storage without rotating or revoking anything."""
        values = self._read_cookie(cookie)
        if values is None:
            return False
        return self._lookup(values, self._clock()) is TripletState.FOUND

    def create_cookie(self, identity: str, cookie: CookieTransport) -> CookieValue:
        """
        Start a new login chain for an identity the application already verified.
        """
        if not identity or COOKIE_DELIMITER in identity:
            raise ValueError(
                f"Identity must be non-empty and must not contain {COOKIE_DELIMITER!r}."
            )
        current_token = self._tokens.create_token()
        persistent_token = self._tokens.create_token()
        expires_at = self._clock() + timedelta(seconds=self._config.expire_time)

        self._store.store_triplet(
            identity,
            self._salted(current_token),
            self._salted(persistent_token),
            expires_at,
        )
        value = CookieValue(identity, current_token, persistent_token)
        cookie.write(self._config.cookie_name, value.serialize(), expires_at)
        logger.info("Created remember-me chain for identity %s.", identity)
        return value

    def clear_cookie(self, cookie: CookieTransport) -> bool:
        """
        Log out the chain named by the cookie.

        Expires the cookie and deletes the one matching triplet; other chains
        of the same identity stay valid. Returns ``False`` when no cookie was
        sent or no stored triplet was removed.
        """
        raw = cookie.read(self._config.cookie_name)
        if not raw:
            return False

        values = CookieValue.parse(raw)
        self._expire_cookie(cookie, self._clock())
        if values is None:
            return False

        removed = self._store.clean_triplet(
            values.identity, self._salted(values.persistent_token)
        )
        logger.info(
            "Cleared remember-me cookie for identity %s (triplet removed: %s).",
            values.identity,
            removed,
        )
        return removed

    def _read_cookie(self, cookie: CookieTransport) -> Optional[CookieValue]:
        return CookieValue.parse(cookie.read(self._config.cookie_name))

    def _salted(self, token: str) -> str:
        return token + self._config.salt

    def _lookup(self, values: CookieValue, now: datetime) -> TripletState:
        return self._store.find_triplet(
            values.identity,
            self._salted(values.current_token),
            self._salted(values.persistent_token),
            now=now,
        )

    def _rotate(self, values: CookieValue, cookie: CookieTransport, now: datetime) -> bool:
        expires_at = now + timedelta(seconds=self._config.expire_time)
        new_token = self._tokens.create_token()
        replaced = self._store.replace_triplet(
            values.identity,
            self._salted(new_token),
            self._salted(values.persistent_token),
            expires_at,
            expected_current_token=self._salted(values.current_token),
        )
        if not replaced:
            logger.info(
                "Lost rotation race for identity %s; re-reading stored state.",
                values.identity,
            )
            return False
        rotated = CookieValue(values.identity, new_token, values.persistent_token)
        cookie.write(self._config.cookie_name, rotated.serialize(), expires_at)
        return True

    def _handle_invalid(self, values: CookieValue, cookie: CookieTransport, now: datetime) -> None:
        self._expire_cookie(cookie, now)
        logger.warning(
            "Stale remember-me token presented for identity %s; possible cookie theft.",
            values.identity,
        )
        if self._config.clean_stored_tokens_on_invalid_result:
            removed = self._store.clean_all_triplets(values.identity)
            logger.warning(
                "Revoked %s remember-me chains for identity %s.", removed, values.identity
            )

    def _expire_cookie(self, cookie: CookieTransport, now: datetime) -> None:
        cookie.write(
            self._config.cookie_name,
            "",
            now - timedelta(seconds=self._config.expire_time),
        )


__all__ = ["Authenticator", "AuthenticatorConfig", "Clock"]
