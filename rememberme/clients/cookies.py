"""Cookie transports binding the authenticator to a concrete client channel."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, List, Mapping, Optional

from fastapi import Response


@dataclass(frozen=True)
class CookieWrite:
    name: str
    value: str
    expires_at: datetime


class MemoryCookieTransport:
    """
    Dictionary-backed cookie jar for tests and non-HTTP callers.

    Writing an empty value removes the cookie, mirroring how a browser drops
    a cookie sent back with an expiry in the past.
    """

    def __init__(self, cookies: Optional[Mapping[str, str]] = None) -> None:
        self.cookies: Dict[str, str] = dict(cookies or {})
        self.writes: List[CookieWrite] = []

    def read(self, name: str) -> Optional[str]:
        return self.cookies.get(name)

    def write(self, name: str, value: str, expires_at: datetime) -> None:
        self.writes.append(CookieWrite(name, value, expires_at))
        if not value:
            self.cookies.pop(name, None)
        else:
            self.cookies[name] = value

    @property
    def last_write(self) -> Optional[CookieWrite]:
        return self.writes[-1] if self.writes else None


class ResponseCookieTransport:
    """
    Reads one request's cookies and buffers writes for its response.

    Buffered values shadow the inbound ones, so a cookie cleared earlier in the
    same request reads as absent. Call ``apply`` on the outgoing response.
    """

    def __init__(
        self,
        request_cookies: Mapping[str, str],
        *,
        path: str = "/",
        domain: Optional[str] = None,
        secure: bool = True,
        httponly: bool = True,
        samesite: str = "lax",
    ) -> None:
        self._inbound = dict(request_cookies)
        self._pending: Dict[str, CookieWrite] = {}
        self._cookie_params = {
            "path": path,
            "domain": domain,
            "secure": secure,
            "httponly": httponly,
            "samesite": samesite,
        }

    def read(self, name: str) -> Optional[str]:
        if name in self._pending:
            return self._pending[name].value or None
        return self._inbound.get(name)

    def write(self, name: str, value: str, expires_at: datetime) -> None:
        self._pending[name] = CookieWrite(name, value, expires_at)

    @property
    def pending(self) -> List[CookieWrite]:
        return list(self._pending.values())

    def apply(self, response: Response) -> Response:
        """Attach buffered cookie writes to ``response`` and return it."""
        now = datetime.now(timezone.utc)
        for write in self._pending.values():
            max_age = int((write.expires_at - now).total_seconds())
            response.set_cookie(
                key=write.name,
                value=write.value,
                max_age=max(max_age, 0),
                expires=write.expires_at.astimezone(timezone.utc),
                **self._cookie_params,
            )
        return response


__all__ = ["CookieWrite", "MemoryCookieTransport", "ResponseCookieTransport"]
