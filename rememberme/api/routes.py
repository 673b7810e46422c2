"""
FastAPI routes exposing the remember-me cookie lifecycle.
"""

from __future__ import annotations

import hmac
import logging
from http import HTTPStatus
from typing import Annotated, Any, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from fastapi.responses import JSONResponse

from rememberme.clients import ResponseCookieTransport
from rememberme.dependencies import get_app_settings, get_authenticator
from rememberme.schemas import (
    CheckResponse,
    LoginResponse,
    LogoutResponse,
    RememberRequest,
    RememberResponse,
)
from rememberme.services import Authenticator

router = APIRouter()
logger = logging.getLogger(__name__)


def _cookie_transport(request: Request, settings: Any) -> ResponseCookieTransport:
    remember_me = settings.remember_me
    return ResponseCookieTransport(
        request.cookies,
        path=remember_me.cookie_path,
        domain=remember_me.cookie_domain,
        secure=remember_me.cookie_secure,
        samesite=remember_me.cookie_samesite,
    )


def _bound_authenticator(
    request: Request, authenticator: Authenticator, settings: Any
) -> Authenticator:
    """Fold the client address into the salt when address binding is enabled."""
    if settings.remember_me.bind_to_client_address and request.client:
        return authenticator.with_salt(authenticator.config.salt + request.client.host)
    return authenticator


def require_issuer_key(
    settings: Annotated[Any, Depends(get_app_settings)],
    x_issuer_key: Optional[str] = Header(default=None),
) -> None:
    """Only trusted callers that already verified credentials may start a chain."""
    expected = settings.security.issuer_api_key
    if not expected:
        raise HTTPException(
            status_code=HTTPStatus.SERVICE_UNAVAILABLE,
            detail="Cookie issuing is not configured.",
        )
    if not x_issuer_key or not hmac.compare_digest(
        x_issuer_key.encode("utf-8"), expected.encode("utf-8")
    ):
        raise HTTPException(
            status_code=HTTPStatus.FORBIDDEN,
            detail="Invalid issuer key.",
        )


@router.get("/health", status_code=HTTPStatus.OK)
async def healthcheck() -> dict:
    """Simple health endpoint for monitoring."""
    return {"status": "ok"}


@router.post(
    "/auth/remember",
    status_code=HTTPStatus.OK,
    response_model=RememberResponse,
    dependencies=[Depends(require_issuer_key)],
)
def issue_remember_me_cookie(
    payload: RememberRequest,
    request: Request,
    authenticator: Annotated[Authenticator, Depends(get_authenticator)],
    settings: Annotated[Any, Depends(get_app_settings)],
) -> JSONResponse:
    """Start a persistent login chain and set its cookie."""
    cookie = _cookie_transport(request, settings)
    _bound_authenticator(request, authenticator, settings).create_cookie(
        payload.identity, cookie
    )
    written = cookie.pending[-1]
    body = RememberResponse(identity=payload.identity, expires_at=written.expires_at)
    return cookie.apply(JSONResponse(body.model_dump(mode="json")))


@router.post("/auth/login", response_model=LoginResponse)
def login_with_remember_me_cookie(
    request: Request,
    authenticator: Annotated[Authenticator, Depends(get_authenticator)],
    settings: Annotated[Any, Depends(get_app_settings)],
) -> JSONResponse:
    """Authenticate from the cookie, rotating its token on success."""
    cookie = _cookie_transport(request, settings)
    result = _bound_authenticator(request, authenticator, settings).login(cookie)
    if result.token_was_invalid:
        logger.warning("Rejected replayed remember-me cookie for %s.", result.identity)

    body = LoginResponse(
        authenticated=result.authenticated,
        identity=result.identity if result.authenticated else None,
        token_was_invalid=result.token_was_invalid,
    )
    status_code = HTTPStatus.OK if result.authenticated else HTTPStatus.UNAUTHORIZED
    response = JSONResponse(body.model_dump(mode="json"), status_code=status_code)
    return cookie.apply(response)


@router.get("/auth/check", response_model=CheckResponse)
def check_remember_me_cookie(
    request: Request,
    authenticator: Annotated[Authenticator, Depends(get_authenticator)],
    settings: Annotated[Any, Depends(get_app_settings)],
) -> CheckResponse:
    """Report whether the cookie is currently valid without consuming it."""
    cookie = _cookie_transport(request, settings)
    valid = _bound_authenticator(request, authenticator, settings).cookie_is_valid(cookie)
    return CheckResponse(valid=valid)


@router.post("/auth/logout", response_model=LogoutResponse)
def logout_remember_me_cookie(
    request: Request,
    authenticator: Annotated[Authenticator, Depends(get_authenticator)],
    settings: Annotated[Any, Depends(get_app_settings)],
) -> JSONResponse:
    """Expire the cookie and forget the chain it names."""
    cookie = _cookie_transport(request, settings)
    cleared = _bound_authenticator(request, authenticator, settings).clear_cookie(cookie)
    body = LogoutResponse(cleared=cleared)
    return cookie.apply(JSONResponse(body.model_dump(mode="json")))
