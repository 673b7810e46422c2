"""Service layer exports."""

from .authenticator import Authenticator, AuthenticatorConfig
from .token_digest import TokenDigestService
from .tokens import DefaultTokenGenerator, TokenGenerator

__all__ = [
    "Authenticator",
    "AuthenticatorConfig",
    "DefaultTokenGenerator",
    "TokenDigestService",
    "TokenGenerator",
]
