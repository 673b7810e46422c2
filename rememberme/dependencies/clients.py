"""
Factory functions to provide the triplet store and authenticator as FastAPI dependencies.
"""

from functools import lru_cache
from rememberme.clients import (
    DynamoDBTripletStore,
    HashedTripletStore,
    InMemoryTripletStore,
    SQLiteTripletStore,
    TripletStore,
)
from rememberme.core.config import AppSettings, get_settings
from rememberme.services import (
    Authenticator,
    AuthenticatorConfig,
    DefaultTokenGenerator,
    TokenDigestService,
)


@lru_cache()
def _settings() -> AppSettings:
    """Internal helper to cache settings for client factories."""
    return get_settings()


def build_triplet_store(settings: AppSettings) -> TripletStore:
    """Construct the configured storage backend, hashing tokens when a secret is set."""
    backend = settings.storage.backend
    store: TripletStore
    if backend == "memory":
        store = InMemoryTripletStore()
    elif backend == "dynamodb":
        store = DynamoDBTripletStore(settings.storage)
    else:
        store = SQLiteTripletStore(settings.storage.sqlite_path)

    secret = settings.security.token_digest_secret
    if secret:
        store = HashedTripletStore(store, TokenDigestService(secret=secret))
    return store


@lru_cache()
def get_triplet_store() -> TripletStore:
    """Provide the shared triplet store."""
    return build_triplet_store(_settings())


@lru_cache()
def get_token_generator() -> DefaultTokenGenerator:
    """Provide the token generator configured for cookie tokens."""
    settings = _settings().remember_me
    return DefaultTokenGenerator(
        token_bytes=settings.token_bytes,
        token_format=settings.token_format,
    )


@lru_cache()
def get_authenticator() -> Authenticator:
    """Provide the process-wide authenticator."""
    settings = _settings()
    return Authenticator(
        store=get_triplet_store(),
        token_generator=get_token_generator(),
        config=AuthenticatorConfig.from_settings(settings.remember_me),
    )


__all__ = [
    "build_triplet_store",
    "get_authenticator",
    "get_token_generator",
    "get_triplet_store",
]
