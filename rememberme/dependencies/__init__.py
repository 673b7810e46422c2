"""Expose dependency helpers for FastAPI routers."""

from .clients import (
    build_triplet_store,
    get_authenticator,
    get_token_generator,
    get_triplet_store,
)
from .config import SettingsDependency, get_app_settings

__all__ = [
    "SettingsDependency",
    "build_triplet_store",
    "get_app_settings",
    "get_authenticator",
    "get_token_generator",
    "get_triplet_store",
]
