"""
Settings dependency for the remember-me routes.

Routes read cookie attributes, address binding and the issuer key from this
object; tests swap it through ``app.dependency_overrides``.
"""

from functools import lru_cache

from fastapi import Depends

from rememberme.core.config import AppSettings, get_settings


@lru_cache()
def _settings_singleton() -> AppSettings:
    """Build settings once per process."""
    return get_settings()


def get_app_settings() -> AppSettings:
    """Return the settings used for cookie attributes and issuer checks."""
    return _settings_singleton()


SettingsDependency = Depends(get_app_settings)

__all__ = ["SettingsDependency", "get_app_settings"]
