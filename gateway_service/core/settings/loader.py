"""LRU-cached settings loaders.

Settings are loaded and validated once, then cached for the lifetime of the process.

Usage:
    from gateway_service.core.settings.loader import get_extension_settings

    settings = get_extension_settings()  # First call: loads and validates
    settings = get_extension_settings()  # Subsequent calls: returns cached instance

Testing:
    In tests, clear the cache to force reload:
    clear_all_caches()
"""

from __future__ import annotations

from functools import lru_cache

from .extensions import ExtensionSettings
from .graphql import GraphQLSettings
from .logs import LoggingSettings


@lru_cache(maxsize=1)
def get_extension_settings() -> ExtensionSettings:
    """Get cached extension settings.

    Returns:
        Validated and frozen ExtensionSettings instance.
    """
    return ExtensionSettings()


@lru_cache(maxsize=1)
def get_graphql_settings() -> GraphQLSettings:
    """Get cached GraphQL settings.

    Returns:
        Validated and frozen GraphQLSettings instance.
    """
    return GraphQLSettings()


@lru_cache(maxsize=1)
def get_logging_settings() -> LoggingSettings:
    """Get cached logging settings.

    Returns:
        Validated and frozen LoggingSettings instance.
    """
    return LoggingSettings()


def clear_all_caches() -> None:
    """Clear all settings caches.

    Useful for testing or when you need to force reload settings.
    """
    get_extension_settings.cache_clear()
    get_graphql_settings.cache_clear()
    get_logging_settings.cache_clear()
