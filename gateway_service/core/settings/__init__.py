"""Modular Pydantic Settings v2 configuration.

Settings are split by domain (extensions/graphql/logging), frozen, and
loaded through LRU-cached loaders:

    from gateway_service.core.settings import get_extension_settings

Configuration precedence (highest to lowest):
    1. init kwargs (testing/overrides)
    2. YAML/conf.d files (conf/<domain>.yaml, conf/<domain>.d/*.yaml)
    3. Environment variables
    4. .env file
    5. secrets_dir
"""

from __future__ import annotations

from .extensions import ExtensionSettings
from .graphql import GraphQLSettings
from .loader import (
    clear_all_caches,
    get_extension_settings,
    get_graphql_settings,
    get_logging_settings,
)
from .logs import LoggingSettings

__all__ = [
    "ExtensionSettings",
    "GraphQLSettings",
    "LoggingSettings",
    "clear_all_caches",
    "get_extension_settings",
    "get_graphql_settings",
    "get_logging_settings",
]
