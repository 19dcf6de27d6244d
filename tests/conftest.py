"""Pytest configuration and shared fixtures.

Organization:
    - Environment: settings never read the developer's conf/ directory
    - Settings Fixtures: cache reset and ready-made settings instances
    - Extension Fixtures: in-memory extension loader and data sources
"""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from tests.fixtures import SHOP_SCHEMA, FakeExtensionLoader, ShopApi

# Settings must not pick up conf/*.yaml from the working directory
_NO_CONF_DIR = str(Path(__file__).parent / "fixtures" / "no-conf")
os.environ.setdefault("EXTENSIONS_CONFIG_DIR", _NO_CONF_DIR)
os.environ.setdefault("GRAPHQL_CONFIG_DIR", _NO_CONF_DIR)
os.environ.setdefault("LOGGING_CONFIG_DIR", _NO_CONF_DIR)
os.environ.setdefault("LOG_JSON_LOGS", "false")


# ============================================================================
# Settings Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def reset_settings_and_log_context():
    """Reload settings and drop log context between tests."""
    from gateway_service.core.settings import clear_all_caches
    from gateway_service.infra.logging import clear_log_context

    clear_all_caches()
    clear_log_context()
    yield
    clear_all_caches()
    clear_log_context()


@pytest.fixture
def extension_settings():
    """Extension settings with defaults and no configured entries."""
    from gateway_service.core.settings import ExtensionSettings

    return ExtensionSettings(entries={})


@pytest.fixture
def graphql_settings():
    """GraphQL settings with defaults."""
    from gateway_service.core.settings import GraphQLSettings

    return GraphQLSettings()


# ============================================================================
# Extension Fixtures
# ============================================================================


@pytest.fixture
def fake_loader():
    """Empty in-memory extension loader."""
    return FakeExtensionLoader()


@pytest.fixture
def shop_api():
    """Shop data source supporting en and de."""
    return ShopApi(locales=["en", "de"])


@pytest.fixture
def shop_schema() -> str:
    return SHOP_SCHEMA


@pytest.fixture
def base_schema() -> str:
    """Packaged base schema declaring Query.backendConfig."""
    from gateway_service.app.gateway import load_base_schema

    return load_base_schema()
