"""Test fixtures for pytest.

This module re-exports commonly used test helpers for easier importing.
"""

from .extensions import SHOP_SCHEMA, FakeExtensionLoader, ShopApi

__all__ = [
    "SHOP_SCHEMA",
    "FakeExtensionLoader",
    "ShopApi",
]
