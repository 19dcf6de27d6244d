"""Tests for backend config aggregation across data sources."""
from __future__ import annotations

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from gateway_service.core.schemas import BackendConfig
from gateway_service.features.graphql.backend_config import (
    fetch_backend_config,
    merge_backend_configs,
)


@pytest.mark.unit
class TestMergeBackendConfigs:
    """Tests for merge_backend_configs."""

    def test_intersection_keeps_newer_order(self):
        merged = merge_backend_configs(
            [{"locales": ["en", "de", "fr"]}, {"locales": ["fr", "en"]}]
        )

        assert merged.locales == ["fr", "en"]

    def test_three_way_intersection(self):
        merged = merge_backend_configs(
            [
                {"locales": ["en", "de", "fr"]},
                {"locales": ["de", "en", "fr"]},
                {"locales": ["fr", "en"]},
            ]
        )

        assert merged.locales == ["fr", "en"]

    def test_one_sided_list_wins(self):
        assert merge_backend_configs([{"locales": None}, {"locales": ["en"]}]).locales == ["en"]
        assert merge_backend_configs([{"locales": ["en"]}, {"other": 1}]).locales == ["en"]

    def test_disjoint_lists_give_empty_list(self):
        merged = merge_backend_configs([{"locales": ["en"]}, {"locales": ["de"]}])

        assert merged.locales == []

    def test_falsy_configs_are_skipped(self):
        merged = merge_backend_configs([None, {}, {"locales": ["en"]}])

        assert merged.locales == ["en"]

    def test_no_configs(self):
        assert merge_backend_configs([]) == BackendConfig()

    def test_attribute_configs(self):
        merged = merge_backend_configs(
            [SimpleNamespace(locales=("en", "de")), BackendConfig(locales=["de"])]
        )

        assert merged.locales == ["de"]


@pytest.mark.unit
class TestFetchBackendConfig:
    """Tests for the backendConfig resolver."""

    @pytest.mark.asyncio
    async def test_merges_every_data_source(self):
        context = {
            "data_sources": {
                "shop": SimpleNamespace(fetch_backend_config=AsyncMock(return_value={"locales": ["en", "de"]})),
                "cms": SimpleNamespace(fetch_backend_config=AsyncMock(return_value={"locales": ["de"]})),
            }
        }

        result = await fetch_backend_config(None, {}, context, None)

        assert result == BackendConfig(locales=["de"])

    @pytest.mark.asyncio
    async def test_data_sources_are_fetched_sequentially(self):
        events = []

        def make_api(name):
            async def fetch(obj, args, context, info):
                events.append(f"{name}:start")
                await asyncio.sleep(0)
                events.append(f"{name}:end")
                return {"locales": ["en"]}

            return SimpleNamespace(fetch_backend_config=fetch)

        context = {"data_sources": {"shop": make_api("shop"), "cms": make_api("cms")}}

        await fetch_backend_config(None, {}, context, None)

        assert events == ["shop:start", "shop:end", "cms:start", "cms:end"]

    @pytest.mark.asyncio
    async def test_unsupported_data_source_aborts_aggregation(self):
        later = SimpleNamespace(fetch_backend_config=AsyncMock(return_value={"locales": ["en"]}))
        context = {
            "data_sources": {
                "shop": SimpleNamespace(fetch_backend_config=AsyncMock(return_value={"locales": ["en"]})),
                "legacy": object(),
                "cms": later,
            }
        }

        result = await fetch_backend_config(None, {}, context, None)

        assert result is None
        later.fetch_backend_config.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_sync_fetch_and_empty_results(self):
        context = {
            "data_sources": {
                "shop": SimpleNamespace(fetch_backend_config=MagicMock(return_value={"locales": ["en"]})),
                "cms": SimpleNamespace(fetch_backend_config=AsyncMock(return_value=None)),
            }
        }

        result = await fetch_backend_config(None, {}, context, None)

        assert result == BackendConfig(locales=["en"])

    @pytest.mark.asyncio
    async def test_fetch_receives_resolver_arguments(self):
        fetch = AsyncMock(return_value={})
        context = {"data_sources": {"shop": SimpleNamespace(fetch_backend_config=fetch)}}
        info = object()

        await fetch_backend_config("root", {"a": 1}, context, info)

        fetch.assert_awaited_once_with("root", {"a": 1}, context, info)

    @pytest.mark.asyncio
    async def test_no_data_sources(self):
        assert await fetch_backend_config(None, {}, {}, None) == BackendConfig()
