"""Tests for the extension registry."""
from __future__ import annotations

import asyncio
import logging

from pydantic import ValidationError
import pytest

from gateway_service.core.events import AsyncEventEmitter, GatewayEvent
from gateway_service.core.exceptions import ExtensionLoadError, ResolverBindingError
from gateway_service.core.schemas import BackendConfig, ExtensionEntry
from gateway_service.core.settings import ExtensionSettings
from gateway_service.features.graphql.binding import AutoBoundResolver
from gateway_service.features.graphql.registry import ExtensionRegistry
from gateway_service.features.graphql.types import ExtensionRegistered
from tests.fixtures import SHOP_SCHEMA, FakeExtensionLoader, ShopApi

BASE_SCHEMA = "type Query { version: String }"


@pytest.fixture
def registry(fake_loader, extension_settings):
    return ExtensionRegistry(loader=fake_loader, settings=extension_settings)


@pytest.mark.unit
class TestRegistration:
    """Tests for register_extensions / register_extension."""

    @pytest.mark.asyncio
    async def test_entries_keep_declaration_order(self, registry):
        await registry.register_extensions(
            {
                "zeta": {"package": "z"},
                "alpha": {"package": "a"},
                "mid": {"package": "m"},
            }
        )

        assert list(registry) == ["zeta", "alpha", "mid"]
        assert len(registry) == 3

    @pytest.mark.asyncio
    async def test_each_extension_completes_before_the_next_starts(self, fake_loader, extension_settings):
        emitter = AsyncEventEmitter()
        registry = ExtensionRegistry(loader=fake_loader, emitter=emitter, settings=extension_settings)

        @emitter.on(GatewayEvent.EXTENSION_REGISTERED)
        async def listener(event: ExtensionRegistered) -> None:
            await asyncio.sleep(0)
            fake_loader.calls.append(("event", event.name))

        await registry.register_extensions({"one": {"package": "a"}, "two": {"package": "b"}})

        assert fake_loader.calls == [
            ("initializer", "a"),
            ("schema", "a"),
            ("event", "one"),
            ("initializer", "b"),
            ("schema", "b"),
            ("event", "two"),
        ]

    @pytest.mark.asyncio
    async def test_event_carries_resolved_config(self, fake_loader, extension_settings):
        emitter = AsyncEventEmitter()
        received = []
        emitter.on(GatewayEvent.EXTENSION_REGISTERED, received.append)
        fake_loader.initializers["a"] = lambda config: {"schema": "type Query { a: Int }"}
        registry = ExtensionRegistry(loader=fake_loader, emitter=emitter, settings=extension_settings)

        config = await registry.register_extension("one", {"package": "a"})

        assert received == [ExtensionRegistered(name="one", instance=config)]

    @pytest.mark.asyncio
    async def test_initializer_receives_extension_config(self, fake_loader, registry):
        seen = []

        def init_extension(config):
            seen.append(config)
            return {"context": {"region": config["region"]}}

        fake_loader.initializers["a"] = init_extension

        config = await registry.register_extension(
            "one", ExtensionEntry(package="a", config={"region": "eu"})
        )

        assert seen == [{"region": "eu"}]
        assert config.context == {"region": "eu"}

    @pytest.mark.asyncio
    async def test_async_initializer(self, fake_loader, registry):
        async def init_extension(config):
            await asyncio.sleep(0)
            return {"schema": "type Query { a: Int }"}

        fake_loader.initializers["a"] = init_extension

        config = await registry.register_extension("one", {"package": "a"})

        assert config.schemas == ("type Query { a: Int }",)

    @pytest.mark.asyncio
    async def test_schema_file_is_auto_bound_to_configured_api(self, fake_loader, registry):
        def init_extension(config):
            return {"resolvers": {"Product": {"name": lambda *args: "x"}}}

        fake_loader.initializers["shop"] = init_extension
        fake_loader.schemas["shop"] = SHOP_SCHEMA

        config = await registry.register_extension(
            "shop", {"package": "shop", "config": {"api": "shop-api"}}
        )

        assert config.schemas == (SHOP_SCHEMA,)
        explicit, bound = config.resolvers
        assert list(explicit) == ["Product"]
        assert {r.data_source for r in bound["Query"].values()} == {"shop-api"}
        assert all(isinstance(r, AutoBoundResolver) for r in bound["Query"].values())

    @pytest.mark.asyncio
    async def test_missing_schema_file_is_logged(self, registry, caplog):
        with caplog.at_level(logging.WARNING):
            config = await registry.register_extension("blog", {"package": "acme_blog"})

        assert config.is_empty
        assert "blog" in registry
        assert '"blog" ("acme_blog") extension does not contain schema.graphql file.' in caplog.text

    @pytest.mark.asyncio
    async def test_schema_without_api_is_logged(self, fake_loader, registry, caplog):
        fake_loader.schemas["shop"] = SHOP_SCHEMA

        with caplog.at_level(logging.WARNING):
            config = await registry.register_extension("shop", {"package": "shop"})

        (bound,) = config.resolvers
        assert all(r.data_source is None for r in bound["Query"].values())
        assert 'has no "api" data source configured' in caplog.text

    @pytest.mark.asyncio
    async def test_load_error_falls_back_to_empty_config(self, fake_loader, registry, caplog):
        fake_loader.initializers["broken"] = ExtensionLoadError("broken", "No module named 'broken'")

        with caplog.at_level(logging.WARNING):
            config = await registry.register_extension("broken", {"package": "broken"})

        assert config.is_empty
        assert "broken" in registry
        assert '"broken" extension could not be loaded' in caplog.text

    @pytest.mark.asyncio
    async def test_failing_initializer_falls_back_to_empty_config(self, fake_loader, registry, caplog):
        def init_extension(config):
            raise RuntimeError("boom")

        fake_loader.initializers["a"] = init_extension

        with caplog.at_level(logging.ERROR):
            config = await registry.register_extension("one", {"package": "a"})

        assert config.is_empty
        assert '"one" extension initializer failed' in caplog.text
        assert caplog.records[-1].exc_info is not None

    @pytest.mark.asyncio
    async def test_failing_initializer_does_not_stop_registration(self, fake_loader, registry):
        fake_loader.initializers["a"] = lambda config: 1 / 0
        fake_loader.initializers["b"] = lambda config: {"schema": "type Query { b: Int }"}

        await registry.register_extensions({"one": {"package": "a"}, "two": {"package": "b"}})

        assert registry.get("two").schemas == ("type Query { b: Int }",)

    @pytest.mark.asyncio
    async def test_initializer_returning_non_mapping_is_logged(self, fake_loader, registry, caplog):
        fake_loader.initializers["a"] = lambda config: "type Query { a: Int }"

        with caplog.at_level(logging.ERROR):
            config = await registry.register_extension("one", {"package": "a"})

        assert config.is_empty
        assert "must be a mapping" in caplog.text

    @pytest.mark.asyncio
    async def test_re_registration_overwrites_in_place(self, fake_loader, registry):
        fake_loader.initializers["v2"] = lambda config: {"schema": "type Query { v2: Int }"}

        await registry.register_extensions(
            {"one": {"package": "v1"}, "two": {"package": "x"}}
        )
        await registry.register_extension("one", {"package": "v2"})

        assert list(registry) == ["one", "two"]
        assert registry.get("one").schemas == ("type Query { v2: Int }",)

    @pytest.mark.asyncio
    async def test_invalid_entry_is_rejected(self, registry):
        with pytest.raises(ValidationError):
            await registry.register_extension("one", {"config": {}})

    @pytest.mark.asyncio
    async def test_unregister(self, registry):
        await registry.register_extension("one", {"package": "a"})

        assert registry.unregister("one") is not None
        assert registry.unregister("one") is None
        assert "one" not in registry

    @pytest.mark.asyncio
    async def test_entries_view_is_read_only(self, registry):
        await registry.register_extension("one", {"package": "a"})

        with pytest.raises(TypeError):
            registry.entries["two"] = registry.get("one")  # type: ignore[index]


@pytest.mark.unit
class TestServerConfig:
    """Tests for building the server configuration from the registry."""

    @pytest.mark.asyncio
    async def test_end_to_end_query(self, fake_loader, registry):
        api = ShopApi()
        fake_loader.initializers["shop"] = lambda config: {"dataSources": {"shop-api": api}}
        fake_loader.schemas["shop"] = SHOP_SCHEMA

        await registry.register_extension("shop", {"package": "shop", "config": {"api": "shop-api"}})
        server_config = registry.create_graphql_config({"schema": BASE_SCHEMA})

        result = await server_config.execute("{ products { id name } }")

        assert result.errors is None
        assert result.data == {"products": [{"id": "1", "name": "Chair"}]}

    @pytest.mark.asyncio
    async def test_eager_binding_validation_setting(self, fake_loader):
        fake_loader.initializers["shop"] = lambda config: {"dataSources": {"shop-api": object()}}
        fake_loader.schemas["shop"] = SHOP_SCHEMA
        registry = ExtensionRegistry(
            loader=fake_loader,
            settings=ExtensionSettings(entries={}, eager_binding_validation=True),
        )

        await registry.register_extension("shop", {"package": "shop", "config": {"api": "shop-api"}})

        with pytest.raises(ResolverBindingError):
            registry.create_graphql_config({"schema": BASE_SCHEMA})

    @pytest.mark.asyncio
    async def test_fetch_backend_config(self, registry):
        context = {"data_sources": {"shop": ShopApi(["en", "de"]), "cms": ShopApi(["de"])}}

        result = await registry.fetch_backend_config(None, {}, context, None)

        assert result == BackendConfig(locales=["de"])


def test_default_loader_uses_settings() -> None:
    settings = ExtensionSettings(entries={}, schema_file_name="api.graphql", initializer_attr="setup")

    registry = ExtensionRegistry(settings=settings)

    assert registry.loader.schema_file_name == "api.graphql"
    assert registry.loader.initializer_attr == "setup"


def test_fake_loader_satisfies_protocol() -> None:
    from gateway_service.features.graphql.loader import ExtensionLoader

    assert isinstance(FakeExtensionLoader(), ExtensionLoader)
