"""Gateway bootstrap.

Wires settings, the extension loader, lifecycle events and the registry
together and produces the server configuration consumed by the hosting
GraphQL server.

Usage:
    gateway = Gateway()
    await gateway.startup()
    server_config = gateway.build()
"""

from __future__ import annotations

from collections.abc import Mapping
from importlib import resources
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pydantic import TypeAdapter, ValidationError
import yaml

from gateway_service.core.events import AsyncEventEmitter, GatewayEvent
from gateway_service.core.exceptions import ExtensionConfigError, GatewayException
from gateway_service.core.schemas import ExtensionEntry
from gateway_service.features.graphql.registry import ExtensionRegistry
from gateway_service.features.graphql.types import AggregateConfig

if TYPE_CHECKING:
    from gateway_service.core.settings import ExtensionSettings, GraphQLSettings
    from gateway_service.features.graphql.loader import ExtensionLoader
    from gateway_service.features.graphql.types import ExtensionRegistered, ServerConfig

logger = logging.getLogger(__name__)

__all__ = ["Gateway", "load_base_schema", "load_extension_entries"]

_ENTRIES_ADAPTER = TypeAdapter(dict[str, ExtensionEntry])


def load_base_schema() -> str:
    """Return the packaged base schema (``Query.backendConfig``)."""
    return (
        resources.files("gateway_service.features.graphql")
        .joinpath("base_schema.graphql")
        .read_text(encoding="utf-8")
    )


def load_extension_entries(path: str | Path) -> dict[str, ExtensionEntry]:
    """Read extension entries from a YAML or JSON file.

    The file either holds the entries mapping itself or nests it under an
    ``entries`` key (the conf/extensions.yaml layout).

    Raises:
        ExtensionConfigError: If the file is missing, unreadable or invalid.
    """
    file_path = Path(path)
    try:
        data = yaml.safe_load(file_path.read_text(encoding="utf-8")) or {}
    except OSError as e:
        raise ExtensionConfigError(
            f"Cannot read extension entries from {file_path}: {e}",
            extra={"path": str(file_path)},
        ) from e
    except yaml.YAMLError as e:
        raise ExtensionConfigError(
            f"Invalid YAML in {file_path}: {e}",
            extra={"path": str(file_path)},
        ) from e

    if isinstance(data, Mapping) and "entries" in data:
        data = data["entries"] or {}

    try:
        return _ENTRIES_ADAPTER.validate_python(data)
    except ValidationError as e:
        raise ExtensionConfigError(
            f"Invalid extension entries in {file_path}",
            extra={"path": str(file_path), "errors": e.errors(include_url=False)},
        ) from e


class Gateway:
    """Owns the extension registry for the lifetime of the server process."""

    def __init__(
        self,
        extension_settings: ExtensionSettings | None = None,
        graphql_settings: GraphQLSettings | None = None,
        loader: ExtensionLoader | None = None,
        emitter: AsyncEventEmitter | None = None,
    ) -> None:
        from gateway_service.core.settings import get_extension_settings, get_graphql_settings

        self.extension_settings = extension_settings or get_extension_settings()
        self.graphql_settings = graphql_settings or get_graphql_settings()
        self.emitter = emitter or AsyncEventEmitter()
        self.registry = ExtensionRegistry(
            loader=loader,
            emitter=self.emitter,
            settings=self.extension_settings,
        )
        self.emitter.on(GatewayEvent.EXTENSION_REGISTERED, self._on_extension_registered)

    async def startup(
        self,
        entries: Mapping[str, ExtensionEntry | Mapping[str, Any]] | None = None,
    ) -> ExtensionRegistry:
        """Register the given entries, or the configured ones.

        Without explicit entries, ``EXTENSIONS_CONFIG_FILE`` takes precedence
        over the ``entries`` setting.

        Returns:
            The populated registry

        Raises:
            ExtensionConfigError: If the configured entries file is invalid.
        """
        if entries is None:
            if self.extension_settings.config_file:
                entries = load_extension_entries(self.extension_settings.config_file)
            else:
                if not self.extension_settings.has_entries:
                    logger.info("No extensions configured, serving the base schema only")
                entries = self.extension_settings.entries

        logger.info("Registering extensions", extra={"extensions": list(entries)})
        await self.registry.register_extensions(entries)
        return self.registry

    def base_config(self) -> dict[str, Any]:
        """Base server configuration: packaged schema plus server options."""
        config: dict[str, Any] = {
            "schema": [load_base_schema()],
            **self.graphql_settings.to_server_options(),
        }
        if self.graphql_settings.backend_config_enabled:
            config["resolvers"] = [
                {"Query": {"backendConfig": self.registry.fetch_backend_config}},
            ]
        return config

    def build(self, base_config: Mapping[str, Any] | None = None) -> ServerConfig:
        """Build the server configuration.

        Args:
            base_config: Extra base configuration; its schemas, resolvers and
                context come after the packaged ones, its options override them

        Raises:
            GatewayException: If the GraphQL endpoint is disabled.
        """
        if not self.graphql_settings.enabled:
            raise GatewayException(
                "GraphQL endpoint is disabled (GRAPHQL_ENABLED=false)",
                type="graphql-disabled",
                status_code=503,
            )

        default_config = self.base_config()
        if base_config:
            extra = AggregateConfig.seed(base_config)
            default_config["schema"] = [*default_config["schema"], *extra.schemas]
            default_config["resolvers"] = [
                *default_config.get("resolvers", []),
                *extra.resolvers,
            ]
            if extra.context_modifiers:
                default_config["context"] = extra.context_modifiers[0]
            if extra.data_sources:
                default_config["data_sources"] = dict(extra.data_sources)
            default_config.update(extra.options)

        return self.registry.create_graphql_config(default_config)

    async def _on_extension_registered(self, event: ExtensionRegistered) -> None:
        logger.info(
            "Extension registered",
            extra={
                "extension": event.name,
                "schemas": len(event.instance.schemas),
                "resolver_maps": len(event.instance.resolvers),
            },
        )
