"""Extension registry.

Holds the GraphQL configuration of every registered extension and builds
the server configuration from them.

Registration is strictly sequential: an extension is fully initialized and
every ``extension.registered`` listener has completed before the next
extension is loaded. Later extensions may depend on side effects of earlier
ones, and registration order decides resolver precedence.

Usage:
    registry = ExtensionRegistry()
    await registry.register_extensions(
        {"blog": ExtensionEntry(package="acme_blog", config={"api": "blog"})}
    )
    server_config = registry.create_graphql_config({"schema": BASE_SCHEMA})
"""

from __future__ import annotations

from collections.abc import Mapping
import inspect
import logging
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from gateway_service.core.events import AsyncEventEmitter, GatewayEvent
from gateway_service.core.exceptions import ExtensionLoadError
from gateway_service.core.schemas import ExtensionEntry
from gateway_service.features.graphql.backend_config import fetch_backend_config
from gateway_service.features.graphql.binding import get_extension_graphql_config
from gateway_service.features.graphql.builder import create_graphql_config
from gateway_service.features.graphql.loader import ModuleExtensionLoader
from gateway_service.features.graphql.types import ExtensionRegistered, PartialGraphQLConfig
from gateway_service.infra.logging import log_context

if TYPE_CHECKING:
    from collections.abc import Iterator

    from gateway_service.core.schemas import BackendConfig
    from gateway_service.core.settings import ExtensionSettings
    from gateway_service.features.graphql.loader import ExtensionLoader
    from gateway_service.features.graphql.types import ServerConfig

logger = logging.getLogger(__name__)

__all__ = ["ExtensionRegistry"]


async def _resolve(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


class ExtensionRegistry:
    """Registry of extension GraphQL configurations, in registration order."""

    def __init__(
        self,
        loader: ExtensionLoader | None = None,
        emitter: AsyncEventEmitter | None = None,
        settings: ExtensionSettings | None = None,
    ) -> None:
        """Initialize the registry.

        Args:
            loader: Extension loader; defaults to a ModuleExtensionLoader
                configured from ``settings``
            emitter: Receives ``extension.registered`` events
            settings: Extension settings; defaults to get_extension_settings()
        """
        if settings is None:
            from gateway_service.core.settings import get_extension_settings

            settings = get_extension_settings()

        self.settings = settings
        self.loader = loader or ModuleExtensionLoader(
            schema_file_name=settings.schema_file_name,
            initializer_attr=settings.initializer_attr,
        )
        self.emitter = emitter or AsyncEventEmitter()
        self._entries: dict[str, PartialGraphQLConfig] = {}

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    async def register_extensions(
        self,
        extensions: Mapping[str, ExtensionEntry | Mapping[str, Any]],
    ) -> None:
        """Register every extension, one after another, in mapping order.

        Args:
            extensions: Extension name mapped to its entry
        """
        for name, entry in extensions.items():
            await self.register_extension(name, entry)

    async def register_extension(
        self,
        name: str,
        entry: ExtensionEntry | Mapping[str, Any],
    ) -> PartialGraphQLConfig:
        """Initialize a single extension and store its GraphQL config.

        Registering a name again replaces the previous config.

        Returns:
            The resolved extension config
        """
        if not isinstance(entry, ExtensionEntry):
            entry = ExtensionEntry.model_validate(entry)

        with log_context(extension=name):
            config = await self._initialize(name, entry)

            schema_content = await _resolve(self.loader.load_schema_fragment(entry.package))
            if schema_content:
                data_source = entry.config.get(self.settings.data_source_key)
                if data_source is None:
                    logger.warning(
                        '"%s" extension ships %s but has no "%s" data source configured, '
                        "its root fields will resolve to null",
                        name,
                        self.settings.schema_file_name,
                        self.settings.data_source_key,
                    )
                bound = get_extension_graphql_config(schema_content, data_source)
                if bound is not None:
                    config = config.combine(bound)
            else:
                logger.warning(
                    '"%s" ("%s") extension does not contain %s file.',
                    name,
                    entry.package,
                    self.settings.schema_file_name,
                )

            self._entries[name] = config
            logger.debug('"%s" added to the list of extensions', name)

            await self.emitter.emit_async(
                GatewayEvent.EXTENSION_REGISTERED,
                ExtensionRegistered(name=name, instance=config),
            )

        return config

    async def _initialize(self, name: str, entry: ExtensionEntry) -> PartialGraphQLConfig:
        try:
            initializer = await _resolve(self.loader.load_initializer(entry.package))
            if initializer is None:
                return PartialGraphQLConfig()
            result = await _resolve(initializer(dict(entry.config)))
            return PartialGraphQLConfig.from_value(result)
        except ExtensionLoadError as e:
            logger.warning(
                '"%s" extension could not be loaded: %s',
                name,
                e.detail,
                extra={"package": entry.package},
            )
        except Exception:
            logger.exception(
                '"%s" extension initializer failed',
                name,
                extra={"package": entry.package},
            )
        return PartialGraphQLConfig()

    def unregister(self, name: str) -> PartialGraphQLConfig | None:
        """Remove an extension, returning its config if it was registered."""
        return self._entries.pop(name, None)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    @property
    def entries(self) -> Mapping[str, PartialGraphQLConfig]:
        """Read-only view of the registered configs, in registration order."""
        return MappingProxyType(self._entries)

    def get(self, name: str) -> PartialGraphQLConfig | None:
        return self._entries.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    # ------------------------------------------------------------------
    # Server configuration
    # ------------------------------------------------------------------

    def create_graphql_config(
        self,
        default_config: Mapping[str, Any] | None = None,
    ) -> ServerConfig:
        """Create the complete GraphQL server configuration.

        Args:
            default_config: Base configuration merged before any extension

        Returns:
            Immutable server configuration
        """
        return create_graphql_config(
            list(self._entries.items()),
            default_config,
            eager_binding_validation=self.settings.eager_binding_validation,
        )

    async def fetch_backend_config(
        self,
        obj: Any,
        args: Mapping[str, Any],
        context: Any,
        info: Any,
    ) -> BackendConfig | None:
        """Resolver merging the backend config of every data source."""
        return await fetch_backend_config(obj, args, context, info)
