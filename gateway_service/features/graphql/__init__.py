"""GraphQL extension composition.

Extensions contribute schema fragments, resolvers, data sources and context
modifiers. The registry loads them in order and builds a single executable
graphql-core schema plus the server configuration around it.

Usage:
    from gateway_service.features.graphql import ExtensionRegistry

    registry = ExtensionRegistry()
    await registry.register_extensions(entries)
    server_config = registry.create_graphql_config({"schema": base_schema})
    result = await server_config.execute("{ backendConfig { locales } }", request)
"""

from gateway_service.features.graphql.backend_config import (
    fetch_backend_config,
    merge_backend_configs,
)
from gateway_service.features.graphql.binding import (
    AutoBoundResolver,
    get_extension_graphql_config,
    validate_bindings,
)
from gateway_service.features.graphql.builder import (
    build_executable_schema,
    create_context_function,
    create_graphql_config,
)
from gateway_service.features.graphql.introspection import get_root_type_fields
from gateway_service.features.graphql.loader import ExtensionLoader, ModuleExtensionLoader
from gateway_service.features.graphql.merge import merge_graphql_config
from gateway_service.features.graphql.registry import ExtensionRegistry
from gateway_service.features.graphql.types import (
    AggregateConfig,
    ExtensionRegistered,
    PartialGraphQLConfig,
    ServerConfig,
)

__all__ = [
    "AggregateConfig",
    "AutoBoundResolver",
    "ExtensionLoader",
    "ExtensionRegistered",
    "ExtensionRegistry",
    "ModuleExtensionLoader",
    "PartialGraphQLConfig",
    "ServerConfig",
    "build_executable_schema",
    "create_context_function",
    "create_graphql_config",
    "fetch_backend_config",
    "get_extension_graphql_config",
    "get_root_type_fields",
    "merge_backend_configs",
    "merge_graphql_config",
    "validate_bindings",
]
