"""GraphQL server configuration settings.

Controls the options passed through to the hosting GraphQL server.
Environment variables use GRAPHQL_ prefix.
"""

from __future__ import annotations

from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .yaml_sources import create_graphql_yaml_source


class GraphQLSettings(BaseSettings):
    """GraphQL server configuration.

    Environment variables use GRAPHQL_ prefix.
    Example: GRAPHQL_ENABLED=true, GRAPHQL_PATH=/graphql
    """

    enabled: bool = Field(
        default=True,
        description="Enable GraphQL endpoint",
    )

    path: str = Field(
        default="/graphql",
        min_length=1,
        max_length=255,
        pattern=r"^/.*$",
        description="GraphQL endpoint path",
    )

    debug: bool = Field(
        default=False,
        description="Include stack traces in GraphQL error extensions",
    )

    # Introspection (security)
    introspection_enabled: bool = Field(
        default=True,
        description="Enable GraphQL schema introspection (disable in production for security)",
    )

    backend_config_enabled: bool = Field(
        default=True,
        description="Expose Query.backendConfig aggregated from every data source",
    )

    model_config = SettingsConfigDict(
        env_prefix="GRAPHQL_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
        env_ignore_empty=True,
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: Any,
        env_settings: Any,
        dotenv_settings: Any,
        file_secret_settings: Any,
    ) -> tuple[Any, ...]:
        """Customize settings source precedence: init > yaml > env > dotenv > secrets."""
        return (
            init_settings,
            create_graphql_yaml_source(settings_cls),
            env_settings,
            dotenv_settings,
            file_secret_settings,
        )

    def to_server_options(self) -> dict[str, Any]:
        """Return passthrough options for the hosting GraphQL server."""
        return {
            "path": self.path,
            "debug": self.debug,
            "introspection": self.introspection_enabled,
        }
