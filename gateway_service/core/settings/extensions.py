"""Extension loading and composition settings.

Environment variables use the EXTENSIONS_ prefix. Extension entries are
nested, so they are normally declared in conf/extensions.yaml:

    entries:
      blog:
        package: acme_blog
        config:
          api: blog-api
"""

from __future__ import annotations

from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from gateway_service.core.schemas import ExtensionEntry

from .yaml_sources import create_extensions_yaml_source


class ExtensionSettings(BaseSettings):
    """Extension registry configuration.

    Environment variables use EXTENSIONS_ prefix.
    Example: EXTENSIONS_SCHEMA_FILE_NAME=schema.graphql
    """

    entries: dict[str, ExtensionEntry] = Field(
        default_factory=dict,
        description="Extensions to register, in declaration order",
    )

    config_file: str | None = Field(
        default=None,
        description="YAML/JSON file with extension entries, used instead of entries when set",
    )

    schema_file_name: str = Field(
        default="schema.graphql",
        min_length=1,
        description="Schema fragment file looked up next to each extension package",
    )
    initializer_attr: str = Field(
        default="init_extension",
        min_length=1,
        description="Module attribute holding the extension initializer",
    )
    data_source_key: str = Field(
        default="api",
        min_length=1,
        description="Extension config key naming the data source for auto-bound resolvers",
    )

    # Deferred validation is the default: a missing data source method only
    # fails when the field is queried.
    eager_binding_validation: bool = Field(
        default=False,
        description="Fail at build time when an auto-bound resolver has no data source method",
    )

    model_config = SettingsConfigDict(
        env_prefix="EXTENSIONS_",
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
            create_extensions_yaml_source(settings_cls),
            env_settings,
            dotenv_settings,
            file_secret_settings,
        )

    @field_validator("schema_file_name")
    @classmethod
    def validate_schema_file_name(cls, v: str) -> str:
        """Schema file name must be a bare file name."""
        if "/" in v or "\\" in v:
            msg = "schema_file_name must not contain path separators"
            raise ValueError(msg)
        return v

    @property
    def has_entries(self) -> bool:
        """Check if any extension is configured."""
        return bool(self.entries)
