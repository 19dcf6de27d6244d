"""YAML config source with conf.d directory support.

Extends pydantic-settings YamlConfigSettingsSource to support:
- Main YAML file (e.g., conf/extensions.yaml)
- conf.d directory merging (e.g., conf/extensions.d/*.yaml)
- Alphabetical file ordering in conf.d

Extension entries are usually kept in these files rather than in the
environment, since they are nested mappings.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic_settings.sources.providers.yaml import YamlConfigSettingsSource

if TYPE_CHECKING:
    from pydantic_settings import BaseSettings


class ConfDYamlConfigSettingsSource(YamlConfigSettingsSource):
    """YAML settings source with conf.d directory support.

    Supports the standard Linux conf.d pattern:
    - conf/extensions.yaml        (base configuration)
    - conf/extensions.d/*.yaml    (override files, applied alphabetically)

    Environment variable can override config directory:
    - EXTENSIONS_CONFIG_DIR=/custom/path
    """

    def __init__(
        self,
        settings_cls: type[BaseSettings],
        yaml_file: str = "extensions.yaml",
        confd_dir: str | None = "extensions.d",
        config_dir_env: str = "CONFIG_DIR",
        base_dir: str = "conf",
        yaml_file_encoding: str | None = "utf-8",
    ) -> None:
        config_base = Path(os.getenv(config_dir_env, base_dir))

        yaml_files: list[Path] = []

        main_file = config_base / yaml_file
        if main_file.exists():
            yaml_files.append(main_file)

        # conf.d files are sorted for deterministic precedence
        if confd_dir:
            confd_path = config_base / confd_dir
            if confd_path.exists() and confd_path.is_dir():
                yaml_files.extend(sorted(confd_path.glob("*.yaml")))
                yaml_files.extend(sorted(confd_path.glob("*.yml")))
                yaml_files.extend(sorted(confd_path.glob("*.json")))

        self._yaml_files = yaml_files

        super().__init__(
            settings_cls=settings_cls,
            yaml_file=yaml_files if yaml_files else None,
            yaml_file_encoding=yaml_file_encoding,
        )

    def __repr__(self) -> str:
        files_str = ", ".join(str(f) for f in self._yaml_files)
        return f"{self.__class__.__name__}(yaml_files=[{files_str}])"


def create_extensions_yaml_source(
    settings_cls: type[BaseSettings],
) -> ConfDYamlConfigSettingsSource:
    """Create YAML source for ExtensionSettings.

    Loads from:
    - conf/extensions.yaml (base)
    - conf/extensions.d/*.yaml (overrides)

    Override directory with: EXTENSIONS_CONFIG_DIR=/custom/path
    """
    return ConfDYamlConfigSettingsSource(
        settings_cls,
        yaml_file="extensions.yaml",
        confd_dir="extensions.d",
        config_dir_env="EXTENSIONS_CONFIG_DIR",
    )


def create_graphql_yaml_source(
    settings_cls: type[BaseSettings],
) -> ConfDYamlConfigSettingsSource:
    """Create YAML source for GraphQLSettings.

    Loads from conf/graphql.yaml and conf/graphql.d/*.yaml.
    Override directory with: GRAPHQL_CONFIG_DIR=/custom/path
    """
    return ConfDYamlConfigSettingsSource(
        settings_cls,
        yaml_file="graphql.yaml",
        confd_dir="graphql.d",
        config_dir_env="GRAPHQL_CONFIG_DIR",
    )


def create_logging_yaml_source(
    settings_cls: type[BaseSettings],
) -> ConfDYamlConfigSettingsSource:
    """Create YAML source for LoggingSettings.

    Loads from conf/logging.yaml and conf/logging.d/*.yaml.
    Override directory with: LOGGING_CONFIG_DIR=/custom/path
    """
    return ConfDYamlConfigSettingsSource(
        settings_cls,
        yaml_file="logging.yaml",
        confd_dir="logging.d",
        config_dir_env="LOGGING_CONFIG_DIR",
    )
