"""Pydantic models shared by settings, the registry and the CLI."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ExtensionEntry(BaseModel):
    """A single extension declared by the gateway configuration.

    The entry is keyed by its identifier in the surrounding mapping, so it
    only carries the package locator and the extension's own configuration.

    Example:
            ExtensionEntry(package="acme_blog", config={"api": "blog"})
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    package: str = Field(
        min_length=1,
        description="Dotted module path or directory path (relative to the working directory)",
    )
    config: dict[str, Any] = Field(
        default_factory=dict,
        description="Configuration passed verbatim to the extension initializer",
    )


class BackendConfig(BaseModel):
    """Backend configuration reduced across every configured data source."""

    model_config = ConfigDict(frozen=True)

    locales: list[str] | None = Field(
        default=None,
        description="Locales supported by every backend",
    )
