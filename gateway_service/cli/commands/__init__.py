"""CLI command modules."""

from gateway_service.cli.commands import extensions, schema

__all__ = [
    "extensions",
    "schema",
]
