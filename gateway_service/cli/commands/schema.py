"""Composed schema commands."""

import json
from pathlib import Path
import sys

import click
from graphql import print_schema

from gateway_service.app.gateway import Gateway
from gateway_service.cli.commands.extensions import resolve_entries
from gateway_service.cli.utils import coro, error, success
from gateway_service.core.exceptions import GatewayException, SchemaCompositionError
from gateway_service.features.graphql.introspection import get_root_type_fields


@click.group(name="schema")
def schema() -> None:
    """GraphQL schema composition commands."""


@schema.command(name="print")
@click.option(
    "--config",
    "config_file",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="YAML/JSON file with extension entries (defaults to conf/extensions.yaml)",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, writable=True),
    default=None,
    help="Write the SDL to a file instead of stdout",
)
@coro
async def print_composed_schema(config_file: str | None, output: str | None) -> None:
    """Register extensions and print the composed schema SDL."""
    gateway = Gateway()

    try:
        await gateway.startup(resolve_entries(config_file))
        server_config = gateway.build()
    except GatewayException as e:
        error(e.detail)
        sys.exit(1)

    sdl = print_schema(server_config.schema)
    if output:
        Path(output).write_text(sdl + "\n", encoding="utf-8")
        success(f"Schema written to {output}")
    else:
        click.echo(sdl)


@schema.command(name="fields")
@click.argument("schema_file", type=click.Path(exists=True, dir_okay=False))
def root_fields(schema_file: str) -> None:
    """Show the root operation fields declared by a schema fragment."""
    try:
        fields = get_root_type_fields(Path(schema_file).read_text(encoding="utf-8"))
    except SchemaCompositionError as e:
        error(e.detail)
        sys.exit(1)

    click.echo(json.dumps(fields, indent=2))
