"""Extension inspection commands."""

import json
import sys
from typing import Any

import click

from gateway_service.app.gateway import Gateway, load_extension_entries
from gateway_service.cli.utils import coro, error, info, warning
from gateway_service.core.exceptions import ExtensionConfigError
from gateway_service.features.graphql.binding import iter_bound_resolvers


def resolve_entries(config_file: str | None) -> dict[str, Any] | None:
    """Load entries from ``config_file``, or None to use the configured ones."""
    if config_file is None:
        return None
    try:
        return dict(load_extension_entries(config_file))
    except ExtensionConfigError as e:
        error(e.detail)
        sys.exit(1)


@click.group(name="extensions")
def extensions() -> None:
    """Extension registry commands."""


@extensions.command(name="list")
@click.option(
    "--config",
    "config_file",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="YAML/JSON file with extension entries (defaults to conf/extensions.yaml)",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["json", "table"]),
    default="table",
    help="Output format",
)
@coro
async def list_extensions(config_file: str | None, output_format: str) -> None:
    """Register extensions and show what each one contributes."""
    gateway = Gateway()
    entries = resolve_entries(config_file)
    try:
        registry = await gateway.startup(entries)
    except ExtensionConfigError as e:
        error(e.detail)
        sys.exit(1)

    if not len(registry):
        warning("No extensions configured")
        return

    rows = []
    for name, config in registry.entries.items():
        bound = [repr(resolver) for resolver in iter_bound_resolvers(config.resolvers)]
        rows.append(
            {
                "name": name,
                "schemas": len(config.schemas),
                "resolver_maps": len(config.resolvers),
                "context": config.context is not None,
                "data_sources": sorted(config.data_sources),
                "auto_bound": bound,
            }
        )

    if output_format == "json":
        click.echo(json.dumps(rows, indent=2))
        return

    info(f"{len(rows)} extension(s) registered")
    for row in rows:
        click.echo(f"\n[{row['name']}]")
        click.echo(f"  {'schemas':20} = {row['schemas']}")
        click.echo(f"  {'resolver maps':20} = {row['resolver_maps']}")
        click.echo(f"  {'context modifier':20} = {row['context']}")
        click.echo(f"  {'data sources':20} = {', '.join(row['data_sources']) or '-'}")
        for binding in row["auto_bound"]:
            click.echo(f"  {'auto-bound':20} = {binding}")
