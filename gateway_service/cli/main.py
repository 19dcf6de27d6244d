"""Main CLI entry point for gateway-service commands."""

import click

from gateway_service.cli.commands import extensions, schema
from gateway_service.infra.logging.config import setup_logging


@click.group()
@click.version_option(version="0.1.0", prog_name="gateway-service")
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Gateway Service CLI - inspect extensions and the composed GraphQL schema.

    \b
    Command Groups:
      extensions  Extension registry inspection
      schema      Composed schema output

    \b
    Quick Start:
      gateway-service extensions list                 # What each extension contributes
      gateway-service schema print -o schema.graphql  # Dump the composed SDL
      gateway-service schema fields ext/schema.graphql
    """
    ctx.ensure_object(dict)


cli.add_command(extensions.extensions)
cli.add_command(schema.schema)


def main() -> None:
    """Entry point for CLI."""
    setup_logging()
    cli(obj={})


if __name__ == "__main__":
    main()
