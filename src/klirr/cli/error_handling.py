"""CLI error handling helpers."""

import click

from klirr.domain.errors import DomainError


def handle_domain_error(ctx: click.Context, error: DomainError) -> None:
    """Render a domain error and exit with its category's exit code."""
    click.echo(f"Error: {error}", err=True)
    ctx.exit(error.exit_code)
