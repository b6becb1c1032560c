"""CLI error handling helpers."""

import click

from fintrack.domain.errors import DomainError, SchemaValidationError


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Render a domain error and exit with failure."""
    if isinstance(error, SchemaValidationError):
        click.echo("Error: Invalid CSV schema", err=True)
        for field, message in error.field_errors.items():
            click.echo(f"  {field}: {message}", err=True)
    else:
        click.echo(f"Error: {error}", err=True)
    ctx.exit(1)
