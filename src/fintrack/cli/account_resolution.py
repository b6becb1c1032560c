"""CLI helpers for resolving accounts and schemas by name or ID."""

from __future__ import annotations

import click
from fintrack.domain.account import AccountService
from fintrack.domain.csv_schema import CSVSchemaService
from fintrack.domain.entities import Account, CsvSchema
from fintrack.domain.errors import NotFoundError


def resolve_account_or_exit(
    ctx: click.Context, account_service: AccountService, user_id: int, account: str | int
) -> Account:
    """Resolve account name or ID, or exit with a CLI error.

    This keeps error messaging and exit behavior consistent across commands.
    """
    try:
        return account_service.resolve_account(user_id, account)
    except NotFoundError as exc:
        click.echo(f"Error: {exc}", err=True)
        ctx.exit(1)


def resolve_schema_or_exit(
    ctx: click.Context, schema_service: CSVSchemaService, user_id: int, schema: str | int
) -> CsvSchema:
    """Resolve CSV schema name or ID, or exit with a CLI error."""
    try:
        return schema_service.require_schema(user_id, schema)
    except NotFoundError as exc:
        click.echo(f"Error: {exc}", err=True)
        ctx.exit(1)
