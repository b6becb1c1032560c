"""Account management commands."""

import click
from fintrack.cli.error_handling import handle_domain_error
from fintrack.domain.account import AccountService
from fintrack.domain.errors import DomainError


@click.group()
def account_group():
    """Manage accounts."""
    pass


@account_group.command("create")
@click.argument("name", metavar="ACCOUNT_NAME")
@click.pass_context
def create_account(ctx, name: str):
    """Create a new account for the current user.

    Examples:
        fintrack account create "Current Account"
        fintrack --user alice account create Savings
    """
    db = ctx.obj["db"]
    user = ctx.obj["user"]
    service = AccountService(db)

    try:
        account_id = service.create_account(user_id=user.id, name=name)
        click.echo(f"Created account '{name}' (ID: {account_id})")
    except DomainError as e:
        handle_domain_error(ctx, e)


@account_group.command("list")
@click.pass_context
def list_accounts(ctx):
    """List the current user's accounts."""
    db = ctx.obj["db"]
    user = ctx.obj["user"]
    service = AccountService(db)

    accounts = service.list_accounts(user.id)
    if not accounts:
        click.echo("No accounts found.")
        return

    click.echo("\nAccounts:")
    click.echo("-" * 40)
    for acc in accounts:
        click.echo(f"ID: {acc.id:3d} | {acc.name}")


def register_commands(cli):
    """Register account commands with main CLI."""
    cli.add_command(account_group, name="account")
