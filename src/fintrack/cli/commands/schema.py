"""CSV schema management commands."""

from pathlib import Path

import click
from fintrack.cli.account_resolution import resolve_schema_or_exit
from fintrack.cli.error_handling import handle_domain_error
from fintrack.domain.csv_import import CSVImportService
from fintrack.domain.csv_schema import CSVSchemaService
from fintrack.domain.entities import CsvSchema
from fintrack.domain.errors import DomainError


def _column_options(func):
    """Attach the shared column mapping options to a command."""
    options = [
        click.option("--date-column", help="Column holding the date (number or letter)"),
        click.option("--balance-column", help="Column holding the running balance"),
        click.option("--amount-column", help="Single signed amount column"),
        click.option("--paid-in-column", help="Column for money received"),
        click.option("--paid-out-column", help="Column for money spent"),
        click.option("--description-column", help="Column holding the description"),
        click.option("--date-format", help="Date format hint, e.g. DD/MM/YYYY"),
        click.option("--start", "transaction_data_start", type=int, help="First data row (1-indexed)"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _echo_schema(schema: CsvSchema) -> None:
    click.echo(f"{schema.name} (ID: {schema.id})")
    click.echo(f"  Data starts at row: {schema.transaction_data_start}")
    for field, column in schema.column_mapping().items():
        click.echo(f"  {field:12s} -> column {column}")
    if schema.uses_single_amount_column():
        click.echo("  Amounts: single signed amount column")
    else:
        click.echo("  Amounts: separate paid in / paid out columns")
    click.echo(f"  Date format: {schema.date_format or 'auto-detect'}")


@click.group()
def schema_group():
    """Manage CSV schemas."""
    pass


@schema_group.command("create")
@click.argument("name")
@_column_options
@click.pass_context
def create_schema(ctx, name: str, transaction_data_start: int | None, **columns):
    """Create a new CSV schema.

    Columns may be given as 1-indexed numbers or as letters A-Z.

    Examples:
        fintrack schema create "My Bank" --date-column 1 --description-column 2 \\
            --amount-column 3 --balance-column 4 --start 2
        fintrack schema create Savings --date-column A --paid-in-column C \\
            --paid-out-column D --balance-column E --date-format DD/MM/YYYY
    """
    db = ctx.obj["db"]
    user = ctx.obj["user"]
    service = CSVSchemaService(db)

    try:
        schema_id = service.create_schema(
            user_id=user.id,
            name=name,
            transaction_data_start=transaction_data_start if transaction_data_start is not None else 1,
            **columns,
        )
        click.echo(f"Created CSV schema '{name}' (ID: {schema_id})")
    except DomainError as e:
        handle_domain_error(ctx, e)


@schema_group.command("list")
@click.pass_context
def list_schemas(ctx):
    """List the current user's CSV schemas."""
    db = ctx.obj["db"]
    user = ctx.obj["user"]
    service = CSVSchemaService(db)

    schemas = service.list_schemas(user.id)
    if not schemas:
        click.echo("No CSV schemas found.")
        return

    click.echo("\nCSV Schemas:")
    click.echo("-" * 60)
    for schema in schemas:
        mode = "amount" if schema.uses_single_amount_column() else "paid in/out"
        click.echo(
            f"ID: {schema.id:3d} | {schema.name:20s} | start row {schema.transaction_data_start} | {mode}"
        )


@schema_group.command("show")
@click.argument("schema", metavar="SCHEMA")
@click.pass_context
def show_schema(ctx, schema: str):
    """Show a CSV schema's column mapping.

    SCHEMA can be a schema name or ID.
    """
    db = ctx.obj["db"]
    user = ctx.obj["user"]
    service = CSVSchemaService(db)

    found = resolve_schema_or_exit(ctx, service, user.id, schema)
    _echo_schema(found)


@schema_group.command("update")
@click.argument("schema", metavar="SCHEMA")
@click.option("--name", "new_name", help="New schema name")
@_column_options
@click.pass_context
def update_schema(ctx, schema: str, new_name: str | None, transaction_data_start: int | None, **columns):
    """Update a CSV schema.

    Only the given options change. Pass an empty string to clear an
    optional column, e.g. --description-column "".
    """
    db = ctx.obj["db"]
    user = ctx.obj["user"]
    service = CSVSchemaService(db)

    found = resolve_schema_or_exit(ctx, service, user.id, schema)

    changes = {key: value for key, value in columns.items() if value is not None}
    if new_name is not None:
        changes["name"] = new_name
    if transaction_data_start is not None:
        changes["transaction_data_start"] = transaction_data_start
    if not changes:
        click.echo("Nothing to update.")
        return

    try:
        service.update_schema(found.id, **changes)
        click.echo(f"Updated CSV schema '{new_name or found.name}'")
    except DomainError as e:
        handle_domain_error(ctx, e)


@schema_group.command("clone")
@click.argument("schema", metavar="SCHEMA")
@click.argument("new_name")
@click.pass_context
def clone_schema(ctx, schema: str, new_name: str):
    """Copy a CSV schema under a new name."""
    db = ctx.obj["db"]
    user = ctx.obj["user"]
    service = CSVSchemaService(db)

    found = resolve_schema_or_exit(ctx, service, user.id, schema)
    try:
        schema_id = service.clone_schema(found.id, new_name)
        click.echo(f"Cloned CSV schema '{found.name}' as '{new_name}' (ID: {schema_id})")
    except DomainError as e:
        handle_domain_error(ctx, e)


@schema_group.command("delete")
@click.argument("schema", metavar="SCHEMA")
@click.option("--yes", is_flag=True, help="Skip confirmation")
@click.pass_context
def delete_schema(ctx, schema: str, yes: bool):
    """Delete a CSV schema.

    A schema can only be deleted once no import references it.
    """
    db = ctx.obj["db"]
    user = ctx.obj["user"]
    service = CSVSchemaService(db)

    found = resolve_schema_or_exit(ctx, service, user.id, schema)
    if not yes and not click.confirm(f"Are you sure you want to delete CSV schema '{found.name}'?"):
        click.echo("Deletion cancelled.")
        return

    try:
        service.delete_schema(found.id)
        click.echo(f"Deleted CSV schema '{found.name}'")
    except DomainError as e:
        handle_domain_error(ctx, e)


@schema_group.command("detect-date")
@click.argument("csv_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--column", required=True, help="Date column (number or letter)")
@click.option("--start", "data_start", type=int, default=1, show_default=True, help="First data row")
@click.pass_context
def detect_date(ctx, csv_file: str, column: str, data_start: int):
    """Guess the date format of a column in a CSV file."""
    db = ctx.obj["db"]
    service = CSVImportService(db)

    path = Path(csv_file)
    try:
        detected = service.detect_date_format(
            path.read_bytes(), path.name, column, data_start=data_start
        )
    except ValueError as e:
        handle_domain_error(ctx, e)

    if detected is None:
        click.echo("Could not detect a date format; dates will be parsed leniently.")
    else:
        click.echo(f"Detected date format: {detected}")


@schema_group.command("preview")
@click.argument("csv_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--rows", type=click.IntRange(min=1), default=20, show_default=True, help="Data rows to show")
@click.pass_context
def preview_file(ctx, csv_file: str, rows: int):
    """Show the columns of a CSV file to help map a schema."""
    db = ctx.obj["db"]
    service = CSVImportService(db)

    path = Path(csv_file)
    try:
        preview = service.preview_file(path.read_bytes(), path.name, rows=rows)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Data rows: {preview.total_rows} (showing {len(preview.rows)})")
    click.echo("\nColumns:")
    for number, header in enumerate(preview.headers, start=1):
        letter = chr(ord("A") + number - 1) if number <= 26 else ""
        line = f"  {number:>3} {letter:<2} {header}"
        if number in preview.date_formats:
            line += f"  [date: {preview.date_formats[number]}]"
        click.echo(line)

    if preview.rows:
        click.echo("\nRows:")
        for row in preview.rows:
            click.echo("  " + " | ".join(row))


def register_commands(cli):
    """Register CSV schema commands with main CLI."""
    cli.add_command(schema_group, name="schema")
