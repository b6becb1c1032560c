"""CSV import commands: preview, review file, finalize and history."""

import json
from pathlib import Path

import click
from fintrack.cli.account_resolution import resolve_account_or_exit, resolve_schema_or_exit
from fintrack.cli.error_handling import handle_domain_error
from fintrack.domain.account import AccountService
from fintrack.domain.csv_import import CSVImportService
from fintrack.domain.csv_schema import CSVSchemaService
from fintrack.domain.entities import CandidateStatus, TransactionCandidate
from fintrack.domain.errors import DomainError, ImportFailedError
from fintrack.domain.imports import ImportService
from fintrack.domain.tagging import CriteriaTagSuggester
from fintrack.utils.amount_parser import format_minor_units


def _signed_amount(candidate: TransactionCandidate) -> str:
    if candidate.paid_in:
        return format_minor_units(candidate.paid_in)
    if candidate.paid_out:
        return "-" + format_minor_units(candidate.paid_out)
    return "0.00"


@click.group()
def import_group():
    """Import bank statements in two steps: preview, then finalize."""
    pass


@import_group.command("preview")
@click.argument("csv_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--schema", required=True, help="CSV schema name or ID")
@click.option(
    "-o",
    "--output",
    type=click.Path(dir_okay=False),
    help="Review file to write (default: <file>.review.json)",
)
@click.pass_context
def preview_import(ctx, csv_file: str, schema: str, output: str | None):
    """Preview a CSV file and write a review file.

    Nothing is imported. Edit the review file to set each transaction's
    status to "approved" or "discarded" (and optionally add tag IDs), then
    run 'import finalize'.

    Examples:
        fintrack import preview statement.csv --schema "My Bank"
        fintrack import preview statement.csv --schema 1 -o march.json
    """
    db = ctx.obj["db"]
    user = ctx.obj["user"]
    schema_service = CSVSchemaService(db)
    service = CSVImportService(db, tag_suggester=CriteriaTagSuggester(db))

    found = resolve_schema_or_exit(ctx, schema_service, user.id, schema)

    path = Path(csv_file)
    try:
        result = service.preview_transactions(path.read_bytes(), path.name, found, user.id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    review_path = Path(output) if output else path.with_name(path.name + ".review.json")
    review = {
        "schema_id": found.id,
        "schema_name": found.name,
        "filename": path.name,
        **result.to_dict(),
    }
    review_path.write_text(json.dumps(review, indent=2), encoding="utf-8")

    click.echo(f"\nPreview of {path.name} with schema '{found.name}':")
    click.echo("-" * 80)
    for candidate in result.candidates:
        marker = "D" if candidate.is_duplicate else " "
        click.echo(
            f"{marker} row {candidate.row_number:4d} | {candidate.date} | "
            f"{_signed_amount(candidate):>12s} | {candidate.description[:40]}"
        )
    for error in result.errors:
        click.echo(f"  row {error.row_number:4d} | Error: {error.message}", err=True)

    click.echo(f"\n  Rows: {result.total_rows}")
    click.echo(f"  New: {result.valid_count}")
    click.echo(f"  Duplicates: {result.duplicate_count}")
    click.echo(f"  Errors: {len(result.errors)}")
    click.echo(f"\nReview file written to {review_path}")


def _load_review(ctx, review_file: str) -> dict:
    try:
        review = json.loads(Path(review_file).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        click.echo(f"Error: Could not read review file: {e}", err=True)
        ctx.exit(1)
    if not isinstance(review, dict) or "schema_id" not in review:
        click.echo("Error: Review file is missing the schema_id", err=True)
        ctx.exit(1)
    return review


@import_group.command("finalize")
@click.argument("review_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--account", required=True, help="Account name or ID to import into")
@click.option(
    "--approve-all",
    is_flag=True,
    help="Approve every pending transaction in the review file",
)
@click.pass_context
def finalize_import(ctx, review_file: str, account: str, approve_all: bool):
    """Import the approved transactions of a review file.

    Either every approved transaction is imported or none is.
    """
    db = ctx.obj["db"]
    user = ctx.obj["user"]
    account_service = AccountService(db)
    schema_service = CSVSchemaService(db)
    service = CSVImportService(db)

    review = _load_review(ctx, review_file)
    target = resolve_account_or_exit(ctx, account_service, user.id, account)
    schema = resolve_schema_or_exit(ctx, schema_service, user.id, review["schema_id"])

    try:
        candidates = [TransactionCandidate.from_dict(item) for item in review.get("transactions", [])]
    except DomainError as e:
        handle_domain_error(ctx, e)

    if approve_all:
        for candidate in candidates:
            if candidate.status == CandidateStatus.PENDING:
                candidate.status = CandidateStatus.APPROVED

    if not any(c.status == CandidateStatus.APPROVED for c in candidates):
        click.echo("No approved transactions to import.")
        return

    try:
        record = service.import_reviewed_transactions(
            candidates,
            schema,
            user_id=user.id,
            account_id=target.id,
            filename=review.get("filename") or Path(review_file).name,
            total_rows=review.get("total_rows"),
        )
    except ImportFailedError as e:
        click.echo(f"Error: {e}", err=True)
        click.echo(f"Import {e.import_id} marked as failed; nothing was imported.", err=True)
        ctx.exit(1)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"\nImport complete (ID: {record.id}):")
    click.echo(f"  Imported: {record.imported_rows} transactions")
    click.echo(f"  Skipped: {record.duplicate_rows} duplicates")


@import_group.command("list")
@click.pass_context
def list_imports(ctx):
    """List past imports, newest first."""
    db = ctx.obj["db"]
    user = ctx.obj["user"]
    service = ImportService(db)

    imports = service.list_imports(user.id)
    if not imports:
        click.echo("No imports found.")
        return

    click.echo("\nImports:")
    click.echo("-" * 80)
    for record in imports:
        click.echo(
            f"ID: {record.id:3d} | {record.created_at:%Y-%m-%d %H:%M} | {record.status.value:10s} | "
            f"{record.imported_rows:4d} imported | {record.filename}"
        )


@import_group.command("show")
@click.argument("import_id", type=int)
@click.pass_context
def show_import(ctx, import_id: int):
    """Show an import with its statistics and latest transactions."""
    db = ctx.obj["db"]
    user = ctx.obj["user"]
    service = ImportService(db)

    try:
        record = service.require_import(import_id, user.id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    stats = service.get_import_stats(record)
    click.echo(f"Import {record.id}: {record.filename}")
    click.echo(f"  Status: {record.status.value}")
    if record.error_message:
        click.echo(f"  Error: {record.error_message}")
    click.echo(f"  Total rows: {stats['total_rows']}")
    click.echo(f"  Processed: {stats['processed_rows']}")
    click.echo(f"  Imported: {stats['imported_rows']}")
    click.echo(f"  Duplicates: {stats['duplicate_rows']}")
    click.echo(f"  Not processed: {stats['error_rows']}")
    click.echo(f"  Success rate: {stats['success_rate']}%")

    transactions = service.recent_transactions(record.id)
    if transactions:
        click.echo("\nLatest transactions:")
        for txn in transactions:
            amount = (
                format_minor_units(txn.paid_in)
                if txn.paid_in
                else "-" + format_minor_units(txn.paid_out or 0)
            )
            click.echo(f"  {txn.date.isoformat()} | {amount:>12s} | {txn.description or ''}")


@import_group.command("delete")
@click.argument("import_id", type=int)
@click.option("--yes", is_flag=True, help="Skip confirmation")
@click.pass_context
def delete_import(ctx, import_id: int, yes: bool):
    """Delete an import and every transaction it created."""
    db = ctx.obj["db"]
    user = ctx.obj["user"]
    service = ImportService(db)

    try:
        record = service.require_import(import_id, user.id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not yes and not click.confirm(
        f"Delete import {record.id} ({record.filename}) and its transactions?"
    ):
        click.echo("Deletion cancelled.")
        return

    removed = service.delete_import(record.id, user.id)
    click.echo(f"Deleted import {record.id} and {removed} transaction{'s' if removed != 1 else ''}")


def register_commands(cli):
    """Register import commands with main CLI."""
    cli.add_command(import_group, name="import")
