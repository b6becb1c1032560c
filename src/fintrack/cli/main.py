"""Main CLI entry point."""

import logging

import click
from fintrack.database.factories import create_sqlite_database
from fintrack.domain.account import UserService

# Import and register all commands at module level
from fintrack.cli.commands import (
    account,
    schema,
    tag,
    import_cmd,
)


def configure_logging(verbosity: int) -> None:
    """Map -v flags to a log level; warnings are always shown."""
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides FINTRACK_DB_PATH environment variable)",
    envvar="FINTRACK_DB_PATH",
)
@click.option(
    "--user",
    default="default",
    show_default=True,
    help="Name of the acting user (overrides FINTRACK_USER environment variable)",
    envvar="FINTRACK_USER",
)
@click.option("-v", "--verbose", count=True, help="Show progress logging (-vv for debug)")
@click.pass_context
def cli(ctx, db_path: str | None, user: str, verbose: int):
    """Fintrack - Bank statement import and tracking.

    Map the columns of your bank's CSV export once, preview each statement,
    review the rows and import them without duplicates.
    """
    ctx.ensure_object(dict)
    configure_logging(verbose)

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.obj["user"] = UserService(db).get_or_create_user(user)
        ctx.call_on_close(db.disconnect)


# Register all commands
account.register_commands(cli)
schema.register_commands(cli)
tag.register_commands(cli)
import_cmd.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
