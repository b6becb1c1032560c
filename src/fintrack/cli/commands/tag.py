"""Tag management commands."""

import click
from fintrack.cli.error_handling import handle_domain_error
from fintrack.domain.errors import DomainError
from fintrack.domain.tagging import MATCH_TYPES, TagService
from fintrack.utils.amount_parser import to_minor_units
from fintrack.utils.date_parser import parse_date


@click.group()
def tag_group():
    """Manage tags and their matching rules."""
    pass


@tag_group.command("create")
@click.argument("name")
@click.option("--description", "description_match", help="Text to match in the description")
@click.option(
    "--match-type",
    type=click.Choice(MATCH_TYPES),
    default="contains",
    show_default=True,
    help="How --description is compared",
)
@click.option("--balance", "balance_match", help="Exact balance to match, e.g. 1250.00")
@click.option("--date", "date_match", help="Exact date to match")
@click.pass_context
def create_tag(
    ctx,
    name: str,
    description_match: str | None,
    match_type: str,
    balance_match: str | None,
    date_match: str | None,
):
    """Create a tag, optionally with a rule that suggests it during preview.

    Examples:
        fintrack tag create Groceries --description TESCO
        fintrack tag create Rent --description "STANDING ORDER" --match-type starts_with
    """
    db = ctx.obj["db"]
    user = ctx.obj["user"]
    service = TagService(db)

    try:
        balance = to_minor_units(balance_match) if balance_match is not None else None
        if balance_match is not None and balance is None:
            click.echo(f"Error: Invalid balance '{balance_match}'", err=True)
            ctx.exit(1)
        match_date = parse_date(date_match) if date_match is not None else None

        tag_id = service.create_tag(user.id, name)
        click.echo(f"Created tag '{name}' (ID: {tag_id})")

        if description_match or balance is not None or match_date is not None:
            service.add_criteria(
                tag_id,
                description_match=description_match,
                match_type=match_type,
                balance_match=balance,
                date_match=match_date,
            )
            click.echo("Added matching rule")
    except DomainError as e:
        handle_domain_error(ctx, e)


@tag_group.command("list")
@click.pass_context
def list_tags(ctx):
    """List the current user's tags and their rules."""
    db = ctx.obj["db"]
    user = ctx.obj["user"]
    service = TagService(db)

    tags = service.list_tags(user.id)
    if not tags:
        click.echo("No tags found.")
        return

    criteria_by_tag: dict[int, list] = {}
    for criteria in service.list_criteria(user.id):
        criteria_by_tag.setdefault(criteria.tag_id, []).append(criteria)

    click.echo("\nTags:")
    click.echo("-" * 40)
    for tag in tags:
        click.echo(f"ID: {tag.id:3d} | {tag.name}")
        for criteria in criteria_by_tag.get(tag.id, []):
            parts = []
            if criteria.description_match:
                parts.append(f"description {criteria.match_type} '{criteria.description_match}'")
            if criteria.balance_match is not None:
                parts.append(f"balance = {criteria.balance_match}")
            if criteria.date_match is not None:
                parts.append(f"date = {criteria.date_match.isoformat()}")
            click.echo(f"        rule: {' and '.join(parts)}")


def register_commands(cli):
    """Register tag commands with main CLI."""
    cli.add_command(tag_group, name="tag")
