"""``flask seed``: demo events, participants and activity logs."""

from __future__ import annotations

import logging

import click
from flask import current_app
from flask.cli import with_appcontext
from sqlalchemy.exc import SQLAlchemyError

from certadmin.core.extensions import db
from certadmin.seeds import seed_data

LOGGER = logging.getLogger(__name__)

SEED_TABLES = ("events", "participants", "activity_logs")

verbose_option = click.option("--verbose", is_flag=True, help="Log every seeded table.")


def _seed(verbose: bool) -> dict[str, dict[str, int]]:
    try:
        return seed_data.run_all(db, verbose=verbose)
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise click.ClickException(f"Seeding failed: {exc}") from exc


def _report(summary: dict[str, dict[str, int]]) -> None:
    """One line per table, in foreign-key order."""
    for table in SEED_TABLES:
        counters = summary.get(table, {})
        click.echo(
            f"{table}: {counters.get('created', 0)} created, "
            f"{counters.get('existing', 0)} existing"
        )


@click.group("seed")
def seed_cli() -> None:
    """Load demo data for the admin listings."""


@seed_cli.command("run")
@verbose_option
@with_appcontext
def run_command(verbose: bool) -> None:
    """Create missing tables and insert demo rows that are not there yet."""
    db.create_all()
    _report(_seed(verbose))


@seed_cli.command("fresh")
@click.option("--yes", is_flag=True, help="Do not ask before dropping tables.")
@verbose_option
@with_appcontext
def fresh_command(yes: bool, verbose: bool) -> None:
    """Drop every table, recreate the schema and seed it."""
    if not (current_app.debug or current_app.testing):
        raise click.UsageError("'flask seed fresh' only runs with DEBUG or TESTING enabled.")
    if not yes:
        click.confirm("Drop all certificate tables and reseed?", abort=True)
    LOGGER.info("seed.fresh", extra={"resource": ",".join(SEED_TABLES)})
    db.session.remove()
    db.drop_all()
    db.create_all()
    _report(_seed(verbose))
