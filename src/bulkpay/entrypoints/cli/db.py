"""``bulkpay db`` - forward-only schema management on top of Alembic.

The ledger is append-only, so only the read-only commands and ``upgrade``
are exposed; there is no ``downgrade`` or ``stamp``.

Alembic's own output goes to stdout. Notices, warnings and the upgrade
confirmation prompt go to stderr.

All commands that touch the database read ``BULKPAY_DB_URL``
(e.g. ``sqlite:///payments.db``) and fail with a `click.ClickException`
explaining what to fix when it is missing, malformed or unreachable.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from enum import Enum

import click
import click_extra as clickx
from alembic import command
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory
from sqlalchemy import text
from sqlalchemy.exc import ArgumentError, OperationalError

from bulkpay import config
from bulkpay.adapters.db.engine import make_engine

from .helpers import error, sanitize_url, success, warn

MISSING_DB_URL_MSG = (
    "BULKPAY_DB_URL is not set.\n\n"
    "Point it at the SQLite database file to use, for example:\n"
    "  export BULKPAY_DB_URL='sqlite:///payments.db'\n"
    "  (PowerShell: $env:BULKPAY_DB_URL='sqlite:///payments.db')"
)

INVALID_URL_FORMAT_MSG = (
    "BULKPAY_DB_URL could not be parsed as a database URL "
    "(expected something like 'sqlite:///payments.db')."
)

CANNOT_CONNECT_MSG = (
    "Could not open the database named by BULKPAY_DB_URL.\n"
    "Check that the URL is right and that the file's directory exists."
)

UPGRADE_SCHEMA_WARNING = (
    "The database schema is about to be migrated to the latest revision.\n"
    "Take a backup of the database file first."
)

UPGRADE_SCHEMA_INSTRUCTIONS = "Run 'bulkpay db upgrade' to bring the schema up to date."

verbose_option = click.option(
    "--verbose", "-v", is_flag=True, help="Pass Alembic's verbose flag through."
)


def get_checked_url() -> str:
    """Return ``BULKPAY_DB_URL`` once a ``SELECT 1`` has succeeded on it.

    Raises:
        click.ClickException: With guidance when the URL is missing, malformed
            or the database is unreachable.
    """
    try:
        url = config.get_db_url()
    except config.DatabaseUrlNotSetError as e:
        raise click.ClickException(MISSING_DB_URL_MSG) from e

    try:
        engine = make_engine(url)
    except ArgumentError as e:
        raise click.ClickException(INVALID_URL_FORMAT_MSG) from e
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))  # pragma: no mutate
    except OperationalError as e:
        raise click.ClickException(CANNOT_CONNECT_MSG) from e
    finally:
        engine.dispose()
    return url


class SchemaStatus(Enum):
    """Where the database schema stands relative to the migration scripts."""

    UP_TO_DATE = "up to date"
    OUT_OF_DATE = "out of date"
    UNINITIALIZED = "uninitialized"


@dataclass(frozen=True)
class SchemaState:
    """Backend, applied revision and status of one database."""

    backend: str
    revision: str | None
    status: SchemaStatus

    def describe(self) -> str:
        if self.revision is None:
            return self.status.value
        return f"{self.revision} ({self.status.value})"


def inspect_schema(url: str) -> SchemaState:
    """Compare the revision applied to ``url`` with the newest migration script."""
    head = ScriptDirectory.from_config(config.build_alembic_config(db_url=url)).get_current_head()
    engine = make_engine(url)
    try:
        with engine.connect() as conn:
            revision = MigrationContext.configure(conn).get_current_revision()
    finally:
        engine.dispose()

    if revision is None:
        status = SchemaStatus.UNINITIALIZED
    elif revision == head:
        status = SchemaStatus.UP_TO_DATE
    else:
        status = SchemaStatus.OUT_OF_DATE  # pragma: nocover
    return SchemaState(backend=engine.dialect.name, revision=revision, status=status)


@click.group(cls=clickx.ExtraGroup)
def db() -> None:
    """Inspect and migrate the BULKPAY database schema."""


@db.command()
@verbose_option
def current(verbose: bool) -> None:
    """Print the revision the database is at."""
    cfg = config.build_alembic_config(db_url=get_checked_url(), stdout=sys.stdout)
    command.current(cfg, verbose=verbose)


@db.command()
@verbose_option
def heads(verbose: bool) -> None:
    """Print the newest migration revision (no database needed)."""
    command.heads(config.build_alembic_config(stdout=sys.stdout), verbose=verbose)


@db.command()
@verbose_option
@click.option(
    "--indicate-current",
    "-i",
    is_flag=True,
    help="Mark the revision the database is at (needs BULKPAY_DB_URL).",
)
def history(verbose: bool, indicate_current: bool) -> None:
    """Print the migration history."""
    url = get_checked_url() if indicate_current else None
    cfg = config.build_alembic_config(db_url=url, stdout=sys.stdout)
    command.history(cfg, verbose=verbose, indicate_current=indicate_current)


@db.command()
@click.option("--sql", is_flag=True, help="Print the migration SQL instead of running it.")
@click.option("--force", is_flag=True, help="Do not ask for confirmation.")
def upgrade(sql: bool, force: bool) -> None:
    """Migrate the database to the newest revision."""
    url = get_checked_url()
    if not (force or sql):
        warn(UPGRADE_SCHEMA_WARNING)
        click.echo(f"Database: {click.style(sanitize_url(url), underline=True)}", err=True)
        click.confirm("Continue with the upgrade?", abort=True, err=True)
    command.upgrade(config.build_alembic_config(db_url=url, stdout=sys.stdout), "head", sql=sql)
    if not sql:
        success("Schema upgraded.")


@db.command()
def status() -> None:
    """Report whether the database is reachable and its schema current.

    Always exits 0; problems are reported, not raised.
    """
    try:
        url = get_checked_url()
    except click.ClickException as e:
        error("Database unreachable")
        click.echo(e.format_message())
        return

    state = inspect_schema(url)
    success("Database reachable")
    click.echo(f"Backend : {state.backend}")
    click.echo(f"URL     : {sanitize_url(url)}")
    click.echo(f"Schema  : {state.describe()}")
    if state.status is not SchemaStatus.UP_TO_DATE:
        warn(UPGRADE_SCHEMA_INSTRUCTIONS)
