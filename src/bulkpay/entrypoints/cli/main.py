"""BULKPAY CLI entry point.

Defines the top-level ``bulkpay`` command (via Click-Extra). Its options only
concern logging; they are applied before any subcommand runs. Command groups:

- ``bulkpay transfers`` - submit bulk transfer requests.
- ``bulkpay accounts`` - open accounts and inspect balances.
- ``bulkpay db`` - forward-only database management.

Examples
    $ bulkpay --version
    $ bulkpay db upgrade --force
    $ bulkpay -v transfers submit request.json
    $ bulkpay --force-flush --log-path run.log transfers submit < request.json
"""

import logging
from pathlib import Path

import click
import click_extra as clickx
from platformdirs import user_log_path

from bulkpay import __version__
from bulkpay.logging import (
    DEFAULT_FLIGHT_RECORDER_CAPACITY,
    LoggingOptions,
    configure_logging,
    console_level,
    log_startup,
)

from .accounts import accounts as accounts_group
from .db import db as db_group
from .helpers.log_level_parser import parse_log_level
from .transfers import transfers as transfers_group

logger = logging.getLogger(__name__)

DEFAULT_LOG_PATH = user_log_path("bulkpay", appauthor=False, ensure_exists=True) / "latest.log"

HELP = """BULKPAY command-line interface.

    BULKPAY debits an organization's account and records a batch of outgoing
    credit transfers as one atomic unit: either every transfer is recorded and
    the balance drops by their exact sum, or nothing changes.
    """


@clickx.extra_group(
    version=__version__,
    help=HELP,
    params=[
        clickx.ColorOption(show_envvar=True),
        clickx.TimerOption(show_envvar=True),
        clickx.ExtraVersionOption(),
    ],
)
@click.option(
    "-v",
    "--verbose",
    "verbose",
    count=True,
    help="Show more on the console: -v for INFO, -vv for DEBUG.",
)
@click.option(
    "-q",
    "--quiet",
    "quiet",
    count=True,
    help="Show less on the console: -q for ERROR, -qq for CRITICAL only.",
)
@click.option(
    "--debug/--no-debug",
    default=False,
    help="Developer console output: DEBUG records with logger names and source paths.",
)
@click.option(
    "--log-path",
    type=click.Path(dir_okay=False, writable=True, path_type=Path),
    default=DEFAULT_LOG_PATH,
    envvar="BULKPAY_LOG_PATH",
    show_default=True,
    show_envvar=True,
    help="File the flight recorder dumps to.",
)
@click.option(
    "--flight-recorder-capacity",
    type=click.IntRange(min=1),
    default=DEFAULT_FLIGHT_RECORDER_CAPACITY,
    envvar="BULKPAY_FLIGHT_RECORDER_CAPACITY",
    hidden=True,
    help="Records the flight recorder keeps in memory.",
)
@click.option(
    "--flight-recorder/--no-flight-recorder",
    default=True,
    show_envvar=True,
    help=(
        "Buffer every record at DEBUG, whatever -v/-q say, and dump the buffer "
        "to --log-path as soon as a WARNING or ERROR is logged."
    ),
)
@click.option(
    "--force-flush/--no-force-flush",
    default=False,
    show_default=True,
    show_envvar=True,
    help="Dump the flight recorder to --log-path on exit even if nothing went wrong.",
)
@click.option(
    "-L",
    "--logger-level",
    "logger_levels",
    multiple=True,
    callback=parse_log_level,
    default=("sqlalchemy=WARNING", "alembic=WARNING"),
    envvar="BULKPAY_LOGGER_LEVELS",
    show_default=True,
    show_envvar=True,
    help=(
        "Minimum level for one logger, as NAME=LEVEL; repeatable. "
        "Use -L sqlalchemy.engine=INFO to see the SQL of a bulk transfer."
    ),
)
@clickx.pass_context
def bulkpay(  # pylint: disable=too-many-arguments, too-many-positional-arguments
    ctx: click.Context,
    verbose: int,
    quiet: int,
    debug: bool,
    log_path: Path,
    flight_recorder_capacity: int,
    flight_recorder: bool,
    force_flush: bool,
    logger_levels: dict[str, int],
) -> None:
    """BULKPAY command-line interface."""
    options = LoggingOptions(
        console_level=console_level(verbose, quiet),
        debug=debug,
        # click-extra leaves ctx.color as None unless --no-color was given
        color=ctx.color is not False,
        log_path=log_path if flight_recorder else None,
        flight_recorder_capacity=flight_recorder_capacity,
        flush_on_close=force_flush,
        logger_levels=logger_levels,
    )
    handlers = configure_logging(options)
    log_startup(logger, options, handlers, app_version=__version__)

    ctx.call_on_close(logging.shutdown)


bulkpay.add_command(transfers_group)
bulkpay.add_command(accounts_group)
bulkpay.add_command(db_group)
