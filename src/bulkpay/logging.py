"""Logging helpers used by the BULKPAY CLI.

Console output goes through Rich on stderr so stdout stays free for command
results. An optional in-memory "flight recorder" buffers every record and
dumps it to a file once something at WARNING or above happens, which is
usually the moment the buffered DEBUG context (BEGIN/COMMIT, batch inserts)
becomes interesting.

Usage:
    ```py
    options = LoggingOptions(console_level=console_level(verbose=1, quiet=0))
    handlers = configure_logging(options)
    log_startup(logger, options, handlers, app_version=__version__)
    ```
"""

from __future__ import annotations

import logging
import os
import platform
import sys
from collections.abc import Mapping
from dataclasses import dataclass, field
from logging.handlers import MemoryHandler
from pathlib import Path
from typing import TYPE_CHECKING, Literal, TypeAlias

import alembic
import pydantic
import sqlalchemy
from rich.console import Console
from rich.logging import RichHandler

if TYPE_CHECKING:
    from logging import Logger

# pylint: disable=too-few-public-methods

PROJECT_PREFIX = "bulkpay"
DEFAULT_CONSOLE_LEVEL = logging.WARNING
DEFAULT_FLIGHT_RECORDER_CAPACITY = 2000

ColorSystem: TypeAlias = Literal["auto", "standard", "256", "truecolor", "windows"]


class ThirdPartyPrefixFilter(logging.Filter):
    """Tag records from libraries with the top-level name of their logger.

    ``sqlalchemy.engine.Engine`` becomes ``[sqlalchemy]`` in ``record.prefix``;
    ``bulkpay.*`` records get an empty prefix. Records are never dropped.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        ours = record.name == PROJECT_PREFIX or record.name.startswith(f"{PROJECT_PREFIX}.")
        record.prefix = "" if ours else f"[{record.name.partition('.')[0]}]"
        return True


def config_console_handler(
    level: int = logging.INFO, debug_mode: bool = False, color: bool = True
) -> RichHandler:
    """Build the Rich console handler (stderr).

    Args:
        level: Threshold for console records; ignored in debug mode, which
            always shows DEBUG.
        debug_mode: Show logger names, timestamps and source locations.
        color: Allow ANSI colors (click-extra's ``--color/--no-color``).

    Returns:
        RichHandler: Handler to attach to the root logger.
    """
    color_system: ColorSystem | None = "auto" if color else None
    handler = RichHandler(
        level=logging.DEBUG if debug_mode else level,
        console=Console(color_system=color_system, stderr=True),
        rich_tracebacks=True,
        show_time=False,
        show_path=debug_mode,
        enable_link_path=debug_mode,
    )

    if debug_mode:
        handler.setFormatter(logging.Formatter("%(asctime)s %(name)s: %(message)s"))
    else:
        handler.setFormatter(logging.Formatter("%(prefix)s %(message)s"))
        handler.addFilter(ThirdPartyPrefixFilter())
    return handler


def config_flight_recorder(
    path: Path,
    capacity: int = DEFAULT_FLIGHT_RECORDER_CAPACITY,
    flush_level: int = logging.WARNING,
    flush_on_close: bool = False,
) -> MemoryHandler:
    """Build a memory-buffered handler that dumps to ``path``.

    The file is truncated when the handler is built. Buffered records are
    written when one at ``flush_level`` arrives, when ``capacity`` is
    reached, and on close if ``flush_on_close`` is set.
    """
    file_handler = logging.FileHandler(path, mode="w", encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(
        logging.Formatter(
            "[%(asctime)s] [%(process)d:%(threadName)s] "
            "%(levelname)s %(name)s:%(lineno)d: %(message)s"
        )
    )
    return MemoryHandler(
        capacity=capacity,
        flushLevel=flush_level,
        target=file_handler,
        flushOnClose=flush_on_close,
    )


def console_level(verbose: int, quiet: int) -> int:
    """Shift `DEFAULT_CONSOLE_LEVEL` one level per ``-v``/``-q``, clamped to DEBUG..CRITICAL."""
    level = DEFAULT_CONSOLE_LEVEL + 10 * (quiet - verbose)
    return max(logging.DEBUG, min(logging.CRITICAL, level))


@dataclass(frozen=True)
class LoggingOptions:
    """Logging choices made on the command line.

    Attributes:
        console_level: Threshold of the console handler.
        debug: Developer formatting on the console (forces DEBUG).
        color: Allow colored console output.
        log_path: Flight-recorder dump file; ``None`` disables the recorder.
        flight_recorder_capacity: Records kept in memory before a forced dump.
        flush_on_close: Dump the recorder on exit even without a WARNING.
        logger_levels: Minimum level per logger name.
    """

    console_level: int = DEFAULT_CONSOLE_LEVEL
    debug: bool = False
    color: bool = True
    log_path: Path | None = None
    flight_recorder_capacity: int = DEFAULT_FLIGHT_RECORDER_CAPACITY
    flush_on_close: bool = False
    logger_levels: Mapping[str, int] = field(default_factory=dict)

    @property
    def flight_recorder(self) -> bool:
        return self.log_path is not None


def configure_logging(options: LoggingOptions) -> list[logging.Handler]:
    """Replace the root logger's handlers according to ``options``.

    The root logger passes everything (DEBUG); each handler applies its own
    threshold. Per-logger levels from ``options.logger_levels`` apply to
    every handler.

    Returns:
        The installed handlers, console first.
    """
    handlers: list[logging.Handler] = [
        config_console_handler(
            level=options.console_level, debug_mode=options.debug, color=options.color
        )
    ]
    if options.log_path is not None:
        handlers.append(
            config_flight_recorder(
                path=options.log_path,
                capacity=options.flight_recorder_capacity,
                flush_on_close=options.flush_on_close,
            )
        )

    logging.basicConfig(level=logging.DEBUG, handlers=handlers, force=True)
    for name, level in options.logger_levels.items():
        logging.getLogger(name).setLevel(level)
    return handlers


def log_startup(
    logger: Logger,
    options: LoggingOptions,
    handlers: list[logging.Handler],
    *,
    app_version: str,
) -> None:
    """Log one INFO summary line, then environment details at DEBUG.

    The DEBUG lines mostly end up in the flight recorder, where they give a
    dumped log its context: interpreter, platform, library versions and the
    logging setup itself.
    """
    logger.info(
        "BULKPAY %s - console=%s, flight-recorder=%s",
        app_version,
        logging.getLevelName(options.console_level),
        "ON" if options.flight_recorder else "OFF",
    )

    for label, value in (
        ("Python", sys.version.split()[0]),
        ("Platform", f"{platform.system()} {platform.release()}"),
        ("PID", os.getpid()),
        ("CWD", Path.cwd()),
        ("SQLAlchemy", sqlalchemy.__version__),
        ("Alembic", alembic.__version__),
        ("Pydantic", pydantic.VERSION),
        ("Handlers", [type(h).__name__ for h in handlers]),
    ):
        logger.debug("%s: %s", label, value)

    if options.flight_recorder:
        logger.debug(
            "Flight recorder: path=%s, capacity=%s, flush_on_close=%s",
            options.log_path,
            options.flight_recorder_capacity,
            options.flush_on_close,
        )
    overrides = {name: logging.getLevelName(lvl) for name, lvl in options.logger_levels.items()}
    logger.debug("Per-logger overrides: %s", overrides or "<none>")
