"""Message bus: routes commands to their handler.

Handlers arrive with their dependencies already bound (see
`bulkpay.bootstrap.inject_dependencies`) and take the command as their only
argument. The bus adds the logging policy every entrypoint shares: a
business rejection is an expected outcome, anything else is a fault.
"""

import logging
from collections.abc import Callable

from bulkpay.domain.errors import DomainError
from bulkpay.interfaces.account_repository import AbstractAccountRepository

from .commands import Command

logger = logging.getLogger(__name__)

# pylint: disable=too-few-public-methods


class NoHandlerForCommand(LookupError):
    """No handler is registered for the command's type."""

    def __init__(self, cmd: Command) -> None:
        super().__init__(f"No handler registered for {type(cmd).__name__}")
        self.command_type = type(cmd)


def describe_handler(handler: Callable[..., None]) -> str:
    """Name of ``handler`` for log lines, looking through `functools.partial`."""
    target = getattr(handler, "func", handler)
    return getattr(target, "__qualname__", None) or repr(handler)


class MessageBus:
    """Dispatch commands to handlers registered by command type.

    Args:
        repository: The account repository the handlers were bound to; kept
            so entrypoints and tests can reach it.
        command_handlers: Command type to single-argument handler.
    """

    def __init__(
        self,
        repository: AbstractAccountRepository,
        command_handlers: dict[type[Command], Callable[..., None]],
    ) -> None:
        self.repository = repository
        self._command_handlers = command_handlers

    def handle(self, cmd: Command) -> None:
        """Run the handler registered for ``type(cmd)``.

        Domain errors are logged at INFO; any other exception is logged with
        its traceback. Both propagate unchanged.

        Raises:
            NoHandlerForCommand: If the command type has no handler.
        """
        handler = self._command_handlers.get(type(cmd))
        if handler is None:
            logger.error("No handler registered for %s", type(cmd).__name__)
            raise NoHandlerForCommand(cmd)

        name = describe_handler(handler)
        logger.debug("Dispatching %r to %s", cmd, name)
        try:
            handler(cmd)
        except DomainError as e:
            logger.info("Command %s rejected: %s", type(cmd).__name__, e)
            raise
        except Exception:  # pylint: disable=broad-except
            logger.exception("Command %s failed in %s", type(cmd).__name__, name)
            raise
