"""Bootstrap the message bus with handlers and the account repository."""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING

from bulkpay import config
from bulkpay.adapters.db.engine import make_engine
from bulkpay.adapters.repository import SqlAlchemyAccountRepository
from bulkpay.service_layer.handlers import COMMAND_HANDLERS
from bulkpay.service_layer.messagebus import MessageBus

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

    from bulkpay.interfaces.account_repository import AbstractAccountRepository
    from bulkpay.service_layer.commands import Command

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AppContainer:
    """Wired application objects owned by the entrypoint.

    The engine holds the connection pool; call `close()` on shutdown.
    """

    engine: Engine
    message_bus: MessageBus

    def close(self) -> None:
        """Dispose of the engine's connection pool."""
        self.engine.dispose()


def build_engine(url: str, settings: config.StorageSettings) -> Engine:
    """Build the shared engine for ``url`` tuned by ``settings``."""
    return make_engine(url, settings=settings)


def build_repository(
    engine: Engine, settings: config.StorageSettings
) -> AbstractAccountRepository:
    """Build the production account repository over ``engine``."""
    return SqlAlchemyAccountRepository(
        engine, max_bound_parameters=settings.max_bound_parameters
    )


def build_message_bus(
    repository: AbstractAccountRepository,
    command_handlers: dict[type[Command], Callable[..., None]],
) -> MessageBus:
    """Build a message bus with injected dependencies."""
    dependencies = {"repository": repository}
    injected_command_handlers = {
        command_type: inject_dependencies(handler, dependencies)
        for command_type, handler in command_handlers.items()
    }

    return MessageBus(
        repository,
        command_handlers=injected_command_handlers,
    )


def bootstrap(
    url: str | None = None, settings: config.StorageSettings | None = None
) -> AppContainer:
    """Bootstrap the message bus with handlers and the account repository.

    Args:
        url: Database URL; read from ``BULKPAY_DB_URL`` when omitted.
        settings: Storage tuning; read from ``BULKPAY_*`` variables when omitted.

    Raises:
        DatabaseUrlNotSetError: If no URL is given and ``BULKPAY_DB_URL`` is unset.
        InvalidSettingError: If a ``BULKPAY_*`` variable is malformed.
        UnsupportedStoreError: If the URL names a backend other than SQLite.
    """
    url = url or config.get_db_url()
    settings = settings or config.load_storage_settings()

    engine = build_engine(url, settings)
    try:
        repository = build_repository(engine, settings)
    except Exception:
        engine.dispose()
        raise
    message_bus = build_message_bus(repository, COMMAND_HANDLERS)
    logger.debug("Application bootstrapped (settings=%s)", settings)

    return AppContainer(engine=engine, message_bus=message_bus)


def inject_dependencies(
    handler: Callable, dependencies: Mapping[str, object]
) -> Callable:
    """Inject dependencies into a handler function based on its parameters."""
    params = inspect.signature(handler).parameters
    deps = {
        name: dependency for name, dependency in dependencies.items() if name in params
    }
    return lambda message: handler(message, **deps)
