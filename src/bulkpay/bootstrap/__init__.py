"""Bootstrap (composition root) for BULKPAY.

Assembles the application at runtime: builds the engine once, wires the
account repository into the service-layer handlers and composes the message
bus.

Import rules:
- Entry points import *this* package for anything that touches storage.
- This package may import: `bulkpay.adapters`, `bulkpay.service_layer`,
  `bulkpay.interfaces`, `bulkpay.domain`, and `bulkpay.config`.
- Inner layers must not import `bulkpay.bootstrap`.
"""

from .bootstrap import (
    AppContainer,
    bootstrap,
    build_engine,
    build_message_bus,
    build_repository,
    inject_dependencies,
)

__all__ = [
    "AppContainer",
    "bootstrap",
    "build_engine",
    "build_message_bus",
    "build_repository",
    "inject_dependencies",
]
