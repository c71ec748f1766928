"""Service layer for BULKPAY.

Commands, the handlers that carry them out (the bulk transfer orchestrator),
and the message bus routing commands to handlers. Handlers depend on ports
from `bulkpay.interfaces`, never on concrete adapters.
"""
