"""Adapters (outbound) for BULKPAY.

Concrete implementations of the ports in `bulkpay.interfaces`: the SQLAlchemy
account repository backed by SQLite, its schema and migrations, and an
in-memory repository used as a test double.

Dependency rule: may import `bulkpay.interfaces` and `bulkpay.domain`; never
`bulkpay.service_layer`, `bulkpay.bootstrap` or `bulkpay.entrypoints`.
"""
