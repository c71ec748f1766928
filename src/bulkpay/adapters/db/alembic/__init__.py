"""Alembic migration scripts for BULKPAY (located via importlib.resources)."""
