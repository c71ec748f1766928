"""Contract tests for the account repository port.

Every test receives a harness fixture parametrized over the in-memory and
SQLite repositories and asserts only what the port promises: lookups,
commit/rollback of a unit of work and write serialization.
"""
