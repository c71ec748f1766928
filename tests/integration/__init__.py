"""Integration tests.

The SQLite repository, Alembic migrations, account administration and
bootstrap against real database files in a temp directory. Anything the port
hides (statement batching, driver error translation, lock waits) is checked
here.
"""
