"""Unit tests.

Domain rules, the bulk transfer handler (against the in-memory repository),
the message bus, configuration, logging helpers, request parsing and engine
setup. No test here needs a database file.
"""
