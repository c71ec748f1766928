"""BULKPAY test suite.

Folder taxonomy
- unit/         : Isolated, fast checks of a single module/class/function.
- contract/     : Behaviour every account repository adapter must share,
                  parametrized over the in-memory and SQLite implementations.
- integration/  : The SQLite adapter, migrations and bootstrap against real
                  database files.
- functional/   : The ``bulkpay`` CLI driven through ``CliRunner``.
- fixtures/     : Shared fixtures and builders (no tests here).

Each test is marked with its folder name by the root ``conftest.py``.
"""
