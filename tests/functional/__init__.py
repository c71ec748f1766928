"""Functional tests.

The ``bulkpay`` CLI driven through ``click.testing.CliRunner`` as a user
would run it: exit codes, stdout/stderr messages and the resulting database
state.
"""
