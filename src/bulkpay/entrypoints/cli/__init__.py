"""The ``bulkpay`` command-line interface."""
