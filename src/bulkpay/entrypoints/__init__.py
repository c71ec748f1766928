"""Entrypoints (inbound adapters) for BULKPAY.

Expose the application to the outside world through the ``bulkpay`` CLI:
parse and validate inputs, hand commands to the message bus built by
`bulkpay.bootstrap`, and present results.
"""
