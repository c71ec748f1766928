"""BULKPAY

An atomic bulk-transfer engine. A batch of outgoing credit transfers for one
organization account is recorded, and the account debited by their exact sum,
as a single unit of work: either everything is persisted or nothing changes.
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
