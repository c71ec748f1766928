"""Domain layer for BULKPAY.

Contains business rules: accounts, transfers, bulk transfers and the balance
arithmetic that governs them. This package is deliberately
technology-agnostic.

Dependency rule: do not import from `bulkpay.adapters` or `bulkpay.entrypoints`.
"""
