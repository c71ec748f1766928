"""Interfaces (application boundary) for BULKPAY.

Defines framework-free application contracts: the account repository port
and the adapter-agnostic exceptions shared by the service layer and adapters.
Business rules stay out of this package.

Dependency rule: this package may import `bulkpay.domain` only. It may be
imported by `bulkpay.service_layer`, `bulkpay.adapters`, and
`bulkpay.bootstrap`.
"""
