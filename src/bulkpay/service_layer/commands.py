"""Module defining Commands."""

from dataclasses import dataclass

from bulkpay.domain.model import BulkTransfer


@dataclass(frozen=True)
class Command:
    """Base class for all commands."""


@dataclass(frozen=True)
class ProcessBulkTransfer(Command):
    """Command to debit an organization account for a batch of credit transfers."""

    bulk_transfer: BulkTransfer
