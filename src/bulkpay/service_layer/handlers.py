"""Command handlers for bulk transfers."""

from __future__ import annotations

import logging
from collections.abc import Callable

from bulkpay.interfaces.account_repository import AbstractAccountRepository
from bulkpay.service_layer import commands

logger = logging.getLogger(__name__)


def process_bulk_transfer(
    cmd: commands.ProcessBulkTransfer,
    repository: AbstractAccountRepository,
) -> None:
    """Debit the organization account and record every transfer, atomically.

    An empty batch is a no-op: no unit of work is opened and nothing is
    written. Otherwise the account is looked up, debited by the batch total,
    written back, and the transfers are stamped with the account id and
    stored, all inside one unit of work. Any exception rolls the whole unit
    back and propagates unchanged.

    Raises:
        AccountNotFoundError: No account matches the organization IBAN and BIC.
        InsufficientFundsError: The balance does not cover the batch total.
    """
    bulk_transfer = cmd.bulk_transfer
    if not bulk_transfer.transfers:
        logger.debug(
            "Empty bulk transfer for %s; nothing to do",
            bulk_transfer.organization_iban,
        )
        return

    total = bulk_transfer.total_amount()

    def debit_and_record(repo: AbstractAccountRepository) -> None:
        account = repo.get_account(
            bulk_transfer.organization_iban, bulk_transfer.organization_bic
        )
        account.debit(total)
        repo.update_balance(account)
        repo.add_transfers([t.for_account(account.id) for t in bulk_transfer.transfers])

    repository.atomic(debit_and_record)

    logger.info(
        "Processed bulk transfer of %d transfer(s) totalling %d cents from %s",
        len(bulk_transfer.transfers),
        total,
        bulk_transfer.organization_iban,
    )


COMMAND_HANDLERS: dict[type, Callable[..., None]] = {
    commands.ProcessBulkTransfer: process_bulk_transfer,
}
