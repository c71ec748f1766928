"""``bulkpay transfers`` - submit bulk transfer requests.

``submit`` reads one JSON request (from a file or stdin), validates it and
hands it to the message bus. The exit status tells a calling script what
happened (see `ExitCode`):

- ``0`` every transfer was recorded and the account debited;
- ``2`` the request was malformed, nothing was attempted;
- ``3`` the balance does not cover the total, nothing changed;
- ``4`` no account matches the organization IBAN and BIC;
- ``1`` anything else (storage unavailable, lock timeout, ...).
"""

from __future__ import annotations

import logging

import click
import click_extra as clickx
from pydantic import ValidationError

from bulkpay import config
from bulkpay.bootstrap import AppContainer, bootstrap
from bulkpay.domain.errors import AccountNotFoundError, InsufficientFundsError
from bulkpay.interfaces.account_repository import UnsupportedStoreError
from bulkpay.service_layer.commands import ProcessBulkTransfer

from ..requests import BulkTransferRequest
from .db import get_checked_url
from .helpers import error, success
from .helpers.exit_codes import ExitCode

logger = logging.getLogger(__name__)


def build_container() -> AppContainer:
    """Bootstrap the application, turning configuration problems into CLI errors."""
    url = get_checked_url()
    try:
        settings = config.load_storage_settings()
    except config.InvalidSettingError as e:
        raise click.ClickException(str(e)) from e
    try:
        return bootstrap(url, settings)
    except UnsupportedStoreError as e:
        raise click.ClickException(str(e)) from e


@click.group(cls=clickx.ExtraGroup)
def transfers() -> None:
    """Bulk transfer commands."""


@transfers.command()
@click.argument("request_file", type=click.File("r", encoding="utf-8"), default="-")
@click.pass_context
def submit(ctx: click.Context, request_file) -> None:
    """Submit the bulk transfer request in REQUEST_FILE (default: stdin)."""
    try:
        request = BulkTransferRequest.model_validate_json(request_file.read())
    except (ValidationError, UnicodeDecodeError) as e:
        error("Invalid bulk transfer request")
        click.echo(str(e), err=True)
        ctx.exit(ExitCode.INVALID_REQUEST)

    bulk_transfer = request.to_domain()
    container = build_container()
    try:
        container.message_bus.handle(ProcessBulkTransfer(bulk_transfer))
    except InsufficientFundsError as e:
        error(str(e))
        ctx.exit(ExitCode.INSUFFICIENT_FUNDS)
    except AccountNotFoundError as e:
        error(str(e))
        ctx.exit(ExitCode.ACCOUNT_NOT_FOUND)
    except Exception:  # pylint: disable=broad-except
        # already logged with its traceback by the message bus
        error("Bulk transfer failed; nothing was recorded.")
        ctx.exit(ExitCode.INTERNAL_ERROR)
    finally:
        container.close()

    success(
        f"Recorded {len(bulk_transfer.transfers)} transfer(s), "
        f"{bulk_transfer.total_amount()} cents debited from "
        f"{bulk_transfer.organization_iban}."
    )
