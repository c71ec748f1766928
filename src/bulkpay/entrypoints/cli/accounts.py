"""``bulkpay accounts`` - open accounts and inspect balances."""

from __future__ import annotations

import json
from dataclasses import asdict

import click
import click_extra as clickx

from bulkpay import config
from bulkpay.adapters.account_admin import (
    DuplicateAccountError,
    get_account_summary,
    open_account,
)
from bulkpay.bootstrap import build_engine

from .db import get_checked_url
from .helpers import error, success
from .helpers.exit_codes import ExitCode


def _engine():
    try:
        settings = config.load_storage_settings()
    except config.InvalidSettingError as e:
        raise click.ClickException(str(e)) from e
    return build_engine(get_checked_url(), settings)


@click.group(cls=clickx.ExtraGroup)
def accounts() -> None:
    """Account administration commands."""


@accounts.command(name="open")
@click.option("--name", "organization_name", required=True, help="Organization name.")
@click.option("--iban", required=True, help="Account IBAN.")
@click.option("--bic", required=True, help="Account BIC.")
@click.option(
    "--balance-cents",
    type=click.IntRange(min=0),
    default=0,
    show_default=True,
    help="Opening balance in cents.",
)
def open_(organization_name: str, iban: str, bic: str, balance_cents: int) -> None:
    """Open a new account."""
    engine = _engine()
    try:
        account_id = open_account(
            engine,
            organization_name=organization_name,
            iban=iban,
            bic=bic,
            balance_cents=balance_cents,
        )
    except DuplicateAccountError as e:
        raise click.ClickException(str(e)) from e
    finally:
        engine.dispose()
    success(f"Opened account {account_id} for {organization_name}.")
    click.echo(account_id)


@accounts.command()
@click.option("--iban", required=True, help="Account IBAN.")
@click.option("--bic", required=True, help="Account BIC.")
@click.pass_context
def show(ctx: click.Context, iban: str, bic: str) -> None:
    """Print an account's balance and transfer totals as JSON."""
    engine = _engine()
    try:
        summary = get_account_summary(engine, iban, bic)
    finally:
        engine.dispose()

    if summary is None:
        error(f"Account with IBAN '{iban}' and BIC '{bic}' not found.")
        ctx.exit(ExitCode.ACCOUNT_NOT_FOUND)
    click.echo(json.dumps(asdict(summary), indent=2))
