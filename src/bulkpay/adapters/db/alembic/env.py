"""Alembic environment for BULKPAY.

Migrations only ever target SQLite, so every run uses batch mode (SQLite
cannot ALTER most column properties in place) and compares column types and
server defaults during autogenerate.

The database URL comes from ``sqlalchemy.url`` as set by
`bulkpay.config.build_alembic_config`, or from ``BULKPAY_DB_URL`` when Alembic
is driven from its own command line.
"""

import os

from alembic import context
from sqlalchemy import create_engine, pool

from bulkpay.adapters.db.schema import metadata
from bulkpay.config import DB_URL_ENV

# pylint: disable=no-member

COMMON_OPTIONS = {
    "target_metadata": metadata,
    "compare_type": True,
    "compare_server_default": True,
    "render_as_batch": True,
}


def database_url() -> str:
    url = context.config.get_main_option("sqlalchemy.url") or os.environ.get(DB_URL_ENV)
    if not url:
        raise RuntimeError(f"Set {DB_URL_ENV} to your database URL.")
    return url


def run_migrations_offline() -> None:
    """Write the migration SQL to Alembic's output instead of executing it."""
    context.configure(url=database_url(), literal_binds=True, **COMMON_OPTIONS)
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Apply migrations over a single unpooled connection."""
    engine = create_engine(database_url(), poolclass=pool.NullPool)
    try:
        with engine.connect() as connection:
            context.configure(connection=connection, **COMMON_OPTIONS)
            with context.begin_transaction():
                context.run_migrations()
    finally:
        engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
