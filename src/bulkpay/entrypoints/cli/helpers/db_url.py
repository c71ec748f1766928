"""Database URL helpers for CLI output.

`sanitize_url` renders a database URL with any password replaced by ``***``
so it can be shown in prompts and error messages. Parsing only, no I/O.

Examples:
    ```bash
    >>> sanitize_url("sqlite+pysqlite:////var/lib/bulkpay/payments.db")
    'sqlite+pysqlite:////var/lib/bulkpay/payments.db'
    ```
"""

from sqlalchemy.engine import make_url


def sanitize_url(url: str) -> str:
    """Return ``url`` with its password redacted, if it has one."""
    return make_url(url).render_as_string(hide_password=True)
