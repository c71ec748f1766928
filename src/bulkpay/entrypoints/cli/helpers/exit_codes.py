"""Process exit codes shared by the BULKPAY commands."""

from enum import IntEnum


class ExitCode(IntEnum):
    """Exit statuses a script driving ``bulkpay`` can branch on.

    ``1`` is left as Click's generic failure status (``ClickException``) and
    is also used for unexpected internal errors.
    """

    OK = 0
    INTERNAL_ERROR = 1
    INVALID_REQUEST = 2
    INSUFFICIENT_FUNDS = 3
    ACCOUNT_NOT_FOUND = 4
