"""Exceptions for account repository operations.

Two families live here, both distinct from domain errors:

- ``RepositoryContractError``: the repository was used incorrectly by its
  caller (a bug in orchestration code). These are not meant to be handled.
- ``StorageError``: the backing store failed (unreachable, lock wait expired,
  row vanished, rollback failed). Propagated as opaque failures.
"""

# ============================================================================
#                          Contract violations
# ============================================================================


class RepositoryContractError(Exception):
    """Base class for repository misuse by its caller."""


class OutsideUnitOfWorkError(RepositoryContractError):
    """A scoped operation was called outside an open unit of work."""

    def __init__(self, operation: str) -> None:
        super().__init__(f"{operation}() must be called within a unit of work.")
        self.operation = operation


class NestedUnitOfWorkError(RepositoryContractError):
    """A unit of work was opened from inside another unit of work."""

    def __init__(self) -> None:
        super().__init__("A unit of work is already open on this repository.")


class MissingAccountIdError(RepositoryContractError):
    """A transfer was handed to storage without its owning account id."""

    def __init__(self, position: int) -> None:
        super().__init__(f"Transfer at position {position} is missing bank_account_id.")
        self.position = position


# ============================================================================
#                             Storage faults
# ============================================================================


class StorageError(Exception):
    """Base class for backing-store failures."""


class StorageUnavailableError(StorageError):
    """Transient driver/database failure (connection, I/O, malformed SQL)."""


class LockTimeoutError(StorageError):
    """The write lock could not be acquired before the store's wait timeout."""


class UnsupportedStoreError(StorageError):
    """The configured backing store cannot provide the required locking semantics."""


class StaleAccountError(StorageError):
    """A balance update affected no rows: the account row no longer exists."""

    def __init__(self, account_id: int) -> None:
        super().__init__(f"No rows updated for account ID {account_id}.")
        self.account_id = account_id


class RollbackFailedError(StorageError):
    """Rolling back a failed unit of work raised as well.

    Attributes:
        original (BaseException): The exception that triggered the rollback.
        rollback_error (BaseException): The exception raised by the rollback.
    """

    def __init__(self, original: BaseException, rollback_error: BaseException):
        super().__init__(
            f"Transaction error: {original!r}; rollback error: {rollback_error!r}"
        )
        self.original = original
        self.rollback_error = rollback_error
