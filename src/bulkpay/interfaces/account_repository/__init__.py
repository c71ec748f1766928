"""Bulkpay Account Repository Interface Package"""

from .account_repository import AbstractAccountRepository
from .errors import (
    LockTimeoutError,
    MissingAccountIdError,
    NestedUnitOfWorkError,
    OutsideUnitOfWorkError,
    RepositoryContractError,
    RollbackFailedError,
    StaleAccountError,
    StorageError,
    StorageUnavailableError,
    UnsupportedStoreError,
)

__all__ = [
    "AbstractAccountRepository",
    "LockTimeoutError",
    "MissingAccountIdError",
    "NestedUnitOfWorkError",
    "OutsideUnitOfWorkError",
    "RepositoryContractError",
    "RollbackFailedError",
    "StaleAccountError",
    "StorageError",
    "StorageUnavailableError",
    "UnsupportedStoreError",
]
