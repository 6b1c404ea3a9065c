"""Data models for the ledger."""

from .account import Account, AccountType, Currency, RateUnit
from .transaction import Transaction, TransactionType
from .exceptions import (
    LedgerError,
    AccountNotFoundError,
    AccountAlreadyExistsError,
    InsufficientFundsError,
    InvalidAmountError,
    InvalidArgumentError,
    InvalidTargetError,
    RegistryNotLoadedError,
    ImportValidationError,
    UnauthorizedError,
)

__all__ = [
    "Account",
    "AccountType",
    "Currency",
    "RateUnit",
    "Transaction",
    "TransactionType",
    "LedgerError",
    "AccountNotFoundError",
    "AccountAlreadyExistsError",
    "InsufficientFundsError",
    "InvalidAmountError",
    "InvalidArgumentError",
    "InvalidTargetError",
    "RegistryNotLoadedError",
    "ImportValidationError",
    "UnauthorizedError",
]
