"""Custom exceptions for the ledger."""


class LedgerError(Exception):
    """Base exception for all ledger-related errors."""
    pass


class AccountNotFoundError(LedgerError):
    """Raised when an account id cannot be resolved."""
    pass


class AccountAlreadyExistsError(LedgerError):
    """Raised when adding an account whose id is already in the ledger."""
    pass


class InsufficientFundsError(LedgerError):
    """Raised when a withdrawal or transfer exceeds the available balance."""
    pass


class InvalidAmountError(LedgerError):
    """Raised when an invalid amount is provided (e.g., zero or negative)."""
    pass


class InvalidArgumentError(LedgerError):
    """Raised for empty names, empty ids or self-referential ids."""
    pass


class InvalidTargetError(LedgerError):
    """Raised when an account tries to transfer to itself."""
    pass


class RegistryNotLoadedError(LedgerError):
    """Raised when the registry is used before load() has been called."""
    pass


class ImportValidationError(LedgerError):
    """Raised when an imported ledger document is malformed.

    The individual problems are collected in ``errors``.
    """

    def __init__(self, errors=None):
        self.errors = list(errors or [])
        message = "; ".join(self.errors) if self.errors else "Invalid ledger document"
        super().__init__(message)


class UnauthorizedError(LedgerError):
    """Raised when the PIN gate is locked."""
    pass
