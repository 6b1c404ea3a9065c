"""Account registry: orchestration layer over the ledger accounts."""

import logging
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Callable

from ledger.models.account import Account, AccountType, Currency, RateUnit
from ledger.models.exceptions import (
    AccountAlreadyExistsError,
    AccountNotFoundError,
    InsufficientFundsError,
    InvalidAmountError,
    InvalidArgumentError,
    RegistryNotLoadedError,
)
from ledger.models.money import MAX_AMOUNT, ZERO, check_maximum, to_amount
from ledger.models.transaction import Transaction, utcnow
from ledger.repositories.codec import build_export, parse_export
from ledger.repositories.ledger_store import LedgerStore

logger = logging.getLogger(__name__)

ACCRUAL_PERIOD = timedelta(days=365)


class AccountRegistry:
    """Holds the in-memory ledger and persists it after every mutation."""

    def __init__(
        self,
        store: LedgerStore,
        clock: Callable[[], datetime] = utcnow,
        default_savings_rate: Decimal = Decimal("0.01"),
        max_amount: Decimal = MAX_AMOUNT,
    ):
        """
        Initialize the registry.

        Args:
            store: Store the account collection is loaded from and saved to
            clock: Returns the current time as an aware UTC datetime
            default_savings_rate: Rate given to savings accounts opened without one
            max_amount: Largest amount accepted in one movement or as an opening balance
        """
        self._store = store
        self._clock = clock
        self._default_savings_rate = to_amount(default_savings_rate)
        self._max_amount = to_amount(max_amount)
        self._accounts: list[Account] = []
        self._loaded = False

    @property
    def loaded(self) -> bool:
        return self._loaded

    def _require_loaded(self) -> None:
        if not self._loaded:
            raise RegistryNotLoadedError("Call load() before using the registry")

    def _save(self) -> None:
        self._store.save(self._accounts)

    def _find(self, account_id: str) -> Account | None:
        for account in self._accounts:
            if account.id == account_id:
                return account
        return None

    def load(self) -> list[Account]:
        """
        Load the accounts from the store and catch up on missed interest.

        Loading happens once; later calls return the in-memory collection.
        Every interest-bearing savings account accrues once per full 365
        days elapsed since it was last updated, one accrual after another.

        Returns:
            The loaded accounts
        """
        if self._loaded:
            return list(self._accounts)

        self._accounts = self._store.load()
        self._loaded = True
        logger.info("Loaded %d accounts", len(self._accounts))

        now = self._clock()
        accrued = 0
        for account in self._accounts:
            if not account.is_interest_bearing:
                continue
            years_elapsed = (now - account.last_updated) // ACCRUAL_PERIOD
            for _ in range(max(years_elapsed, 0)):
                if account.apply_interest(now) is not None:
                    accrued += 1
            if years_elapsed > 0:
                logger.info(
                    "Caught up %d year(s) of interest on account %s",
                    years_elapsed,
                    account.id,
                )
        if accrued:
            self._save()
        return list(self._accounts)

    def get_accounts(self) -> list[Account]:
        self._require_loaded()
        return list(self._accounts)

    def get_account(self, account_id: str) -> Account:
        """
        Resolve an account by id.

        Raises:
            AccountNotFoundError: If no account has this id
        """
        self._require_loaded()
        account = self._find(account_id)
        if account is None:
            raise AccountNotFoundError(f"Account {account_id} not found")
        return account

    def get_transactions(self, account_id: str) -> list[Transaction]:
        return list(self.get_account(account_id).transactions)

    def create_account(
        self,
        name: str,
        account_type: AccountType,
        currency: Currency,
        initial_balance=ZERO,
        interest_rate=None,
        rate_unit: RateUnit = RateUnit.FRACTION,
    ) -> Account:
        """
        Open a new account.

        The unit of ``interest_rate`` is never guessed from its magnitude:
        pass ``RateUnit.PERCENT`` for 5 meaning 5%.

        Args:
            name: The account name
            account_type: Checking or savings
            currency: Currency the account is held in
            initial_balance: Opening balance (must not be negative)
            interest_rate: Savings rate; the configured default when None
            rate_unit: Whether interest_rate is a fraction or a percentage

        Returns:
            The created Account

        Raises:
            InvalidArgumentError: If the name is empty or the rate negative
            InvalidAmountError: If the initial balance is negative or above max_amount
        """
        self._require_loaded()
        if not name or not name.strip():
            raise InvalidArgumentError("Account name must not be empty")

        initial_balance = to_amount(initial_balance)
        if initial_balance < 0:
            raise InvalidAmountError(
                f"Initial balance must not be negative, got {initial_balance}"
            )
        check_maximum(initial_balance, self._max_amount, "Initial balance")

        account_type = AccountType(account_type)
        if account_type is AccountType.CHECKING:
            if interest_rate is not None:
                logger.warning("Ignoring interest rate %s on checking account %r", interest_rate, name)
            rate = None
        elif interest_rate is None:
            rate = self._default_savings_rate
        else:
            rate = to_amount(interest_rate)
            if RateUnit(rate_unit) is RateUnit.PERCENT:
                rate = rate / 100
            if rate < 0:
                raise InvalidArgumentError(f"Interest rate must not be negative, got {interest_rate}")

        account = Account.open(name, account_type, currency, initial_balance, rate, now=self._clock())
        self._accounts.append(account)
        self._save()
        logger.info("Created %s account %s (%s)", account_type.value, account.id, account.name)
        return account

    def deposit(self, account_id: str, amount, note: str | None = None) -> Transaction:
        """
        Deposit funds into an account.

        Raises:
            AccountNotFoundError: If the account doesn't exist
            InvalidAmountError: If the amount is not positive or above max_amount
        """
        account = self.get_account(account_id)
        transaction = account.deposit(amount, note, now=self._clock(), max_amount=self._max_amount)
        self._save()
        logger.info("Deposited %s into account %s", transaction.amount, account_id)
        return transaction

    def withdraw(self, account_id: str, amount, note: str | None = None) -> Transaction:
        """
        Withdraw funds from an account.

        Raises:
            AccountNotFoundError: If the account doesn't exist
            InvalidAmountError: If the amount is not positive or above max_amount
            InsufficientFundsError: If the amount exceeds the balance
        """
        account = self.get_account(account_id)
        transaction = account.withdraw(amount, note, now=self._clock(), max_amount=self._max_amount)
        self._save()
        logger.info("Withdrew %s from account %s", transaction.amount, account_id)
        return transaction

    def transfer(self, from_id: str, to_id: str, amount, note: str | None = None) -> Transaction:
        """
        Transfer funds between two accounts.

        Every check runs before either account is touched.

        Args:
            from_id: Id of the sending account
            to_id: Id of the receiving account
            amount: The amount to transfer (must be positive)
            note: Transaction note

        Returns:
            The Transaction shared by both accounts

        Raises:
            InvalidArgumentError: If an id is empty or both ids are the same
            InvalidAmountError: If the amount is not positive or above max_amount
            AccountNotFoundError: If either account doesn't exist
            InsufficientFundsError: If the sender's balance is too low
        """
        self._require_loaded()
        if not from_id:
            raise InvalidArgumentError("Choose an account to transfer from")
        if not to_id:
            raise InvalidArgumentError("Choose an account to transfer to")
        if from_id == to_id:
            raise InvalidArgumentError("Cannot transfer to the same account")

        amount = to_amount(amount)
        if amount <= 0:
            raise InvalidAmountError(f"Transfer amount must be greater than zero, got {amount}")
        check_maximum(amount, self._max_amount, "Transfer amount")

        sender = self.get_account(from_id)
        receiver = self.get_account(to_id)
        if sender.balance < amount:
            raise InsufficientFundsError(
                f"Insufficient funds in {sender.name}: {sender.balance} available, {amount} requested"
            )

        transaction = sender.transfer_to(
            receiver, amount, note, now=self._clock(), max_amount=self._max_amount
        )
        self._save()
        logger.info("Transferred %s from %s to %s", amount, from_id, to_id)
        return transaction

    def delete_account(self, account_id: str) -> bool:
        """
        Remove an account from the ledger.

        Transfer records on counterpart accounts are left untouched.

        Returns:
            True if the account existed
        """
        self._require_loaded()
        account = self._find(account_id)
        if account is None:
            return False
        self._accounts.remove(account)
        self._save()
        logger.info("Deleted account %s", account_id)
        return True

    def delete_transaction(self, transaction_id: str, cascade: bool = False) -> bool:
        """
        Remove a transaction and reconcile the account that held it.

        By default only the first account holding the id is touched, so the
        other side of a transfer keeps its copy. With ``cascade`` the record
        is removed from every account holding it.

        Args:
            transaction_id: Id of the transaction to remove
            cascade: Also remove the counterpart copy of a transfer

        Returns:
            True if at least one account held the transaction
        """
        self._require_loaded()
        now = self._clock()
        removed_from = []
        for account in self._accounts:
            if account.remove_transaction(transaction_id, now) is not None:
                removed_from.append(account.id)
                if not cascade:
                    break
        if not removed_from:
            return False
        self._save()
        logger.info("Removed transaction %s from %s", transaction_id, ", ".join(removed_from))
        return True

    def apply_annual_interest(self) -> list[Transaction]:
        """
        Accrue one period of interest on every savings account now.

        Returns:
            The Interest transactions that were recorded
        """
        self._require_loaded()
        now = self._clock()
        accrued = []
        for account in self._accounts:
            if account.account_type is not AccountType.SAVINGS:
                continue
            transaction = account.apply_interest(now)
            if transaction is not None:
                accrued.append(transaction)
        if accrued:
            self._save()
            logger.info("Applied interest to %d accounts", len(accrued))
        return accrued

    def ledger_transactions(self) -> list[Transaction]:
        """Every transaction in the ledger once, oldest first."""
        self._require_loaded()
        unique = {}
        for account in self._accounts:
            for txn in account.transactions:
                unique.setdefault(txn.id, txn)
        return sorted(unique.values(), key=lambda txn: txn.timestamp)

    def total_balances(self) -> dict[Currency, Decimal]:
        """Sum of balances per currency. Currencies are never converted."""
        self._require_loaded()
        totals: dict[Currency, Decimal] = {}
        for account in self._accounts:
            totals[account.currency] = totals.get(account.currency, ZERO) + account.balance
        return totals

    def export_ledger(self) -> str:
        self._require_loaded()
        return build_export(self._accounts, self._clock())

    def import_ledger(self, text: str) -> list[Account]:
        """
        Add the accounts of an export document to the ledger.

        Raises:
            ImportValidationError: If the document is invalid
            AccountAlreadyExistsError: If an imported id is already in the ledger
        """
        self._require_loaded()
        accounts = parse_export(text, self._max_amount)
        for account in accounts:
            if self._find(account.id) is not None:
                raise AccountAlreadyExistsError(f"Account {account.id} already exists")
        self._accounts.extend(accounts)
        self._save()
        logger.info("Imported %d accounts", len(accounts))
        return accounts
