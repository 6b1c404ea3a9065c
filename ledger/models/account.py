"""Account data model."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum

from ledger.models.exceptions import (
    InsufficientFundsError,
    InvalidAmountError,
    InvalidArgumentError,
    InvalidTargetError,
)
from ledger.models.money import MAX_AMOUNT, ZERO, check_maximum, format_rate, round_cents, to_amount
from ledger.models.transaction import Transaction, TransactionType, utcnow


class AccountType(str, Enum):
    """Kinds of account the ledger supports."""

    CHECKING = "checking"
    SAVINGS = "savings"


class Currency(str, Enum):
    """Currency an account is denominated in. Never converted."""

    SEK = "SEK"
    NOK = "NOK"
    DKK = "DKK"
    EUR = "EUR"
    USD = "USD"
    GBP = "GBP"


class RateUnit(str, Enum):
    """Unit an interest rate is expressed in when an account is opened."""

    FRACTION = "fraction"
    PERCENT = "percent"


@dataclass
class Account:
    """
    Represents a ledger account.

    The balance is derived from ``initial_balance`` and ``transactions`` when
    the account is constructed, and afterwards only changes through the
    mutation methods below, each of which appends the transaction that
    explains the change.
    """

    id: str
    name: str
    account_type: AccountType
    currency: Currency
    initial_balance: Decimal = ZERO
    interest_rate: Decimal | None = None
    last_updated: datetime = field(default_factory=utcnow)
    last_interest_applied: datetime | None = None
    transactions: list[Transaction] = field(default_factory=list)
    _balance: Decimal = field(init=False, repr=False)

    def __post_init__(self):
        if not self.name or not self.name.strip():
            raise InvalidArgumentError("Account name must not be empty")
        self.account_type = AccountType(self.account_type)
        self.currency = Currency(self.currency)
        self.initial_balance = to_amount(self.initial_balance)
        if self.account_type is AccountType.CHECKING or self.interest_rate is None:
            self.interest_rate = None
        else:
            self.interest_rate = to_amount(self.interest_rate)
        self.transactions = list(self.transactions)
        self._balance = self.reconciled_balance()

    @classmethod
    def open(
        cls,
        name: str,
        account_type: AccountType,
        currency: Currency,
        initial_balance=ZERO,
        interest_rate: Decimal | None = None,
        now: datetime | None = None,
    ) -> "Account":
        """Create a new account with a fresh id and an empty history."""
        return cls(
            id=uuid.uuid4().hex,
            name=name.strip() if name else name,
            account_type=account_type,
            currency=currency,
            initial_balance=initial_balance,
            interest_rate=interest_rate,
            last_updated=now or utcnow(),
        )

    @property
    def balance(self) -> Decimal:
        return self._balance

    @property
    def is_interest_bearing(self) -> bool:
        return (
            self.account_type is AccountType.SAVINGS
            and self.interest_rate is not None
            and self.interest_rate > 0
        )

    def reconciled_balance(self) -> Decimal:
        """
        Recompute the balance from the initial balance and the history.

        Returns:
            initial_balance plus every credit minus every debit that
            references this account
        """
        return self.initial_balance + sum(
            (txn.signed_amount_for(self.id) for txn in self.transactions), ZERO
        )

    def find_transaction(self, transaction_id: str) -> Transaction | None:
        for txn in self.transactions:
            if txn.id == transaction_id:
                return txn
        return None

    def _require_positive(self, amount, action: str, max_amount: Decimal = MAX_AMOUNT) -> Decimal:
        amount = to_amount(amount)
        if amount <= 0:
            raise InvalidAmountError(
                f"{action} amount must be greater than zero, got {amount}"
            )
        return check_maximum(amount, max_amount, f"{action} amount")

    def _touch(self, now: datetime | None = None) -> datetime:
        self.last_updated = now or utcnow()
        return self.last_updated

    def deposit(
        self,
        amount,
        note: str | None = None,
        now: datetime | None = None,
        max_amount: Decimal = MAX_AMOUNT,
    ) -> Transaction:
        """
        Deposit funds into this account.

        Args:
            amount: The amount to deposit (must be positive)
            note: Transaction note, "Deposit" when omitted
            now: Time the movement is recorded at; the current UTC time if None
            max_amount: Largest amount accepted in one movement

        Returns:
            The appended Transaction

        Raises:
            InvalidAmountError: If the amount is not a positive number within max_amount
        """
        amount = self._require_positive(amount, "Deposit", max_amount)

        before = self._balance
        self._balance = before + amount
        transaction = Transaction.create(
            TransactionType.DEPOSIT,
            amount,
            to_account_id=self.id,
            to_account_name=self.name,
            note=note,
            balance_before=before,
            balance_after=self._balance,
            timestamp=now,
        )
        self.transactions.append(transaction)
        self._touch(now)
        return transaction

    def withdraw(
        self,
        amount,
        note: str | None = None,
        now: datetime | None = None,
        max_amount: Decimal = MAX_AMOUNT,
    ) -> Transaction:
        """
        Withdraw funds from this account.

        Args:
            amount: The amount to withdraw (must be positive and <= balance)
            note: Transaction note, "Withdrawal" when omitted
            now: Time the movement is recorded at; the current UTC time if None
            max_amount: Largest amount accepted in one movement

        Returns:
            The appended Transaction

        Raises:
            InvalidAmountError: If the amount is not a positive number within max_amount
            InsufficientFundsError: If the amount exceeds the balance
        """
        amount = self._require_positive(amount, "Withdrawal", max_amount)
        if amount > self._balance:
            raise InsufficientFundsError(
                f"Insufficient funds: {self._balance} available, {amount} requested"
            )

        before = self._balance
        self._balance = before - amount
        transaction = Transaction.create(
            TransactionType.WITHDRAWAL,
            amount,
            from_account_id=self.id,
            from_account_name=self.name,
            note=note,
            balance_before=before,
            balance_after=self._balance,
            timestamp=now,
        )
        self.transactions.append(transaction)
        self._touch(now)
        return transaction

    def transfer_to(
        self,
        target: "Account",
        amount,
        note: str | None = None,
        now: datetime | None = None,
        max_amount: Decimal = MAX_AMOUNT,
    ) -> Transaction:
        """
        Move funds from this account to another one.

        A single Transaction is appended to both histories so that the two
        sides of the transfer share one id. Every check runs before either
        balance changes.

        Args:
            target: The receiving account
            amount: The amount to transfer (must be positive and <= balance)
            note: Transaction note, "Transfer" when omitted
            now: Time the movement is recorded at; the current UTC time if None
            max_amount: Largest amount accepted in one movement

        Returns:
            The shared Transaction

        Raises:
            InvalidTargetError: If target is this account
            InvalidAmountError: If the amount is not a positive number within max_amount
            InsufficientFundsError: If the amount exceeds this account's balance
        """
        if target is self or target.id == self.id:
            raise InvalidTargetError("Cannot transfer to the same account")
        amount = self._require_positive(amount, "Transfer", max_amount)
        if amount > self._balance:
            raise InsufficientFundsError(
                f"Insufficient funds: {self._balance} available, {amount} requested"
            )

        before = self._balance
        self._balance = before - amount
        target._balance += amount
        transaction = Transaction.create(
            TransactionType.TRANSFER,
            amount,
            from_account_id=self.id,
            to_account_id=target.id,
            from_account_name=self.name,
            to_account_name=target.name,
            note=note,
            balance_before=before,
            balance_after=self._balance,
            timestamp=now,
        )
        self.transactions.append(transaction)
        target.transactions.append(transaction)
        target.last_updated = self._touch(now)
        return transaction

    def apply_interest(self, now: datetime | None = None) -> Transaction | None:
        """
        Accrue one period of simple interest on the current balance.

        Only Savings accounts with a positive rate accrue. The interest is
        rounded to cents; nothing is recorded when it rounds to zero or less.

        Args:
            now: Time the accrual is recorded at; the current UTC time if None

        Returns:
            The Interest transaction, or None if nothing accrued

        Raises:
            InvalidAmountError: If the interest is too large to hold in cents
        """
        if not self.is_interest_bearing:
            return None
        interest = round_cents(self._balance * self.interest_rate)
        if interest <= 0:
            return None

        before = self._balance
        self._balance = before + interest
        transaction = Transaction.create(
            TransactionType.INTEREST,
            interest,
            to_account_id=self.id,
            to_account_name=self.name,
            note=f"Interest at {format_rate(self.interest_rate)}%",
            balance_before=before,
            balance_after=self._balance,
            timestamp=now,
        )
        self.transactions.append(transaction)
        self.last_interest_applied = self._touch(now)
        return transaction

    def remove_transaction(
        self, transaction_id: str, now: datetime | None = None
    ) -> Transaction | None:
        """
        Remove a transaction from this account and reconcile the balance.

        The balance is recomputed from the initial balance and every
        remaining transaction rather than by reversing the removed entry.
        A transfer's counterpart account keeps its own copy.

        Args:
            transaction_id: Id of the transaction to remove
            now: Time recorded as the last update; the current UTC time if None

        Returns:
            The removed Transaction, or None if this account does not hold it
        """
        transaction = self.find_transaction(transaction_id)
        if transaction is None:
            return None

        self.transactions.remove(transaction)
        self._balance = self.reconciled_balance()
        self._touch(now)
        return transaction
