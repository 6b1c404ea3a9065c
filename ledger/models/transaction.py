"""Transaction data model."""

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum


class TransactionType(str, Enum):
    """Kind of balance movement a transaction records."""

    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    TRANSFER = "transfer"
    INTEREST = "interest"


DEFAULT_NOTES = {
    TransactionType.DEPOSIT: "Deposit",
    TransactionType.WITHDRAWAL: "Withdrawal",
    TransactionType.TRANSFER: "Transfer",
    TransactionType.INTEREST: "Interest",
}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Transaction:
    """Represents one balance movement between ledger accounts."""

    id: str
    timestamp: datetime
    amount: Decimal
    transaction_type: TransactionType
    from_account_id: str | None = None
    to_account_id: str | None = None
    note: str = ""
    balance_before: Decimal | None = None
    balance_after: Decimal | None = None
    from_account_name: str = ""
    to_account_name: str = ""

    @classmethod
    def create(
        cls,
        transaction_type: TransactionType,
        amount: Decimal,
        from_account_id: str | None = None,
        to_account_id: str | None = None,
        note: str | None = None,
        balance_before: Decimal | None = None,
        balance_after: Decimal | None = None,
        from_account_name: str = "",
        to_account_name: str = "",
        timestamp: datetime | None = None,
    ) -> "Transaction":
        """
        Create a transaction with a fresh id, stamped now unless a time is given.

        Args:
            transaction_type: The kind of movement
            amount: Positive magnitude of the movement
            from_account_id: The debited account, if any
            to_account_id: The credited account, if any
            note: Free text; defaults to a per-type label when None
            balance_before: Acting account's balance before the movement
            balance_after: Acting account's balance after the movement
            from_account_name: Display name of the debited account
            to_account_name: Display name of the credited account
            timestamp: When the movement happened; the current UTC time if None

        Returns:
            A new Transaction
        """
        return cls(
            id=uuid.uuid4().hex,
            timestamp=timestamp or utcnow(),
            amount=amount,
            transaction_type=transaction_type,
            from_account_id=from_account_id,
            to_account_id=to_account_id,
            note=note if note is not None else DEFAULT_NOTES[transaction_type],
            balance_before=balance_before,
            balance_after=balance_after,
            from_account_name=from_account_name,
            to_account_name=to_account_name,
        )

    def involves(self, account_id: str) -> bool:
        """Whether the account is the source or the destination."""
        return account_id in (self.from_account_id, self.to_account_id)

    def signed_amount_for(self, account_id: str) -> Decimal:
        """
        Effect of this transaction on the given account's balance.

        Positive when the account is credited, negative when debited and
        zero when the account is not involved.
        """
        delta = Decimal("0")
        if self.to_account_id == account_id:
            delta += self.amount
        if self.from_account_id == account_id:
            delta -= self.amount
        return delta
