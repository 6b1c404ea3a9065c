"""Plain-text tables for the chat front end."""

from decimal import Decimal

from tabulate import tabulate

from ledger.models.account import Account, Currency
from ledger.models.money import format_rate
from ledger.models.transaction import Transaction


def format_amount(amount: Decimal) -> str:
    return f"{amount:,.2f}"


def _table(header: list[str], rows: list[list]) -> str:
    return tabulate(
        [header] + rows, headers="firstrow", stralign="right", numalign="right", disable_numparse=True
    )


def format_accounts(accounts: list[Account]) -> str:
    """One row per account: id, name, type, balance and rate."""
    if not accounts:
        return "No accounts"
    header = ["ID", "Name", "Type", "Balance", "Rate"]
    rows = [
        [
            account.id,
            account.name,
            account.account_type.value,
            f"{format_amount(account.balance)} {account.currency.value}",
            f"{format_rate(account.interest_rate)}%" if account.interest_rate is not None else "-",
        ]
        for account in accounts
    ]
    return _table(header, rows)


def format_history(account: Account, limit: int = 20) -> str:
    """
    The most recent transactions of one account, newest first.

    Amounts are signed from the account's point of view.
    """
    transactions = list(reversed(account.transactions))[:limit]
    if not transactions:
        return f"No transactions for {account.name}"
    header = ["ID", "Time", "Type", "Amount", "Note"]
    rows = [
        [
            txn.id,
            txn.timestamp.strftime("%Y-%m-%d %H:%M"),
            txn.transaction_type.value,
            f"{txn.signed_amount_for(account.id):+,.2f}",
            txn.note,
        ]
        for txn in transactions
    ]
    return _table(header, rows)


def format_ledger(transactions: list[Transaction], limit: int = 20) -> str:
    """Ledger-wide view with each transfer listed once, newest first."""
    transactions = list(reversed(transactions))[:limit]
    if not transactions:
        return "No transactions"
    header = ["Time", "Type", "Amount", "From", "To", "Note"]
    rows = [
        [
            txn.timestamp.strftime("%Y-%m-%d %H:%M"),
            txn.transaction_type.value,
            format_amount(txn.amount),
            txn.from_account_name or "-",
            txn.to_account_name or "-",
            txn.note,
        ]
        for txn in transactions
    ]
    return _table(header, rows)


def format_totals(totals: dict[Currency, Decimal]) -> str:
    if not totals:
        return "No balances"
    return _table(
        ["Currency", "Total"],
        [[currency.value, format_amount(total)] for currency, total in totals.items()],
    )
