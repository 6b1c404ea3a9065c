"""Tests for the plain-text tables."""

from decimal import Decimal

import pytest

from ledger.models.account import Account, AccountType, Currency
from ledger.services.formatting import (
    format_accounts,
    format_amount,
    format_history,
    format_ledger,
    format_totals,
)


@pytest.fixture
def accounts():
    """A checking and a savings account linked by a transfer."""
    checking = Account.open("Alice", AccountType.CHECKING, Currency.SEK, "1234.5")
    savings = Account.open("Bob", AccountType.SAVINGS, Currency.EUR, 0, Decimal("0.015"))
    checking.transfer_to(savings, 100, note="Savings plan")
    return [checking, savings]


def test_format_amount():
    """Amounts get thousands separators and two decimals."""
    assert format_amount(Decimal("1234567.5")) == "1,234,567.50"


def test_format_accounts(accounts):
    """Each account is listed with balance, currency and rate."""
    table = format_accounts(accounts)

    assert "Alice" in table
    assert "1,134.50 SEK" in table
    assert "1.5%" in table
    assert accounts[0].id in table


def test_format_accounts_empty():
    """An empty ledger says so."""
    assert format_accounts([]) == "No accounts"


def test_format_history_signs_amounts(accounts):
    """History amounts are signed from the account's point of view."""
    checking, savings = accounts

    assert "-100.00" in format_history(checking)
    assert "+100.00" in format_history(savings)
    assert "Savings plan" in format_history(savings)


def test_format_history_limit(accounts):
    """Only the most recent transactions are shown."""
    checking = accounts[0]
    checking.deposit(1, note="first")
    checking.deposit(2, note="second")

    table = format_history(checking, limit=1)

    assert "second" in table
    assert "first" not in table


def test_format_history_empty():
    """An account without history says so."""
    account = Account.open("Carol", AccountType.CHECKING, Currency.SEK)

    assert format_history(account) == "No transactions for Carol"


def test_format_ledger(accounts):
    """The ledger view shows both parties of a transfer."""
    table = format_ledger(accounts[0].transactions)

    assert "Alice" in table
    assert "Bob" in table
    assert "100.00" in table


def test_format_totals():
    """Totals are printed per currency."""
    table = format_totals({Currency.SEK: Decimal("10"), Currency.EUR: Decimal("2.5")})

    assert "SEK" in table
    assert "10.00" in table
    assert "2.50" in table
    assert format_totals({}) == "No balances"
