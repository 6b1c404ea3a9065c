"""Tests for ledger export and import."""

import json
import sqlite3
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from ledger.models.account import AccountType, Currency
from ledger.models.exceptions import AccountAlreadyExistsError, ImportValidationError
from ledger.repositories.codec import EXPORT_FORMAT, EXPORT_VERSION, parse_export
from ledger.repositories.ledger_store import SqliteLedgerStore
from ledger.services.registry import AccountRegistry

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def in_memory_db():
    """Create an in-memory SQLite database for testing."""
    conn = sqlite3.connect(":memory:")
    yield conn
    conn.close()


@pytest.fixture
def registry(in_memory_db):
    """Create a loaded registry with two linked accounts."""
    store = SqliteLedgerStore(in_memory_db)
    store.create_table()
    registry = AccountRegistry(store, clock=lambda: NOW)
    registry.load()
    alice = registry.create_account("Alice", AccountType.CHECKING, Currency.SEK, 100)
    bob = registry.create_account("Bob", AccountType.SAVINGS, Currency.SEK, interest_rate=Decimal("0.02"))
    registry.transfer(alice.id, bob.id, "12.50", "Lunch")
    return registry


@pytest.fixture
def fresh_registry():
    """Create an empty loaded registry on its own database."""
    conn = sqlite3.connect(":memory:")
    store = SqliteLedgerStore(conn)
    store.create_table()
    registry = AccountRegistry(store, clock=lambda: NOW)
    registry.load()
    yield registry
    conn.close()


def export_document(registry):
    return json.loads(registry.export_ledger())


def test_export_is_self_describing(registry):
    """The export carries format, version and timestamp."""
    document = export_document(registry)

    assert document["format"] == EXPORT_FORMAT
    assert document["version"] == EXPORT_VERSION
    assert document["exported_at"] == NOW.isoformat()
    assert [account["name"] for account in document["accounts"]] == ["Alice", "Bob"]
    assert document["accounts"][0]["balance"] == "87.50"
    assert document["accounts"][1]["interest_rate"] == "0.02"


def test_import_into_fresh_registry(registry, fresh_registry):
    """An export imports into another ledger unchanged."""
    imported = fresh_registry.import_ledger(registry.export_ledger())

    assert imported == registry.get_accounts()
    alice, bob = fresh_registry.get_accounts()
    assert alice.balance == Decimal("87.50")
    assert bob.balance == Decimal("12.50")
    assert alice.transactions[0].id == bob.transactions[0].id


def test_import_rejects_existing_ids(registry):
    """Importing an account that is already in the ledger fails."""
    text = registry.export_ledger()

    with pytest.raises(AccountAlreadyExistsError):
        registry.import_ledger(text)

    assert len(registry.get_accounts()) == 2


def test_import_rejects_negative_amount(registry, fresh_registry):
    """Transaction amounts must be positive."""
    document = export_document(registry)
    document["accounts"][0]["transactions"][0]["amount"] = "-12.50"

    with pytest.raises(ImportValidationError) as excinfo:
        fresh_registry.import_ledger(json.dumps(document))

    assert any("must be positive" in error for error in excinfo.value.errors)
    assert fresh_registry.get_accounts() == []


def test_import_rejects_balance_mismatch(registry):
    """A stated balance must match the history."""
    document = export_document(registry)
    document["accounts"][1]["balance"] = "99.00"

    with pytest.raises(ImportValidationError) as excinfo:
        parse_export(json.dumps(document))

    assert any("does not match transactions" in error for error in excinfo.value.errors)


def test_import_rejects_rate_on_checking(registry):
    """Checking accounts cannot carry a rate."""
    document = export_document(registry)
    document["accounts"][0]["interest_rate"] = "0.05"

    with pytest.raises(ImportValidationError) as excinfo:
        parse_export(json.dumps(document))

    assert any("checking accounts cannot carry" in error for error in excinfo.value.errors)


def test_import_rejects_foreign_transaction(registry):
    """Every transaction must reference the account holding it."""
    document = export_document(registry)
    transaction = document["accounts"][0]["transactions"][0]
    transaction["from_account_id"] = "someone-else"

    with pytest.raises(ImportValidationError) as excinfo:
        parse_export(json.dumps(document))

    assert any("does not reference account" in error for error in excinfo.value.errors)


def test_import_rejects_inconsistent_direction(registry):
    """A deposit must only have a destination."""
    document = export_document(registry)
    account = document["accounts"][0]
    account["transactions"] = [
        {
            "id": "d1",
            "timestamp": NOW.isoformat(),
            "amount": "5",
            "transaction_type": "deposit",
            "from_account_id": account["id"],
            "to_account_id": None,
        }
    ]
    del account["balance"]

    with pytest.raises(ImportValidationError) as excinfo:
        parse_export(json.dumps(document))

    assert any("do not match type deposit" in error for error in excinfo.value.errors)


def test_import_collects_every_problem(registry):
    """All problems are reported at once."""
    document = export_document(registry)
    document["version"] = 99
    document["accounts"][0]["name"] = ""
    document["accounts"][1]["currency"] = "XYZ"
    document["accounts"].append(dict(document["accounts"][0]))

    with pytest.raises(ImportValidationError) as excinfo:
        parse_export(json.dumps(document))

    errors = excinfo.value.errors
    assert any("unsupported version" in error for error in errors)
    assert any("name must not be empty" in error for error in errors)
    assert any("unknown currency" in error for error in errors)
    assert any("duplicate account id" in error for error in errors)


def test_import_rejects_unhashable_account_id(registry):
    """An account id that is not a string is reported, not a crash."""
    document = export_document(registry)
    document["accounts"][0]["id"] = ["a"]
    document["accounts"][1]["id"] = {"x": 1}

    with pytest.raises(ImportValidationError) as excinfo:
        parse_export(json.dumps(document))

    assert sum("id must be a non-empty string" in error for error in excinfo.value.errors) == 2


@pytest.mark.parametrize("bad_id", [{"x": 1}, ["t"], 5, None, ""])
def test_import_rejects_bad_transaction_id(registry, bad_id):
    """Transaction ids must be non-empty strings."""
    document = export_document(registry)
    document["accounts"][0]["transactions"][0]["id"] = bad_id

    with pytest.raises(ImportValidationError) as excinfo:
        parse_export(json.dumps(document))

    assert any(
        "transactions[0]: id must be a non-empty string" in error for error in excinfo.value.errors
    )


def test_import_rejects_duplicate_transaction_id(registry):
    """One account cannot hold the same transaction twice."""
    document = export_document(registry)
    account = document["accounts"][0]
    account["transactions"].append(dict(account["transactions"][0]))
    del account["balance"]

    with pytest.raises(ImportValidationError) as excinfo:
        parse_export(json.dumps(document))

    assert any("duplicate transaction id" in error for error in excinfo.value.errors)


def test_import_rejects_amounts_above_maximum(registry, fresh_registry):
    """Amounts and opening balances above the maximum are rejected."""
    document = export_document(registry)
    document["accounts"][0]["initial_balance"] = "1e28"
    document["accounts"][1]["transactions"][0]["amount"] = "1000000000000.01"
    del document["accounts"][0]["balance"]
    del document["accounts"][1]["balance"]

    with pytest.raises(ImportValidationError) as excinfo:
        fresh_registry.import_ledger(json.dumps(document))

    errors = excinfo.value.errors
    assert any("initial_balance: exceeds maximum" in error for error in errors)
    assert any("amount: exceeds maximum" in error for error in errors)
    assert fresh_registry.get_accounts() == []


def test_import_honours_configured_maximum(registry):
    """parse_export applies the maximum it is given."""
    text = registry.export_ledger()

    with pytest.raises(ImportValidationError):
        parse_export(text, max_amount=Decimal("50"))
    assert len(parse_export(text, max_amount=Decimal("100"))) == 2


@pytest.mark.parametrize(
    "text",
    ["not json", "[]", json.dumps({"format": EXPORT_FORMAT, "version": EXPORT_VERSION})],
)
def test_import_rejects_malformed_documents(text):
    """Documents without the expected structure are rejected."""
    with pytest.raises(ImportValidationError):
        parse_export(text)
