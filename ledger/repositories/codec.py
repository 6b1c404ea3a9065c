"""JSON codec for accounts, used by the store and by export/import."""

import json
import logging
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation

from ledger.models.account import Account, AccountType, Currency
from ledger.models.exceptions import ImportValidationError
from ledger.models.money import MAX_AMOUNT
from ledger.models.transaction import Transaction, TransactionType

logger = logging.getLogger(__name__)

EXPORT_FORMAT = "personal-ledger"
EXPORT_VERSION = 1


def _decimal_or_none(value: Decimal | None) -> str | None:
    return None if value is None else str(value)


def _parse_decimal(value) -> Decimal | None:
    return None if value is None else Decimal(str(value))


def _parse_datetime(value) -> datetime | None:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC."""
    if value is None:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def transaction_to_dict(txn: Transaction) -> dict:
    return {
        "id": txn.id,
        "timestamp": txn.timestamp.isoformat(),
        "amount": str(txn.amount),
        "transaction_type": txn.transaction_type.value,
        "from_account_id": txn.from_account_id,
        "to_account_id": txn.to_account_id,
        "from_account_name": txn.from_account_name,
        "to_account_name": txn.to_account_name,
        "note": txn.note,
        "balance_before": _decimal_or_none(txn.balance_before),
        "balance_after": _decimal_or_none(txn.balance_after),
    }


def transaction_from_dict(data: dict) -> Transaction:
    return Transaction(
        id=data["id"],
        timestamp=_parse_datetime(data["timestamp"]),
        amount=Decimal(str(data["amount"])),
        transaction_type=TransactionType(data["transaction_type"]),
        from_account_id=data.get("from_account_id"),
        to_account_id=data.get("to_account_id"),
        from_account_name=data.get("from_account_name") or "",
        to_account_name=data.get("to_account_name") or "",
        note=data.get("note") or "",
        balance_before=_parse_decimal(data.get("balance_before")),
        balance_after=_parse_decimal(data.get("balance_after")),
    )


def account_to_dict(account: Account) -> dict:
    return {
        "id": account.id,
        "name": account.name,
        "account_type": account.account_type.value,
        "currency": account.currency.value,
        "balance": str(account.balance),
        "initial_balance": str(account.initial_balance),
        "interest_rate": _decimal_or_none(account.interest_rate),
        "last_updated": account.last_updated.isoformat(),
        "last_interest_applied": (
            account.last_interest_applied.isoformat()
            if account.last_interest_applied
            else None
        ),
        "transactions": [transaction_to_dict(txn) for txn in account.transactions],
    }


def account_from_dict(data: dict) -> Account:
    """
    Build an Account from its dict form.

    The balance is always reconciled from the history; a stored balance
    that disagrees is logged and discarded.
    """
    account = Account(
        id=data["id"],
        name=data["name"],
        account_type=AccountType(data["account_type"]),
        currency=Currency(data["currency"]),
        initial_balance=Decimal(str(data.get("initial_balance", "0"))),
        interest_rate=_parse_decimal(data.get("interest_rate")),
        last_updated=_parse_datetime(data["last_updated"]),
        last_interest_applied=_parse_datetime(data.get("last_interest_applied")),
        transactions=[transaction_from_dict(txn) for txn in data.get("transactions", [])],
    )
    stored = data.get("balance")
    if stored is not None and Decimal(str(stored)) != account.balance:
        logger.warning(
            "Account %s stored balance %s differs from reconciled balance %s",
            account.id,
            stored,
            account.balance,
        )
    return account


def dumps_accounts(accounts: list[Account]) -> str:
    return json.dumps([account_to_dict(account) for account in accounts])


def loads_accounts(text: str) -> list[Account]:
    return [account_from_dict(data) for data in json.loads(text)]


def build_export(accounts: list[Account], exported_at: datetime) -> str:
    """
    Serialize the ledger into a self-describing export document.

    Args:
        accounts: Accounts to export
        exported_at: Timestamp recorded in the document

    Returns:
        Indented JSON text
    """
    document = {
        "format": EXPORT_FORMAT,
        "version": EXPORT_VERSION,
        "exported_at": exported_at.isoformat(),
        "accounts": [account_to_dict(account) for account in accounts],
    }
    return json.dumps(document, indent=2, ensure_ascii=False)


def _check_decimal(errors: list[str], where: str, value, positive: bool = False,
                   non_negative: bool = False, maximum: Decimal | None = None) -> Decimal | None:
    try:
        number = Decimal(str(value))
    except (InvalidOperation, ValueError):
        errors.append(f"{where}: not a number ({value!r})")
        return None
    if not number.is_finite():
        errors.append(f"{where}: not a finite number ({value!r})")
        return None
    if positive and number <= 0:
        errors.append(f"{where}: must be positive ({value})")
    if non_negative and number < 0:
        errors.append(f"{where}: must not be negative ({value})")
    if maximum is not None and number > maximum:
        errors.append(f"{where}: exceeds maximum allowed of {maximum} ({value})")
    return number


def _check_datetime(errors: list[str], where: str, value) -> None:
    try:
        datetime.fromisoformat(value)
    except (TypeError, ValueError):
        errors.append(f"{where}: not an ISO-8601 timestamp ({value!r})")


def _validate_transaction(errors: list[str], where: str, account_id: str, data,
                          maximum: Decimal) -> None:
    if not isinstance(data, dict):
        errors.append(f"{where}: not an object")
        return
    missing = [
        key for key in ("id", "timestamp", "amount", "transaction_type") if key not in data
    ]
    if missing:
        errors.append(f"{where}: missing {', '.join(repr(key) for key in missing)}")
        return

    if not isinstance(data["id"], str) or not data["id"]:
        errors.append(f"{where}: id must be a non-empty string")
        return
    _check_datetime(errors, f"{where}.timestamp", data["timestamp"])
    _check_decimal(errors, f"{where}.amount", data["amount"], positive=True, maximum=maximum)
    for key in ("balance_before", "balance_after"):
        if data.get(key) is not None:
            _check_decimal(errors, f"{where}.{key}", data[key])

    try:
        txn_type = TransactionType(data["transaction_type"])
    except ValueError:
        errors.append(f"{where}: unknown transaction type {data['transaction_type']!r}")
        return

    source = data.get("from_account_id")
    target = data.get("to_account_id")
    if account_id not in (source, target):
        errors.append(f"{where}: does not reference account {account_id}")
    if txn_type in (TransactionType.DEPOSIT, TransactionType.INTEREST):
        consistent = target is not None and source is None
    elif txn_type is TransactionType.WITHDRAWAL:
        consistent = source is not None and target is None
    else:
        consistent = source is not None and target is not None and source != target
    if not consistent:
        errors.append(f"{where}: account references do not match type {txn_type.value}")


def _validate_account(errors: list[str], where: str, data, maximum: Decimal) -> None:
    if not isinstance(data, dict):
        errors.append(f"{where}: not an object")
        return
    missing = [
        key
        for key in ("id", "name", "account_type", "currency", "last_updated")
        if key not in data
    ]
    if missing:
        errors.append(f"{where}: missing {', '.join(repr(key) for key in missing)}")
        return

    account_id = data["id"]
    if not isinstance(account_id, str) or not account_id:
        errors.append(f"{where}: id must be a non-empty string")
        return
    where = f"{where} ({account_id})"
    if not isinstance(data["name"], str) or not data["name"].strip():
        errors.append(f"{where}: name must not be empty")

    account_type = None
    try:
        account_type = AccountType(data["account_type"])
    except ValueError:
        errors.append(f"{where}: unknown account type {data['account_type']!r}")
    try:
        Currency(data["currency"])
    except ValueError:
        errors.append(f"{where}: unknown currency {data['currency']!r}")
    _check_datetime(errors, f"{where}.last_updated", data["last_updated"])
    if data.get("last_interest_applied") is not None:
        _check_datetime(errors, f"{where}.last_interest_applied", data["last_interest_applied"])

    initial = _check_decimal(
        errors, f"{where}.initial_balance", data.get("initial_balance", "0"),
        non_negative=True, maximum=maximum,
    )
    rate = data.get("interest_rate")
    if rate is not None:
        if account_type is AccountType.CHECKING:
            errors.append(f"{where}: checking accounts cannot carry an interest rate")
        else:
            _check_decimal(errors, f"{where}.interest_rate", rate, non_negative=True)

    transactions = data.get("transactions", [])
    if not isinstance(transactions, list):
        errors.append(f"{where}.transactions: not a list")
        return
    seen = set()
    error_count = len(errors)
    for index, txn in enumerate(transactions):
        txn_where = f"{where}.transactions[{index}]"
        _validate_transaction(errors, txn_where, account_id, txn, maximum)
        txn_id = txn.get("id") if isinstance(txn, dict) else None
        if isinstance(txn_id, str) and txn_id:
            if txn_id in seen:
                errors.append(f"{txn_where}: duplicate transaction id {txn_id}")
            seen.add(txn_id)

    if "balance" in data and initial is not None and len(errors) == error_count:
        stated = _check_decimal(errors, f"{where}.balance", data["balance"])
        if stated is not None:
            reconciled = initial + sum(
                (transaction_from_dict(txn).signed_amount_for(account_id) for txn in transactions),
                Decimal("0"),
            )
            if stated != reconciled:
                errors.append(
                    f"{where}: balance {stated} does not match transactions ({reconciled})"
                )


def parse_export(text: str, max_amount: Decimal = MAX_AMOUNT) -> list[Account]:
    """
    Validate an export document and build its accounts.

    Args:
        text: JSON text produced by build_export (or an equivalent tool)
        max_amount: Largest transaction amount or opening balance accepted

    Returns:
        The accounts in document order

    Raises:
        ImportValidationError: If the document is malformed or violates a
            ledger invariant; ``errors`` lists every problem found
    """
    try:
        document = json.loads(text)
    except json.JSONDecodeError as err:
        raise ImportValidationError([f"not valid JSON: {err.msg}"])

    if not isinstance(document, dict):
        raise ImportValidationError(["document must be a JSON object"])
    errors = []
    if document.get("format") != EXPORT_FORMAT:
        errors.append(f"unsupported format {document.get('format')!r}")
    if document.get("version") != EXPORT_VERSION:
        errors.append(f"unsupported version {document.get('version')!r}")
    accounts = document.get("accounts")
    if not isinstance(accounts, list):
        errors.append("'accounts' must be a list")
        raise ImportValidationError(errors)

    ids = set()
    for index, data in enumerate(accounts):
        _validate_account(errors, f"accounts[{index}]", data, max_amount)
        account_id = data.get("id") if isinstance(data, dict) else None
        if isinstance(account_id, str) and account_id:
            if account_id in ids:
                errors.append(f"accounts[{index}]: duplicate account id {account_id}")
            ids.add(account_id)
    if errors:
        raise ImportValidationError(errors)

    return [account_from_dict(data) for data in accounts]
