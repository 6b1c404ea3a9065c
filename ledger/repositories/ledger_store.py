"""Ledger store contract and its SQLite implementation."""

import logging
import sqlite3
from abc import ABC, abstractmethod

from ledger.models.account import Account
from ledger.repositories.codec import dumps_accounts, loads_accounts

logger = logging.getLogger(__name__)

DEFAULT_STORE_KEY = "BankAccounts"


class LedgerStore(ABC):
    """
    Load/save contract for the account collection.

    Implementations treat the collection as one opaque blob; errors raised
    by the backing storage propagate to the caller unchanged.
    """

    @abstractmethod
    def load(self) -> list[Account]:
        """Return every stored account, or an empty list if nothing is stored."""

    @abstractmethod
    def save(self, accounts: list[Account]) -> None:
        """Replace the stored collection with ``accounts``."""


class SqliteLedgerStore(LedgerStore):
    """Key/value store keeping the serialized ledger in a single SQLite row."""

    def __init__(self, conn: sqlite3.Connection, key: str = DEFAULT_STORE_KEY):
        """
        Initialize the store with a database connection.

        Args:
            conn: SQLite database connection
            key: Logical collection name the ledger is stored under
        """
        self._conn = conn
        self._conn.row_factory = sqlite3.Row
        self._key = key

    def create_table(self) -> None:
        """Create the Store table if it doesn't exist."""
        cursor = self._conn.cursor()
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS Store (
                Key TEXT PRIMARY KEY,
                Value TEXT NOT NULL
            )
        """
        )
        self._conn.commit()

    def load(self) -> list[Account]:
        cursor = self._conn.cursor()
        cursor.execute("SELECT Value FROM Store WHERE Key = ?", (self._key,))
        row = cursor.fetchone()

        if row is None:
            logger.debug("No data found for %s", self._key)
            return []

        accounts = loads_accounts(row["Value"])
        logger.debug("Loaded %d accounts from %s", len(accounts), self._key)
        return accounts

    def save(self, accounts: list[Account]) -> None:
        cursor = self._conn.cursor()
        cursor.execute(
            """
            INSERT INTO Store (Key, Value) VALUES (?, ?)
            ON CONFLICT(Key) DO UPDATE SET Value = excluded.Value
        """,
            (self._key, dumps_accounts(accounts)),
        )
        self._conn.commit()
        logger.debug("Saved %d accounts to %s", len(accounts), self._key)
