"""Business logic layer for the ledger."""
