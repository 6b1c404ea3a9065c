"""Persistence for the ledger."""
