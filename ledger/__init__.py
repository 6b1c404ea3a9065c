"""Personal multi-account ledger."""
