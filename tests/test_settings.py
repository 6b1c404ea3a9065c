"""Tests for configuration management."""
from decimal import Decimal

import pytest
from config.settings import Settings


def test_settings_load(monkeypatch):
    """Test loading Settings from environment variables."""
    # Set environment variables
    monkeypatch.setenv('DISCORD_TOKEN', 'test_discord_token_123')
    monkeypatch.setenv('LEDGER_PIN', '4321')
    monkeypatch.setenv('LEDGER_DB_PATH', 'custom.db')
    monkeypatch.setenv('LEDGER_OWNER_ID', '42')
    monkeypatch.delenv('LEDGER_STORE_KEY', raising=False)
    monkeypatch.delenv('LEDGER_COMMAND_PREFIX', raising=False)
    monkeypatch.setenv('LEDGER_MAX_AMOUNT', '5000')

    # Load settings
    settings = Settings.load()

    # Verify fields are loaded
    assert settings.discord_token == 'test_discord_token_123'
    assert settings.pin == '4321'
    assert settings.db_path == 'custom.db'
    assert settings.owner_id == 42
    assert settings.store_key == 'BankAccounts'
    assert settings.max_amount == Decimal('5000')
    assert settings.command_prefix == '$'


def test_settings_defaults():
    """Test that all default values are correctly set."""
    settings = Settings(
        discord_token='test_token',
        pin='1234',
    )

    # Storage defaults
    assert settings.db_path == 'ledger.db'
    assert settings.store_key == 'BankAccounts'

    # Business rules defaults
    assert settings.default_savings_rate == Decimal('0.01')
    assert settings.max_amount == Decimal('1000000000000')

    # Presentation defaults
    assert settings.command_prefix == '$'
    assert settings.history_max_output == 20

    # Logging and owner defaults
    assert settings.log_path == 'discord.log'
    assert settings.owner_id is None


def test_settings_load_missing_discord_token(monkeypatch):
    """Test that loading fails when DISCORD_TOKEN is missing."""
    monkeypatch.setenv('LEDGER_PIN', '1234')
    monkeypatch.delenv('DISCORD_TOKEN', raising=False)

    with pytest.raises(ValueError, match="DISCORD_TOKEN environment variable is required"):
        Settings.load()


def test_settings_load_missing_pin(monkeypatch):
    """Test that loading fails when LEDGER_PIN is missing."""
    monkeypatch.setenv('DISCORD_TOKEN', 'test_token')
    monkeypatch.delenv('LEDGER_PIN', raising=False)

    with pytest.raises(ValueError, match="LEDGER_PIN environment variable is required"):
        Settings.load()
