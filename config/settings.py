"""Configuration management for the ledger bot."""
import os
from dataclasses import dataclass
from decimal import Decimal


@dataclass
class Settings:
    """Configuration settings for the ledger bot.

    Secrets come from the environment; everything else has a default that
    the environment may override.
    """

    # Secrets (required)
    discord_token: str
    pin: str

    # Storage Configuration
    db_path: str = 'ledger.db'
    store_key: str = 'BankAccounts'

    # Business Rules
    default_savings_rate: Decimal = Decimal('0.01')  # 1%
    max_amount: Decimal = Decimal('1000000000000')  # 10^12 per movement

    # Presentation
    command_prefix: str = '$'
    history_max_output: int = 20

    # Logging
    log_path: str = 'discord.log'

    # Owner Configuration
    owner_id: int | None = None

    @classmethod
    def load(cls) -> 'Settings':
        """Load settings from environment variables.

        Returns:
            Settings: A Settings instance with values from environment variables.

        Raises:
            ValueError: If required environment variables are not set.
        """
        discord_token = os.getenv('DISCORD_TOKEN')
        pin = os.getenv('LEDGER_PIN')

        if not discord_token:
            raise ValueError("DISCORD_TOKEN environment variable is required")
        if not pin:
            raise ValueError("LEDGER_PIN environment variable is required")

        owner_id = os.getenv('LEDGER_OWNER_ID')
        max_amount = os.getenv('LEDGER_MAX_AMOUNT')

        return cls(
            discord_token=discord_token,
            pin=pin,
            db_path=os.getenv('LEDGER_DB_PATH', cls.db_path),
            store_key=os.getenv('LEDGER_STORE_KEY', cls.store_key),
            command_prefix=os.getenv('LEDGER_COMMAND_PREFIX', cls.command_prefix),
            max_amount=Decimal(max_amount) if max_amount else cls.max_amount,
            owner_id=int(owner_id) if owner_id else None,
        )
