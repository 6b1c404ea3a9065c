import logging
import sqlite3

import discord
from discord.ext import commands
from dotenv import load_dotenv

from config.settings import Settings
from ledger.repositories.ledger_store import SqliteLedgerStore
from ledger.services.pin_gate import PinGate
from ledger.services.registry import AccountRegistry

extensions = (
    "cogs.ledgercmd",
    )


def setup_logging(log_path):
    handler = logging.FileHandler(filename=log_path, encoding='utf-8', mode='w')
    handler.setFormatter(logging.Formatter('%(asctime)s:%(levelname)s:%(name)s: %(message)s'))
    for name in ('discord', 'ledger', 'cogs'):
        logger = logging.getLogger(name)
        logger.setLevel(logging.DEBUG if name == 'ledger' else logging.INFO)
        logger.addHandler(handler)


class LedgerBot(commands.Bot):
    def __init__(self, *args, **kwargs):
        self.settings = kwargs.pop('settings')
        self.registry = kwargs.pop('registry')
        self.pin_gate = kwargs.pop('pin_gate')
        super().__init__(*args, **kwargs)

    async def setup_hook(self):
        for extension in extensions:
            await self.load_extension(extension)


def main():
    load_dotenv()
    settings = Settings.load()
    setup_logging(settings.log_path)

    conn = sqlite3.connect(settings.db_path)
    store = SqliteLedgerStore(conn, settings.store_key)
    store.create_table()
    registry = AccountRegistry(
        store,
        default_savings_rate=settings.default_savings_rate,
        max_amount=settings.max_amount,
    )
    registry.load()

    intents = discord.Intents.default()
    intents.message_content = True

    bot = LedgerBot(
        command_prefix=settings.command_prefix,
        owner_id=settings.owner_id,
        intents=intents,
        settings=settings,
        registry=registry,
        pin_gate=PinGate(settings.pin),
    )
    try:
        bot.run(settings.discord_token, log_handler=None)
    finally:
        conn.close()


if __name__ == '__main__':
    main()
