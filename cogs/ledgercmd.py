import io
import logging

import discord
from discord.ext import commands

from ledger.models import AccountType, Currency, LedgerError, RateUnit, UnauthorizedError
from ledger.services.formatting import (
    format_accounts,
    format_amount,
    format_history,
    format_ledger,
    format_totals,
)

logger = logging.getLogger(__name__)


def _block(text):
    return '```' + str(text) + '```'


def parse_rate(text):
    """'-' means the default rate, '5%' is a percentage, anything else a fraction."""
    if text in (None, '-'):
        return None, RateUnit.FRACTION
    if text.endswith('%'):
        return text[:-1], RateUnit.PERCENT
    return text, RateUnit.FRACTION


def clamp_count(n, limit):
    """Row count for a listing, between 0 and limit."""
    return max(0, min(n, limit))


class ledgercmd(commands.Cog):
    def __init__(self, bot):
        self.bot = bot

    @property
    def registry(self):
        return self.bot.registry

    async def cog_check(self, ctx):
        if ctx.command.name == 'unlock':
            return True
        try:
            self.bot.pin_gate.require_unlocked()
        except UnauthorizedError as err:
            raise commands.CheckFailure(str(err)) from err
        return True

    async def cog_command_error(self, ctx, error):
        if isinstance(error, commands.CommandInvokeError) and isinstance(error.original, LedgerError):
            await ctx.send(_block(error.original))
        elif isinstance(error, commands.CheckFailure):
            await ctx.send(_block(error))
        elif isinstance(error, commands.UserInputError):
            await ctx.send(_block(f'{error}\nUsage: {ctx.prefix}{ctx.command.name} {ctx.command.signature}'))
        else:
            logger.error('Command %s failed', ctx.command, exc_info=error)
            await ctx.send(_block('Something went wrong, see the log.'))

    @commands.command(name='unlock', help='unlock <pin> unlock the ledger')
    async def unlock(self, ctx, pin: str):
        try:
            await ctx.message.delete()
        except discord.HTTPException as err:
            logger.debug('Could not delete PIN message: %s', err)
        if self.bot.pin_gate.unlock(pin):
            await ctx.send(_block('Ledger unlocked.'))
        else:
            await ctx.send(_block('Wrong PIN.'))

    @commands.command(name='lock', help='lock the ledger')
    async def lock(self, ctx):
        self.bot.pin_gate.lock()
        await ctx.send(_block('Ledger locked.'))

    @commands.command(name='accounts', help='list accounts and totals per currency')
    async def accounts(self, ctx):
        content = format_accounts(self.registry.get_accounts())
        totals = format_totals(self.registry.total_balances())
        await ctx.send(_block(content + '\n\n' + totals))

    @commands.command(name='open', help='open <checking|savings> <currency> <initial> <rate|5%|-> <name> open an account')
    async def open_account(self, ctx, account_type: str, currency: str, initial_balance: str, rate: str, *, name: str):
        try:
            account_type = AccountType(account_type.lower())
            currency = Currency(currency.upper())
        except ValueError:
            choices = ', '.join(c.value for c in Currency)
            await ctx.send(_block(f'Account type is checking or savings, currency one of {choices}'))
            return
        interest_rate, rate_unit = parse_rate(rate)
        try:
            account = self.registry.create_account(
                name, account_type, currency, initial_balance, interest_rate, rate_unit
            )
        except LedgerError as err:
            await ctx.send(_block(err))
        else:
            await ctx.send(_block(f'Opened {account.name} ({account.id})'))

    @commands.command(name='deposit', help='deposit <account id> <amount> [note] deposit into an account')
    async def deposit(self, ctx, account_id: str, amount: str, *, note: str = None):
        try:
            txn = self.registry.deposit(account_id, amount, note)
        except LedgerError as err:
            await ctx.send(_block(err))
        else:
            await ctx.send(_block(f'Deposited {format_amount(txn.amount)}, balance {format_amount(txn.balance_after)}'))

    @commands.command(name='withdraw', help='withdraw <account id> <amount> [note] withdraw from an account')
    async def withdraw(self, ctx, account_id: str, amount: str, *, note: str = None):
        try:
            txn = self.registry.withdraw(account_id, amount, note)
        except LedgerError as err:
            await ctx.send(_block(err))
        else:
            await ctx.send(_block(f'Withdrew {format_amount(txn.amount)}, balance {format_amount(txn.balance_after)}'))

    @commands.command(name='transfer', help='transfer <from id> <to id> <amount> [note] move money between accounts')
    async def transfer(self, ctx, from_id: str, to_id: str, amount: str, *, note: str = None):
        try:
            txn = self.registry.transfer(from_id, to_id, amount, note)
        except LedgerError as err:
            await ctx.send(_block(err))
        else:
            await ctx.send(_block(
                f'Sent {format_amount(txn.amount)} from {txn.from_account_name} to {txn.to_account_name}'
            ))

    @commands.command(name='history', help='history <account id> [n] last n transactions of an account')
    async def history(self, ctx, account_id: str, n: int = 5):
        n = clamp_count(n, self.bot.settings.history_max_output)
        try:
            account = self.registry.get_account(account_id)
        except LedgerError as err:
            await ctx.send(_block(err))
        else:
            await ctx.send(_block(format_history(account, n)))

    @commands.command(name='ledger', help='ledger [n] last n transactions across all accounts')
    async def ledger(self, ctx, n: int = 10):
        n = clamp_count(n, self.bot.settings.history_max_output)
        await ctx.send(_block(format_ledger(self.registry.ledger_transactions(), n)))

    @commands.command(name='deltx', help='deltx <transaction id> [cascade] delete a transaction')
    async def delete_transaction(self, ctx, transaction_id: str, cascade: bool = False):
        if self.registry.delete_transaction(transaction_id, cascade=cascade):
            await ctx.send(_block('Transaction deleted, balance reconciled.'))
        else:
            await ctx.send(_block('No transaction found'))

    @commands.command(name='close', help='close <account id> delete an account')
    async def close(self, ctx, account_id: str):
        if self.registry.delete_account(account_id):
            await ctx.send(_block('Account deleted.'))
        else:
            await ctx.send(_block('No account found'))

    @commands.command(name='interest', help='apply one year of interest to every savings account')
    async def interest(self, ctx):
        accrued = self.registry.apply_annual_interest()
        if not accrued:
            await ctx.send(_block('No interest accrued.'))
            return
        lines = [f'{txn.to_account_name}: +{format_amount(txn.amount)} ({txn.note})' for txn in accrued]
        await ctx.send(_block('\n'.join(lines)))

    @commands.command(name='export', help='export the ledger as JSON')
    async def export(self, ctx):
        data = self.registry.export_ledger().encode('utf-8')
        await ctx.send(file=discord.File(io.BytesIO(data), filename='ledger-export.json'))

    @commands.command(name='import', help='import attach a ledger export to add its accounts')
    async def import_ledger(self, ctx):
        if not ctx.message.attachments:
            await ctx.send(_block('Attach a ledger export file.'))
            return
        data = await ctx.message.attachments[0].read()
        try:
            text = data.decode('utf-8')
        except UnicodeDecodeError:
            await ctx.send(_block('Attachment is not a UTF-8 JSON export.'))
            return
        try:
            accounts = self.registry.import_ledger(text)
        except LedgerError as err:
            await ctx.send(_block(err))
        else:
            await ctx.send(_block(f'Imported {len(accounts)} accounts.'))


async def setup(bot):
    await bot.add_cog(ledgercmd(bot))
    logger.info('ledgercmd is loaded')
