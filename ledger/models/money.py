"""Decimal helpers for ledger amounts."""

from decimal import ROUND_HALF_EVEN, Decimal, InvalidOperation

from ledger.models.exceptions import InvalidAmountError

CENT = Decimal("0.01")
ZERO = Decimal("0")
# Largest single movement or opening balance (10^12)
MAX_AMOUNT = Decimal("1000000000000")


def to_amount(value) -> Decimal:
    """
    Coerce a user-supplied value to a Decimal.

    Floats go through ``str`` so that 0.1 becomes Decimal("0.1") rather than
    its binary expansion.

    Args:
        value: An int, str, float or Decimal

    Returns:
        The value as a finite Decimal

    Raises:
        InvalidAmountError: If the value is not a finite number
    """
    if isinstance(value, bool):
        raise InvalidAmountError(f"Not an amount: {value!r}")
    if isinstance(value, Decimal):
        amount = value
    else:
        try:
            amount = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            raise InvalidAmountError(f"Not an amount: {value!r}")
    if not amount.is_finite():
        raise InvalidAmountError(f"Amount must be a finite number: {value!r}")
    return amount


def check_maximum(amount: Decimal, maximum: Decimal, what: str = "Amount") -> Decimal:
    """
    Reject amounts above ``maximum``.

    Raises:
        InvalidAmountError: If the amount exceeds the maximum
    """
    if amount > maximum:
        raise InvalidAmountError(f"{what} {amount} exceeds maximum allowed of {maximum}")
    return amount


def round_cents(amount: Decimal) -> Decimal:
    """
    Round to two decimal places, half to even.

    Raises:
        InvalidAmountError: If the amount has too many digits to keep its cents
    """
    try:
        return amount.quantize(CENT, rounding=ROUND_HALF_EVEN)
    except InvalidOperation as err:
        raise InvalidAmountError(f"Amount {amount} is too large to round to cents") from err


def format_rate(rate: Decimal) -> str:
    """Render a fractional rate as a percentage without trailing zeros (0.05 -> '5')."""
    return f"{(rate * 100).normalize():f}"
