"""
Currency helpers. Amounts are stored as two-decimal strings and only ever
handled as Decimal, never float.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool) or value is None:
        raise ValueError(f"Not a currency amount: {value!r}")
    try:
        # str() first so floats keep their shortest repr instead of binary noise
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValueError(f"Not a currency amount: {value!r}")
    if not amount.is_finite():
        raise ValueError(f"Not a currency amount: {value!r}")
    return amount


def round_cents(value) -> Decimal:
    """Round half up to two decimals."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def format_amount(value) -> str:
    return str(round_cents(value))
