"""Money and GST arithmetic.

All amounts are integer cents. Calculations go through Decimal and are
rounded half-up back to whole cents, so no binary floating-point error can
reach a stored amount.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Union

from gstbooks.domain.errors import InvalidPercent, percent_out_of_range

# Australian GST rate (10%)
GST_RATE = Decimal("0.10")

# Divisor for the GST portion of a GST-inclusive total (1 + 10% = 11/10)
GST_DIVISOR = Decimal("11")

_ONE = Decimal("1")
_HUNDRED = Decimal("100")

# Largest amount a signed 64-bit integer column can hold
MAX_CENTS = 2**63 - 1

Number = Union[int, float, str, Decimal]


def _to_decimal(value: Number) -> Decimal:
    # str() first so floats keep their shortest repr (0.1 -> "0.1")
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def _round_cents(value: Decimal) -> int:
    try:
        cents = int(value.quantize(_ONE, rounding=ROUND_HALF_UP))
    except InvalidOperation:
        raise ValueError(f"Amount out of range: {value}") from None
    if abs(cents) > MAX_CENTS:
        raise ValueError(f"Amount out of range: {format_cents(cents)}")
    return cents


def add_amounts(amount_a_cents: int, amount_b_cents: int) -> int:
    """Add two amounts in cents.

    Example:
        add_amounts(100000, 10000) -> 110000
    """
    return amount_a_cents + amount_b_cents


def add_gst(subtotal_cents: int) -> int:
    """Add 10% GST to a subtotal.

    Args:
        subtotal_cents: Pre-GST amount in cents

    Returns:
        GST-inclusive total in cents, e.g. 3333 -> 3666
    """
    subtotal = Decimal(subtotal_cents)
    return _round_cents(subtotal + subtotal * GST_RATE)


def calc_gst_from_total(total_cents: int) -> int:
    """Return the GST component of a GST-inclusive total (total / 11).

    Example:
        calc_gst_from_total(11000) -> 1000
        calc_gst_from_total(10000) -> 909
    """
    return _round_cents(Decimal(total_cents) / GST_DIVISOR)


def calc_subtotal_from_total(total_cents: int) -> int:
    """Return the ex-GST part of a GST-inclusive total.

    Always satisfies ``calc_subtotal_from_total(t) + calc_gst_from_total(t) == t``.
    """
    return total_cents - calc_gst_from_total(total_cents)


def apply_biz_percent(amount_cents: int, biz_percent: Number) -> int:
    """Apply a business-use percentage to an amount.

    Args:
        amount_cents: Full amount in cents
        biz_percent: Business-use percentage (0-100)

    Returns:
        Deductible portion in cents, rounded half-up

    Raises:
        InvalidPercent: If biz_percent is outside 0-100
    """
    percent = _to_decimal(biz_percent)
    if percent < 0 or percent > _HUNDRED:
        raise InvalidPercent(percent_out_of_range(biz_percent))
    return _round_cents(Decimal(amount_cents) * percent / _HUNDRED)


def calc_deductible_gst(gst_cents: int, biz_percent: Number) -> int:
    """Return the claimable GST for a business-use percentage (BAS 1B)."""
    return apply_biz_percent(gst_cents, biz_percent)


def format_cents(cents: int) -> str:
    """Format cents for display, e.g. 10050 -> "$100.50"."""
    dollars = Decimal(abs(cents)) / _HUNDRED
    sign = "-" if cents < 0 else ""
    return f"{sign}${dollars:,.2f}"


def dollars_to_cents(dollars: Number) -> int:
    """Convert a dollar amount to cents, rounding to the nearest cent.

    Example:
        dollars_to_cents(0.1 + 0.2) -> 30
        dollars_to_cents("100.50") -> 10050
    """
    return _round_cents(_to_decimal(dollars) * _HUNDRED)


def cents_to_dollars(cents: int) -> Decimal:
    """Convert cents to a Decimal dollar amount."""
    return Decimal(cents) / _HUNDRED
