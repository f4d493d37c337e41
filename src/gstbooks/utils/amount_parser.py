"""Amount and percentage parsing utilities."""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
import re

from gstbooks.domain.errors import InvalidPercent, percent_out_of_range
from gstbooks.utils.money import dollars_to_cents


def parse_amount(amount_str: str) -> Decimal:
    """Parse an amount string into a Decimal.

    Handles various formats:
    - "123.45"
    - "$123.45"
    - "-123.45"
    - "-$123.45"
    - "1,234.56"
    - "(123.45)" (negative in parentheses)
    - "AUD 12.00"

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount

    Raises:
        ValueError: If amount string cannot be parsed
    """
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")

    # Remove whitespace
    amount_str = amount_str.strip()

    # Handle parentheses notation (negative)
    is_negative = False
    if amount_str.startswith("(") and amount_str.endswith(")"):
        is_negative = True
        amount_str = amount_str[1:-1].strip()

    if amount_str.startswith("-"):
        is_negative = not is_negative
        amount_str = amount_str[1:]

    # Remove currency symbols and codes
    amount_str = re.sub(r"[$€£¥]", "", amount_str)
    amount_str = re.sub(r"^(AUD|USD|NZD)\s*", "", amount_str, flags=re.IGNORECASE)

    # Remove commas
    amount_str = amount_str.replace(",", "")

    # Remove whitespace again
    amount_str = amount_str.strip()

    try:
        amount = Decimal(amount_str)
    except InvalidOperation:
        raise ValueError(f"Could not parse amount '{amount_str}'")
    if not amount.is_finite():
        raise ValueError(f"Could not parse amount '{amount_str}'")
    return -amount if is_negative else amount


def parse_cents(amount_str: str) -> int:
    """Parse an amount string into integer cents.

    Raises:
        ValueError: If amount string cannot be parsed
    """
    return dollars_to_cents(parse_amount(amount_str))


def parse_percentage(value: str | None) -> int:
    """Parse a business-use percentage into an integer 0-100.

    Handles "50", "50%", "50.5" (rounded) and fractional "0.5" (= 50%).
    A blank value means full business use.

    Raises:
        InvalidPercent: If the value is outside 0-100
        ValueError: If the value is not numeric
    """
    if value is None or not value.strip():
        return 100

    cleaned = value.strip().rstrip("%").strip()
    try:
        number = Decimal(cleaned)
    except InvalidOperation:
        raise ValueError(f"Could not parse business percentage '{value.strip()}'")
    if not number.is_finite():
        raise ValueError(f"Could not parse business percentage '{value.strip()}'")

    # "0.5" is a fraction, "1" is one percent
    if "." in cleaned and not value.strip().endswith("%") and 0 < number < 1:
        number = number * 100

    if number < 0 or number > 100:
        raise InvalidPercent(percent_out_of_range(value.strip()))
    return int(number.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
