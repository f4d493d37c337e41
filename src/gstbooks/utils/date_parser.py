"""Date parsing utilities."""

import re
from datetime import date, datetime, timedelta
from typing import Optional

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

_ISO_RE = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$")
_DAY_FIRST_RE = re.compile(r"^(\d{1,2})[/-](\d{1,2})[/-](\d{4})$")


def parse_date(date_str: str) -> date:
    """Parse a date string typed by a user into a date object.

    Supports various formats including relative dates:
    - Absolute dates: "2024-01-15", "15/01/2024", "January 15, 2024", etc.
    - Relative dates: "today", "yesterday", "last month", "this year", etc.

    Args:
        date_str: Date string in various formats

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    date_str = date_str.strip().lower()
    today = date.today()

    # Handle relative dates
    relative_dates = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
    }

    if date_str in relative_dates:
        return relative_dates[date_str]

    # Handle "last/this/next" + time period
    if date_str.startswith("last "):
        period = date_str[5:]
        if period == "month":
            return (today - relativedelta(months=1)).replace(day=1)
        elif period == "year":
            return today.replace(month=1, day=1) - relativedelta(years=1)
        elif period == "week":
            # Monday of last week
            return today - timedelta(days=today.weekday() + 7)

    elif date_str.startswith("this "):
        period = date_str[5:]
        if period == "month":
            return today.replace(day=1)
        elif period == "year":
            return today.replace(month=1, day=1)
        elif period == "week":
            return today - timedelta(days=today.weekday())

    elif date_str.startswith("next "):
        period = date_str[5:]
        if period == "month":
            return (today + relativedelta(months=1)).replace(day=1)
        elif period == "year":
            return today.replace(month=1, day=1) + relativedelta(years=1)
        elif period == "week":
            return today + timedelta(days=(7 - today.weekday()))

    return parse_csv_date(date_str)


def parse_csv_date(value: str, date_format: Optional[str] = None) -> date:
    """Parse a date cell from an imported file.

    Tries, in order: the template's fixed format, ISO (YYYY-MM-DD),
    day-first numeric (DD/MM/YYYY, DD-MM-YYYY), then a day-first dateutil
    parse for textual dates such as "1 Jul 2025".

    Args:
        value: Cell text
        date_format: Optional strptime format declared by the column template

    Returns:
        Date object

    Raises:
        ValueError: If the value is blank or not a valid date
    """
    if value is None or not value.strip():
        raise ValueError("Empty date string")

    value = value.strip()

    if date_format:
        try:
            return datetime.strptime(value, date_format).date()
        except ValueError:
            pass

    match = _ISO_RE.match(value)
    if match:
        year, month, day = (int(part) for part in match.groups())
        return _build_date(value, year, month, day)

    match = _DAY_FIRST_RE.match(value)
    if match:
        day, month, year = (int(part) for part in match.groups())
        return _build_date(value, year, month, day)

    try:
        return date_parser.parse(value, dayfirst=True).date()
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{value}': {e}")


def _build_date(value: str, year: int, month: int, day: int) -> date:
    try:
        return date(year, month, day)
    except ValueError as e:
        raise ValueError(f"Could not parse date '{value}': {e}")
