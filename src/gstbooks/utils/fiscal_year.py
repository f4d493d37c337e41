"""Australian financial year and BAS quarter calculations.

The financial year runs from 1 July to 30 June and is labelled by the
calendar year in which it ends: FY2026 is 1 July 2025 to 30 June 2026.

Quarters:
- Q1: July - September
- Q2: October - December
- Q3: January - March (calendar year of the FY label)
- Q4: April - June
"""

from dataclasses import dataclass
from datetime import date
from typing import Optional

from gstbooks.domain.errors import ValidationError

QUARTERS = ("Q1", "Q2", "Q3", "Q4")

FY_START_MONTH = 7

# quarter -> ((start month, start day), (end month, end day), year offset from FY label)
_QUARTER_BOUNDS = {
    "Q1": ((7, 1), (9, 30), -1),
    "Q2": ((10, 1), (12, 31), -1),
    "Q3": ((1, 1), (3, 31), 0),
    "Q4": ((4, 1), (6, 30), 0),
}


@dataclass(frozen=True)
class FiscalPeriod:
    """Financial year and quarter a date belongs to."""

    fiscal_year: int
    quarter: str

    @property
    def fy_label(self) -> str:
        return f"FY{self.fiscal_year}"

    @property
    def quarter_label(self) -> str:
        return f"{self.quarter} FY{self.fiscal_year}"


def fiscal_year_of(day: date) -> int:
    """Return the financial year number for a date.

    Example:
        fiscal_year_of(date(2025, 6, 30)) -> 2025
        fiscal_year_of(date(2025, 7, 1)) -> 2026
    """
    if day.month >= FY_START_MONTH:
        return day.year + 1
    return day.year


def quarter_of(day: date) -> str:
    """Return the BAS quarter (Q1-Q4) for a date."""
    if 7 <= day.month <= 9:
        return "Q1"
    if 10 <= day.month <= 12:
        return "Q2"
    if 1 <= day.month <= 3:
        return "Q3"
    return "Q4"


def assign_period(day: date) -> FiscalPeriod:
    """Return the financial year and quarter a date falls in."""
    return FiscalPeriod(fiscal_year=fiscal_year_of(day), quarter=quarter_of(day))


def _normalize_quarter(quarter: str) -> str:
    normalized = quarter.strip().upper()
    if normalized not in QUARTERS:
        raise ValidationError(
            f"Unknown quarter '{quarter}'. Must be one of: {', '.join(QUARTERS)}"
        )
    return normalized


def quarter_date_range(quarter: str, fiscal_year: int) -> tuple[date, date]:
    """Return the inclusive start and end dates of a quarter.

    Example:
        quarter_date_range("Q1", 2026) -> (2025-07-01, 2025-09-30)
        quarter_date_range("Q3", 2026) -> (2026-01-01, 2026-03-31)

    Raises:
        ValidationError: If quarter is not Q1-Q4
    """
    (start_month, start_day), (end_month, end_day), offset = _QUARTER_BOUNDS[
        _normalize_quarter(quarter)
    ]
    year = fiscal_year + offset
    return date(year, start_month, start_day), date(year, end_month, end_day)


def fiscal_year_date_range(fiscal_year: int) -> tuple[date, date]:
    """Return 1 July to 30 June for a financial year."""
    return date(fiscal_year - 1, 7, 1), date(fiscal_year, 6, 30)


def is_in_range(day: date, quarter: str, fiscal_year: int) -> bool:
    """Check whether a date falls within a quarter of a financial year."""
    start, end = quarter_date_range(quarter, fiscal_year)
    return start <= day <= end


def all_quarters(fiscal_year: int) -> list[tuple[str, date, date]]:
    """Return (quarter, start, end) for every quarter of a financial year."""
    return [(quarter, *quarter_date_range(quarter, fiscal_year)) for quarter in QUARTERS]


def current_period(today: Optional[date] = None) -> FiscalPeriod:
    """Return the period for today (or the supplied date)."""
    return assign_period(today or date.today())
