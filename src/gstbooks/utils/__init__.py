"""Utility functions for gstbooks."""

from gstbooks.utils.date_parser import parse_date, parse_csv_date
from gstbooks.utils.amount_parser import parse_amount, parse_cents, parse_percentage

__all__ = ["parse_date", "parse_csv_date", "parse_amount", "parse_cents", "parse_percentage"]
