"""Record kind detection from CSV headers.

Looks only at the header row to decide whether a file holds expenses or
incomes. Income signals are checked first: bank exports often carry a
``Total`` column that would otherwise pass the expense rule.
"""

import csv

from gstbooks.domain.import_types import EXPENSE, INCOME, UNKNOWN

BOM = "\ufeff"


def _has(headers: list[str], *tokens: str) -> bool:
    return any(token in header for header in headers for token in tokens)


def _has_total(headers: list[str]) -> bool:
    return any("total" in header and "subtotal" not in header for header in headers)


def detect_csv_type(headers: list[str]) -> str:
    """Classify a header row as "expense", "income" or "unknown".

    Args:
        headers: Header cells, already split on the file's delimiter

    Returns:
        "income", "expense" or "unknown". Never raises.

    Example:
        detect_csv_type(["Date", "Description", "Amount"]) -> "expense"
        detect_csv_type(["Date", "Client", "Subtotal", "GST"]) -> "income"
    """
    normalized = [h.strip().lstrip(BOM).strip().lower() for h in headers if h and h.strip()]
    if len(normalized) < 2:
        return UNKNOWN

    has_client = _has(normalized, "client")
    has_invoice = _has(normalized, "invoice")
    has_subtotal = _has(normalized, "subtotal")
    has_total = _has_total(normalized)
    has_gst = _has(normalized, "gst")

    if (has_client and (has_invoice or has_subtotal or has_total)) or (has_subtotal and has_gst):
        return INCOME

    has_date = _has(normalized, "date")
    has_description = _has(normalized, "description", "item")
    has_amount = _has(normalized, "amount", "debit", "credit") or has_total

    if has_date and has_description and has_amount:
        return EXPENSE

    return UNKNOWN


def detect_delimiter(line: str) -> str:
    """Pick the delimiter of a header line: tab, then semicolon, else comma."""
    if "\t" in line:
        return "\t"
    if ";" in line and "," not in line:
        return ";"
    return ","


def parse_first_line(content: str) -> list[str]:
    """Extract trimmed header cells from the first non-empty line.

    Handles comma, tab and semicolon delimiters, quoted values and a
    leading byte-order mark.

    Example:
        parse_first_line('"Date","Client","Total"') -> ["Date", "Client", "Total"]
    """
    if not content:
        return []

    content = content.lstrip(BOM)
    first_line = next((line for line in content.splitlines() if line.strip()), None)
    if first_line is None:
        return []

    delimiter = detect_delimiter(first_line)
    row = next(csv.reader([first_line], delimiter=delimiter), [])
    headers = []
    for cell in row:
        cleaned = cell.strip()
        if len(cleaned) >= 2 and cleaned[0] == cleaned[-1] and cleaned[0] in "'\"":
            cleaned = cleaned[1:-1].strip()
        headers.append(cleaned)
    return headers


def detect_csv_type_from_content(content: str) -> str:
    """Detect the record kind directly from file content."""
    return detect_csv_type(parse_first_line(content))
