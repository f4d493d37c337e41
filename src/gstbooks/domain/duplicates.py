"""Exact-field duplicate detection against existing ledger rows."""

from datetime import date
from typing import Iterable, Optional

from gstbooks.domain.entities import LedgerEntry


def _name_key(name: Optional[str]) -> str:
    return (name or "").strip().lower()


class DuplicateDetector:
    """Decides whether a row already exists in the ledger.

    A row duplicates an entry when date, amount in cents and counterparty
    all match exactly. The counterparty is compared by id when the row was
    matched to a known counterparty, else by case-insensitive name. When
    invoice numbers are tracked (incomes), the same invoice number for the
    same counterparty is also a duplicate.

    Accepted rows are registered so that a repeat of a row later in the
    same file is flagged too. Not thread-safe: call from one thread in row
    order.
    """

    def __init__(self, entries: Iterable[LedgerEntry] = (), match_invoices: bool = False):
        self.match_invoices = match_invoices
        self._by_id: set[tuple[date, int, int]] = set()
        self._by_name: set[tuple[date, int, str]] = set()
        self._invoices_by_id: set[tuple[int, str]] = set()
        self._invoices_by_name: set[tuple[str, str]] = set()
        for entry in entries:
            self._add(
                entry.date,
                entry.amount_cents,
                entry.counterparty_id,
                entry.counterparty_name,
                entry.invoice_number,
            )

    def _add(
        self,
        day: date,
        amount_cents: int,
        counterparty_id: Optional[int],
        counterparty_name: Optional[str],
        invoice_number: Optional[str],
    ) -> None:
        name = _name_key(counterparty_name)
        invoice = _name_key(invoice_number)
        if counterparty_id is not None:
            self._by_id.add((day, amount_cents, counterparty_id))
            if invoice:
                self._invoices_by_id.add((counterparty_id, invoice))
        if name:
            self._by_name.add((day, amount_cents, name))
            if invoice:
                self._invoices_by_name.add((name, invoice))

    def is_duplicate(
        self,
        day: date,
        amount_cents: int,
        counterparty_id: Optional[int],
        counterparty_name: Optional[str],
        invoice_number: Optional[str] = None,
    ) -> bool:
        """Check a normalized row against the snapshot and registered rows.

        Args:
            day: Row date
            amount_cents: Row amount (expense amount or income total)
            counterparty_id: Resolved counterparty, None for a new one
            counterparty_name: Raw name from the file
            invoice_number: Invoice number (incomes)

        Returns:
            True if the row is a duplicate
        """
        invoice = _name_key(invoice_number) if self.match_invoices else ""
        if counterparty_id is not None:
            if (day, amount_cents, counterparty_id) in self._by_id:
                return True
            return bool(invoice) and (counterparty_id, invoice) in self._invoices_by_id

        name = _name_key(counterparty_name)
        if not name:
            return False
        if (day, amount_cents, name) in self._by_name:
            return True
        return bool(invoice) and (name, invoice) in self._invoices_by_name

    def register(
        self,
        day: date,
        amount_cents: int,
        counterparty_id: Optional[int],
        counterparty_name: Optional[str],
        invoice_number: Optional[str] = None,
    ) -> None:
        """Record an accepted row so later identical rows are duplicates."""
        self._add(day, amount_cents, counterparty_id, counterparty_name, invoice_number)
