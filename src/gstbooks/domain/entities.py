"""Domain model entities for gstbooks.

These are pure data classes representing business concepts, independent of
database schema. All monetary fields are integer cents.
"""

from dataclasses import dataclass
from datetime import datetime, date
from typing import Optional


@dataclass(frozen=True)
class Category:
    """Expense category domain entity."""

    id: int
    name: str
    created_at: datetime


@dataclass(frozen=True)
class Vendor:
    """Vendor (expense counterparty) domain entity."""

    id: int
    name: str
    is_international: bool
    default_category_id: Optional[int]
    created_at: datetime


@dataclass(frozen=True)
class Client:
    """Client (income counterparty) domain entity."""

    id: int
    name: str
    created_at: datetime


@dataclass(frozen=True)
class Expense:
    """Expense ledger entry.

    amount_cents and gst_cents are the full GST-inclusive figures; the
    business-use percentage is applied at reporting time.
    """

    id: int
    date: date
    amount_cents: int
    gst_cents: int
    biz_percent: int
    vendor_id: int
    category_id: Optional[int]
    description: Optional[str]
    import_job_id: Optional[int]
    created_at: datetime


@dataclass(frozen=True)
class Income:
    """Income ledger entry."""

    id: int
    date: date
    client_id: int
    invoice_number: Optional[str]
    description: Optional[str]
    subtotal_cents: int
    gst_cents: int
    total_cents: int
    is_paid: bool
    import_job_id: Optional[int]
    created_at: datetime


@dataclass(frozen=True)
class LedgerEntry:
    """Read-only view of an existing ledger row used for duplicate checks."""

    date: date
    amount_cents: int
    counterparty_id: int
    counterparty_name: str
    invoice_number: Optional[str] = None


@dataclass(frozen=True)
class ImportJob:
    """History record of a committed import run."""

    id: int
    run_id: str
    kind: str
    source: Optional[str]
    filename: Optional[str]
    status: str
    total_rows: int
    imported_count: int
    failed_count: int
    duplicate_count: int
    total_amount_cents: int
    total_gst_cents: int
    created_at: datetime
    completed_at: Optional[datetime]
