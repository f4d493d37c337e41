"""Value types produced and consumed by a single CSV import run."""

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Optional

from gstbooks.utils.fiscal_year import FiscalPeriod

EXPENSE = "expense"
INCOME = "income"
UNKNOWN = "unknown"
CUSTOM = "custom"

RECORD_KINDS = (EXPENSE, INCOME)

DEFAULT_MATCH_THRESHOLD = 0.6


@dataclass(frozen=True)
class ImportRequest:
    """Caller options for one import run.

    kind: "expense", "income", "custom" (kind taken from the explicit
        mapping) or None (detected from the header row)
    source: Built-in template name
    mapping: Explicit role -> column mapping; wins over source
    """

    kind: Optional[str] = None
    source: Optional[str] = None
    mapping: Optional[dict[str, str]] = None
    match_threshold: float = DEFAULT_MATCH_THRESHOLD
    skip_duplicates: bool = True
    dry_run: bool = False
    mark_as_paid: bool = False
    default_date: Optional[date] = None
    filename: Optional[str] = None


@dataclass(frozen=True)
class NormalizedRow:
    """Canonical row after parsing; all amounts in cents."""

    row_number: int
    date: date
    amount_cents: int
    tax_cents: int
    counterparty_name: str
    subtotal_cents: Optional[int] = None
    biz_percent: Optional[int] = None
    description: Optional[str] = None
    category_name: Optional[str] = None
    invoice_number: Optional[str] = None


@dataclass(frozen=True)
class MatchResult:
    """Outcome of counterparty resolution.

    No counterparty_id (and score 0) means a new counterparty is created
    on commit.
    """

    counterparty_id: Optional[int]
    counterparty_name: Optional[str]
    score: float
    match_type: str

    @property
    def is_match(self) -> bool:
        return self.counterparty_id is not None

    @classmethod
    def no_match(cls) -> "MatchResult":
        return cls(counterparty_id=None, counterparty_name=None, score=0.0, match_type="none")


@dataclass(frozen=True)
class RowOutcome:
    """Result of one row of an import run."""

    row_number: int
    success: bool
    is_duplicate: bool = False
    error: Optional[str] = None
    warning: Optional[str] = None
    match: Optional[MatchResult] = None
    raw_counterparty: Optional[str] = None
    amount_cents: Optional[int] = None
    gst_cents: Optional[int] = None
    subtotal_cents: Optional[int] = None
    biz_percent: Optional[int] = None
    category_id: Optional[int] = None
    category_name: Optional[str] = None
    invoice_number: Optional[str] = None
    period: Optional[FiscalPeriod] = None
    record_id: Optional[int] = None

    @property
    def counterparty_name(self) -> Optional[str]:
        """Name of the matched counterparty, or the raw name for a new one."""
        if self.match is not None and self.match.is_match:
            return self.match.counterparty_name
        return self.raw_counterparty

    def to_dict(self) -> dict[str, Any]:
        return {
            "row_number": self.row_number,
            "success": self.success,
            "is_duplicate": self.is_duplicate,
            "error": self.error,
            "warning": self.warning,
            "counterparty_name": self.counterparty_name,
            "match_score": self.match.score if self.match else None,
            "match_type": self.match.match_type if self.match else None,
            "amount_cents": self.amount_cents,
            "gst_cents": self.gst_cents,
            "subtotal_cents": self.subtotal_cents,
            "biz_percent": self.biz_percent,
            "category_name": self.category_name,
            "invoice_number": self.invoice_number,
            "fiscal_year": self.period.fiscal_year if self.period else None,
            "quarter": self.period.quarter if self.period else None,
            "record_id": self.record_id,
        }


@dataclass(frozen=True)
class ImportReport:
    """Aggregate result of one import run, in file row order."""

    run_id: str
    kind: str
    source: Optional[str]
    dry_run: bool
    processing_time_ms: int
    rows: tuple[RowOutcome, ...] = field(default_factory=tuple)

    @property
    def total_rows(self) -> int:
        return len(self.rows)

    @property
    def success_count(self) -> int:
        return sum(1 for r in self.rows if r.success)

    @property
    def failed_count(self) -> int:
        return sum(1 for r in self.rows if not r.success)

    @property
    def duplicate_count(self) -> int:
        return sum(1 for r in self.rows if r.is_duplicate)

    @property
    def warning_count(self) -> int:
        return sum(1 for r in self.rows if r.warning)

    @property
    def total_amount_cents(self) -> int:
        return sum(r.amount_cents or 0 for r in self.rows if r.success)

    @property
    def total_gst_cents(self) -> int:
        return sum(r.gst_cents or 0 for r in self.rows if r.success)

    @property
    def total_subtotal_cents(self) -> int:
        return sum(r.subtotal_cents or 0 for r in self.rows if r.success)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "run_id": self.run_id,
            "kind": self.kind,
            "source": self.source,
            "dry_run": self.dry_run,
            "total_rows": self.total_rows,
            "success_count": self.success_count,
            "failed_count": self.failed_count,
            "duplicate_count": self.duplicate_count,
            "total_amount_cents": self.total_amount_cents,
            "total_gst_cents": self.total_gst_cents,
            "processing_time_ms": self.processing_time_ms,
            "rows": [row.to_dict() for row in self.rows],
        }
        if self.kind == INCOME:
            result["warning_count"] = self.warning_count
            result["total_subtotal_cents"] = self.total_subtotal_cents
        return result
