"""CSV import domain service.

Drives one import run: parse the file, resolve the column mapping,
normalize and match every row, flag duplicates, then commit accepted rows
unless the run is a dry run. Row failures never abort the run; file-level
problems raise before any row is processed.
"""

import csv
import io
import logging
import os
import time
import uuid
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional

from gstbooks.database.base import Database
from gstbooks.domain.category import OTHER_CATEGORY
from gstbooks.domain.counterparty_matcher import (
    CounterpartyMatcher,
    extract_keywords,
    normalize_name,
    validate_threshold,
)
from gstbooks.domain.csv_detect import BOM, detect_csv_type, detect_delimiter
from gstbooks.domain.csv_format import ColumnMapping, CSVFormatService, infer_kind
from gstbooks.domain.duplicates import DuplicateDetector
from gstbooks.domain.entities import Category, Vendor
from gstbooks.domain.errors import FileFormatError, InvalidMapping
from gstbooks.domain.import_types import (
    CUSTOM,
    EXPENSE,
    INCOME,
    UNKNOWN,
    ImportReport,
    ImportRequest,
    MatchResult,
    NormalizedRow,
    RowOutcome,
)
from gstbooks.utils.amount_parser import parse_amount, parse_percentage
from gstbooks.utils.date_parser import parse_csv_date
from gstbooks.utils.fiscal_year import assign_period
from gstbooks.utils.money import calc_gst_from_total, add_gst, dollars_to_cents, format_cents

logger = logging.getLogger(__name__)

WORKERS_ENV_VAR = "GSTBOOKS_IMPORT_WORKERS"
DEFAULT_MAX_WORKERS = 4

# Spreadsheet footer rows, compared lowercased
SUMMARY_LABELS = frozenset({"total", "totals", "grand total"})

DUPLICATE_ERROR = "Duplicate of an existing {kind}"


def default_max_workers() -> int:
    """Worker count from GSTBOOKS_IMPORT_WORKERS, defaulting to 4."""
    value = os.environ.get(WORKERS_ENV_VAR)
    if not value:
        return DEFAULT_MAX_WORKERS
    try:
        workers = int(value)
    except ValueError:
        logger.warning("Ignoring invalid %s=%r", WORKERS_ENV_VAR, value)
        return DEFAULT_MAX_WORKERS
    return max(1, workers)


@dataclass(frozen=True)
class _RawRow:
    row_number: int
    cells: dict[str, str]


@dataclass(frozen=True)
class _RowResult:
    outcome: RowOutcome
    row: Optional[NormalizedRow] = None


@dataclass(frozen=True)
class _RunContext:
    """Read-only state shared by all rows of one run."""

    kind: str
    mapping: ColumnMapping
    request: ImportRequest
    matcher: CounterpartyMatcher
    vendors_by_id: dict[int, Vendor]
    categories: tuple[Category, ...]


class CSVImportService:
    """Service for importing expense and income CSV files."""

    def __init__(self, db: Database, max_workers: Optional[int] = None):
        """Initialize CSV import service.

        Args:
            db: Database instance
            max_workers: Threads used to normalize and match rows. Defaults to
                GSTBOOKS_IMPORT_WORKERS or 4.
        """
        self.db = db
        self.format_service = CSVFormatService()
        self.max_workers = max_workers if max_workers is not None else default_max_workers()

    def import_file(self, csv_file_path: str, request: ImportRequest) -> ImportReport:
        """Import a CSV file from disk.

        Raises:
            FileNotFoundError: If the file doesn't exist
            FileFormatError: If the file is not a readable CSV with a header row
            InvalidMapping: If no usable column mapping can be resolved
        """
        csv_path = Path(csv_file_path)
        if not csv_path.exists():
            raise FileNotFoundError(f"CSV file not found: {csv_file_path}")
        if request.filename is None:
            request = replace(request, filename=csv_path.name)
        return self.import_bytes(csv_path.read_bytes(), request)

    def preview(self, content: bytes, request: ImportRequest) -> ImportReport:
        """Run an import without writing anything."""
        return self.import_bytes(content, replace(request, dry_run=True))

    def import_bytes(self, content: bytes, request: ImportRequest) -> ImportReport:
        """Import CSV content.

        Args:
            content: Raw file bytes (UTF-8, optional byte-order mark)
            request: Import options

        Returns:
            ImportReport with one outcome per data row, in file order

        Raises:
            ValidationError: If the match threshold is outside [0, 1]
            FileFormatError: If the file is not a readable CSV with a header row
            InvalidMapping: If no usable column mapping can be resolved
        """
        started = time.perf_counter()
        validate_threshold(request.match_threshold)

        headers, raw_rows = self._read_rows(content)
        kind, mapping = self._resolve_mapping(request, headers)
        self.format_service.validate_headers(mapping, headers)

        run_id = uuid.uuid4().hex
        logger.debug(
            "Import %s started kind=%s source=%s rows=%d dry_run=%s",
            run_id,
            kind,
            mapping.template or request.source,
            len(raw_rows),
            request.dry_run,
        )

        context = self._build_context(kind, mapping, request)
        logger.debug(
            "Import %s matching against %d known counterparties", run_id, len(context.matcher)
        )
        results = self._process_rows(raw_rows, context)
        if request.skip_duplicates:
            results = self._flag_duplicates(results, kind)

        outcomes = [result.outcome for result in results]
        if not request.dry_run:
            outcomes = self._commit(run_id, results, context)

        report = ImportReport(
            run_id=run_id,
            kind=kind,
            source=mapping.template or request.source,
            dry_run=request.dry_run,
            processing_time_ms=int((time.perf_counter() - started) * 1000),
            rows=tuple(outcomes),
        )
        logger.info(
            "Import %s finished kind=%s total=%d success=%d failed=%d duplicates=%d dry_run=%s",
            run_id,
            kind,
            report.total_rows,
            report.success_count,
            report.failed_count,
            report.duplicate_count,
            report.dry_run,
        )
        return report

    # Parsing

    def _read_rows(self, content: bytes) -> tuple[list[str], list[_RawRow]]:
        """Decode content and split it into a header and data rows.

        Wholly blank rows are dropped here and never reach the report. Row
        numbers count file lines after the header, so they stay aligned with
        the file when blank rows are skipped.
        """
        try:
            text = content.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise FileFormatError(f"CSV file is not valid UTF-8 text: {e}") from e

        lines = text.lstrip(BOM).splitlines(keepends=True)
        while lines and not lines[0].strip():
            lines.pop(0)
        if not lines:
            raise FileFormatError("CSV file has no header row")

        delimiter = detect_delimiter(lines[0])
        reader = csv.reader(io.StringIO("".join(lines)), delimiter=delimiter)
        try:
            headers = [h.strip() for h in next(reader)]
        except csv.Error as e:
            raise FileFormatError(f"Could not read CSV header: {e}") from e
        if not any(headers):
            raise FileFormatError("CSV file has no header row")

        keys = [h.lower() for h in headers]
        rows = []
        try:
            for cells in reader:
                if not any(cell.strip() for cell in cells):
                    continue
                values: dict[str, str] = {}
                for key, cell in zip(keys, cells):
                    # First column wins when a header repeats
                    values.setdefault(key, cell.strip())
                rows.append(_RawRow(row_number=reader.line_num - 1, cells=values))
        except csv.Error as e:
            raise FileFormatError(f"Malformed CSV at line {reader.line_num}: {e}") from e

        return headers, rows

    def _resolve_mapping(
        self, request: ImportRequest, headers: list[str]
    ) -> tuple[str, ColumnMapping]:
        kind = request.kind
        if kind not in (None, EXPENSE, INCOME, CUSTOM):
            raise InvalidMapping(
                f"Invalid import kind '{kind}'. Must be expense, income or custom"
            )

        if request.mapping:
            if kind in (None, CUSTOM):
                kind = infer_kind(request.mapping)
            return kind, self.format_service.resolve_mapping(kind, mapping=request.mapping)

        if kind == CUSTOM and not request.source:
            raise InvalidMapping("Custom imports require an explicit column mapping")

        if kind in (None, CUSTOM):
            kind = detect_csv_type(headers)
            if kind == UNKNOWN:
                raise InvalidMapping(
                    "Could not detect whether the file holds expenses or incomes. "
                    "Provide an explicit column mapping."
                )

        if request.source:
            return kind, self.format_service.resolve_mapping(kind, source=request.source)
        return kind, self.format_service.detect_mapping(kind, headers)

    def _build_context(
        self, kind: str, mapping: ColumnMapping, request: ImportRequest
    ) -> _RunContext:
        if kind == EXPENSE:
            vendors = self.db.list_vendors()
            return _RunContext(
                kind=kind,
                mapping=mapping,
                request=request,
                matcher=CounterpartyMatcher(vendors),
                vendors_by_id={v.id: v for v in vendors},
                categories=tuple(self.db.list_categories()),
            )
        return _RunContext(
            kind=kind,
            mapping=mapping,
            request=request,
            matcher=CounterpartyMatcher(self.db.list_clients(), use_aliases=False),
            vendors_by_id={},
            categories=(),
        )

    # Row processing

    def _process_rows(self, raw_rows: list[_RawRow], context: _RunContext) -> list[_RowResult]:
        """Normalize and match rows; results keep file order."""
        rows = [r for r in raw_rows if not self._is_summary_row(r, context.mapping)]

        def process(raw: _RawRow) -> _RowResult:
            return self._process_row(raw, context)

        if self.max_workers <= 1 or len(rows) <= 1:
            return [process(raw) for raw in rows]
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            return list(executor.map(process, rows))

    @staticmethod
    def _is_summary_row(raw: _RawRow, mapping: ColumnMapping) -> bool:
        column = mapping.column("counterparty") or mapping.column("description")
        label = raw.cells.get(column.lower(), "") if column else ""
        if not label:
            label = next((cell for cell in raw.cells.values() if cell), "")
        return label.strip().lower() in SUMMARY_LABELS

    def _process_row(self, raw: _RawRow, context: _RunContext) -> _RowResult:
        try:
            if context.kind == EXPENSE:
                return self._process_expense_row(raw, context)
            return self._process_income_row(raw, context)
        except ValueError as e:
            logger.debug("Row %d failed: %s", raw.row_number, e)
            return _RowResult(
                outcome=RowOutcome(
                    row_number=raw.row_number,
                    success=False,
                    error=str(e),
                    raw_counterparty=self._cell(raw, context.mapping, "counterparty") or None,
                )
            )

    @staticmethod
    def _cell(raw: _RawRow, mapping: ColumnMapping, role: str) -> str:
        column = mapping.column(role)
        if not column:
            return ""
        return raw.cells.get(column.lower(), "")

    def _parse_date(self, raw: _RawRow, context: _RunContext):
        value = self._cell(raw, context.mapping, "date")
        if not value:
            if context.kind == INCOME and context.request.default_date is not None:
                return context.request.default_date
            raise ValueError("Missing date")
        return parse_csv_date(value, context.mapping.date_format)

    def _parse_cents(self, value: str, label: str) -> int:
        cents = dollars_to_cents(parse_amount(value))
        if cents < 0:
            raise ValueError(f"{label} cannot be negative ({format_cents(cents)})")
        return cents

    def _process_expense_row(self, raw: _RawRow, context: _RunContext) -> _RowResult:
        mapping = context.mapping
        name = self._cell(raw, mapping, "counterparty") or self._cell(raw, mapping, "description")
        if not name:
            raise ValueError("Missing vendor name")

        row_date = self._parse_date(raw, context)

        amount_str = self._cell(raw, mapping, "amount")
        if not amount_str:
            raise ValueError("Missing amount")
        amount = parse_amount(amount_str)
        if mapping.negate_amount:
            amount = -amount
        amount_cents = dollars_to_cents(amount)
        if amount_cents < 0:
            raise ValueError(f"Amount cannot be negative ({format_cents(amount_cents)})")
        if amount_cents == 0:
            raise ValueError("Amount must be greater than zero")

        biz_percent = parse_percentage(self._cell(raw, mapping, "biz_percent"))

        match = context.matcher.find_best_match(name, context.request.match_threshold)
        vendor = context.vendors_by_id.get(match.counterparty_id) if match.is_match else None

        gst_str = self._cell(raw, mapping, "tax")
        if gst_str:
            gst_cents = self._parse_cents(gst_str, "GST")
            if gst_cents > amount_cents:
                raise ValueError(
                    f"GST ({format_cents(gst_cents)}) cannot exceed amount "
                    f"({format_cents(amount_cents)})"
                )
        elif vendor is not None and vendor.is_international:
            gst_cents = 0
        else:
            gst_cents = calc_gst_from_total(amount_cents)

        category = self._resolve_category(
            self._cell(raw, mapping, "category"), name, vendor, context.categories
        )

        description = self._cell(raw, mapping, "description") or None
        row = NormalizedRow(
            row_number=raw.row_number,
            date=row_date,
            amount_cents=amount_cents,
            tax_cents=gst_cents,
            counterparty_name=name,
            biz_percent=biz_percent,
            description=description,
            category_name=category.name if category else None,
            invoice_number=self._cell(raw, mapping, "invoice_number") or None,
        )
        outcome = RowOutcome(
            row_number=raw.row_number,
            success=True,
            match=match,
            raw_counterparty=name,
            amount_cents=amount_cents,
            gst_cents=gst_cents,
            biz_percent=biz_percent,
            category_id=category.id if category else None,
            category_name=category.name if category else None,
            invoice_number=row.invoice_number,
            period=assign_period(row_date),
        )
        return _RowResult(outcome=outcome, row=row)

    @staticmethod
    def _resolve_category(
        name: str,
        item_name: str,
        vendor: Optional[Vendor],
        categories: tuple[Category, ...],
    ) -> Optional[Category]:
        """Pick an expense category.

        Order: the category cell by name, the vendor's default category,
        keywords in the item name, then "Other".
        """
        if not categories:
            return None
        by_name = {c.name.lower(): c for c in categories}
        if name and name.lower() in by_name:
            return by_name[name.lower()]

        if vendor is not None and vendor.default_category_id is not None:
            for category in categories:
                if category.id == vendor.default_category_id:
                    return category

        for keyword in extract_keywords(item_name):
            for category in categories:
                if keyword in category.name.lower():
                    return category

        return by_name.get(OTHER_CATEGORY.lower())

    def _process_income_row(self, raw: _RawRow, context: _RunContext) -> _RowResult:
        mapping = context.mapping
        name = self._cell(raw, mapping, "counterparty")
        if not name:
            raise ValueError("Missing client name")

        row_date = self._parse_date(raw, context)

        subtotal_str = self._cell(raw, mapping, "subtotal")
        gst_str = self._cell(raw, mapping, "tax")
        total_str = self._cell(raw, mapping, "total")
        subtotal = self._parse_cents(subtotal_str, "Subtotal") if subtotal_str else None
        gst = self._parse_cents(gst_str, "GST") if gst_str else None
        total = self._parse_cents(total_str, "Total") if total_str else None

        warning = None
        if subtotal is not None and gst is not None:
            if total is not None and subtotal + gst != total:
                warning = (
                    f"Total mismatch: file shows {format_cents(total)} but "
                    f"Subtotal + GST = {format_cents(subtotal + gst)}. Using calculated value."
                )
            total = subtotal + gst
        elif total is not None:
            if gst is None:
                gst = calc_gst_from_total(total)
            elif gst > total:
                raise ValueError(
                    f"GST ({format_cents(gst)}) cannot exceed total ({format_cents(total)})"
                )
            subtotal = total - gst
        elif subtotal is not None:
            total = add_gst(subtotal)
            gst = total - subtotal
        else:
            raise ValueError("Missing amount: provide subtotal and GST, or total")

        if total == 0:
            raise ValueError("Total must be greater than zero")

        match = context.matcher.find_best_match(name, context.request.match_threshold)
        invoice_number = self._cell(raw, mapping, "invoice_number") or None
        row = NormalizedRow(
            row_number=raw.row_number,
            date=row_date,
            amount_cents=total,
            tax_cents=gst,
            counterparty_name=name,
            subtotal_cents=subtotal,
            description=self._cell(raw, mapping, "description") or None,
            invoice_number=invoice_number,
        )
        outcome = RowOutcome(
            row_number=raw.row_number,
            success=True,
            warning=warning,
            match=match,
            raw_counterparty=name,
            amount_cents=total,
            gst_cents=gst,
            subtotal_cents=subtotal,
            invoice_number=invoice_number,
            period=assign_period(row_date),
        )
        return _RowResult(outcome=outcome, row=row)

    # Duplicates

    def _flag_duplicates(self, results: list[_RowResult], kind: str) -> list[_RowResult]:
        """Flag duplicates against the ledger and earlier rows, in row order."""
        dates = [r.row.date for r in results if r.row is not None]
        if not dates:
            return results

        detector = DuplicateDetector(
            self.db.find_ledger_entries(kind, min(dates), max(dates)),
            match_invoices=kind == INCOME,
        )
        flagged = []
        for result in results:
            row = result.row
            if row is None:
                flagged.append(result)
                continue
            match = result.outcome.match or MatchResult.no_match()
            key = (row.date, row.amount_cents, match.counterparty_id, row.counterparty_name)
            if detector.is_duplicate(*key, invoice_number=row.invoice_number):
                logger.debug("Row %d is a duplicate", row.row_number)
                flagged.append(
                    _RowResult(
                        outcome=replace(
                            result.outcome,
                            success=False,
                            is_duplicate=True,
                            error=DUPLICATE_ERROR.format(kind=kind),
                        )
                    )
                )
                continue
            detector.register(*key, invoice_number=row.invoice_number)
            flagged.append(result)
        return flagged

    # Committing

    def _commit(
        self, run_id: str, results: list[_RowResult], context: _RunContext
    ) -> list[RowOutcome]:
        """Write accepted rows one at a time; a failed write fails only its row."""
        request = context.request
        job_id = self.db.create_import_job(
            run_id=run_id,
            kind=context.kind,
            source=context.mapping.template or request.source,
            filename=request.filename,
        )

        # normalized name -> id of counterparties created during this run
        created: dict[str, int] = {}
        outcomes = []
        for result in results:
            outcome = result.outcome
            if result.row is None or not outcome.success:
                outcomes.append(outcome)
                continue
            try:
                counterparty_id = self._counterparty_id(outcome, result.row, context.kind, created)
                if context.kind == EXPENSE:
                    record_id = self.db.create_expense(
                        date=result.row.date,
                        amount_cents=result.row.amount_cents,
                        gst_cents=result.row.tax_cents,
                        vendor_id=counterparty_id,
                        biz_percent=result.row.biz_percent,
                        category_id=outcome.category_id,
                        description=result.row.description,
                        import_job_id=job_id,
                    )
                else:
                    record_id = self.db.create_income(
                        date=result.row.date,
                        client_id=counterparty_id,
                        subtotal_cents=result.row.subtotal_cents,
                        gst_cents=result.row.tax_cents,
                        total_cents=result.row.amount_cents,
                        invoice_number=result.row.invoice_number,
                        description=result.row.description,
                        is_paid=request.mark_as_paid,
                        import_job_id=job_id,
                    )
                outcomes.append(replace(outcome, record_id=record_id))
            except Exception as e:
                logger.warning("Import %s row %d failed to save: %s", run_id, outcome.row_number, e)
                outcomes.append(replace(outcome, success=False, error=f"Failed to save row: {e}"))

        imported = sum(1 for o in outcomes if o.success)
        failed = len(outcomes) - imported
        if failed == 0:
            status = "completed"
        elif imported == 0:
            status = "failed"
        else:
            status = "partial"
        self.db.finish_import_job(
            import_job_id=job_id,
            status=status,
            total_rows=len(outcomes),
            imported_count=imported,
            failed_count=failed,
            duplicate_count=sum(1 for o in outcomes if o.is_duplicate),
            total_amount_cents=sum(o.amount_cents or 0 for o in outcomes if o.success),
            total_gst_cents=sum(o.gst_cents or 0 for o in outcomes if o.success),
        )
        return outcomes

    def _counterparty_id(
        self, outcome: RowOutcome, row: NormalizedRow, kind: str, created: dict[str, int]
    ) -> int:
        """Return the matched counterparty, creating a new one at most once per name."""
        if outcome.match is not None and outcome.match.is_match:
            return outcome.match.counterparty_id

        name = " ".join(row.counterparty_name.split())
        key = normalize_name(name) or name.lower()
        if key not in created:
            if kind == EXPENSE:
                created[key] = self.db.create_vendor(name=name)
            else:
                created[key] = self.db.create_client(name=name)
            logger.debug("Created %s counterparty %r", kind, name)
        return created[key]
