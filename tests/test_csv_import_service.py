"""Domain tests for CSV import service."""

from datetime import date

import pytest

from gstbooks.domain.csv_import import CSVImportService, default_max_workers
from gstbooks.domain.errors import FileFormatError, InvalidMapping, ValidationError
from gstbooks.domain.import_types import ImportRequest
from gstbooks.utils.fiscal_year import FiscalPeriod

EXPENSE_HEADER = "Date,Item,Total,GST,Biz%,Category\n"
INCOME_HEADER = "Client,Invoice #,Subtotal,GST,Total,Date,Description\n"


def expense_request(**kwargs):
    return ImportRequest(kind="expense", source="custom", **kwargs)


def income_request(**kwargs):
    return ImportRequest(kind="income", source="custom", **kwargs)


class TestExpenseImport:
    """Tests for importing expense files."""

    def test_custom_template(self, import_service, sample_vendors, fixtures_dir, temp_db):
        report = import_service.import_file(
            str(fixtures_dir / "expenses_custom.csv"), expense_request()
        )

        assert report.kind == "expense"
        assert report.source == "custom"
        assert report.total_rows == 4
        assert report.success_count == 3
        assert report.failed_count == 1
        assert report.total_amount_cents == 15400
        assert report.total_gst_cents == 1300

        github, telstra, officeworks, bunnings = report.rows
        assert github.match.match_type == "exact"
        assert github.gst_cents == 0
        assert github.category_name == "Software"
        assert github.period == FiscalPeriod(2026, "Q1")

        assert telstra.amount_cents == 8800
        assert telstra.gst_cents == 800
        assert telstra.biz_percent == 50
        assert telstra.category_name == "Phone"

        assert not officeworks.match.is_match
        assert officeworks.gst_cents == 500
        assert officeworks.category_name == "Office Supplies"

        assert bunnings.row_number == 4
        assert not bunnings.success
        assert "Could not parse amount" in bunnings.error

        expenses = temp_db.list_expenses()
        assert len(expenses) == 3
        assert {e.id for e in expenses} == {r.record_id for r in report.rows if r.success}
        names = {v.name for v in temp_db.list_vendors()}
        assert "Officeworks" in names

    def test_summary_row_is_skipped(self, import_service, sample_vendors, fixtures_dir):
        report = import_service.import_file(
            str(fixtures_dir / "expenses_custom.csv"), expense_request(dry_run=True)
        )
        assert all(r.raw_counterparty != "Total" for r in report.rows)
        assert [r.row_number for r in report.rows] == [1, 2, 3, 4]

    def test_dry_run_writes_nothing(self, import_service, temp_db):
        """A previewed row is reported but nothing is persisted."""
        content = (EXPENSE_HEADER + "01/07/2025,GitHub,11.00,0.00,100,\n").encode()

        report = import_service.import_bytes(content, expense_request(dry_run=True))

        assert report.dry_run
        assert report.total_rows == 1
        row = report.rows[0]
        assert row.success
        assert row.amount_cents == 1100
        assert row.gst_cents == 0
        assert row.record_id is None
        assert temp_db.list_vendors() == []
        assert temp_db.list_expenses() == []
        assert temp_db.list_import_jobs() == []

    def test_preview_forces_dry_run(self, import_service, temp_db):
        content = (EXPENSE_HEADER + "01/07/2025,GitHub,11.00,,100,\n").encode()
        report = import_service.preview(content, expense_request())
        assert report.dry_run
        assert temp_db.list_expenses() == []

    def test_fuzzy_match_reuses_vendor(self, import_service, sample_vendors, fixtures_dir, temp_db):
        """A bank's spelling of a known vendor does not create a new vendor."""
        report = import_service.import_file(
            str(fixtures_dir / "commbank.csv"), ImportRequest(source="commbank")
        )

        ventra, telstra = report.rows
        assert ventra.success
        assert ventra.amount_cents == 2200
        assert ventra.gst_cents == 200
        assert ventra.match.counterparty_id == sample_vendors["VentraIP"]
        assert ventra.match.match_type == "fuzzy"
        assert 0.6 <= ventra.match.score < 1.0
        assert ventra.counterparty_name == "VentraIP"
        assert ventra.category_name == "Cloud & Hosting"

        assert telstra.match.match_type == "exact"
        assert telstra.amount_cents == 8800
        assert len(temp_db.list_vendors()) == 3

    def test_international_vendor_without_gst_column(self, import_service, sample_vendors):
        content = b"Date,Description,Amount\n01/07/2025,GitHub,11.00\n"
        report = import_service.import_bytes(content, ImportRequest(source="amex"))
        assert report.rows[0].gst_cents == 0

    def test_gst_derived_from_total(self, import_service, fixtures_dir):
        """Semicolon-delimited file with auto-detected kind and columns."""
        report = import_service.import_file(
            str(fixtures_dir / "semicolon_expenses.csv"), ImportRequest()
        )
        assert report.kind == "expense"
        assert report.source is None
        row = report.rows[0]
        assert row.amount_cents == 450
        assert row.gst_cents == 41
        assert row.category_name is None

    def test_category_falls_back_to_other(self, import_service, sample_categories):
        content = (EXPENSE_HEADER + "01/07/2025,Coffee Shop,4.50,,100,\n").encode()
        report = import_service.import_bytes(content, expense_request(dry_run=True))
        assert report.rows[0].category_name == "Other"

    def test_category_from_keywords(self, import_service, sample_categories):
        content = (EXPENSE_HEADER + "01/07/2025,Shell Coles Express,80.00,,100,\n").encode()
        report = import_service.import_bytes(content, expense_request(dry_run=True))
        assert report.rows[0].category_name == "Fuel & Vehicle"

    def test_unknown_category_name_uses_fallback(self, import_service, sample_vendors):
        content = (EXPENSE_HEADER + "01/07/2025,Telstra,88.00,8.00,100,Snacks\n").encode()
        report = import_service.import_bytes(content, expense_request(dry_run=True))
        assert report.rows[0].category_name == "Phone"

    @pytest.mark.parametrize(
        "line, message",
        [
            ("01/07/2025,Cafe,-5.00,,100,", "Amount cannot be negative"),
            ("01/07/2025,Cafe,0.00,,100,", "Amount must be greater than zero"),
            ("01/07/2025,Cafe,,,100,", "Missing amount"),
            (",Cafe,5.00,,100,", "Missing date"),
            ("31/02/2025,Cafe,5.00,,100,", "Could not parse date"),
            ("01/07/2025,,5.00,,100,", "Missing vendor name"),
            ("01/07/2025,Cafe,5.00,6.00,100,", "cannot exceed amount"),
            ("01/07/2025,Cafe,5.00,-1.00,100,", "GST cannot be negative"),
            ("01/07/2025,Cafe,5.00,,150,", "between 0 and 100"),
            ("01/07/2025,Cafe,1e30,,100,", "Amount out of range"),
            ("01/07/2025,Cafe,100000000000000000.00,,100,", "Amount out of range"),
        ],
    )
    def test_row_errors(self, import_service, line, message):
        content = (EXPENSE_HEADER + line + "\n").encode()
        report = import_service.import_bytes(content, expense_request(dry_run=True))
        assert report.failed_count == 1
        assert message in report.rows[0].error

    def test_errors_do_not_abort_run(self, import_service):
        content = (
            EXPENSE_HEADER
            + "01/07/2025,Cafe,abc,,100,\n"
            + "02/07/2025,Cafe,5.50,,100,\n"
        ).encode()
        report = import_service.import_bytes(content, expense_request())
        assert [r.success for r in report.rows] == [False, True]

    def test_logs_known_counterparties(self, import_service, sample_vendors, caplog):
        content = (EXPENSE_HEADER + "01/07/2025,Cafe,5.50,,100,\n").encode()
        with caplog.at_level("DEBUG", logger="gstbooks.domain.csv_import"):
            import_service.import_bytes(content, expense_request(dry_run=True))
        assert f"matching against {len(sample_vendors)} known counterparties" in caplog.text

    def test_oversized_amount_fails_only_its_row(self, import_service, temp_db):
        content = (
            EXPENSE_HEADER
            + "01/07/2025,Acme,100000000000000000.00,,100,\n"
            + "02/07/2025,Acme,5.50,,100,\n"
        ).encode()

        report = import_service.import_bytes(content, expense_request())

        assert "out of range" in report.rows[0].error
        assert report.rows[1].success
        assert [e.amount_cents for e in temp_db.list_expenses()] == [550]
        assert temp_db.list_import_jobs()[0].status == "partial"

    def test_new_vendor_created_once(self, import_service, temp_db):
        content = (
            EXPENSE_HEADER
            + "01/07/2025,Cafe Nero,5.50,,100,\n"
            + "02/07/2025,CAFE NERO,6.50,,100,\n"
        ).encode()
        report = import_service.import_bytes(content, expense_request())

        assert report.success_count == 2
        vendors = temp_db.list_vendors()
        assert [v.name for v in vendors] == ["Cafe Nero"]
        assert all(e.vendor_id == vendors[0].id for e in temp_db.list_expenses())

    def test_blank_rows_keep_row_numbers(self, import_service):
        content = (
            EXPENSE_HEADER
            + "01/07/2025,Cafe,5.50,,100,\n"
            + ",,,,,\n"
            + "\n"
            + "04/07/2025,Cafe,abc,,100,\n"
        ).encode()
        report = import_service.import_bytes(content, expense_request(dry_run=True))
        assert [r.row_number for r in report.rows] == [1, 4]

    def test_headers_only(self, import_service, temp_db):
        report = import_service.import_bytes(EXPENSE_HEADER.encode(), expense_request())
        assert report.total_rows == 0
        assert temp_db.list_import_jobs()[0].status == "completed"

    def test_sequential_and_parallel_agree(self, temp_db, sample_vendors, fixtures_dir):
        path = str(fixtures_dir / "expenses_custom.csv")
        request = expense_request(dry_run=True)
        sequential = CSVImportService(temp_db, max_workers=1).import_file(path, request)
        parallel = CSVImportService(temp_db, max_workers=4).import_file(path, request)
        assert [r.to_dict() for r in sequential.rows] == [r.to_dict() for r in parallel.rows]


class TestIncomeImport:
    """Tests for importing income files."""

    def test_custom_template(self, import_service, sample_clients, fixtures_dir, temp_db):
        report = import_service.import_file(
            str(fixtures_dir / "incomes_custom.csv"), income_request()
        )

        assert report.kind == "income"
        assert report.success_count == 3
        first, second, third = report.rows

        assert first.subtotal_cents == 10000
        assert first.gst_cents == 900
        assert first.amount_cents == 10900
        assert first.warning == (
            "Total mismatch: file shows $110.00 but Subtotal + GST = $109.00. "
            "Using calculated value."
        )
        assert first.match.counterparty_id == sample_clients["Acme"]

        assert second.warning is None
        assert second.amount_cents == 110000

        assert third.subtotal_cents == 50000
        assert third.gst_cents == 5000
        assert third.amount_cents == 55000
        assert not third.match.is_match

        assert report.warning_count == 1
        assert sorted(c.name for c in temp_db.list_clients()) == ["Acme", "Globex"]
        incomes = temp_db.list_incomes()
        assert [i.invoice_number for i in incomes] == ["INV-1", "INV-2", "INV-3"]
        assert incomes[0].total_cents == 10900
        assert not any(i.is_paid for i in incomes)

    def test_subtotal_only(self, import_service):
        content = (INCOME_HEADER + "Acme,INV-9,33.33,,,01/07/2025,\n").encode()
        report = import_service.import_bytes(content, income_request(dry_run=True))
        row = report.rows[0]
        assert row.amount_cents == 3666
        assert row.gst_cents == 333
        assert row.subtotal_cents == 3333

    def test_mark_as_paid(self, import_service, fixtures_dir, temp_db):
        import_service.import_file(
            str(fixtures_dir / "incomes_custom.csv"), income_request(mark_as_paid=True)
        )
        assert all(i.is_paid for i in temp_db.list_incomes())

    def test_default_date(self, import_service):
        content = (INCOME_HEADER + "Acme,INV-1,100.00,10.00,110.00,,\n").encode()

        missing = import_service.import_bytes(content, income_request(dry_run=True))
        assert missing.rows[0].error == "Missing date"

        report = import_service.import_bytes(
            content, income_request(dry_run=True, default_date=date(2025, 9, 1))
        )
        assert report.rows[0].success
        assert report.rows[0].period == FiscalPeriod(2026, "Q1")

    @pytest.mark.parametrize(
        "line, message",
        [
            (",INV-1,100.00,10.00,110.00,01/07/2025,", "Missing client name"),
            ("Acme,INV-1,,,,01/07/2025,", "Missing amount"),
            ("Acme,INV-1,,20.00,10.00,01/07/2025,", "cannot exceed total"),
            ("Acme,INV-1,,,0.00,01/07/2025,", "Total must be greater than zero"),
            ("Acme,INV-1,-5.00,,,01/07/2025,", "Subtotal cannot be negative"),
            ("Acme,INV-1,,,1e30,01/07/2025,", "Amount out of range"),
            ("Acme,INV-1,100000000000000000.00,,,01/07/2025,", "Amount out of range"),
        ],
    )
    def test_row_errors(self, import_service, line, message):
        content = (INCOME_HEADER + line + "\n").encode()
        report = import_service.import_bytes(content, income_request(dry_run=True))
        assert message in report.rows[0].error

    def test_report_dict_includes_warnings(self, import_service, fixtures_dir):
        report = import_service.import_file(
            str(fixtures_dir / "incomes_custom.csv"), income_request(dry_run=True)
        )
        data = report.to_dict()
        assert data["warning_count"] == 1
        assert data["total_subtotal_cents"] == 10000 + 100000 + 50000
        assert data["rows"][0]["counterparty_name"] == "Acme"
        assert data["rows"][0]["quarter"] == "Q1"


class TestDuplicates:
    """Tests for duplicate handling."""

    ROWS = EXPENSE_HEADER + "01/07/2025,Cafe,5.50,,100,\n" + "01/07/2025,Cafe,5.50,,100,\n"

    def test_repeated_row_flagged(self, import_service, temp_db):
        report = import_service.import_bytes(self.ROWS.encode(), expense_request())

        first, second = report.rows
        assert first.success
        assert not second.success
        assert second.is_duplicate
        assert second.error == "Duplicate of an existing expense"
        assert report.duplicate_count == 1
        assert len(temp_db.list_expenses()) == 1

    def test_repeated_row_kept_when_not_skipping(self, import_service, temp_db):
        report = import_service.import_bytes(
            self.ROWS.encode(), expense_request(skip_duplicates=False)
        )
        assert report.success_count == 2
        assert report.duplicate_count == 0
        assert len(temp_db.list_expenses()) == 2

    def test_reimport_flags_existing(self, import_service, sample_vendors, fixtures_dir, temp_db):
        path = str(fixtures_dir / "expenses_custom.csv")
        import_service.import_file(path, expense_request())

        report = import_service.import_file(path, expense_request())

        assert report.duplicate_count == 3
        assert report.success_count == 0
        assert len(temp_db.list_expenses()) == 3
        assert temp_db.list_import_jobs()[0].status == "failed"

    def test_income_invoice_number(self, import_service, temp_db):
        """A reissued invoice number within the file's dates is a duplicate."""
        first = INCOME_HEADER + "Acme,INV-1,100.00,10.00,110.00,01/07/2025,\n"
        second = INCOME_HEADER + "Acme,INV-1,200.00,20.00,220.00,01/07/2025,\n"
        import_service.import_bytes(first.encode(), income_request())

        report = import_service.import_bytes(second.encode(), income_request())

        assert report.rows[0].is_duplicate
        assert len(temp_db.list_incomes()) == 1

    def test_repeated_invoice_kept_when_not_skipping(self, import_service, temp_db):
        row = "Acme,INV-1,100.00,10.00,110.00,01/07/2025,\n"
        content = (INCOME_HEADER + row + row).encode()

        report = import_service.import_bytes(content, income_request(skip_duplicates=False))

        assert report.success_count == 2
        assert [i.invoice_number for i in temp_db.list_incomes()] == ["INV-1", "INV-1"]

    def test_save_failure_fails_only_its_row(self, import_service, temp_db, monkeypatch):
        """A rejected write is reported on its row and the run carries on."""
        create_income = temp_db.create_income
        calls = []

        def flaky_create_income(**kwargs):
            calls.append(kwargs["invoice_number"])
            if len(calls) == 1:
                raise RuntimeError("disk I/O error")
            return create_income(**kwargs)

        monkeypatch.setattr(temp_db, "create_income", flaky_create_income)
        content = (
            INCOME_HEADER
            + "Acme,INV-1,200.00,20.00,220.00,01/08/2025,\n"
            + "Acme,INV-2,200.00,20.00,220.00,01/08/2025,\n"
        )

        report = import_service.import_bytes(content.encode(), income_request())

        assert not report.rows[0].success
        assert report.rows[0].error == "Failed to save row: disk I/O error"
        assert report.rows[1].success
        assert [i.invoice_number for i in temp_db.list_incomes()] == ["INV-2"]
        assert temp_db.list_import_jobs()[0].status == "partial"


class TestImportJob:
    """Tests for import history records."""

    def test_job_recorded(self, import_service, sample_vendors, fixtures_dir, temp_db):
        report = import_service.import_file(
            str(fixtures_dir / "expenses_custom.csv"), expense_request()
        )

        jobs = temp_db.list_import_jobs()
        assert len(jobs) == 1
        job = jobs[0]
        assert job.run_id == report.run_id
        assert job.kind == "expense"
        assert job.source == "custom"
        assert job.filename == "expenses_custom.csv"
        assert job.status == "partial"
        assert job.total_rows == 4
        assert job.imported_count == 3
        assert job.failed_count == 1
        assert job.total_amount_cents == 15400
        assert job.completed_at is not None
        assert all(e.import_job_id == job.id for e in temp_db.list_expenses())


class TestMappingResolution:
    """Tests for run-level failures raised before any row is processed."""

    def test_explicit_mapping(self, import_service):
        content = b"When,Who,Paid\n01/07/2025,Cafe,5.50\n"
        request = ImportRequest(
            kind="custom",
            mapping={"date": "When", "payee": "Who", "amount": "Paid"},
            dry_run=True,
        )
        report = import_service.import_bytes(content, request)
        assert report.kind == "expense"
        assert report.rows[0].gst_cents == 50

    def test_custom_without_mapping(self, import_service):
        with pytest.raises(InvalidMapping):
            import_service.import_bytes(b"Date,Item,Total\n", ImportRequest(kind="custom"))

    def test_undetectable_kind(self, import_service, fixtures_dir):
        with pytest.raises(InvalidMapping) as excinfo:
            import_service.import_file(str(fixtures_dir / "unknown.csv"), ImportRequest())
        assert "Could not detect" in str(excinfo.value)

    def test_template_columns_missing_from_file(self, import_service, fixtures_dir):
        with pytest.raises(InvalidMapping) as excinfo:
            import_service.import_file(
                str(fixtures_dir / "commbank.csv"), expense_request()
            )
        assert "missing required columns" in str(excinfo.value).lower()

    def test_invalid_kind(self, import_service):
        with pytest.raises(InvalidMapping):
            import_service.import_bytes(b"Date,Item,Total\n", ImportRequest(kind="transfer"))

    @pytest.mark.parametrize("content", [b"", b"\n\n", b"\xff\xfe\x00bad"])
    def test_unreadable_file(self, import_service, content):
        with pytest.raises(FileFormatError):
            import_service.import_bytes(content, expense_request())

    def test_invalid_threshold(self, import_service):
        with pytest.raises(ValidationError):
            import_service.import_bytes(
                EXPENSE_HEADER.encode(), expense_request(match_threshold=1.5)
            )

    def test_missing_file(self, import_service, tmp_path):
        with pytest.raises(FileNotFoundError):
            import_service.import_file(str(tmp_path / "nope.csv"), expense_request())

    def test_failures_write_nothing(self, import_service, fixtures_dir, temp_db):
        with pytest.raises(InvalidMapping):
            import_service.import_file(str(fixtures_dir / "unknown.csv"), ImportRequest())
        assert temp_db.list_import_jobs() == []


class TestDefaultMaxWorkers:
    """Tests for the worker count setting."""

    def test_default(self, monkeypatch):
        monkeypatch.delenv("GSTBOOKS_IMPORT_WORKERS", raising=False)
        assert default_max_workers() == 4

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("GSTBOOKS_IMPORT_WORKERS", "8")
        assert default_max_workers() == 8

    def test_invalid(self, monkeypatch):
        monkeypatch.setenv("GSTBOOKS_IMPORT_WORKERS", "lots")
        assert default_max_workers() == 4

    def test_at_least_one(self, monkeypatch):
        monkeypatch.setenv("GSTBOOKS_IMPORT_WORKERS", "0")
        assert default_max_workers() == 1
