"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic, so schema changes stay out of the
domain services.
"""

from gstbooks.domain import entities as domain
from gstbooks.database.models import (
    Category as ORMCategory,
    Vendor as ORMVendor,
    Client as ORMClient,
    Expense as ORMExpense,
    Income as ORMIncome,
    ImportJob as ORMImportJob,
)


def category_to_domain(orm_category: ORMCategory) -> domain.Category:
    """Convert SQLAlchemy Category model to domain Category entity."""
    return domain.Category(
        id=orm_category.id,
        name=orm_category.name,
        created_at=orm_category.created_at,
    )


def vendor_to_domain(orm_vendor: ORMVendor) -> domain.Vendor:
    """Convert SQLAlchemy Vendor model to domain Vendor entity."""
    return domain.Vendor(
        id=orm_vendor.id,
        name=orm_vendor.name,
        is_international=orm_vendor.is_international,
        default_category_id=orm_vendor.default_category_id,
        created_at=orm_vendor.created_at,
    )


def client_to_domain(orm_client: ORMClient) -> domain.Client:
    """Convert SQLAlchemy Client model to domain Client entity."""
    return domain.Client(
        id=orm_client.id,
        name=orm_client.name,
        created_at=orm_client.created_at,
    )


def expense_to_domain(orm_expense: ORMExpense) -> domain.Expense:
    """Convert SQLAlchemy Expense model to domain Expense entity."""
    return domain.Expense(
        id=orm_expense.id,
        date=orm_expense.date,
        amount_cents=orm_expense.amount_cents,
        gst_cents=orm_expense.gst_cents,
        biz_percent=orm_expense.biz_percent,
        vendor_id=orm_expense.vendor_id,
        category_id=orm_expense.category_id,
        description=orm_expense.description,
        import_job_id=orm_expense.import_job_id,
        created_at=orm_expense.created_at,
    )


def income_to_domain(orm_income: ORMIncome) -> domain.Income:
    """Convert SQLAlchemy Income model to domain Income entity."""
    return domain.Income(
        id=orm_income.id,
        date=orm_income.date,
        client_id=orm_income.client_id,
        invoice_number=orm_income.invoice_number,
        description=orm_income.description,
        subtotal_cents=orm_income.subtotal_cents,
        gst_cents=orm_income.gst_cents,
        total_cents=orm_income.total_cents,
        is_paid=orm_income.is_paid,
        import_job_id=orm_income.import_job_id,
        created_at=orm_income.created_at,
    )


def expense_to_ledger_entry(orm_expense: ORMExpense) -> domain.LedgerEntry:
    """Convert an expense row to the view used for duplicate checks."""
    return domain.LedgerEntry(
        date=orm_expense.date,
        amount_cents=orm_expense.amount_cents,
        counterparty_id=orm_expense.vendor_id,
        counterparty_name=orm_expense.vendor.name,
    )


def income_to_ledger_entry(orm_income: ORMIncome) -> domain.LedgerEntry:
    """Convert an income row to the view used for duplicate checks."""
    return domain.LedgerEntry(
        date=orm_income.date,
        amount_cents=orm_income.total_cents,
        counterparty_id=orm_income.client_id,
        counterparty_name=orm_income.client.name,
        invoice_number=orm_income.invoice_number,
    )


def import_job_to_domain(orm_job: ORMImportJob) -> domain.ImportJob:
    """Convert SQLAlchemy ImportJob model to domain ImportJob entity."""
    return domain.ImportJob(
        id=orm_job.id,
        run_id=orm_job.run_id,
        kind=orm_job.kind,
        source=orm_job.source,
        filename=orm_job.filename,
        status=orm_job.status,
        total_rows=orm_job.total_rows,
        imported_count=orm_job.imported_count,
        failed_count=orm_job.failed_count,
        duplicate_count=orm_job.duplicate_count,
        total_amount_cents=orm_job.total_amount_cents,
        total_gst_cents=orm_job.total_gst_cents,
        created_at=orm_job.created_at,
        completed_at=orm_job.completed_at,
    )
