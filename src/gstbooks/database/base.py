"""Abstract database interface."""

from abc import ABC, abstractmethod
from typing import Optional
from datetime import date

# Import entities directly to avoid circular import through domain/__init__.py
from gstbooks.domain.entities import (
    Category,
    Vendor,
    Client,
    Expense,
    Income,
    LedgerEntry,
    ImportJob,
)


class Database(ABC):
    """Abstract database interface for gstbooks.

    The import pipeline reads counterparty and ledger snapshots through this
    interface and writes one row per call; it never depends on a storage
    technology.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Category operations
    @abstractmethod
    def create_category(self, name: str) -> int:
        """Create a category. Returns category ID."""
        pass

    @abstractmethod
    def get_category(self, category_id: int) -> Optional[Category]:
        """Get category by ID."""
        pass

    @abstractmethod
    def get_category_by_name(self, name: str) -> Optional[Category]:
        """Get category by name (case-insensitive)."""
        pass

    @abstractmethod
    def list_categories(self) -> list[Category]:
        """List all categories ordered by name."""
        pass

    @abstractmethod
    def delete_category(self, category_id: int) -> None:
        """Delete a category. Expenses keep their row with no category."""
        pass

    # Vendor operations
    @abstractmethod
    def create_vendor(
        self,
        name: str,
        is_international: bool = False,
        default_category_id: Optional[int] = None,
    ) -> int:
        """Create a vendor. Returns vendor ID."""
        pass

    @abstractmethod
    def get_vendor(self, vendor_id: int) -> Optional[Vendor]:
        """Get vendor by ID."""
        pass

    @abstractmethod
    def get_vendor_by_name(self, name: str) -> Optional[Vendor]:
        """Get vendor by name (case-insensitive)."""
        pass

    @abstractmethod
    def list_vendors(self) -> list[Vendor]:
        """List all vendors ordered by name."""
        pass

    # Client operations
    @abstractmethod
    def create_client(self, name: str) -> int:
        """Create a client. Returns client ID."""
        pass

    @abstractmethod
    def get_client(self, client_id: int) -> Optional[Client]:
        """Get client by ID."""
        pass

    @abstractmethod
    def get_client_by_name(self, name: str) -> Optional[Client]:
        """Get client by name (case-insensitive)."""
        pass

    @abstractmethod
    def list_clients(self) -> list[Client]:
        """List all clients ordered by name."""
        pass

    # Ledger operations
    @abstractmethod
    def create_expense(
        self,
        date: date,
        amount_cents: int,
        gst_cents: int,
        vendor_id: int,
        biz_percent: int = 100,
        category_id: Optional[int] = None,
        description: Optional[str] = None,
        import_job_id: Optional[int] = None,
    ) -> int:
        """Create an expense. Returns expense ID."""
        pass

    @abstractmethod
    def create_income(
        self,
        date: date,
        client_id: int,
        subtotal_cents: int,
        gst_cents: int,
        total_cents: int,
        invoice_number: Optional[str] = None,
        description: Optional[str] = None,
        is_paid: bool = False,
        import_job_id: Optional[int] = None,
    ) -> int:
        """Create an income. Returns income ID."""
        pass

    @abstractmethod
    def list_expenses(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        vendor_id: Optional[int] = None,
    ) -> list[Expense]:
        """List expenses with optional filters, ordered by date."""
        pass

    @abstractmethod
    def list_incomes(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        client_id: Optional[int] = None,
    ) -> list[Income]:
        """List incomes with optional filters, ordered by date."""
        pass

    @abstractmethod
    def find_ledger_entries(
        self, kind: str, start_date: date, end_date: date
    ) -> list[LedgerEntry]:
        """Get ledger rows of one kind within an inclusive date range.

        Args:
            kind: "expense" or "income"
            start_date: First date of the range
            end_date: Last date of the range

        Returns:
            Ledger entries with the counterparty name resolved. For incomes
            amount_cents is the GST-inclusive total.
        """
        pass

    # Import job operations
    @abstractmethod
    def create_import_job(
        self,
        run_id: str,
        kind: str,
        source: Optional[str] = None,
        filename: Optional[str] = None,
    ) -> int:
        """Open an import job record. Returns import job ID."""
        pass

    @abstractmethod
    def finish_import_job(
        self,
        import_job_id: int,
        status: str,
        total_rows: int,
        imported_count: int,
        failed_count: int,
        duplicate_count: int,
        total_amount_cents: int,
        total_gst_cents: int,
    ) -> None:
        """Close an import job record with its final counts."""
        pass

    @abstractmethod
    def get_import_job(self, import_job_id: int) -> Optional[ImportJob]:
        """Get import job by ID."""
        pass

    @abstractmethod
    def list_import_jobs(self, limit: Optional[int] = None) -> list[ImportJob]:
        """List import jobs, most recent first."""
        pass
