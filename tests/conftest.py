"""Shared pytest fixtures for gstbooks tests."""

import tempfile
import os
from pathlib import Path
import pytest

from gstbooks.database.factories import create_sqlite_database
from gstbooks.domain.category import CategoryService
from gstbooks.domain.counterparty import ClientService, VendorService
from gstbooks.domain.csv_format import CSVFormatService
from gstbooks.domain.csv_import import CSVImportService


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    # Create database
    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def category_service(temp_db):
    """Create a CategoryService with a temporary database."""
    return CategoryService(temp_db)


@pytest.fixture
def vendor_service(temp_db):
    """Create a VendorService with a temporary database."""
    return VendorService(temp_db)


@pytest.fixture
def client_service(temp_db):
    """Create a ClientService with a temporary database."""
    return ClientService(temp_db)


@pytest.fixture
def csv_format_service():
    """Create a CSVFormatService."""
    return CSVFormatService()


@pytest.fixture
def import_service(temp_db):
    """Create a CSVImportService with a temporary database."""
    return CSVImportService(temp_db, max_workers=2)


@pytest.fixture
def sample_categories(category_service):
    """Initialize default categories and return them by name."""
    category_service.initialize_defaults()
    return {c.name: c for c in category_service.list_categories()}


@pytest.fixture
def sample_vendors(vendor_service, sample_categories):
    """Create a few known vendors and return their IDs by name."""
    return {
        "VentraIP": vendor_service.create_vendor("VentraIP", default_category="Cloud & Hosting"),
        "GitHub": vendor_service.create_vendor(
            "GitHub", is_international=True, default_category="Software"
        ),
        "Telstra": vendor_service.create_vendor("Telstra", default_category="Phone"),
    }


@pytest.fixture
def sample_clients(client_service):
    """Create a known client and return its ID by name."""
    return {"Acme": client_service.create_client("Acme")}


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()


@pytest.fixture
def fixtures_dir():
    """Return the path to the test fixtures directory."""
    return Path(__file__).parent / "fixtures"
