"""Domain layer for gstbooks application."""

__all__ = [
    "CategoryService",
    "VendorService",
    "ClientService",
    "CSVFormatService",
    "CSVImportService",
    "CounterpartyMatcher",
    "DuplicateDetector",
]

_SERVICES = {
    "CategoryService": "gstbooks.domain.category",
    "VendorService": "gstbooks.domain.counterparty",
    "ClientService": "gstbooks.domain.counterparty",
    "CSVFormatService": "gstbooks.domain.csv_format",
    "CSVImportService": "gstbooks.domain.csv_import",
    "CounterpartyMatcher": "gstbooks.domain.counterparty_matcher",
    "DuplicateDetector": "gstbooks.domain.duplicates",
}


# Import services lazily: the utils modules import domain.errors, and the
# services import utils.
def __getattr__(name):
    if name in _SERVICES:
        from importlib import import_module

        return getattr(import_module(_SERVICES[name]), name)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
