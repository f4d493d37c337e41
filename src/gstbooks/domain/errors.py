"""Shared domain error messages and error types."""

from typing import Iterable


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""


class InvalidMapping(ValidationError):
    """Column mapping cannot be used for an import run.

    Raised once per run, before any row is processed.
    """

    def __init__(self, message: str, missing: Iterable[str] = ()):
        super().__init__(message)
        self.missing = list(missing)


class InvalidPercent(ValidationError):
    """Business-use percentage outside 0-100."""


class FileFormatError(ValidationError):
    """Uploaded file is not a readable CSV with a header row."""


def vendor_exists(name: str) -> str:
    """Return message for a duplicate vendor name."""
    return f"Vendor with name '{name}' already exists"


def client_exists(name: str) -> str:
    """Return message for a duplicate client name."""
    return f"Client with name '{name}' already exists"


def category_not_found(name: str) -> str:
    """Return message for missing category by name."""
    return f"Category '{name}' not found"


def missing_roles(kind: str, roles: list[str]) -> str:
    """Return message for a mapping that lacks required roles."""
    return f"{kind.capitalize()} mapping is missing required columns: {', '.join(roles)}"


def percent_out_of_range(value) -> str:
    """Return message for an out-of-range business-use percentage."""
    return f"Business percentage must be between 0 and 100 (got {value})"
