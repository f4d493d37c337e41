"""Vendor and client domain services."""

from typing import Optional

from gstbooks.database.base import Database
from gstbooks.domain.entities import Client, Vendor
from gstbooks.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    category_not_found,
    client_exists,
    vendor_exists,
)


def _clean_name(name: str, what: str) -> str:
    cleaned = " ".join(name.split())
    if not cleaned:
        raise ValidationError(f"{what} name cannot be empty")
    return cleaned


class VendorService:
    """Service for managing vendors (expense counterparties)."""

    def __init__(self, db: Database):
        """Initialize vendor service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_vendor(
        self,
        name: str,
        is_international: bool = False,
        default_category: Optional[str] = None,
    ) -> int:
        """Create a new vendor.

        Args:
            name: Vendor name
            is_international: Vendor charges no Australian GST
            default_category: Optional category name used when an imported
                expense has none

        Returns:
            Vendor ID

        Raises:
            ValidationError: If the name is blank
            ConflictError: If a vendor with the same name exists
            NotFoundError: If the default category does not exist
        """
        name = _clean_name(name, "Vendor")
        if self.db.get_vendor_by_name(name) is not None:
            raise ConflictError(vendor_exists(name))

        category_id = None
        if default_category:
            category = self.db.get_category_by_name(default_category)
            if category is None:
                raise NotFoundError(category_not_found(default_category))
            category_id = category.id

        return self.db.create_vendor(
            name=name,
            is_international=is_international,
            default_category_id=category_id,
        )

    def get_vendor(self, vendor_id: int) -> Optional[Vendor]:
        return self.db.get_vendor(vendor_id)

    def list_vendors(self) -> list[Vendor]:
        return self.db.list_vendors()


class ClientService:
    """Service for managing clients (income counterparties)."""

    def __init__(self, db: Database):
        self.db = db

    def create_client(self, name: str) -> int:
        """Create a new client.

        Raises:
            ValidationError: If the name is blank
            ConflictError: If a client with the same name exists
        """
        name = _clean_name(name, "Client")
        if self.db.get_client_by_name(name) is not None:
            raise ConflictError(client_exists(name))
        return self.db.create_client(name=name)

    def get_client(self, client_id: int) -> Optional[Client]:
        return self.db.get_client(client_id)

    def list_clients(self) -> list[Client]:
        return self.db.list_clients()
