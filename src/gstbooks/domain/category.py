"""Category domain service."""

from typing import Optional

from gstbooks.database.base import Database
from gstbooks.domain.entities import Category
from gstbooks.domain.errors import ConflictError, NotFoundError, ValidationError, category_not_found

# Fallback category name when nothing else matches an expense
OTHER_CATEGORY = "Other"

DEFAULT_CATEGORIES = [
    "Accounting",
    "Advertising",
    "Bank Fees",
    "Cloud & Hosting",
    "Equipment",
    "Fuel & Vehicle",
    "Insurance",
    "Internet",
    "Legal",
    "Office Supplies",
    "Furniture",
    "Phone",
    "Software",
    "Subscriptions",
    "Training",
    "Travel",
    OTHER_CATEGORY,
]


class CategoryService:
    """Service for managing expense categories."""

    def __init__(self, db: Database):
        """Initialize category service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_category(self, name: str) -> int:
        """Create a category.

        Args:
            name: Category name

        Returns:
            Category ID

        Raises:
            ValidationError: If the name is blank
            ConflictError: If a category with the same name exists
        """
        name = name.strip()
        if not name:
            raise ValidationError("Category name cannot be empty")
        if self.db.get_category_by_name(name) is not None:
            raise ConflictError(f"Category '{name}' already exists")
        return self.db.create_category(name=name)

    def get_category(self, category_id: int) -> Optional[Category]:
        return self.db.get_category(category_id)

    def get_category_by_name(self, name: str) -> Optional[Category]:
        return self.db.get_category_by_name(name)

    def require_category(self, name: str) -> Category:
        """Get a category by name or fail.

        Raises:
            NotFoundError: If no such category exists
        """
        category = self.db.get_category_by_name(name)
        if category is None:
            raise NotFoundError(category_not_found(name))
        return category

    def list_categories(self) -> list[Category]:
        return self.db.list_categories()

    def initialize_defaults(self, force: bool = False) -> tuple[int, int]:
        """Create the default expense categories.

        Args:
            force: Delete existing categories first

        Returns:
            (created, skipped) counts
        """
        if force:
            for category in self.db.list_categories():
                self.db.delete_category(category.id)

        created = 0
        skipped = 0
        for name in DEFAULT_CATEGORIES:
            if self.db.get_category_by_name(name) is not None:
                skipped += 1
                continue
            self.db.create_category(name=name)
            created += 1
        return created, skipped
